"""
nftsettle/core/models.py

Order Data Model

Three linked, immutable order objects:

    NftInfo      the tradable batch: token contract, traded id, the
                 id/price table, token kind, chain id, salt
    MakerOrder   the seller's listing; commits to NftInfo through
                 nft_token_hash; signed by the maker
    DealOrder    the settlement instruction; references a listing by
                 maker_order_hash; carries the taker's signature over a
                 reduced field set (TakerOrder) and the broker's
                 signature over the full instruction, which embeds
                 keccak256(taker_sig)

Cross references are by hash value only. No object holds another.

═══════════════════════════════════════════════════════════════════
WIRE CONTRACTS — field order and types are fixed.
═══════════════════════════════════════════════════════════════════

    nft_token_hash = keccak256(encodePacked(
        address nftToken, uint256[] batchTokenIds, uint256[] batchTokenPrice,
        uint8 tokenType, uint256 chainId, uint256 salt))

    MakerOrder, TakerOrder, DealOrder: see MAKER_ORDER_TYPE,
    TAKER_ORDER_TYPE, DEAL_ORDER_TYPE below.

The listing's unit price is not a MakerOrder member: it is committed
through nft_token_hash (the whole price table) and pinned by the
validator's id/price pairing rule.
"""

from dataclasses import asdict, dataclass, field, replace
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple

from eth_utils import to_checksum_address

from nftsettle.core.exceptions import FieldRangeError
from nftsettle.core.typed_data import StructType, TypedDataDomain, solidity_keccak


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Payment-token sentinel for the chain's native coin
NATIVE_TOKEN = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

BPS_DENOMINATOR = 10_000


# ─────────────────────────────────────────────────────────────
# Enumerations (numbering is part of the wire format)
# ─────────────────────────────────────────────────────────────

class TokenType(IntEnum):
    """Asset kind. BASE is reserved and never delivered."""
    BASE   = 0
    UNIQUE = 1
    MULTI  = 2


class SaleType(IntEnum):
    """Sale mode. BASE is reserved; anything but AUCTION settles under market rules."""
    BASE    = 0
    MARKET  = 1
    AUCTION = 2


# ─────────────────────────────────────────────────────────────
# EIP-712 struct types
# ─────────────────────────────────────────────────────────────

MAKER_ORDER_TYPE = StructType(
    "MakerOrder",
    [
        ("nftTokenHash",      "bytes32"),
        ("maker",             "address"),
        ("quantity",          "uint256"),
        ("paymentToken",      "address"),
        ("authorProtocolFee", "uint256"),
        ("saleType",          "uint8"),
        ("startTime",         "uint256"),
        ("endTime",           "uint256"),
        ("createTime",        "uint256"),
        ("cancelTime",        "uint256"),
    ],
)

TAKER_ORDER_TYPE = StructType(
    "TakerOrder",
    [
        ("makerOrderHash", "bytes32"),
        ("taker",          "address"),
        ("author",         "address"),
        ("dealAmount",     "uint256"),
        ("rewardAmount",   "uint256"),
        ("salt",           "uint256"),
        ("minted",         "bool"),
        ("createTime",     "uint256"),
    ],
)

DEAL_ORDER_TYPE = StructType(
    "DealOrder",
    [
        ("makerOrderHash", "bytes32"),
        ("taker",          "address"),
        ("author",         "address"),
        ("dealAmount",     "uint256"),
        ("rewardAmount",   "uint256"),
        ("salt",           "uint256"),
        ("minted",         "bool"),
        ("deadline",       "uint256"),
        ("createTime",     "uint256"),
        ("takerSig",       "bytes"),
        ("quantity",       "uint256"),
    ],
)


# ─────────────────────────────────────────────────────────────
# Coercion helpers
# ─────────────────────────────────────────────────────────────

def _to_bytes(value: Any) -> bytes:
    if value is None:
        return b""
    if isinstance(value, str):
        text = value[2:] if value.startswith(("0x", "0X")) else value
        return bytes.fromhex(text)
    return bytes(value)


def _hex(value: bytes) -> str:
    return "0x" + value.hex()


def _set(obj: Any, name: str, value: Any) -> None:
    object.__setattr__(obj, name, value)


def _check_uint(obj: Any, names: Tuple[str, ...], bits: int = 256) -> None:
    for name in names:
        _check_range(obj, name, getattr(obj, name), bits)


def _check_range(obj: Any, name: str, value: Any, bits: int = 256) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 1 << bits:
        raise FieldRangeError(details={
            "field": f"{type(obj).__name__}.{name}", "type": f"uint{bits}", "value": value,
        })


def _check_bytes32(obj: Any, name: str) -> None:
    value = getattr(obj, name)
    if len(value) != 32:
        raise FieldRangeError(details={
            "field": f"{type(obj).__name__}.{name}", "type": "bytes32", "length": len(value),
        })


# ─────────────────────────────────────────────────────────────
# NftInfo
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class NftInfo:
    nft_token:          str
    token_id:           int
    batch_token_ids:    Tuple[int, ...]
    batch_token_prices: Tuple[int, ...]
    token_type:         TokenType
    chain_id:           int
    salt:               int

    def __post_init__(self) -> None:
        _set(self, "nft_token", to_checksum_address(self.nft_token))
        _set(self, "batch_token_ids", tuple(int(i) for i in self.batch_token_ids))
        _set(self, "batch_token_prices", tuple(int(p) for p in self.batch_token_prices))
        _set(self, "token_type", TokenType(self.token_type))
        _check_uint(self, ("token_id", "chain_id", "salt"))
        for name in ("batch_token_ids", "batch_token_prices"):
            for value in getattr(self, name):
                _check_range(self, name, value)

    def token_hash(self) -> bytes:
        """keccak256 commitment to the whole batch, embedded in MakerOrder."""
        return solidity_keccak(
            ["address", "uint256[]", "uint256[]", "uint8", "uint256", "uint256"],
            [
                self.nft_token,
                list(self.batch_token_ids),
                list(self.batch_token_prices),
                int(self.token_type),
                self.chain_id,
                self.salt,
            ],
        )

    def price_of(self, token_id: int) -> Optional[int]:
        """Listed price for ``token_id``, or None when it is not in the batch."""
        for tid, price in zip(self.batch_token_ids, self.batch_token_prices):
            if tid == token_id:
                return price
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nft_token":          self.nft_token,
            "token_id":           self.token_id,
            "batch_token_ids":    list(self.batch_token_ids),
            "batch_token_prices": list(self.batch_token_prices),
            "token_type":         int(self.token_type),
            "chain_id":           self.chain_id,
            "salt":               self.salt,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NftInfo":
        return cls(
            nft_token=          data["nft_token"],
            token_id=           int(data["token_id"]),
            batch_token_ids=    tuple(data["batch_token_ids"]),
            batch_token_prices= tuple(data["batch_token_prices"]),
            token_type=         TokenType(int(data["token_type"])),
            chain_id=           int(data["chain_id"]),
            salt=               int(data["salt"]),
        )


# ─────────────────────────────────────────────────────────────
# MakerOrder
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class MakerOrder:
    nft_token_hash:      bytes
    maker:               str
    price:               int
    quantity:            int
    payment_token:       str
    author_protocol_fee: int
    sale_type:           SaleType
    start_time:          int
    end_time:            int
    create_time:         int
    cancel_time:         int = 0
    signature:           bytes = field(default=b"", compare=False)

    def __post_init__(self) -> None:
        _set(self, "nft_token_hash", _to_bytes(self.nft_token_hash))
        _set(self, "maker", to_checksum_address(self.maker))
        _set(self, "payment_token", to_checksum_address(self.payment_token))
        _set(self, "sale_type", SaleType(self.sale_type))
        _set(self, "signature", _to_bytes(self.signature))
        _check_bytes32(self, "nft_token_hash")
        _check_uint(self, (
            "price", "quantity", "author_protocol_fee",
            "start_time", "end_time", "create_time", "cancel_time",
        ))

    @property
    def is_auction(self) -> bool:
        return self.sale_type == SaleType.AUCTION

    def typed_values(self) -> Dict[str, Any]:
        return {
            "nftTokenHash":      self.nft_token_hash,
            "maker":             self.maker,
            "quantity":          self.quantity,
            "paymentToken":      self.payment_token,
            "authorProtocolFee": self.author_protocol_fee,
            "saleType":          int(self.sale_type),
            "startTime":         self.start_time,
            "endTime":           self.end_time,
            "createTime":        self.create_time,
            "cancelTime":        self.cancel_time,
        }

    def order_hash(self, domain: TypedDataDomain) -> bytes:
        """EIP-712 digest the maker signs; DealOrder.maker_order_hash must equal it."""
        return domain.digest(MAKER_ORDER_TYPE, self.typed_values())

    def with_signature(self, signature: bytes) -> "MakerOrder":
        return replace(self, signature=signature)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["nft_token_hash"] = _hex(self.nft_token_hash)
        data["sale_type"] = int(self.sale_type)
        data["signature"] = _hex(self.signature)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MakerOrder":
        return cls(
            nft_token_hash=      data["nft_token_hash"],
            maker=               data["maker"],
            price=               int(data["price"]),
            quantity=            int(data["quantity"]),
            payment_token=       data["payment_token"],
            author_protocol_fee= int(data["author_protocol_fee"]),
            sale_type=           SaleType(int(data["sale_type"])),
            start_time=          int(data["start_time"]),
            end_time=            int(data["end_time"]),
            create_time=         int(data["create_time"]),
            cancel_time=         int(data.get("cancel_time", 0)),
            signature=           data.get("signature") or b"",
        )


# ─────────────────────────────────────────────────────────────
# DealOrder
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DealOrder:
    maker_order_hash: bytes
    taker:            str
    author:           str
    deal_amount:      int
    reward_amount:    int
    salt:             int
    minted:           bool
    deadline:         int
    create_time:      int
    quantity:         int
    taker_sig:        bytes = b""
    signature:        bytes = field(default=b"", compare=False)

    def __post_init__(self) -> None:
        _set(self, "maker_order_hash", _to_bytes(self.maker_order_hash))
        _set(self, "taker", to_checksum_address(self.taker))
        _set(self, "author", to_checksum_address(self.author))
        _set(self, "minted", bool(self.minted))
        _set(self, "taker_sig", _to_bytes(self.taker_sig))
        _set(self, "signature", _to_bytes(self.signature))
        _check_bytes32(self, "maker_order_hash")
        _check_uint(self, (
            "deal_amount", "reward_amount", "salt", "deadline", "create_time", "quantity",
        ))

    def taker_values(self) -> Dict[str, Any]:
        return {
            "makerOrderHash": self.maker_order_hash,
            "taker":          self.taker,
            "author":         self.author,
            "dealAmount":     self.deal_amount,
            "rewardAmount":   self.reward_amount,
            "salt":           self.salt,
            "minted":         self.minted,
            "createTime":     self.create_time,
        }

    def deal_values(self) -> Dict[str, Any]:
        values = self.taker_values()
        values.update({
            "deadline": self.deadline,
            "takerSig": self.taker_sig,
            "quantity": self.quantity,
        })
        return values

    def taker_hash(self, domain: TypedDataDomain) -> bytes:
        """Digest of the buyer's reduced intent (no deadline, quantity or signatures)."""
        return domain.digest(TAKER_ORDER_TYPE, self.taker_values())

    def order_hash(self, domain: TypedDataDomain) -> bytes:
        """Settlement hash: the broker-signed digest and the replay key."""
        return domain.digest(DEAL_ORDER_TYPE, self.deal_values())

    def with_taker_sig(self, taker_sig: bytes) -> "DealOrder":
        return replace(self, taker_sig=taker_sig)

    def with_signature(self, signature: bytes) -> "DealOrder":
        return replace(self, signature=signature)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["maker_order_hash"] = _hex(self.maker_order_hash)
        data["taker_sig"] = _hex(self.taker_sig)
        data["signature"] = _hex(self.signature)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DealOrder":
        return cls(
            maker_order_hash= data["maker_order_hash"],
            taker=            data["taker"],
            author=           data["author"],
            deal_amount=      int(data["deal_amount"]),
            reward_amount=    int(data.get("reward_amount", 0)),
            salt=             int(data["salt"]),
            minted=           bool(data["minted"]),
            deadline=         int(data["deadline"]),
            create_time=      int(data["create_time"]),
            quantity=         int(data["quantity"]),
            taker_sig=        data.get("taker_sig") or b"",
            signature=        data.get("signature") or b"",
        )


# ─────────────────────────────────────────────────────────────
# Settlement state
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DealOrderStatus:
    """
    Write-once record per settlement hash.

    executed   the hash has been consumed; any later attempt is a replay
    processed  funds and asset actually moved; False only for an inert
               auction settlement
    """
    executed:  bool = False
    processed: bool = False


UNSEEN = DealOrderStatus()


@dataclass(frozen=True)
class FeeSplit:
    """Controller fee quote. amount + protocol_fee + author_fee == deal amount."""
    amount:       int
    total_fee:    int
    protocol_fee: int
    author_fee:   int

    def adds_up_to(self, deal_amount: int) -> bool:
        return (
            self.amount + self.protocol_fee + self.author_fee == deal_amount
            and self.total_fee == self.protocol_fee + self.author_fee
            and min(self.amount, self.protocol_fee, self.author_fee) >= 0
        )


@dataclass(frozen=True)
class SettlementResult:
    deal_order_hash:  bytes
    maker_order_hash: bytes
    total_fee:        int
    processed:        bool
