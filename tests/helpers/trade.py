"""
Test helpers: a fully wired settlement world and the three-party signing
workflow.

Signing order mirrors what happens off-chain:
    1. maker signs the MakerOrder digest
    2. deal order gets maker_order_hash; taker signs the TakerOrder digest
    3. settled quantity is fixed; broker signs the full DealOrder digest
"""

from dataclasses import dataclass, replace
from typing import Optional

from nftsettle import (
    NATIVE_TOKEN,
    DealOrder,
    MakerOrder,
    NftInfo,
    SaleType,
    Secp256k1KeyManager,
    SettlementConfig,
    SettlementEngine,
    TokenType,
    TypedDataDomain,
)
from nftsettle.host import (
    HostEnvironment,
    InMemoryController,
    MultiAssetContract,
    PaymentToken,
    UniqueAssetContract,
    derive_address,
)

CHAIN_ID   = 31337
T0         = 1_700_000_000
ETHER      = 10 ** 18
TOKEN_ID   = 8000001000001
BATCH_IDS  = (8000001000001, 8000001000002, 8000001000003)
BATCH_PRICES = (1 * ETHER, 2 * ETHER, 5 * ETHER)
FAR_DEADLINE = 33205644081


def key(n: int) -> Secp256k1KeyManager:
    """Deterministic test key; n must be a small positive int."""
    return Secp256k1KeyManager.from_private_bytes(n.to_bytes(32, "big"))


@dataclass
class World:
    host:       HostEnvironment
    engine:     SettlementEngine
    controller: InMemoryController
    nft:        MultiAssetContract
    unique_nft: UniqueAssetContract
    payment:    PaymentToken
    reward:     PaymentToken
    fee_to:     str
    bob:        Secp256k1KeyManager      # maker
    alice:      Secp256k1KeyManager      # taker
    sig_user:   Secp256k1KeyManager      # broker signer
    author:     Secp256k1KeyManager
    bad_user:   Secp256k1KeyManager

    @property
    def domain(self) -> TypedDataDomain:
        return self.engine.domain


def build_world(protocol_fee_bps: int = 200, max_author_fee_bps: int = 2500) -> World:
    host = HostEnvironment(chain_id=CHAIN_ID, timestamp=T0)

    bob, alice, sig_user, author, bad_user = (key(n) for n in (11, 12, 13, 14, 15))
    controller_address = derive_address("controller")
    fee_to = derive_address("fee-to")

    nft = host.register(MultiAssetContract(derive_address("nft"), "Test NFT", minters=[controller_address]))
    unique_nft = host.register(UniqueAssetContract(derive_address("unique-nft"), "Unique NFT"))
    payment = host.register(PaymentToken(derive_address("payment"), "MPMT"))
    reward = host.register(PaymentToken(derive_address("reward"), "MRWT"))

    controller = InMemoryController(
        host,
        address=            controller_address,
        nft_token=          nft.address,
        fee_to=             fee_to,
        protocol_fee_bps=   protocol_fee_bps,
        max_author_fee_bps= max_author_fee_bps,
        signers=            [sig_user.address],
    )
    controller.settle_payments([NATIVE_TOKEN, payment.address], ["ETH", "MPMT"])

    config = SettlementConfig(
        chain_id=           CHAIN_ID,
        verifying_contract= derive_address("engine"),
        reward_token=       reward.address,
    )
    engine = SettlementEngine(host, controller, config)

    for account in (bob, alice, sig_user, bad_user):
        host.mint_native(account.address, 100 * ETHER)

    return World(
        host=host, engine=engine, controller=controller, nft=nft,
        unique_nft=unique_nft, payment=payment, reward=reward, fee_to=fee_to,
        bob=bob, alice=alice, sig_user=sig_user, author=author, bad_user=bad_user,
    )


def make_nft_info(
    nft_token:  str,
    token_id:   int = TOKEN_ID,
    ids:        tuple = BATCH_IDS,
    prices:     tuple = BATCH_PRICES,
    token_type: TokenType = TokenType.MULTI,
    chain_id:   int = CHAIN_ID,
    salt:       int = 1901238923489,
) -> NftInfo:
    return NftInfo(
        nft_token=          nft_token,
        token_id=           token_id,
        batch_token_ids=    ids,
        batch_token_prices= prices,
        token_type=         token_type,
        chain_id=           chain_id,
        salt=               salt,
    )


def make_maker_order(
    nft_info:            NftInfo,
    maker:               str,
    payment_token:       str = NATIVE_TOKEN,
    sale_type:           SaleType = SaleType.MARKET,
    quantity:            int = 1,
    author_protocol_fee: int = 500,
    now:                 int = T0,
) -> MakerOrder:
    return MakerOrder(
        nft_token_hash=      nft_info.token_hash(),
        maker=               maker,
        price=               nft_info.price_of(nft_info.token_id) or 0,
        quantity=            quantity,
        payment_token=       payment_token,
        author_protocol_fee= author_protocol_fee,
        sale_type=           sale_type,
        start_time=          now + 60,
        end_time=            now + 7 * 86400,
        create_time=         now,
    )


def make_deal_order(
    maker_order:   MakerOrder,
    taker:         str,
    author:        str,
    deadline:      int = FAR_DEADLINE,
    reward_amount: int = 0,
    minted:        bool = False,
    deal_amount:   Optional[int] = None,
    now:           int = T0,
) -> DealOrder:
    if deal_amount is None:
        deal_amount = maker_order.price * maker_order.quantity
    return DealOrder(
        maker_order_hash= b"\x00" * 32,
        taker=            taker,
        author=           author,
        deal_amount=      deal_amount,
        reward_amount=    reward_amount,
        salt=             123456789,
        minted=           minted,
        deadline=         deadline,
        create_time=      now,
        quantity=         1,
    )


def sign_orders(
    domain:      TypedDataDomain,
    maker_key:   Secp256k1KeyManager,
    maker_order: MakerOrder,
    taker_key:   Secp256k1KeyManager,
    deal_order:  DealOrder,
    signer_key:  Secp256k1KeyManager,
    quantity:    int = 1,
):
    """Run the maker → taker → broker signing workflow. Returns (maker, deal)."""
    maker_hash = maker_order.order_hash(domain)
    maker_order = maker_order.with_signature(maker_key.sign_hash(maker_hash))

    deal_order = replace(deal_order, maker_order_hash=maker_hash)
    deal_order = deal_order.with_taker_sig(taker_key.sign_hash(deal_order.taker_hash(domain)))

    deal_order = replace(deal_order, quantity=quantity)
    deal_order = deal_order.with_signature(signer_key.sign_hash(deal_order.order_hash(domain)))
    return maker_order, deal_order
