"""
Controller — the settlement engine's policy collaborator.

The engine consumes only the Controller protocol. InMemoryController is
the reference implementation: a payment allow-list, an authorized signer
set, a fee schedule in basis points and mint authority over one asset
collection.

Fee arithmetic (floor, basis points):
    protocol_fee = deal_amount * protocol_fee_bps // 10000
    author_fee   = deal_amount * author_rate_bps  // 10000
    amount       = deal_amount - protocol_fee - author_fee
so amount + protocol_fee + author_fee == deal_amount exactly.
"""

import logging
from typing import Dict, Iterable, Protocol, Sequence, Set

from eth_utils import to_checksum_address

from nftsettle.core.exceptions import AuthorFeeTooHighError, ConfigurationError
from nftsettle.core.models import BPS_DENOMINATOR, NATIVE_TOKEN, FeeSplit

logger = logging.getLogger(__name__)


class Controller(Protocol):
    address: str

    def is_support_payment(self, token: str) -> bool: ...

    def is_origin_token(self, token: str) -> bool: ...

    def is_sig_address(self, account: str) -> bool: ...

    def fee_to(self) -> str: ...

    def check_fee_amount(self, deal_amount: int, author_rate_bps: int) -> FeeSplit: ...

    def mint(self, to: str, token_id: int, quantity: int) -> None: ...


class InMemoryController:

    def __init__(
        self,
        host,
        address:            str,
        nft_token:          str,
        fee_to:             str,
        protocol_fee_bps:   int = 200,
        max_author_fee_bps: int = 2500,
        signers:            Iterable[str] = (),
    ) -> None:
        if not 0 <= protocol_fee_bps <= BPS_DENOMINATOR:
            raise ConfigurationError(
                "protocol fee out of range", details={"bps": protocol_fee_bps}
            )
        self.host = host
        self.address = to_checksum_address(address)
        self.nft_token = to_checksum_address(nft_token)
        self.protocol_fee_bps = protocol_fee_bps
        self.max_author_fee_bps = max_author_fee_bps
        self._fee_to = to_checksum_address(fee_to)
        self._payments: Dict[str, str] = {}
        self._signers: Set[str] = {to_checksum_address(s) for s in signers}

    # ── Configuration ─────────────────────────────────────────

    def settle_payments(self, tokens: Sequence[str], symbols: Sequence[str]) -> None:
        """Add payment methods to the allow-list, paired with display symbols."""
        if len(tokens) != len(symbols):
            raise ConfigurationError("payment arrays do not match")
        for token, symbol in zip(tokens, symbols):
            self._payments[to_checksum_address(token)] = symbol

    def remove_payment(self, token: str) -> None:
        self._payments.pop(to_checksum_address(token), None)

    def payment_symbol(self, token: str) -> str:
        return self._payments[to_checksum_address(token)]

    def add_signer(self, account: str) -> None:
        self._signers.add(to_checksum_address(account))

    def remove_signer(self, account: str) -> None:
        self._signers.discard(to_checksum_address(account))

    def set_fee_to(self, account: str) -> None:
        self._fee_to = to_checksum_address(account)

    def set_trade_controller(self, engine, new_controller: str) -> None:
        """Hand the engine over to ``new_controller``; only this controller may."""
        engine.set_controller(new_controller, sender=self.address)

    # ── Controller protocol ───────────────────────────────────

    def is_support_payment(self, token: str) -> bool:
        return to_checksum_address(token) in self._payments

    def is_origin_token(self, token: str) -> bool:
        return to_checksum_address(token) == NATIVE_TOKEN

    def is_sig_address(self, account: str) -> bool:
        try:
            return to_checksum_address(account) in self._signers
        except (TypeError, ValueError):
            return False

    def fee_to(self) -> str:
        return self._fee_to

    def check_fee_amount(self, deal_amount: int, author_rate_bps: int) -> FeeSplit:
        if author_rate_bps < 0 or author_rate_bps > self.max_author_fee_bps:
            raise AuthorFeeTooHighError(
                details={"rate": author_rate_bps, "max": self.max_author_fee_bps}
            )
        protocol_fee = deal_amount * self.protocol_fee_bps // BPS_DENOMINATOR
        author_fee = deal_amount * author_rate_bps // BPS_DENOMINATOR
        total_fee = protocol_fee + author_fee
        return FeeSplit(
            amount=       deal_amount - total_fee,
            total_fee=    total_fee,
            protocol_fee= protocol_fee,
            author_fee=   author_fee,
        )

    def mint(self, to: str, token_id: int, quantity: int) -> None:
        asset = self.host.contract_at(self.nft_token)
        asset.mint(self.address, to, token_id, quantity)
        logger.debug("minted %d of %d to %s", quantity, token_id, to)

    def __repr__(self) -> str:
        return (
            f"InMemoryController(address={self.address}, "
            f"payments={len(self._payments)}, signers={len(self._signers)})"
        )
