"""
nftsettle/verification/validator.py

Order Validator — structural consistency between NftInfo, MakerOrder and
DealOrder, checked before any signature or balance is touched.

PROTOCOL INVARIANT: check order is fixed and each failure is its own error.

    1. maker.quantity >= deal.quantity > 0          QuantityVerificationError
    2. len(batch ids) == len(batch prices)          BatchArrayMismatchError
    3. ∃ i: ids[i] == token_id ∧ prices[i] == price  TokenDataValidationError
    4. deal_amount >= price * deal.quantity         DealAmountTooLowError
    5. nft_info.chain_id == domain.chain_id         ChainMismatchError
    6. listing digest == deal.maker_order_hash      MakerOrderHashMismatchError

No state is read or written. validate() can be called on its own for
inspection; inspect() collects every failure instead of stopping at the
first one.
"""

from dataclasses import dataclass, field
from typing import Callable, List

from nftsettle.core.exceptions import (
    BatchArrayMismatchError,
    ChainMismatchError,
    DealAmountTooLowError,
    MakerOrderHashMismatchError,
    QuantityVerificationError,
    TokenDataValidationError,
    ValidationError,
)
from nftsettle.core.models import DealOrder, MakerOrder, NftInfo
from nftsettle.core.typed_data import TypedDataDomain


@dataclass
class ValidationReport:
    """
    Result of OrderValidator.inspect().

    Returned — not raised — so callers can report every violation.
    bool(report) is True iff valid.
    """
    maker_order_hash: bytes = b""
    errors:           List[ValidationError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        return self.valid

    def reasons(self) -> List[str]:
        return [e.reason for e in self.errors]

    def __repr__(self) -> str:
        if self.valid:
            return "ValidationReport(VALID)"
        return f"ValidationReport(INVALID, errors={self.reasons()})"


class OrderValidator:

    def __init__(self, domain: TypedDataDomain) -> None:
        self.domain = domain

    def validate(
        self,
        nft_info:    NftInfo,
        maker_order: MakerOrder,
        deal_order:  DealOrder,
    ) -> bytes:
        """Raise the first violation; return the listing digest when all pass."""
        for check in self._checks():
            check(nft_info, maker_order, deal_order)
        return self._listing_hash(nft_info, maker_order, deal_order)

    def inspect(
        self,
        nft_info:    NftInfo,
        maker_order: MakerOrder,
        deal_order:  DealOrder,
    ) -> ValidationReport:
        report = ValidationReport(maker_order_hash=maker_order.order_hash(self.domain))
        for check in self._checks():
            try:
                check(nft_info, maker_order, deal_order)
            except ValidationError as exc:
                report.errors.append(exc)
        try:
            self._listing_hash(nft_info, maker_order, deal_order)
        except ValidationError as exc:
            report.errors.append(exc)
        return report

    # ── Checks ────────────────────────────────────────────────

    def _checks(self) -> List[Callable[[NftInfo, MakerOrder, DealOrder], None]]:
        return [
            self._check_quantity,
            self._check_batch_arrays,
            self._check_token_data,
            self._check_deal_amount,
            self._check_chain,
        ]

    @staticmethod
    def _check_quantity(nft_info: NftInfo, maker_order: MakerOrder, deal_order: DealOrder) -> None:
        if not maker_order.quantity >= deal_order.quantity > 0:
            raise QuantityVerificationError(
                details={"listed": maker_order.quantity, "requested": deal_order.quantity}
            )

    @staticmethod
    def _check_batch_arrays(nft_info: NftInfo, maker_order: MakerOrder, deal_order: DealOrder) -> None:
        if len(nft_info.batch_token_ids) != len(nft_info.batch_token_prices):
            raise BatchArrayMismatchError(
                details={
                    "ids":    len(nft_info.batch_token_ids),
                    "prices": len(nft_info.batch_token_prices),
                }
            )

    @staticmethod
    def _check_token_data(nft_info: NftInfo, maker_order: MakerOrder, deal_order: DealOrder) -> None:
        pairs = zip(nft_info.batch_token_ids, nft_info.batch_token_prices)
        if not any(tid == nft_info.token_id and price == maker_order.price for tid, price in pairs):
            raise TokenDataValidationError(
                details={"token_id": nft_info.token_id, "price": maker_order.price}
            )

    @staticmethod
    def _check_deal_amount(nft_info: NftInfo, maker_order: MakerOrder, deal_order: DealOrder) -> None:
        minimum = maker_order.price * deal_order.quantity
        if deal_order.deal_amount < minimum:
            raise DealAmountTooLowError(
                details={"deal_amount": deal_order.deal_amount, "minimum": minimum}
            )

    def _check_chain(self, nft_info: NftInfo, maker_order: MakerOrder, deal_order: DealOrder) -> None:
        if nft_info.chain_id != self.domain.chain_id:
            raise ChainMismatchError(
                details={"nft_chain_id": nft_info.chain_id, "domain_chain_id": self.domain.chain_id}
            )

    def _listing_hash(self, nft_info: NftInfo, maker_order: MakerOrder, deal_order: DealOrder) -> bytes:
        # nft_token_hash on the listing must commit to this exact NftInfo
        digest = maker_order.order_hash(self.domain)
        if maker_order.nft_token_hash != nft_info.token_hash() or digest != deal_order.maker_order_hash:
            raise MakerOrderHashMismatchError(
                details={
                    "expected": "0x" + digest.hex(),
                    "got":      "0x" + deal_order.maker_order_hash.hex(),
                }
            )
        return digest
