"""
nftsettle/verification/verifier.py

Order Signature Verification

Three independent signatures guard every settlement:

    maker   signs MakerOrder digest    → must recover to maker_order.maker
    taker   signs TakerOrder digest    → must recover to deal_order.taker
    signer  signs DealOrder digest     → must recover to an address in the
                                         Controller's authorized signer set

verify() is the boolean primitive; it never raises. The check_* methods
turn a mismatch into the error that names the failing party, so callers
can tell a bad maker signature from a bad broker signature.
"""

import logging
from typing import Callable, Optional

from eth_abi.exceptions import EncodingError

from nftsettle.core.crypto import recover_signer, verify_signature
from nftsettle.core.exceptions import (
    MakerSignatureError,
    SignerSignatureError,
    TakerSignatureError,
)
from nftsettle.core.models import DealOrder, MakerOrder
from nftsettle.core.typed_data import TypedDataDomain

logger = logging.getLogger(__name__)


def verify(digest: bytes, signature: bytes, expected_signer: str) -> bool:
    """True iff ``signature`` over ``digest`` recovers to ``expected_signer``."""
    return verify_signature(digest, signature, expected_signer)


class OrderSignatureVerifier:

    def __init__(
        self,
        domain:         TypedDataDomain,
        is_sig_address: Callable[[str], bool],
    ) -> None:
        self.domain = domain
        self.is_sig_address = is_sig_address

    def check_maker(self, maker_order: MakerOrder) -> bytes:
        """Verify the listing signature. Returns the listing digest."""
        digest = maker_order.order_hash(self.domain)
        if not verify(digest, maker_order.signature, maker_order.maker):
            raise MakerSignatureError(details={"maker": maker_order.maker})
        return digest

    def check_taker(self, deal_order: DealOrder) -> bytes:
        """Verify the buyer's intent signature. Returns the intent digest."""
        digest = deal_order.taker_hash(self.domain)
        if not verify(digest, deal_order.taker_sig, deal_order.taker):
            raise TakerSignatureError(details={"taker": deal_order.taker})
        return digest

    def check_signer(self, deal_order: DealOrder) -> bytes:
        """Verify the broker signature. Returns the settlement hash."""
        digest = deal_order.order_hash(self.domain)
        signer = recover_signer(digest, deal_order.signature)
        if signer is None or not self.is_sig_address(signer):
            raise SignerSignatureError(details={"recovered": signer})
        logger.debug("deal order 0x%s signed by %s", digest.hex(), signer)
        return digest

    def check_all(self, maker_order: MakerOrder, deal_order: DealOrder) -> bytes:
        """Maker, then taker, then signer. Returns the settlement hash."""
        self.check_maker(maker_order)
        self.check_taker(deal_order)
        return self.check_signer(deal_order)

    def recover_all(self, maker_order: MakerOrder, deal_order: DealOrder) -> dict:
        """Recovered address per party, None where recovery fails. Never raises."""
        return {
            "maker":  _safe_recover(lambda: maker_order.order_hash(self.domain), maker_order.signature),
            "taker":  _safe_recover(lambda: deal_order.taker_hash(self.domain), deal_order.taker_sig),
            "signer": _safe_recover(lambda: deal_order.order_hash(self.domain), deal_order.signature),
        }


def _safe_recover(digest_fn: Callable[[], bytes], signature: bytes) -> Optional[str]:
    try:
        digest = digest_fn()
    except (EncodingError, ValueError, KeyError, TypeError):
        return None
    return recover_signer(digest, signature)
