"""
nftsettle/__init__.py

nftsettle: peer-to-peer NFT trade settlement

A seller's signed listing (MakerOrder) is settled against a buyer- and
broker-countersigned instruction (DealOrder). Orders are hashed as EIP-712
typed data bound to a domain (name, version, chain id, verifying
contract); three secp256k1 signatures must agree before value moves; each
settlement hash executes at most once.
"""

__version__ = "0.3.0"

from nftsettle.config import SettlementConfig
from nftsettle.core.crypto import Secp256k1KeyManager, recover_signer, verify_signature
from nftsettle.core.models import (
    NATIVE_TOKEN,
    ZERO_ADDRESS,
    DealOrder,
    DealOrderStatus,
    FeeSplit,
    MakerOrder,
    NftInfo,
    SaleType,
    SettlementResult,
    TokenType,
)
from nftsettle.core.typed_data import TypedDataDomain
from nftsettle.ledger.rewards import RewardLedger
from nftsettle.settlement.engine import SettlementEngine
from nftsettle.verification.validator import OrderValidator, ValidationReport
from nftsettle.verification.verifier import OrderSignatureVerifier

__all__ = [
    # Orders
    "NftInfo",
    "MakerOrder",
    "DealOrder",
    "DealOrderStatus",
    "FeeSplit",
    "SettlementResult",
    "TokenType",
    "SaleType",
    # Components
    "SettlementEngine",
    "RewardLedger",
    "OrderValidator",
    "ValidationReport",
    "OrderSignatureVerifier",
    "SettlementConfig",
    "TypedDataDomain",
    # Crypto
    "Secp256k1KeyManager",
    "recover_signer",
    "verify_signature",
    # Constants
    "NATIVE_TOKEN",
    "ZERO_ADDRESS",
]
