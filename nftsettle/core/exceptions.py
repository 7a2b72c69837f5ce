"""
nftsettle Exception Hierarchy

All exceptions inherit from NftSettleError for easy catching.

Every rejection carries a stable ``reason`` string. The reasons are part of
the protocol surface: brokers and operators match on them, so they must not
change between releases.

Categories:
    AuthorizationError   wrong caller for the operation
    TemporalError        deadline passed
    ConfigurationError   unsupported payment method, missing fee recipient
    ValidationError      structural / consistency failures between orders
    SignatureError       maker, taker or signer signature mismatch
    ReplayError          settlement hash already executed
    InsufficiencyError   balances, allowances, reward funding
"""


class NftSettleError(Exception):
    """Base exception for all nftsettle errors"""

    reason = "settlement error"

    def __init__(self, message: str = None, details: dict = None):
        message = message or self.reason
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


# ─────────────────────────────────────────────────────────────
# Categories
# ─────────────────────────────────────────────────────────────

class AuthorizationError(NftSettleError):
    """Raised when the caller is not allowed to perform the operation"""
    reason = "caller is not authorized"


class TemporalError(NftSettleError):
    """Raised when an order is used outside its time bounds"""
    reason = "order time bounds violated"


class ConfigurationError(NftSettleError):
    """Raised when configuration rules out the requested operation"""
    reason = "configuration error"


class ValidationError(NftSettleError):
    """Raised when order data is structurally inconsistent"""
    reason = "order validation failed"


class SignatureError(NftSettleError):
    """Raised when a signature does not recover to the expected party"""
    reason = "signature verification failed"


class ReplayError(NftSettleError):
    """Raised when a settlement hash is used twice"""
    reason = "order replay"


class InsufficiencyError(NftSettleError):
    """Raised when a balance or allowance does not cover an amount"""
    reason = "insufficient funds"


# ─────────────────────────────────────────────────────────────
# Authorization
# ─────────────────────────────────────────────────────────────

class CallerNotTakerError(AuthorizationError):
    reason = "caller is not the taker"


class CallerNotSignerError(AuthorizationError):
    reason = "caller is not the signer"


class NotControllerError(AuthorizationError):
    reason = "the caller is not the controller"


class ReentrancyError(AuthorizationError):
    reason = "reentrant call"


class MinterRoleError(AuthorizationError):
    reason = "caller is not a minter"


class AssetApprovalError(AuthorizationError):
    """Raised by asset contracts when the operator is not approved"""
    reason = "caller is not token owner nor approved"


# ─────────────────────────────────────────────────────────────
# Temporal
# ─────────────────────────────────────────────────────────────

class DeadlineExpiredError(TemporalError):
    reason = "Transaction too old"


# ─────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────

class UnsupportedPaymentError(ConfigurationError):
    reason = "not support payment token"


class AuctionNativePaymentError(ConfigurationError):
    reason = "auction does not support origin token"


class UnexpectedValueError(ConfigurationError):
    reason = "value attached to a token-paid order"


class ZeroFeeAddressError(ConfigurationError):
    reason = "fee address is zero"


class ZeroAuthorAddressError(ConfigurationError):
    reason = "author address is zero"


class ZeroAddressError(ConfigurationError):
    reason = "zero address"


class UnsupportedTokenTypeError(ConfigurationError):
    reason = "unsupported nft token type"


class AuthorFeeTooHighError(ConfigurationError):
    reason = "author protocol fee exceeds limit"


class FeeInvariantError(ConfigurationError):
    reason = "fee split does not add up to deal amount"


class UnknownContractError(ConfigurationError):
    reason = "no contract at address"


# ─────────────────────────────────────────────────────────────
# Validation
# ─────────────────────────────────────────────────────────────

class QuantityVerificationError(ValidationError):
    reason = "order quantity not verified"


class BatchArrayMismatchError(ValidationError):
    reason = "batch token arrays do not match"


class TokenDataValidationError(ValidationError):
    reason = "nft token data validation failed"


class DealAmountTooLowError(ValidationError):
    reason = "deal amount is below the order total"


class MakerOrderHashMismatchError(ValidationError):
    reason = "maker order hash mismatch"


class ChainMismatchError(ValidationError):
    reason = "nft chain id does not match domain"


class MintQuantityError(ValidationError):
    reason = "unminted order quantity must be one"


class AssetExistsError(ValidationError):
    reason = "token already minted"


class FieldRangeError(ValidationError):
    reason = "value out of range for its wire type"


class UniqueQuantityError(ValidationError):
    reason = "unique token quantity must be one"


# ─────────────────────────────────────────────────────────────
# Authenticity
# ─────────────────────────────────────────────────────────────

class MakerSignatureError(SignatureError):
    reason = "Failed to verify maker signature"


class TakerSignatureError(SignatureError):
    reason = "Failed to verify taker signature"


class SignerSignatureError(SignatureError):
    reason = "Failed to verify singer signature"


# ─────────────────────────────────────────────────────────────
# Replay
# ─────────────────────────────────────────────────────────────

class DealOrderCompletedError(ReplayError):
    reason = "deal order has been completed"


# ─────────────────────────────────────────────────────────────
# Insufficiency
# ─────────────────────────────────────────────────────────────

class InsufficientValueError(InsufficiencyError):
    reason = "insufficient value attached"


class NoRewardError(InsufficiencyError):
    reason = "no reward to claim"


class RewardUnderfundedError(InsufficiencyError):
    reason = "insufficient reward token balance"


class AssetBalanceError(InsufficiencyError):
    """Raised by asset contracts when the owner lacks the units"""
    reason = "insufficient balance for transfer"


class TokenTransferError(InsufficiencyError):
    """Raised by payment tokens on balance or allowance shortfall"""
    reason = "token transfer failed"


class NativeTransferError(InsufficiencyError):
    reason = "native transfer amount exceeds balance"
