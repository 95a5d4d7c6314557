"""Backend error taxonomy and the exceptions raised by the service layer.

The backend attaches a machine-readable ``code`` to every callable-function
failure (``details.code``). Codes follow ``CATEGORY_SPECIFIC_CONDITION``
with the categories AUTH, KYC, WALLET, TXN, RATE, SERVICE, CONFIG and SYSTEM.
"""
import enum
from typing import Any, Dict, Optional


class ErrorCode(str, enum.Enum):
    # Authentication & authorization
    AUTH_UNAUTHENTICATED = "AUTH_UNAUTHENTICATED"
    AUTH_PERMISSION_DENIED = "AUTH_PERMISSION_DENIED"
    AUTH_SESSION_EXPIRED = "AUTH_SESSION_EXPIRED"

    # KYC & verification
    KYC_REQUIRED = "KYC_REQUIRED"
    KYC_INCOMPLETE = "KYC_INCOMPLETE"
    KYC_VERIFICATION_FAILED = "KYC_VERIFICATION_FAILED"

    # Wallet
    WALLET_NOT_FOUND = "WALLET_NOT_FOUND"
    WALLET_INSUFFICIENT_FUNDS = "WALLET_INSUFFICIENT_FUNDS"
    WALLET_LIMIT_EXCEEDED = "WALLET_LIMIT_EXCEEDED"
    WALLET_SUSPENDED = "WALLET_SUSPENDED"

    # Transactions
    TXN_INVALID_STATE = "TXN_INVALID_STATE"
    TXN_DUPLICATE_REQUEST = "TXN_DUPLICATE_REQUEST"
    TXN_SELF_TRANSFER = "TXN_SELF_TRANSFER"
    TXN_RECIPIENT_NOT_FOUND = "TXN_RECIPIENT_NOT_FOUND"
    TXN_NOT_FOUND = "TXN_NOT_FOUND"
    TXN_AMOUNT_INVALID = "TXN_AMOUNT_INVALID"
    TXN_AMOUNT_TOO_SMALL = "TXN_AMOUNT_TOO_SMALL"
    TXN_AMOUNT_TOO_LARGE = "TXN_AMOUNT_TOO_LARGE"

    # Rate limiting
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    RATE_COOLDOWN_ACTIVE = "RATE_COOLDOWN_ACTIVE"

    # External services
    SERVICE_PAYSTACK_ERROR = "SERVICE_PAYSTACK_ERROR"
    SERVICE_MOMO_ERROR = "SERVICE_MOMO_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    # Configuration
    CONFIG_MISSING = "CONFIG_MISSING"
    CONFIG_INVALID = "CONFIG_INVALID"

    # System
    SYSTEM_INTERNAL_ERROR = "SYSTEM_INTERNAL_ERROR"
    SYSTEM_VALIDATION_FAILED = "SYSTEM_VALIDATION_FAILED"
    UNKNOWN = "UNKNOWN"


ERROR_MESSAGES = {
    ErrorCode.AUTH_UNAUTHENTICATED: "Please sign in to continue.",
    ErrorCode.AUTH_PERMISSION_DENIED: "You do not have permission to perform this action.",
    ErrorCode.AUTH_SESSION_EXPIRED: "Your session has expired. Please sign in again.",
    ErrorCode.KYC_REQUIRED: "Please complete identity verification to continue.",
    ErrorCode.KYC_INCOMPLETE: "Your verification is incomplete. Please finish all steps.",
    ErrorCode.KYC_VERIFICATION_FAILED: "Identity verification failed. Please try again.",
    ErrorCode.WALLET_NOT_FOUND: "Wallet not found. Please contact support.",
    ErrorCode.WALLET_INSUFFICIENT_FUNDS: "Insufficient balance for this transaction.",
    ErrorCode.WALLET_LIMIT_EXCEEDED: "Transaction exceeds your daily limit.",
    ErrorCode.WALLET_SUSPENDED: "This wallet is suspended. Please contact support.",
    ErrorCode.TXN_INVALID_STATE: "This transaction cannot be modified.",
    ErrorCode.TXN_DUPLICATE_REQUEST: "This request has already been processed.",
    ErrorCode.TXN_SELF_TRANSFER: "You cannot transfer to your own wallet.",
    ErrorCode.TXN_RECIPIENT_NOT_FOUND: "Recipient wallet not found. Please check the ID.",
    ErrorCode.TXN_NOT_FOUND: "Transaction not found.",
    ErrorCode.TXN_AMOUNT_INVALID: "Please enter a valid amount.",
    ErrorCode.TXN_AMOUNT_TOO_SMALL: "Amount is below the minimum allowed.",
    ErrorCode.TXN_AMOUNT_TOO_LARGE: "Amount exceeds the maximum allowed.",
    ErrorCode.RATE_LIMIT_EXCEEDED: "Too many requests. Please wait before trying again.",
    ErrorCode.RATE_COOLDOWN_ACTIVE: "Please wait before retrying this action.",
    ErrorCode.SERVICE_PAYSTACK_ERROR: "Payment service error. Please try again.",
    ErrorCode.SERVICE_MOMO_ERROR: "MoMo service error. Please try again.",
    ErrorCode.SERVICE_UNAVAILABLE: "Service temporarily unavailable. Please try again.",
    ErrorCode.CONFIG_MISSING: "Service is not configured. Contact support.",
    ErrorCode.CONFIG_INVALID: "Service configuration error. Contact support.",
    ErrorCode.SYSTEM_INTERNAL_ERROR: "Something went wrong. Please try again later.",
    ErrorCode.SYSTEM_VALIDATION_FAILED: "Invalid data provided.",
}

# canonical callable status -> code used when the backend sent no details.code
STATUS_TO_CODE = {
    "unauthenticated": ErrorCode.AUTH_UNAUTHENTICATED,
    "permission-denied": ErrorCode.AUTH_PERMISSION_DENIED,
    "not-found": ErrorCode.TXN_NOT_FOUND,
    "already-exists": ErrorCode.TXN_DUPLICATE_REQUEST,
    "resource-exhausted": ErrorCode.RATE_LIMIT_EXCEEDED,
    "invalid-argument": ErrorCode.SYSTEM_VALIDATION_FAILED,
    "unavailable": ErrorCode.SERVICE_UNAVAILABLE,
    "internal": ErrorCode.SYSTEM_INTERNAL_ERROR,
}

# HTTP status used by the local API when surfacing an AppException
CODE_TO_HTTP = {
    "AUTH": 401,
    "KYC": 412,
    "WALLET": 409,
    "TXN": 400,
    "RATE": 429,
    "SERVICE": 503,
    "CONFIG": 500,
    "SYSTEM": 500,
}

_SERVICE_CODES = {
    ErrorCode.SERVICE_PAYSTACK_ERROR,
    ErrorCode.SERVICE_MOMO_ERROR,
    ErrorCode.SERVICE_UNAVAILABLE,
}


def _coerce_code(value) -> ErrorCode:
    try:
        return ErrorCode(value)
    except ValueError:
        return ErrorCode.UNKNOWN


class AppException(Exception):
    """Structured backend error carrying ``code``, ``message`` and ``details``."""

    def __init__(
        self,
        code,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status: Optional[str] = None,
        retryable: Optional[bool] = None,
    ):
        self.code = code if isinstance(code, ErrorCode) else _coerce_code(code)
        self.message = message or ERROR_MESSAGES.get(self.code, "An error occurred")
        self.details = details
        self.status = status
        if retryable is None:
            retryable = bool(details and details.get("retryable") is True) or self.code in _SERVICE_CODES
        self.retryable = retryable
        super().__init__(self.message)

    @classmethod
    def from_callable_error(cls, error: Dict[str, Any]) -> "AppException":
        """Build from the ``error`` object of a callable-function response."""
        status = normalize_status(error.get("status"))
        details = error.get("details") if isinstance(error.get("details"), dict) else None
        if details and details.get("code"):
            code = _coerce_code(details["code"])
        else:
            code = STATUS_TO_CODE.get(status, ErrorCode.UNKNOWN)
        message = (details or {}).get("message") or error.get("message") or "An error occurred"
        return cls(code, message, details=details, status=status)

    @property
    def http_status(self) -> int:
        if self.code == ErrorCode.UNKNOWN:
            return 500
        if self.code in (ErrorCode.WALLET_NOT_FOUND, ErrorCode.TXN_NOT_FOUND, ErrorCode.TXN_RECIPIENT_NOT_FOUND):
            return 404
        return CODE_TO_HTTP.get(self.code.value.split("_", 1)[0], 500)

    # authentication
    @property
    def is_unauthenticated(self) -> bool:
        return self.code == ErrorCode.AUTH_UNAUTHENTICATED

    @property
    def is_permission_denied(self) -> bool:
        return self.code == ErrorCode.AUTH_PERMISSION_DENIED

    @property
    def is_session_expired(self) -> bool:
        return self.code == ErrorCode.AUTH_SESSION_EXPIRED

    # kyc
    @property
    def is_kyc_required(self) -> bool:
        return self.code == ErrorCode.KYC_REQUIRED

    @property
    def is_kyc_incomplete(self) -> bool:
        return self.code == ErrorCode.KYC_INCOMPLETE

    # wallet
    @property
    def is_wallet_not_found(self) -> bool:
        return self.code == ErrorCode.WALLET_NOT_FOUND

    @property
    def is_insufficient_funds(self) -> bool:
        return self.code == ErrorCode.WALLET_INSUFFICIENT_FUNDS

    @property
    def is_wallet_suspended(self) -> bool:
        return self.code == ErrorCode.WALLET_SUSPENDED

    # transactions
    @property
    def is_self_transfer(self) -> bool:
        return self.code == ErrorCode.TXN_SELF_TRANSFER

    @property
    def is_duplicate_request(self) -> bool:
        return self.code == ErrorCode.TXN_DUPLICATE_REQUEST

    @property
    def is_recipient_not_found(self) -> bool:
        return self.code == ErrorCode.TXN_RECIPIENT_NOT_FOUND

    @property
    def is_amount_invalid(self) -> bool:
        return self.code in (
            ErrorCode.TXN_AMOUNT_INVALID,
            ErrorCode.TXN_AMOUNT_TOO_SMALL,
            ErrorCode.TXN_AMOUNT_TOO_LARGE,
        )

    @property
    def is_rate_limited(self) -> bool:
        return self.code in (ErrorCode.RATE_LIMIT_EXCEEDED, ErrorCode.RATE_COOLDOWN_ACTIVE)

    @property
    def is_service_error(self) -> bool:
        return self.code in _SERVICE_CODES

    def __str__(self):
        return f"AppException({self.code.value}): {self.message}"


def normalize_status(status: Optional[str]) -> str:
    """``RESOURCE_EXHAUSTED`` and ``resource-exhausted`` both become the latter."""
    if not status:
        return ""
    return str(status).lower().replace("_", "-")


class WalletException(Exception):
    """Wallet or transaction operation failed with a displayable message."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UserException(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthException(Exception):
    """Identity API rejection; ``reason`` is the raw API message (e.g. EMAIL_EXISTS)."""

    def __init__(self, reason: str, message: Optional[str] = None):
        self.reason = reason
        self.message = message or reason
        super().__init__(self.message)
