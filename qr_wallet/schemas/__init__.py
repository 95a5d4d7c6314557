from .currency_schemas import DEFAULT_CURRENCY, SUPPORTED_CURRENCIES, CurrencyModel, currency_symbol
from .notification_schemas import NotificationModel, NotificationType
from .transaction_schemas import (
    AddMoneyRequest,
    SendMoneyRequest,
    TransactionFilter,
    TransactionModel,
    TransactionResult,
    TransactionStatus,
    TransactionType,
)
from .user_schemas import AuthResult, KycStatus, KycVerificationResult, UserModel, UserResult
from .wallet_schemas import WalletLookupResult, WalletModel
