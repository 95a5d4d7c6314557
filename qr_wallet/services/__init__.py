from .auth_service import AuthService
from .backend import BackendClient
from .currency_service import CurrencyService
from .exchange_rate_service import ExchangeRateService
from .kyc_service import KycService
from .local_storage import LocalStorageService
from .notification_service import NotificationService
from .user_service import UserService
from .wallet_service import WalletService
