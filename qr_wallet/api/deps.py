import logging
from functools import lru_cache

from fastapi import Depends, HTTPException

from ..config import Settings, get_settings
from ..db import SessionLocal, init_db
from ..services import (
    AuthService,
    BackendClient,
    CurrencyService,
    ExchangeRateService,
    KycService,
    LocalStorageService,
    NotificationService,
    UserService,
    WalletService,
)
from ..state import (
    AuthNotifier,
    CurrencyNotifier,
    NotificationsNotifier,
    SendMoneyNotifier,
    TransactionsNotifier,
    WalletNotifier,
)

logger = logging.getLogger(__name__)


class WalletClient:
    """One signed-in client: services, cache and the notifiers built on them."""

    def __init__(self, settings: Settings, session_factory=SessionLocal, http_session=None):
        self.settings = settings
        self.backend = BackendClient(settings, session=http_session)
        self.local_storage = LocalStorageService(session_factory)

        self.auth_service = AuthService(self.backend)
        self.user_service = UserService(self.backend)
        self.wallet_service = WalletService(self.backend)
        self.currency_service = CurrencyService(self.backend)
        self.notification_service = NotificationService(self.backend)
        self.kyc_service = KycService(self.backend)
        self.exchange_rates = ExchangeRateService(self.backend)

        self.auth = AuthNotifier(self.auth_service, self.user_service, self.local_storage)
        self.wallet = WalletNotifier(self.wallet_service, self.local_storage)
        self.transactions = TransactionsNotifier(
            self.wallet_service, self.local_storage, limit=settings.transactions_limit
        )
        self.send_money = SendMoneyNotifier(self.wallet_service, self.exchange_rates)
        self.currency = CurrencyNotifier(self.currency_service, self.local_storage)
        self.notifications = NotificationsNotifier(self.notification_service)

        self.auth.start()

    def restore_session(self) -> bool:
        """Resume the previous session and load its account, if one was kept."""
        if not self.auth.restore_session():
            return False
        if self.auth.state.is_authenticated:
            self.load_account()
        return True

    def load_account(self) -> None:
        """Populate the per-account notifiers after a successful sign-in."""
        self.wallet.load()
        self.transactions.load()
        self.currency.load_user_currency()
        self.notifications.refresh()

    def reset_account(self) -> None:
        self.send_money.reset()
        self.wallet.clear()
        self.transactions.clear()
        self.notifications.clear()


@lru_cache
def get_client() -> WalletClient:
    settings = get_settings()
    init_db()
    logger.info("Wallet client created")
    settings.log_configuration()
    client = WalletClient(settings)
    client.restore_session()
    return client


def require_signed_in(client: WalletClient = Depends(get_client)) -> WalletClient:
    if not client.backend.is_signed_in:
        raise HTTPException(status_code=401, detail="Not signed in")
    return client
