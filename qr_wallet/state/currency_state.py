import logging
from typing import Optional

from ..core.error_handler import ErrorHandler
from ..core.errors import AppException
from ..schemas import DEFAULT_CURRENCY, CurrencyModel
from ..schemas.base import CamelModel
from ..services import currency_service
from ..services.currency_service import CurrencyService
from ..services.local_storage import LocalStorageService
from .notifier import StateNotifier

logger = logging.getLogger(__name__)


class CurrencyState(CamelModel):
    currency: CurrencyModel = DEFAULT_CURRENCY
    is_loading: bool = False
    error: Optional[str] = None

    @property
    def symbol(self) -> str:
        return self.currency.symbol

    @property
    def code(self) -> str:
        return self.currency.code


class CurrencyNotifier(StateNotifier[CurrencyState]):
    def __init__(self, service: CurrencyService, local_storage: Optional[LocalStorageService] = None):
        super().__init__(CurrencyState())
        self.service = service
        self.local_storage = local_storage

    def _remember(self, currency: CurrencyModel) -> None:
        if self.local_storage is not None:
            self.local_storage.save_setting(LocalStorageService.KEY_CURRENCY, currency.code)

    def load_user_currency(self) -> None:
        self._update(is_loading=True, error=None)
        try:
            currency = self.service.get_user_currency()
        except AppException as e:
            logger.error(f"Loading user currency failed: {e}")
            self._update(is_loading=False, error=ErrorHandler.user_friendly_message(e))
            return
        if currency is None:
            self._update(is_loading=False)
            return
        self._remember(currency)
        self._update(currency=currency, is_loading=False)

    def set_currency(self, currency: CurrencyModel) -> bool:
        """Persist ``currency`` for the signed-in user; False when signed out or on failure."""
        if self.service.backend.user_id is None:
            return False
        self._update(is_loading=True, error=None)
        try:
            saved = self.service.set_user_currency(currency.code)
        except AppException as e:
            logger.error(f"Setting currency to {currency.code} failed: {e}")
            self._update(is_loading=False, error=ErrorHandler.user_friendly_message(e))
            return False
        self._remember(saved)
        self._update(currency=saved, is_loading=False)
        return True

    def set_currency_from_country_code(self, country_code: str) -> bool:
        return self.set_currency(currency_service.get_currency_by_country_code(country_code))

    def set_local_currency(self, currency: CurrencyModel) -> None:
        """Display-only change, used before sign-in."""
        self._update(currency=currency)

    def format_amount(self, amount: float) -> str:
        return currency_service.format_amount(amount, self.state.currency)

    def format_amount_with_separators(self, amount: float) -> str:
        return currency_service.format_amount_with_separators(amount, self.state.currency)
