import logging
from typing import Optional

from ..core.errors import AppException, ErrorCode
from ..schemas import DEFAULT_CURRENCY, SUPPORTED_CURRENCIES, CurrencyModel
from ..schemas.base import utcnow
from .backend import BackendClient

logger = logging.getLogger(__name__)


def get_currency_by_country_code(country_code: str) -> CurrencyModel:
    """Currency for a dial code such as ``+233`` or ``233``; NGN when unknown."""
    dial_code = country_code if country_code.startswith("+") else f"+{country_code}"
    return next((c for c in SUPPORTED_CURRENCIES if c.country_code == dial_code), DEFAULT_CURRENCY)


def get_currency_by_code(code: str) -> CurrencyModel:
    return next((c for c in SUPPORTED_CURRENCIES if c.code == code.upper()), DEFAULT_CURRENCY)


def format_amount(amount: float, currency: CurrencyModel) -> str:
    return f"{currency.symbol}{amount:.2f}"


def format_amount_with_separators(amount: float, currency: CurrencyModel) -> str:
    # comma-grouped regardless of locale: 1234567.5 -> 1,234,567.50
    return f"{currency.symbol}{amount:,.2f}"


class CurrencyService:
    """Reads and writes the signed-in user's display currency."""

    def __init__(self, backend: BackendClient):
        self.backend = backend

    def get_user_currency(self) -> Optional[CurrencyModel]:
        user_id = self.backend.user_id
        if user_id is None:
            return None
        data = self.backend.get_document(f"users/{user_id}")
        code = (data or {}).get("currency")
        return get_currency_by_code(code) if code else None

    def set_user_currency(self, code: str) -> CurrencyModel:
        """Write the currency to both the user and the wallet document."""
        user_id = self.backend.user_id
        if user_id is None:
            raise AppException(ErrorCode.AUTH_UNAUTHENTICATED)
        currency = get_currency_by_code(code)
        fields = {"currency": currency.code, "updatedAt": utcnow()}
        self.backend.update_document(f"users/{user_id}", fields)
        self.backend.update_document(f"wallets/{user_id}", fields)
        logger.info(f"Currency for {user_id} set to {currency.code}")
        return currency
