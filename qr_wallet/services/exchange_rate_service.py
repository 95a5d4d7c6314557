"""Exchange rates for cross-currency transfers.

Rates are quoted against USD and read from the ``app_config/exchange_rates``
document. They are cached for 30 minutes; when the document cannot be read
the built-in table is used instead.
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from ..core.errors import AppException
from ..schemas.base import utcnow
from .backend import BackendClient

logger = logging.getLogger(__name__)

RATES_DOCUMENT = "app_config/exchange_rates"
CACHE_DURATION = timedelta(minutes=30)

FALLBACK_RATES: Dict[str, float] = {
    "USD": 1.0,
    "NGN": 1550.0,
    "ZAR": 18.5,
    "KES": 129.0,
    "GHS": 15.4,
    "EGP": 50.0,
    "TZS": 2700.0,
    "UGX": 3700.0,
    "RWF": 1300.0,
    "ETB": 56.0,
    "MAD": 10.0,
    "DZD": 135.0,
    "TND": 3.1,
    "XAF": 600.0,
    "XOF": 600.0,
    "ZMW": 27.0,
    "BWP": 13.5,
    "NAD": 18.5,
    "MZN": 64.0,
    "AOA": 830.0,
    "CDF": 2800.0,
    "SDG": 600.0,
    "LYD": 4.8,
    "MUR": 45.0,
    "MWK": 1700.0,
    "SLL": 22000.0,
    "LRD": 190.0,
    "GMD": 67.0,
    "GNF": 8600.0,
    "BIF": 2850.0,
    "ERN": 15.0,
    "DJF": 178.0,
    "SOS": 570.0,
    "SSP": 130.0,
    "LSL": 18.5,
    "SZL": 18.5,
    "MGA": 4500.0,
    "SCR": 13.0,
    "KMF": 450.0,
    "MRU": 40.0,
    "CVE": 101.0,
    "STN": 22.5,
    "GBP": 0.79,
    "EUR": 0.92,
}


class UnsupportedCurrencyError(ValueError):
    pass


def needs_conversion(from_currency: str, to_currency: str) -> bool:
    return from_currency != to_currency


class ExchangeRateService:
    def __init__(self, backend: BackendClient, cache_duration: timedelta = CACHE_DURATION):
        self.backend = backend
        self.cache_duration = cache_duration
        self._cached_rates: Optional[Dict[str, float]] = None
        self._cache_time: Optional[datetime] = None
        self._updated_at: Optional[datetime] = None

    def get_rates(self) -> Dict[str, float]:
        if self._cached_rates is not None and utcnow() - self._cache_time < self.cache_duration:
            return self._cached_rates

        try:
            data = self.backend.get_document(RATES_DOCUMENT)
        except AppException as e:
            logger.warning(f"Could not read exchange rates, using fallback table: {e}")
            return FALLBACK_RATES
        if not data or not isinstance(data.get("rates"), dict):
            logger.warning("Exchange rate document missing, using fallback table")
            return FALLBACK_RATES

        self._cached_rates = {code: float(rate) for code, rate in data["rates"].items()}
        self._cache_time = utcnow()
        self._updated_at = data.get("updatedAt")
        return self._cached_rates

    def refresh_rates(self) -> Dict[str, float]:
        self._cached_rates = None
        self._cache_time = None
        return self.get_rates()

    @property
    def last_update_time(self) -> Optional[datetime]:
        """``updatedAt`` of the cached rate document."""
        return self._updated_at

    def _rate(self, rates: Dict[str, float], code: str) -> float:
        rate = rates.get(code, FALLBACK_RATES.get(code))
        if not rate:
            raise UnsupportedCurrencyError(f"Unsupported currency: {code}")
        return rate

    def get_exchange_rate(self, from_currency: str, to_currency: str) -> float:
        """Units of ``to_currency`` per one unit of ``from_currency``."""
        if not needs_conversion(from_currency, to_currency):
            return 1.0
        rates = self.get_rates()
        return self._rate(rates, to_currency) / self._rate(rates, from_currency)

    def convert(self, amount: float, from_currency: str, to_currency: str) -> float:
        return amount * self.get_exchange_rate(from_currency, to_currency)

    def format_conversion_info(self, from_currency: str, to_currency: str) -> str:
        rate = self.get_exchange_rate(from_currency, to_currency)
        return f"1 {from_currency} = {rate:.4f} {to_currency}"
