from datetime import datetime
from typing import Optional

from .base import CamelModel
from .currency_schemas import currency_symbol

DEFAULT_DAILY_LIMIT = 500000.0
DEFAULT_MONTHLY_LIMIT = 5000000.0


class WalletModel(CamelModel):
    id: str
    wallet_id: str
    user_id: str
    balance: float = 0.0
    currency: str = "NGN"
    is_active: bool = True
    created_at: datetime
    updated_at: datetime
    daily_limit: float = DEFAULT_DAILY_LIMIT
    monthly_limit: float = DEFAULT_MONTHLY_LIMIT
    daily_spent: float = 0.0
    monthly_spent: float = 0.0

    def can_transact(self, amount: float) -> bool:
        """Pre-flight check only; the backend enforces the real limits."""
        if not self.is_active:
            return False
        if amount > self.balance:
            return False
        if self.daily_spent + amount > self.daily_limit:
            return False
        if self.monthly_spent + amount > self.monthly_limit:
            return False
        return True

    @property
    def remaining_daily_limit(self) -> float:
        return self.daily_limit - self.daily_spent

    @property
    def remaining_monthly_limit(self) -> float:
        return self.monthly_limit - self.monthly_spent

    @property
    def currency_symbol(self) -> str:
        return currency_symbol(self.currency)

    def with_balance(self, balance: float) -> "WalletModel":
        return self.copy_with(balance=balance)


class WalletLookupResult(CamelModel):
    found: bool
    wallet_id: Optional[str] = None
    user_id: Optional[str] = None
    full_name: Optional[str] = None
    profile_photo_url: Optional[str] = None
    currency: Optional[str] = None
    currency_symbol: Optional[str] = None

    @classmethod
    def not_found(cls):
        return cls(found=False)
