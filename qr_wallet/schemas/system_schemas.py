"""Response bodies of the local HTTP API."""
from typing import List, Optional

from pydantic import BaseModel, Field

from .currency_schemas import CurrencyModel
from .notification_schemas import NotificationModel
from .transaction_schemas import TransactionModel
from .user_schemas import UserModel
from .wallet_schemas import WalletModel


class ErrorResponse(BaseModel):
    code: str
    message: str
    retryable: bool = False


class AuthStateResponse(BaseModel):
    status: str
    isAuthenticated: bool
    user: Optional[UserModel] = None
    error: Optional[str] = None


class SignUpRequest(BaseModel):
    email: str
    password: str = Field(min_length=6)
    fullName: str
    phoneNumber: str
    countryCode: Optional[str] = None
    currencyCode: Optional[str] = None


class SignInRequest(BaseModel):
    email: str
    password: str


class IdpSignInRequest(BaseModel):
    idToken: str


class PhoneOtpRequest(BaseModel):
    phoneNumber: str
    recaptchaToken: Optional[str] = None


class OtpVerifyRequest(BaseModel):
    code: str = Field(min_length=4)


class WalletStateResponse(BaseModel):
    wallet: Optional[WalletModel] = None
    isLoading: bool
    error: Optional[str] = None
    balanceHidden: bool
    balance: float
    displayBalance: str


class CanTransactResponse(BaseModel):
    amount: float
    allowed: bool
    remainingDailyLimit: float
    remainingMonthlyLimit: float


class TransactionsStateResponse(BaseModel):
    filter: str
    isLoading: bool
    error: Optional[str] = None
    transactions: List[TransactionModel]


class CurrencyStateResponse(BaseModel):
    currency: CurrencyModel
    isLoading: bool
    error: Optional[str] = None


class SetCurrencyRequest(BaseModel):
    code: str


class ConversionResponse(BaseModel):
    amount: float
    fromCurrency: str
    toCurrency: str
    rate: float
    convertedAmount: float
    info: str


class NotificationsResponse(BaseModel):
    unreadCount: int
    notifications: List[NotificationModel]
    error: Optional[str] = None
