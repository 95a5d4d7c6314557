import enum
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator, model_validator

from .base import CamelModel, parse_timestamp, utcnow
from .currency_schemas import currency_symbol


class TransactionType(str, enum.Enum):
    SEND = "send"
    RECEIVE = "receive"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class TransactionFilter(str, enum.Enum):
    ALL = "all"
    SENT = "sent"
    RECEIVED = "received"
    PENDING = "pending"


class TransactionModel(CamelModel):
    id: str = ""
    sender_wallet_id: str = ""
    receiver_wallet_id: str = ""
    sender_name: Optional[str] = None
    receiver_name: Optional[str] = None
    amount: float = 0.0
    fee: float = 0.0
    currency: str = "GHS"
    type: TransactionType = TransactionType.DEPOSIT
    status: TransactionStatus = TransactionStatus.PENDING
    note: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    reference: Optional[str] = None
    failure_reason: Optional[str] = None
    sender_currency: Optional[str] = None
    receiver_currency: Optional[str] = None
    converted_amount: Optional[float] = None
    exchange_rate: Optional[float] = None
    method: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _fill_backend_gaps(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        # older backend documents carry ``description`` instead of ``note``
        if data.get("note") is None and data.get("description") is not None:
            data["note"] = data["description"]
        for key in ("id", "senderWalletId", "receiverWalletId", "amount", "fee", "currency"):
            if key in data and data[key] is None:
                del data[key]
        return data

    @field_validator("type", mode="before")
    @classmethod
    def _unknown_type(cls, value):
        try:
            return TransactionType(value)
        except ValueError:
            return TransactionType.DEPOSIT

    @field_validator("status", mode="before")
    @classmethod
    def _unknown_status(cls, value):
        try:
            return TransactionStatus(value)
        except ValueError:
            return TransactionStatus.PENDING

    @field_validator("created_at", mode="before")
    @classmethod
    def _created_at(cls, value):
        return parse_timestamp(value)

    @field_validator("completed_at", mode="before")
    @classmethod
    def _completed_at(cls, value):
        return parse_timestamp(value, default_now=False)

    @property
    def total_amount(self) -> float:
        return self.amount + self.fee

    def is_credit(self, wallet_id: str) -> bool:
        return self.receiver_wallet_id == wallet_id

    def display_amount(self, wallet_id: str, symbol: str) -> str:
        sign = "+" if self.is_credit(wallet_id) else "-"
        return f"{sign}{symbol}{self.amount:.2f}"

    def counterparty_name(self, wallet_id: str) -> str:
        if self.type == TransactionType.DEPOSIT:
            return self.method or "Deposit"
        if self.type == TransactionType.WITHDRAW:
            return self.method or "Withdrawal"
        if self.is_credit(wallet_id):
            return self.sender_name or "Unknown"
        return self.receiver_name or "Unknown"

    @property
    def title(self) -> str:
        if self.type == TransactionType.SEND:
            return f"Sent to {self.receiver_name or 'Wallet'}"
        if self.type == TransactionType.RECEIVE:
            return f"Received from {self.sender_name or 'Wallet'}"
        if self.type == TransactionType.DEPOSIT:
            return "Deposit"
        return "Withdrawal"

    @property
    def currency_symbol(self) -> str:
        return currency_symbol(self.currency)

    def matches(self, filter: TransactionFilter) -> bool:
        if filter == TransactionFilter.SENT:
            return self.type == TransactionType.SEND
        if filter == TransactionFilter.RECEIVED:
            return self.type in (TransactionType.RECEIVE, TransactionType.DEPOSIT)
        if filter == TransactionFilter.PENDING:
            return self.status == TransactionStatus.PENDING
        return True


class TransactionResult(CamelModel):
    success: bool
    transaction: Optional[TransactionModel] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, transaction: TransactionModel):
        return cls(success=True, transaction=transaction)

    @classmethod
    def failure(cls, error: str):
        return cls(success=False, error=error)


class SendMoneyRequest(CamelModel):
    recipient_wallet_id: str = Field(min_length=1)
    amount: float = Field(gt=0)
    note: Optional[str] = None


class AddMoneyRequest(CamelModel):
    amount: float = Field(gt=0)
    payment_reference: str = Field(min_length=1)
    bank_name: Optional[str] = None
