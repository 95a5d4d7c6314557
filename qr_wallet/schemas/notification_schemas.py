import enum
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field, field_validator

from .base import CamelModel, parse_timestamp, utcnow


class NotificationType(str, enum.Enum):
    TRANSACTION = "transaction"
    PROMOTION = "promotion"
    SECURITY = "security"
    SYSTEM = "system"


class NotificationModel(CamelModel):
    id: str = ""
    title: str = ""
    body: str = ""
    type: NotificationType = NotificationType.SYSTEM
    is_read: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    data: Optional[Dict[str, Any]] = None

    @field_validator("type", mode="before")
    @classmethod
    def _unknown_type(cls, value):
        try:
            return NotificationType(value)
        except ValueError:
            return NotificationType.SYSTEM

    @field_validator("created_at", mode="before")
    @classmethod
    def _created_at(cls, value):
        return parse_timestamp(value)
