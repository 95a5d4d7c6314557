import enum
from datetime import datetime
from typing import Any, Dict, Optional

from .base import CamelModel


class KycStatus(str, enum.Enum):
    NOT_STARTED = "notStarted"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class UserModel(CamelModel):
    id: str
    full_name: str
    email: str
    phone_number: str
    profile_photo_url: Optional[str] = None
    wallet_id: str
    is_verified: bool = False
    kyc_completed: bool = False
    created_at: datetime
    date_of_birth: Optional[datetime] = None
    country: Optional[str] = None
    currency: str = "NGN"

    @property
    def first_name(self) -> str:
        return self.full_name.split(" ")[0]

    @property
    def initials(self) -> str:
        parts = self.full_name.split()
        if len(parts) >= 2:
            return f"{parts[0][0]}{parts[-1][0]}".upper()
        return self.full_name[:2].upper()


class UserResult(CamelModel):
    success: bool
    user: Optional[UserModel] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, user: Optional[UserModel]):
        return cls(success=True, user=user)

    @classmethod
    def failure(cls, error: str):
        return cls(success=False, error=error)


class AuthResult(CamelModel):
    success: bool
    user: Optional[UserModel] = None
    error: Optional[str] = None
    is_new_user: bool = False

    @classmethod
    def ok(cls, user: Optional[UserModel], is_new_user: bool = False):
        return cls(success=True, user=user, is_new_user=is_new_user)

    @classmethod
    def failure(cls, error: str):
        return cls(success=False, error=error)


class KycVerificationResult(CamelModel):
    success: bool
    job_id: Optional[str] = None
    result_code: Optional[str] = None
    result_text: Optional[str] = None
    user_data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    already_enrolled: bool = False

    @classmethod
    def failure(cls, error: str):
        return cls(success=False, error=error)
