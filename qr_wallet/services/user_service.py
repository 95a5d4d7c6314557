import logging
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..core.errors import AppException, UserException
from ..schemas import KycStatus, UserModel, UserResult
from ..schemas.base import utcnow
from .backend import BackendClient

logger = logging.getLogger(__name__)


class UserService:
    """Profile, KYC document and preference records of the signed-in user."""

    def __init__(self, backend: BackendClient):
        self.backend = backend

    @property
    def _user_id(self) -> Optional[str]:
        return self.backend.user_id

    def get_current_user(self) -> Optional[UserModel]:
        if self._user_id is None:
            return None
        try:
            data = self.backend.get_document(f"users/{self._user_id}")
        except AppException as e:
            raise UserException(f"Failed to fetch user: {e.message}") from e
        if not data:
            return None
        try:
            return UserModel.from_json(data)
        except ValidationError as e:
            raise UserException("Failed to fetch user: unreadable profile") from e

    def update_profile(
        self,
        full_name: Optional[str] = None,
        phone_number: Optional[str] = None,
        date_of_birth: Optional[datetime] = None,
        country: Optional[str] = None,
    ) -> UserResult:
        if self._user_id is None:
            return UserResult.failure("User not authenticated")

        updates: Dict[str, Any] = {}
        if full_name is not None:
            updates["fullName"] = full_name
        if phone_number is not None:
            updates["phoneNumber"] = phone_number
        if date_of_birth is not None:
            updates["dateOfBirth"] = date_of_birth
        if country is not None:
            updates["country"] = country
        if not updates:
            return UserResult.failure("No updates provided")

        try:
            self.backend.update_document(f"users/{self._user_id}", updates)
            return UserResult.ok(self.get_current_user())
        except (AppException, UserException) as e:
            logger.error(f"Profile update failed: {e}")
            return UserResult.failure(f"Failed to update profile: {e.message}")

    # ------------------------------------------------------------
    # KYC
    # ------------------------------------------------------------

    def upload_kyc_documents(
        self,
        id_type: str,
        date_of_birth: datetime,
        id_front_url: str,
        id_back_url: Optional[str] = None,
        selfie_url: Optional[str] = None,
    ) -> UserResult:
        """Record already-uploaded identity documents for review.

        ``kycCompleted`` stays false; it flips once the documents are approved.
        """
        if self._user_id is None:
            return UserResult.failure("User not authenticated")

        record: Dict[str, Any] = {
            "idType": id_type,
            "dateOfBirth": date_of_birth,
            "submittedAt": utcnow(),
            "status": KycStatus.PENDING.value,
            "idFrontUrl": id_front_url,
        }
        if id_back_url:
            record["idBackUrl"] = id_back_url
        if selfie_url:
            record["selfieUrl"] = selfie_url

        try:
            self.backend.set_document(f"users/{self._user_id}/kyc/documents", record)
            self.backend.update_document(
                f"users/{self._user_id}", {"kycCompleted": False, "dateOfBirth": date_of_birth}
            )
            return UserResult.ok(self.get_current_user())
        except (AppException, UserException) as e:
            logger.error(f"KYC document upload failed: {e}")
            return UserResult.failure(f"Failed to upload KYC documents: {e.message}")

    def get_kyc_status(self) -> KycStatus:
        if self._user_id is None:
            return KycStatus.NOT_STARTED
        try:
            data = self.backend.get_document(f"users/{self._user_id}/kyc/documents")
        except AppException as e:
            logger.warning(f"Could not read KYC status: {e}")
            return KycStatus.NOT_STARTED
        if not data:
            return KycStatus.NOT_STARTED
        try:
            return KycStatus(data.get("status"))
        except ValueError:
            return KycStatus.NOT_STARTED

    # ------------------------------------------------------------
    # lookup
    # ------------------------------------------------------------

    def get_user_by_wallet_id(self, wallet_id: str) -> Optional[UserModel]:
        try:
            wallets = self.backend.query_collection(
                "", "wallets", limit=1, filters=[("walletId", wallet_id)]
            )
            if not wallets:
                return None
            data = self.backend.get_document(f"users/{wallets[0]['userId']}")
        except AppException as e:
            logger.warning(f"User lookup for {wallet_id} failed: {e}")
            return None
        return UserModel.from_json(data) if data else None

    # ------------------------------------------------------------
    # settings
    # ------------------------------------------------------------

    def update_settings(self, settings: Dict[str, Any]) -> None:
        if self._user_id is None:
            return
        self.backend.set_document(f"users/{self._user_id}/settings/preferences", settings, merge=True)

    def get_settings(self) -> Dict[str, Any]:
        if self._user_id is None:
            return {}
        try:
            data = self.backend.get_document(f"users/{self._user_id}/settings/preferences")
        except AppException as e:
            logger.warning(f"Could not read settings: {e}")
            return {}
        if not data:
            return {}
        data.pop("id", None)
        return data

    def delete_account(self) -> UserResult:
        """Delete the profile and wallet documents; the auth account is removed by the caller."""
        if self._user_id is None:
            return UserResult.failure("User not authenticated")
        try:
            self.backend.delete_document(f"users/{self._user_id}")
            self.backend.delete_document(f"wallets/{self._user_id}")
            return UserResult.ok(None)
        except AppException as e:
            return UserResult.failure(f"Failed to delete account: {e.message}")
