from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from qr_wallet.core.errors import AppException, ErrorCode, UserException
from qr_wallet.schemas import KycStatus
from qr_wallet.services import UserService

PROFILE = {
    "id": "user-1",
    "fullName": "Ama Mensah",
    "email": "ama@example.com",
    "phoneNumber": "+233200000000",
    "walletId": "QRW-1234-5678",
    "createdAt": "2024-05-01T12:30:00Z",
}


@pytest.fixture
def backend():
    backend = Mock()
    backend.user_id = "user-1"
    backend.get_document.return_value = dict(PROFILE)
    return backend


@pytest.fixture
def service(backend):
    return UserService(backend)


def test_get_current_user(service):
    user = service.get_current_user()
    assert user.first_name == "Ama"
    assert user.initials == "AM"


def test_get_current_user_failure(service, backend):
    backend.get_document.side_effect = AppException(ErrorCode.SERVICE_UNAVAILABLE)
    with pytest.raises(UserException):
        service.get_current_user()


def test_unreadable_profile(service, backend):
    backend.get_document.return_value = {"id": "user-1", "fullName": "Ama Mensah"}
    with pytest.raises(UserException) as exc_info:
        service.get_current_user()
    assert exc_info.value.message == "Failed to fetch user: unreadable profile"


def test_update_profile(service, backend):
    result = service.update_profile(full_name="Ama K. Mensah")

    assert result.success
    backend.update_document.assert_called_once_with("users/user-1", {"fullName": "Ama K. Mensah"})


def test_update_profile_without_changes(service, backend):
    assert service.update_profile().error == "No updates provided"
    backend.update_document.assert_not_called()


def test_upload_kyc_documents(service, backend):
    dob = datetime(1990, 1, 1, tzinfo=timezone.utc)

    result = service.upload_kyc_documents("PASSPORT", dob, "https://files/front.jpg", selfie_url="https://files/me.jpg")

    assert result.success
    path, record = backend.set_document.call_args.args
    assert path == "users/user-1/kyc/documents"
    assert record["status"] == "pending"
    assert record["selfieUrl"] == "https://files/me.jpg"
    assert "idBackUrl" not in record


@pytest.mark.parametrize(
    "document, status",
    [
        (None, KycStatus.NOT_STARTED),
        ({"status": "approved"}, KycStatus.APPROVED),
        ({"status": "mystery"}, KycStatus.NOT_STARTED),
    ],
)
def test_kyc_status(service, backend, document, status):
    backend.get_document.return_value = document
    assert service.get_kyc_status() == status


def test_settings(service, backend):
    backend.get_document.return_value = {"id": "preferences", "language": "en"}

    assert service.get_settings() == {"language": "en"}

    service.update_settings({"language": "fr"})
    backend.set_document.assert_called_once_with(
        "users/user-1/settings/preferences", {"language": "fr"}, merge=True
    )


def test_get_user_by_wallet_id(service, backend):
    backend.query_collection.return_value = [{"id": "user-1", "userId": "user-1"}]

    user = service.get_user_by_wallet_id("QRW-1234-5678")

    assert user.id == "user-1"
    backend.get_document.assert_called_once_with("users/user-1")


def test_delete_account(service, backend):
    assert service.delete_account().success
    paths = [call.args[0] for call in backend.delete_document.call_args_list]
    assert paths == ["users/user-1", "wallets/user-1"]
