from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
import requests

from conftest import make_response
from qr_wallet.core.errors import AppException, ErrorCode
from qr_wallet.services import BackendClient
from qr_wallet.services.backend import decode_document, encode_value


class TestValueCodec:
    def test_encode_scalars(self):
        assert encode_value(True) == {"booleanValue": True}
        assert encode_value(5) == {"integerValue": "5"}
        assert encode_value(2.5) == {"doubleValue": 2.5}
        assert encode_value(None) == {"nullValue": None}
        assert encode_value("NGN") == {"stringValue": "NGN"}

    def test_encode_timestamp(self):
        value = encode_value(datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc))
        assert value == {"timestampValue": "2024-05-01T12:30:00Z"}

    def test_decode_document(self):
        document = {
            "name": "projects/p/databases/(default)/documents/wallets/user-1",
            "fields": {
                "balance": {"integerValue": "1500"},
                "isActive": {"booleanValue": True},
                "createdAt": {"timestampValue": "2024-05-01T12:30:00.000000123Z"},
                "tags": {"arrayValue": {"values": [{"stringValue": "a"}]}},
                "meta": {"mapValue": {"fields": {"source": {"stringValue": "qr"}}}},
            },
        }
        data = decode_document(document)
        assert data["id"] == "user-1"
        assert data["balance"] == 1500
        assert data["isActive"] is True
        assert data["createdAt"] == datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        assert data["tags"] == ["a"]
        assert data["meta"] == {"source": "qr"}


class TestCallableFunctions:
    def test_success_returns_result(self, backend, http_session):
        http_session.request.return_value = make_response(200, {"result": {"success": True}})

        assert backend.call_function("sendMoney", {"amount": 10}) == {"success": True}

        method, url = http_session.request.call_args.args
        kwargs = http_session.request.call_args.kwargs
        assert method == "POST"
        assert url.endswith("/sendMoney")
        assert kwargs["json"] == {"data": {"amount": 10}}
        assert kwargs["headers"]["Authorization"] == "Bearer id-token-1"

    def test_error_body_raises_app_exception(self, backend, http_session):
        http_session.request.return_value = make_response(
            400,
            {
                "error": {
                    "status": "FAILED_PRECONDITION",
                    "message": "Insufficient balance",
                    "details": {"code": "WALLET_INSUFFICIENT_FUNDS", "retryable": False},
                }
            },
        )

        with pytest.raises(AppException) as exc_info:
            backend.call_function("sendMoney", {})

        error = exc_info.value
        assert error.code == ErrorCode.WALLET_INSUFFICIENT_FUNDS
        assert error.status == "failed-precondition"
        assert error.is_insufficient_funds
        assert error.retryable is False

    def test_transport_error_is_retryable_service_error(self, settings):
        with patch.object(requests.Session, "request", side_effect=requests.ConnectionError("refused")):
            client = BackendClient(settings)
            with pytest.raises(AppException) as exc_info:
                client.call_function("lookupWallet", {"walletId": "QRW-1234-5678"})

        assert exc_info.value.code == ErrorCode.SERVICE_UNAVAILABLE
        assert exc_info.value.retryable is True


class TestDocuments:
    def test_missing_document_is_none(self, backend, http_session):
        http_session.request.return_value = make_response(404, {"error": {"status": "NOT_FOUND"}})
        assert backend.get_document("wallets/user-1") is None

    def test_reads_retry_transient_failures(self, backend, http_session):
        document = {"name": "x/wallets/user-1", "fields": {"currency": {"stringValue": "GHS"}}}
        http_session.request.side_effect = [
            requests.ConnectionError("reset"),
            make_response(503, {"error": {"message": "backend busy"}}),
            make_response(200, document),
        ]

        assert backend.get_document("wallets/user-1") == {"id": "user-1", "currency": "GHS"}
        assert http_session.request.call_count == 3

    def test_reads_give_up_after_configured_attempts(self, backend, http_session):
        http_session.request.side_effect = requests.ConnectionError("down")
        with pytest.raises(AppException):
            backend.get_document("wallets/user-1")
        assert http_session.request.call_count == backend.settings.read_retries + 1

    def test_permission_errors_are_not_retried(self, backend, http_session):
        http_session.request.return_value = make_response(403, {"error": {"status": "PERMISSION_DENIED"}})
        with pytest.raises(AppException) as exc_info:
            backend.get_document("users/someone-else")
        assert exc_info.value.code == ErrorCode.AUTH_PERMISSION_DENIED
        assert http_session.request.call_count == 1

    def test_query_collection(self, backend, http_session):
        http_session.request.return_value = make_response(
            200,
            [
                {"document": {"name": "users/user-1/transactions/t1", "fields": {"type": {"stringValue": "send"}}}},
                {"readTime": "2024-05-01T12:30:00Z"},
            ],
        )

        rows = backend.query_collection(
            "users/user-1", "transactions", order_by="createdAt", limit=50, filters=[("type", "send")]
        )

        assert rows == [{"id": "t1", "type": "send"}]
        url = http_session.request.call_args.args[1]
        query = http_session.request.call_args.kwargs["json"]["structuredQuery"]
        assert url.endswith("/users/user-1:runQuery")
        assert query["from"] == [{"collectionId": "transactions"}]
        assert query["where"]["fieldFilter"]["value"] == {"stringValue": "send"}
        assert query["orderBy"][0]["direction"] == "DESCENDING"
        assert query["limit"] == 50

    def test_update_sends_field_mask(self, backend, http_session):
        http_session.request.return_value = make_response(200, {})

        backend.update_document("users/user-1", {"currency": "GHS", "isVerified": True})

        params = http_session.request.call_args.kwargs["params"]
        assert ("updateMask.fieldPaths", "currency") in params
        assert ("updateMask.fieldPaths", "isVerified") in params
        assert ("currentDocument.exists", "true") in params

    def test_update_of_missing_document_fails(self, backend, http_session):
        http_session.request.return_value = make_response(404, {})
        with pytest.raises(AppException) as exc_info:
            backend.update_document("users/ghost", {"currency": "GHS"})
        assert exc_info.value.status == "not-found"


class TestTokenRefresh:
    document = {"name": "x/wallets/user-1", "fields": {"currency": {"stringValue": "GHS"}}}

    def test_unauthorized_request_is_resent_with_fresh_token(self, backend, http_session):
        def refresh():
            backend.set_credentials("user-1", "id-token-2")
            return True

        backend.token_refresher = Mock(side_effect=refresh)
        http_session.request.side_effect = [
            make_response(401, {"error": {"status": "UNAUTHENTICATED"}}),
            make_response(200, self.document),
        ]

        assert backend.get_document("wallets/user-1") == {"id": "user-1", "currency": "GHS"}
        backend.token_refresher.assert_called_once_with()
        assert http_session.request.call_count == 2
        assert http_session.request.call_args.kwargs["headers"]["Authorization"] == "Bearer id-token-2"

    def test_failed_refresh_surfaces_the_401(self, backend, http_session):
        backend.token_refresher = Mock(return_value=False)
        http_session.request.return_value = make_response(401, {"error": {"status": "UNAUTHENTICATED"}})

        with pytest.raises(AppException) as exc_info:
            backend.get_document("wallets/user-1")

        assert exc_info.value.code == ErrorCode.AUTH_PERMISSION_DENIED
        assert http_session.request.call_count == 1

    def test_signed_out_requests_do_not_refresh(self, backend, http_session):
        backend.clear_credentials()
        backend.token_refresher = Mock(return_value=True)
        http_session.request.return_value = make_response(401, {})

        with pytest.raises(AppException):
            backend.set_document("wallets/user-1", {"currency": "GHS"})

        backend.token_refresher.assert_not_called()
