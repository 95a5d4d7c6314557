import re
from unittest.mock import Mock

import pytest

from qr_wallet.core.errors import AppException, ErrorCode, WalletException
from qr_wallet.schemas import TransactionStatus, TransactionType
from qr_wallet.services import WalletService
from qr_wallet.services.wallet_service import generate_idempotency_key


@pytest.fixture
def backend():
    backend = Mock()
    backend.user_id = "user-1"
    return backend


@pytest.fixture
def service(backend):
    return WalletService(backend)


def callable_error(status, message="failed", code=ErrorCode.UNKNOWN):
    return AppException(code, message, status=status)


def test_idempotency_key_shape():
    key = generate_idempotency_key("sendMoney")
    assert re.fullmatch(r"idem_sendMoney_\d+_[A-Za-z0-9_-]{16}", key)
    assert key != generate_idempotency_key("sendMoney")


class TestLookup:
    def test_found(self, service, backend):
        backend.call_function.return_value = {"walletId": "QRW-8765-4321", "userName": "Kofi Boateng"}

        result = service.lookup_wallet("QRW-8765-4321")

        assert result.found
        assert result.full_name == "Kofi Boateng"
        assert result.user_id == ""
        assert result.currency == "GHS"
        assert result.currency_symbol == "GH₵"

    def test_not_found(self, service, backend):
        backend.call_function.side_effect = callable_error("not-found")

        result = service.lookup_wallet("QRW-0000-0000")

        assert not result.found

    def test_rate_limited(self, service, backend):
        backend.call_function.side_effect = callable_error("resource-exhausted")

        with pytest.raises(WalletException) as exc_info:
            service.lookup_wallet("QRW-0000-0000")

        assert exc_info.value.message == "Too many requests. Please try again later."

    def test_other_failure(self, service, backend):
        backend.call_function.side_effect = callable_error("internal", "boom")

        with pytest.raises(WalletException) as exc_info:
            service.lookup_wallet("QRW-0000-0000")

        assert exc_info.value.message == "Failed to lookup wallet: boom"


class TestSendMoney:
    def test_success(self, service, backend):
        backend.call_function.return_value = {
            "success": True,
            "transactionId": "txn-9",
            "fee": 25,
            "recipientName": "Kofi Boateng",
        }
        backend.get_document.return_value = {"id": "user-1", "currency": "NGN"}

        result = service.send_money("QRW-8765-4321", 2500.0, note="Lunch")

        assert result.success
        transaction = result.transaction
        assert transaction.id == "txn-9"
        assert transaction.type == TransactionType.SEND
        assert transaction.status == TransactionStatus.COMPLETED
        assert transaction.fee == 25.0
        assert transaction.currency == "NGN"
        payload = backend.call_function.call_args.args[1]
        assert payload["recipientWalletId"] == "QRW-8765-4321"
        assert payload["idempotencyKey"].startswith("idem_sendMoney_")

    @pytest.mark.parametrize(
        "status, message",
        [
            ("failed-precondition", "Insufficient balance"),
            ("not-found", "Recipient wallet not found"),
            ("unauthenticated", "Please log in to send money"),
        ],
    )
    def test_mapped_failures(self, service, backend, status, message):
        backend.call_function.side_effect = callable_error(status)

        result = service.send_money("QRW-8765-4321", 2500.0)

        assert not result.success
        assert result.error == message

    def test_signed_out(self, service, backend):
        backend.user_id = None

        result = service.send_money("QRW-8765-4321", 2500.0)

        assert result.error == "User not authenticated"
        backend.call_function.assert_not_called()


def test_add_money_already_processed(service, backend):
    backend.call_function.return_value = {"success": False, "alreadyProcessed": True}

    result = service.add_money(5000.0, "ref-1")

    assert result.error == "Payment already processed"


def test_get_wallet_wraps_backend_errors(service, backend):
    backend.get_document.side_effect = AppException(ErrorCode.SERVICE_UNAVAILABLE)

    with pytest.raises(WalletException) as exc_info:
        service.get_wallet()

    assert exc_info.value.message == "Service temporarily unavailable. Please try again."


def test_get_wallet_rejects_unreadable_document(service, backend):
    backend.get_document.return_value = {"id": "user-1", "walletId": "QRW-1234-5678", "userId": "user-1"}

    with pytest.raises(WalletException) as exc_info:
        service.get_wallet()

    assert exc_info.value.message == "Failed to load wallet data"


def test_get_transactions_rejects_unreadable_rows(service, backend):
    backend.query_collection.return_value = [{"id": "t1", "amount": "lots"}]

    with pytest.raises(WalletException) as exc_info:
        service.get_transactions()

    assert exc_info.value.message == "Failed to load transactions"


def test_get_transactions_query(service, backend):
    backend.query_collection.return_value = []

    service.get_transactions(limit=50, type=TransactionType.SEND)

    backend.query_collection.assert_called_once_with(
        "users/user-1",
        "transactions",
        order_by="createdAt",
        descending=True,
        limit=50,
        filters=[("type", "send")],
    )
