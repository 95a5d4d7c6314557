from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from conftest import make_response, make_transaction, make_user, make_wallet
from qr_wallet.api.deps import WalletClient, get_client
from qr_wallet.core.errors import AppException, ErrorCode
from qr_wallet.main import app
from qr_wallet.schemas import TransactionResult


@pytest.fixture
def wallet_client(settings, session_factory, http_session):
    client = WalletClient(settings, session_factory=session_factory, http_session=http_session)
    client.wallet_service.get_wallet = Mock(return_value=make_wallet())
    client.wallet_service.get_transactions = Mock(return_value=[make_transaction()])
    yield client
    client.auth.stop()


@pytest.fixture
def api(wallet_client):
    app.dependency_overrides[get_client] = lambda: wallet_client
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def signed_in(wallet_client):
    wallet_client.backend.set_credentials("user-1", "id-token-1")
    return wallet_client


def test_overview(api):
    response = api.get("/")
    assert response.status_code == 200
    assert "/v1/wallet" in response.json()["endpoints"]


def test_initial_auth_state(api):
    response = api.get("/v1/auth/state")

    assert response.status_code == 200
    assert response.json()["status"] == "initial"
    assert response.json()["isAuthenticated"] is False


def test_wallet_requires_sign_in(api):
    response = api.get("/v1/wallet")

    assert response.status_code == 401
    assert response.json()["detail"] == "Not signed in"


def test_wallet_balance_display(api, signed_in):
    response = api.post("/v1/wallet/refresh")

    body = response.json()
    assert response.status_code == 200
    assert body["displayBalance"] == "₦1,000,000.00"
    assert body["wallet"]["walletId"] == "QRW-1234-5678"

    hidden = api.post("/v1/wallet/balance-visibility").json()
    assert hidden["balanceHidden"] is True
    assert hidden["displayBalance"] == "****"


def test_lookup_not_found(api, signed_in):
    signed_in.backend.call_function = Mock(side_effect=AppException(ErrorCode.UNKNOWN, status="not-found"))

    response = api.get("/v1/wallet/lookup/QRW-0000-0000")

    assert response.status_code == 404


def test_lookup_rate_limited(api, signed_in):
    signed_in.backend.call_function = Mock(
        side_effect=AppException(ErrorCode.RATE_LIMIT_EXCEEDED, status="resource-exhausted")
    )

    response = api.get("/v1/wallet/lookup/QRW-0000-0000")

    assert response.status_code == 429


def test_can_transact(api, signed_in):
    api.post("/v1/wallet/refresh")

    body = api.get("/v1/wallet/can-transact", params={"amount": 480000}).json()
    assert body["allowed"] is True

    body = api.get("/v1/wallet/can-transact", params={"amount": 500001}).json()
    assert body["allowed"] is False


def test_send_money(api, signed_in):
    signed_in.wallet_service.send_money = Mock(return_value=TransactionResult.ok(make_transaction(id="txn-9")))
    api.post("/v1/wallet/refresh")

    response = api.post(
        "/v1/transactions/send",
        json={"recipientWalletId": "QRW-8765-4321", "amount": 2500, "note": "Lunch"},
    )

    assert response.status_code == 200
    assert response.json()["transaction"]["id"] == "txn-9"
    signed_in.wallet_service.send_money.assert_called_once_with("QRW-8765-4321", 2500.0, "Lunch")
    assert signed_in.wallet_service.get_transactions.called


def test_send_money_over_balance(api, signed_in):
    signed_in.wallet_service.send_money = Mock()
    api.post("/v1/wallet/refresh")

    response = api.post("/v1/transactions/send", json={"recipientWalletId": "QRW-8765-4321", "amount": 2000000})

    assert response.status_code == 400
    signed_in.wallet_service.send_money.assert_not_called()


def test_transactions_filter(api, signed_in):
    api.post("/v1/transactions/refresh")

    assert len(api.get("/v1/transactions", params={"filter": "sent"}).json()["transactions"]) == 1
    assert api.get("/v1/transactions", params={"filter": "received"}).json()["transactions"] == []


def test_supported_currencies(api):
    currencies = api.get("/v1/currency/supported").json()

    assert len(currencies) == 15
    assert currencies[0]["code"] == "GHS"


def test_set_currency_signed_out_is_local(api):
    response = api.put("/v1/currency", json={"code": "kes"})

    assert response.status_code == 200
    assert response.json()["currency"]["code"] == "KES"


def test_set_unsupported_currency(api):
    assert api.put("/v1/currency", json={"code": "XYZ"}).status_code == 400


def test_app_exception_handler(api, signed_in):
    signed_in.wallet_service.get_transaction = Mock(side_effect=AppException(ErrorCode.TXN_NOT_FOUND))

    response = api.get("/v1/transactions/txn-404")

    assert response.status_code == 404
    assert response.json() == {
        "code": "TXN_NOT_FOUND",
        "message": "Transaction not found.",
        "retryable": False,
    }


def test_convert_uses_fallback_rates_when_unpublished(api, http_session):
    http_session.request.return_value = make_response(404, {})

    response = api.get("/v1/currency/convert", params={"amount": 1550, "from": "ngn", "to": "USD"})

    body = response.json()
    assert response.status_code == 200
    assert body["rate"] == pytest.approx(1 / 1550)
    assert body["convertedAmount"] == pytest.approx(1.0)
    assert body["info"] == "1 NGN = 0.0006 USD"


def test_convert_unknown_currency(api, http_session):
    http_session.request.return_value = make_response(404, {})

    response = api.get("/v1/currency/convert", params={"amount": 10, "from": "NGN", "to": "XYZ"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Unsupported currency: XYZ"


def test_restore_session_loads_account(wallet_client, http_session):
    wallet_client.local_storage.save_auth_token("refresh-1")
    http_session.post.return_value = make_response(
        200, {"id_token": "id-token-2", "refresh_token": "refresh-2", "user_id": "user-1"}
    )
    wallet_client.user_service.get_current_user = Mock(return_value=make_user())
    wallet_client.load_account = Mock()

    assert wallet_client.restore_session()

    assert wallet_client.auth.state.is_authenticated
    assert wallet_client.backend.id_token == "id-token-2"
    wallet_client.load_account.assert_called_once_with()


def test_restore_session_without_stored_token(wallet_client, http_session):
    wallet_client.load_account = Mock()

    assert not wallet_client.restore_session()

    http_session.post.assert_not_called()
    wallet_client.load_account.assert_not_called()
