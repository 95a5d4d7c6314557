"""Shared fixtures: an in-memory cache database and fake backend collaborators."""
import os

os.environ.setdefault("QR_WALLET_CACHE_URL", "sqlite:///:memory:")

from datetime import datetime, timezone
from unittest.mock import MagicMock, Mock

import pytest
from sqlalchemy.orm import sessionmaker

from qr_wallet.config import Settings
from qr_wallet.db import init_db, make_engine
from qr_wallet.schemas import TransactionModel, UserModel, WalletModel
from qr_wallet.services import BackendClient, LocalStorageService

NOW = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    return Settings(
        cache_url="sqlite:///:memory:",
        api_key="test-key",
        project_id="qr-wallet-test",
        read_retries=2,
        transactions_limit=50,
    )


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite:///:memory:")
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def local_storage(session_factory):
    return LocalStorageService(session_factory)


@pytest.fixture
def http_session():
    return MagicMock()


@pytest.fixture
def backend(settings, http_session):
    client = BackendClient(settings, session=http_session)
    client.set_credentials("user-1", "id-token-1")
    return client


def make_response(status_code=200, body=None):
    response = Mock()
    response.status_code = status_code
    if body is None:
        response.json.side_effect = ValueError("no body")
    else:
        response.json.return_value = body
    return response


def make_wallet(**overrides):
    data = dict(
        id="user-1",
        wallet_id="QRW-1234-5678",
        user_id="user-1",
        balance=1000000.0,
        currency="NGN",
        created_at=NOW,
        updated_at=NOW,
    )
    data.update(overrides)
    return WalletModel(**data)


def make_user(**overrides):
    data = dict(
        id="user-1",
        full_name="Ama Mensah",
        email="ama@example.com",
        phone_number="+233200000000",
        wallet_id="QRW-1234-5678",
        created_at=NOW,
    )
    data.update(overrides)
    return UserModel(**data)


def make_transaction(**overrides):
    data = dict(
        id="txn-1",
        sender_wallet_id="QRW-1234-5678",
        receiver_wallet_id="QRW-8765-4321",
        amount=2500.0,
        fee=25.0,
        currency="NGN",
        type="send",
        status="completed",
        created_at=NOW,
    )
    data.update(overrides)
    return TransactionModel(**data)
