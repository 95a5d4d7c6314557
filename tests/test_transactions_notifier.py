from unittest.mock import Mock

import pytest

from conftest import make_transaction
from qr_wallet.core.errors import WalletException
from qr_wallet.schemas import TransactionFilter
from qr_wallet.state import TransactionsNotifier


@pytest.fixture
def history():
    return [
        make_transaction(id="t1", type="send"),
        make_transaction(id="t2", type="receive"),
        make_transaction(id="t3", type="deposit", status="pending"),
    ]


@pytest.fixture
def wallet_service(history):
    service = Mock()
    service.get_transactions.return_value = history
    return service


@pytest.fixture
def notifier(wallet_service, local_storage):
    return TransactionsNotifier(wallet_service, local_storage, limit=50)


def test_refresh_uses_limit_and_caches(notifier, wallet_service, local_storage):
    notifier.refresh_transactions()

    wallet_service.get_transactions.assert_called_once_with(limit=50)
    assert [t.id for t in notifier.state.transactions] == ["t1", "t2", "t3"]
    assert [t.id for t in local_storage.get_transactions()] == ["t1", "t2", "t3"]


def test_load_shows_cache_when_offline(notifier, wallet_service, local_storage, history):
    local_storage.save_transactions(history[:1])
    wallet_service.get_transactions.side_effect = WalletException("Unable to connect.")

    notifier.load()

    assert [t.id for t in notifier.state.transactions] == ["t1"]
    assert notifier.state.error == "Unable to connect."


@pytest.mark.parametrize(
    "filter, expected",
    [
        (TransactionFilter.ALL, ["t1", "t2", "t3"]),
        (TransactionFilter.SENT, ["t1"]),
        (TransactionFilter.RECEIVED, ["t2", "t3"]),
        (TransactionFilter.PENDING, ["t3"]),
    ],
)
def test_filter(notifier, filter, expected):
    notifier.refresh_transactions()

    notifier.set_filter(filter)

    assert [t.id for t in notifier.state.filtered_transactions] == expected
    assert len(notifier.state.transactions) == 3


def test_added_transaction_goes_first_until_refresh(notifier, local_storage):
    notifier.refresh_transactions()

    notifier.add_transaction(make_transaction(id="t0"))

    assert [t.id for t in notifier.recent(2)] == ["t0", "t1"]
    assert local_storage.get_transactions()[0].id == "t0"

    notifier.refresh_transactions()

    assert [t.id for t in notifier.state.transactions] == ["t1", "t2", "t3"]


def test_clear(notifier):
    notifier.refresh_transactions()
    notifier.set_filter(TransactionFilter.SENT)

    notifier.clear()

    assert notifier.state.transactions == []
    assert notifier.state.filter == TransactionFilter.ALL
