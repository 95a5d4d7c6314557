from unittest.mock import Mock

import pytest

from qr_wallet.core.errors import AppException, ErrorCode
from qr_wallet.schemas import DEFAULT_CURRENCY, SUPPORTED_CURRENCIES
from qr_wallet.services import CurrencyService, LocalStorageService
from qr_wallet.services.currency_service import (
    format_amount,
    format_amount_with_separators,
    get_currency_by_code,
    get_currency_by_country_code,
)
from qr_wallet.state import CurrencyNotifier


def test_supported_currencies():
    assert len(SUPPORTED_CURRENCIES) == 15
    assert SUPPORTED_CURRENCIES[0].code == "GHS"
    assert DEFAULT_CURRENCY.code == "NGN"


@pytest.mark.parametrize(
    "dial_code, code",
    [("+233", "GHS"), ("233", "GHS"), ("+254", "KES"), ("+999", "NGN"), ("", "NGN")],
)
def test_currency_by_country_code(dial_code, code):
    assert get_currency_by_country_code(dial_code).code == code


def test_currency_by_code():
    assert get_currency_by_code("kes").code == "KES"
    assert get_currency_by_code("XYZ") == DEFAULT_CURRENCY


def test_formatting():
    naira = get_currency_by_code("NGN")
    assert format_amount(1234.5, naira) == "₦1234.50"
    assert format_amount_with_separators(1234567.5, naira) == "₦1,234,567.50"
    assert format_amount_with_separators(0, get_currency_by_code("GHS")) == "GH₵0.00"


class TestCurrencyService:
    @pytest.fixture
    def backend(self):
        backend = Mock()
        backend.user_id = "user-1"
        return backend

    def test_set_writes_user_and_wallet(self, backend):
        currency = CurrencyService(backend).set_user_currency("ghs")

        assert currency.code == "GHS"
        paths = [call.args[0] for call in backend.update_document.call_args_list]
        assert paths == ["users/user-1", "wallets/user-1"]
        assert backend.update_document.call_args.args[1]["currency"] == "GHS"

    def test_set_while_signed_out(self, backend):
        backend.user_id = None
        with pytest.raises(AppException) as exc_info:
            CurrencyService(backend).set_user_currency("GHS")
        assert exc_info.value.code is ErrorCode.AUTH_UNAUTHENTICATED
        assert exc_info.value.is_unauthenticated
        assert exc_info.value.message == "Please sign in to continue."
        backend.update_document.assert_not_called()

    def test_get_reads_profile(self, backend):
        backend.get_document.return_value = {"id": "user-1", "currency": "KES"}
        assert CurrencyService(backend).get_user_currency().code == "KES"

    def test_get_without_currency(self, backend):
        backend.get_document.return_value = {"id": "user-1"}
        assert CurrencyService(backend).get_user_currency() is None


class TestCurrencyNotifier:
    @pytest.fixture
    def service(self):
        service = Mock()
        service.backend.user_id = "user-1"
        return service

    def test_load(self, service, local_storage):
        service.get_user_currency.return_value = get_currency_by_code("GHS")
        notifier = CurrencyNotifier(service, local_storage)

        notifier.load_user_currency()

        assert notifier.state.code == "GHS"
        assert local_storage.get_setting(LocalStorageService.KEY_CURRENCY) == "GHS"

    def test_set_currency_from_country_code(self, service):
        service.set_user_currency.side_effect = get_currency_by_code
        notifier = CurrencyNotifier(service)

        assert notifier.set_currency_from_country_code("254")

        service.set_user_currency.assert_called_once_with("KES")
        assert notifier.format_amount(12.5) == "KSh12.50"

    def test_set_currency_signed_out(self, service):
        service.backend.user_id = None
        notifier = CurrencyNotifier(service)

        assert not notifier.set_currency(get_currency_by_code("GHS"))
        service.set_user_currency.assert_not_called()

    def test_set_currency_failure(self, service):
        service.set_user_currency.side_effect = AppException(ErrorCode.SERVICE_UNAVAILABLE)
        notifier = CurrencyNotifier(service)

        assert not notifier.set_currency(get_currency_by_code("GHS"))
        assert notifier.state.code == "NGN"
        assert notifier.state.error == "Service temporarily unavailable. Please try again."

    def test_local_currency(self, service):
        notifier = CurrencyNotifier(service)
        notifier.set_local_currency(get_currency_by_code("GBP"))
        assert notifier.format_amount_with_separators(1500) == "£1,500.00"
