import logging
from typing import Optional

from ..core.errors import AppException, WalletException
from ..schemas import TransactionModel, TransactionResult
from ..schemas.base import CamelModel
from ..services.exchange_rate_service import ExchangeRateService, UnsupportedCurrencyError
from ..services.wallet_service import WalletService
from .notifier import StateNotifier

logger = logging.getLogger(__name__)

MIN_WALLET_ID_LENGTH = 10
FEE_RATE = 0.01
MIN_FEE = 10.0
MAX_FEE = 100.0


def transfer_fee(amount: float) -> float:
    """Estimated fee shown before sending: 1% clamped to [10, 100]."""
    return min(max(amount * FEE_RATE, MIN_FEE), MAX_FEE)


class SendMoneyState(CamelModel):
    recipient_wallet_id: Optional[str] = None
    recipient_name: Optional[str] = None
    recipient_currency: Optional[str] = None
    sender_currency: Optional[str] = None
    amount: float = 0.0
    note: Optional[str] = None
    is_loading: bool = False
    is_looking_up: bool = False
    error: Optional[str] = None
    completed_transaction: Optional[TransactionModel] = None
    # recipient-currency preview, set only when the two currencies differ
    exchange_rate: Optional[float] = None
    converted_amount: Optional[float] = None

    @property
    def fee(self) -> float:
        return transfer_fee(self.amount)

    @property
    def total(self) -> float:
        return self.amount + self.fee

    @property
    def needs_conversion(self) -> bool:
        return (
            self.sender_currency is not None
            and self.recipient_currency is not None
            and self.sender_currency != self.recipient_currency
        )


class SendMoneyNotifier(StateNotifier[SendMoneyState]):
    def __init__(self, wallet_service: WalletService, exchange_rates: Optional[ExchangeRateService] = None):
        super().__init__(SendMoneyState())
        self.wallet_service = wallet_service
        self.exchange_rates = exchange_rates

    def lookup_recipient(self, wallet_id: str) -> None:
        if len(wallet_id) < MIN_WALLET_ID_LENGTH:
            self._update(recipient_name=None)
            return

        sequence = self._next_sequence()
        self._update(is_looking_up=True, error=None)
        try:
            result = self.wallet_service.lookup_wallet(wallet_id)
        except (WalletException, AppException) as e:
            logger.warning(f"Recipient lookup for {wallet_id} failed: {e}")
            self._update_if_latest(sequence, is_looking_up=False, error=e.message)
            return

        if not result.found:
            self._update_if_latest(sequence, recipient_name=None, is_looking_up=False, error="Wallet not found")
            return
        applied = self._update_if_latest(
            sequence,
            recipient_wallet_id=result.wallet_id,
            recipient_name=result.full_name,
            recipient_currency=result.currency,
            is_looking_up=False,
        )
        if applied:
            self._refresh_conversion()

    def set_recipient(self, wallet_id: str, name: str, currency: Optional[str] = None) -> None:
        self._update(recipient_wallet_id=wallet_id, recipient_name=name, recipient_currency=currency)
        self._refresh_conversion()

    def set_sender_currency(self, currency: str) -> None:
        self._update(sender_currency=currency)
        self._refresh_conversion()

    def set_amount(self, amount: float) -> None:
        self._update(amount=amount)
        self._refresh_conversion()

    def set_note(self, note: Optional[str]) -> None:
        self._update(note=note)

    def _refresh_conversion(self) -> None:
        state = self.state
        if self.exchange_rates is None or not state.needs_conversion:
            self._update(exchange_rate=None, converted_amount=None)
            return
        try:
            rate = self.exchange_rates.get_exchange_rate(state.sender_currency, state.recipient_currency)
        except UnsupportedCurrencyError as e:
            logger.warning(f"No conversion preview: {e}")
            self._update(exchange_rate=None, converted_amount=None)
            return
        self._modify(lambda s: s.copy_with(exchange_rate=rate, converted_amount=s.amount * rate))

    @property
    def conversion_info(self) -> Optional[str]:
        """``1 NGN = 0.0099 GHS`` for the current pair, when a conversion applies."""
        state = self.state
        if state.exchange_rate is None:
            return None
        return f"1 {state.sender_currency} = {state.exchange_rate:.4f} {state.recipient_currency}"

    def send_money(self) -> TransactionResult:
        state = self.state
        if state.recipient_wallet_id is None:
            return TransactionResult.failure("No recipient selected")
        if state.amount <= 0:
            return TransactionResult.failure("Invalid amount")

        self._update(is_loading=True, error=None)
        result = self.wallet_service.send_money(state.recipient_wallet_id, state.amount, state.note)
        if result.success:
            self._update(is_loading=False, completed_transaction=result.transaction)
        else:
            self._update(is_loading=False, error=result.error)
        return result

    def reset(self) -> None:
        self._set_state(SendMoneyState())
