import logging
from typing import Optional

from ..core.error_handler import ErrorHandler
from ..core.errors import AppException, WalletException
from ..schemas import WalletLookupResult, WalletModel
from ..schemas.base import CamelModel
from ..services.local_storage import LocalStorageService
from ..services.wallet_service import WalletService
from .notifier import StateNotifier

logger = logging.getLogger(__name__)


class WalletState(CamelModel):
    wallet: Optional[WalletModel] = None
    is_loading: bool = False
    error: Optional[str] = None
    balance_hidden: bool = False

    @property
    def balance(self) -> float:
        return self.wallet.balance if self.wallet else 0.0

    @property
    def wallet_id(self) -> str:
        return self.wallet.wallet_id if self.wallet else ""

    @property
    def currency(self) -> str:
        return self.wallet.currency if self.wallet else "NGN"

    @property
    def currency_symbol(self) -> str:
        return self.wallet.currency_symbol if self.wallet else "₦"


class WalletNotifier(StateNotifier[WalletState]):
    """Mirror of the server wallet, backed by the local cache.

    The server copy always wins: ``update_balance`` patches are kept only
    until the next successful refresh.
    """

    def __init__(self, wallet_service: WalletService, local_storage: LocalStorageService):
        super().__init__(WalletState())
        self.wallet_service = wallet_service
        self.local_storage = local_storage

    def load(self) -> None:
        cached = self.local_storage.get_wallet()
        balance_hidden = bool(self.local_storage.get_setting(LocalStorageService.KEY_BALANCE_HIDDEN, False))
        self._update(wallet=cached or self.state.wallet, balance_hidden=balance_hidden)
        self.refresh_wallet()

    def refresh_wallet(self) -> None:
        sequence = self._next_sequence()
        self._update(is_loading=True, error=None)

        try:
            wallet = self.wallet_service.get_wallet()
        except (WalletException, AppException) as e:
            logger.error(f"Wallet refresh failed: {e}")
            error = e.message if isinstance(e, WalletException) else ErrorHandler.user_friendly_message(e)
            self._update_if_latest(sequence, is_loading=False, error=error)
            return

        if wallet is None:
            self._update_if_latest(sequence, is_loading=False, error="Wallet not found")
            return
        if not self._update_if_latest(sequence, wallet=wallet, is_loading=False, error=None):
            logger.info("Discarding wallet refresh superseded by a newer one")
            return
        self.local_storage.save_wallet(wallet)

    def toggle_balance_visibility(self) -> bool:
        state = self._modify(lambda state: state.copy_with(balance_hidden=not state.balance_hidden))
        hidden = state.balance_hidden
        self.local_storage.save_setting(LocalStorageService.KEY_BALANCE_HIDDEN, hidden)
        return hidden

    def lookup_wallet(self, wallet_id: str) -> WalletLookupResult:
        return self.wallet_service.lookup_wallet(wallet_id)

    def update_balance(self, balance: float) -> None:
        state = self._modify(
            lambda state: state.copy_with(wallet=state.wallet.with_balance(balance)) if state.wallet else None
        )
        if state is not None:
            self.local_storage.save_wallet(state.wallet)

    def can_transact(self, amount: float) -> bool:
        wallet = self.state.wallet
        return wallet is not None and wallet.can_transact(amount)

    def clear(self) -> None:
        self._set_state(WalletState())
