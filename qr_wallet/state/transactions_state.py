import logging
from typing import List, Optional

from ..core.error_handler import ErrorHandler
from ..core.errors import AppException, WalletException
from ..schemas import TransactionFilter, TransactionModel
from ..schemas.base import CamelModel
from ..services.local_storage import LocalStorageService
from ..services.wallet_service import WalletService
from .notifier import StateNotifier

logger = logging.getLogger(__name__)


class TransactionsState(CamelModel):
    transactions: List[TransactionModel] = []
    is_loading: bool = False
    error: Optional[str] = None
    filter: TransactionFilter = TransactionFilter.ALL

    @property
    def filtered_transactions(self) -> List[TransactionModel]:
        return [t for t in self.transactions if t.matches(self.filter)]


class TransactionsNotifier(StateNotifier[TransactionsState]):
    def __init__(self, wallet_service: WalletService, local_storage: LocalStorageService, limit: int = 50):
        super().__init__(TransactionsState())
        self.wallet_service = wallet_service
        self.local_storage = local_storage
        self.limit = limit

    def load(self) -> None:
        cached = self.local_storage.get_transactions()
        if cached:
            self._update(transactions=cached)
        self.refresh_transactions()

    def refresh_transactions(self) -> None:
        """Replace the whole list with the newest server page."""
        sequence = self._next_sequence()
        self._update(is_loading=True, error=None)

        try:
            transactions = self.wallet_service.get_transactions(limit=self.limit)
        except (WalletException, AppException) as e:
            logger.error(f"Transactions refresh failed: {e}")
            error = e.message if isinstance(e, WalletException) else ErrorHandler.user_friendly_message(e)
            self._update_if_latest(sequence, is_loading=False, error=error)
            return

        if not self._update_if_latest(sequence, transactions=transactions, is_loading=False, error=None):
            logger.info("Discarding transactions refresh superseded by a newer one")
            return
        self.local_storage.save_transactions(transactions)

    def set_filter(self, filter: TransactionFilter) -> None:
        self._update(filter=filter)

    def add_transaction(self, transaction: TransactionModel) -> None:
        self._modify(lambda state: state.copy_with(transactions=[transaction, *state.transactions]))
        self.local_storage.add_transaction(transaction)

    def recent(self, count: int = 5) -> List[TransactionModel]:
        return self.state.transactions[:count]

    def clear(self) -> None:
        self._set_state(TransactionsState())
