from .auth_state import AuthNotifier, AuthState, AuthStatus
from .currency_state import CurrencyNotifier, CurrencyState
from .notifications_state import NotificationsNotifier, NotificationsState
from .notifier import StateNotifier
from .send_money_state import SendMoneyNotifier, SendMoneyState, transfer_fee
from .transactions_state import TransactionsNotifier, TransactionsState
from .wallet_state import WalletNotifier, WalletState
