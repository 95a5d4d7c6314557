"""Offline cache of the signed-in user's data.

Records live in the ``cache_entries`` table as JSON payloads grouped into
boxes. Every row carries its record kind and schema version; a row written
under a different version than the running code expects is treated as a
cache miss rather than decoded.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from ..models import SCHEMA_VERSIONS, CacheEntry, RecordKind
from ..schemas import TransactionModel, UserModel, WalletModel

logger = logging.getLogger(__name__)

USER_BOX = "user_box"
WALLET_BOX = "wallet_box"
TRANSACTIONS_BOX = "transactions_box"
PENDING_TRANSACTIONS_BOX = "pending_transactions_box"
SETTINGS_BOX = "settings_box"

MAX_CACHED_TRANSACTIONS = 100


class LocalStorageService:
    KEY_BIOMETRIC_ENABLED = "biometric_enabled"
    KEY_DARK_MODE = "dark_mode"
    KEY_THEME = "theme"
    KEY_LOCALE = "locale"
    KEY_NOTIFICATIONS_ENABLED = "notifications_enabled"
    KEY_LAST_SYNC_TIME = "last_sync_time"
    KEY_BALANCE_HIDDEN = "balance_hidden"
    KEY_CURRENCY = "currency"
    KEY_AUTH_TOKEN = "auth_token"

    # survive sign-out
    PRESERVED_SETTINGS = (KEY_DARK_MODE, KEY_THEME)

    def __init__(self, session_factory):
        self._session_factory = session_factory

    # ------------------------------------------------------------
    # raw records
    # ------------------------------------------------------------

    def _put(self, box: str, key: str, kind: RecordKind, payload: Any) -> None:
        db = self._session_factory()
        try:
            entry = db.query(CacheEntry).filter(CacheEntry.box == box, CacheEntry.key == key).first()
            if entry is None:
                entry = CacheEntry(box=box, key=key)
                db.add(entry)
            entry.kind = kind
            entry.schema_version = SCHEMA_VERSIONS[kind]
            entry.payload = payload
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Failed to write cache record {box}/{key}")
            raise
        finally:
            db.close()

    def _get(self, box: str, key: str, kind: RecordKind) -> Any:
        db = self._session_factory()
        try:
            entry = db.query(CacheEntry).filter(CacheEntry.box == box, CacheEntry.key == key).first()
            if entry is None:
                return None
            if entry.kind != kind or entry.schema_version != SCHEMA_VERSIONS[kind]:
                logger.warning(
                    f"Ignoring cache record {box}/{key}: "
                    f"{entry.kind} v{entry.schema_version}, expected {kind} v{SCHEMA_VERSIONS[kind]}"
                )
                return None
            return entry.payload
        finally:
            db.close()

    def _delete(self, box: str, key: Optional[str] = None) -> None:
        db = self._session_factory()
        try:
            query = db.query(CacheEntry).filter(CacheEntry.box == box)
            if key is not None:
                query = query.filter(CacheEntry.key == key)
            query.delete(synchronize_session=False)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Failed to delete cache records in {box}")
            raise
        finally:
            db.close()

    # ------------------------------------------------------------
    # user
    # ------------------------------------------------------------

    def save_user(self, user: UserModel) -> None:
        self._put(USER_BOX, "current_user", RecordKind.USER, user.to_json())

    def get_user(self) -> Optional[UserModel]:
        data = self._get(USER_BOX, "current_user", RecordKind.USER)
        if data is None:
            return None
        try:
            return UserModel.from_json(data)
        except ValidationError:
            logger.warning("Cached user record is unreadable, ignoring it")
            return None

    def clear_user(self) -> None:
        self._delete(USER_BOX, "current_user")

    # ------------------------------------------------------------
    # wallet
    # ------------------------------------------------------------

    def save_wallet(self, wallet: WalletModel) -> None:
        self._put(WALLET_BOX, "current_wallet", RecordKind.WALLET, wallet.to_json())

    def get_wallet(self) -> Optional[WalletModel]:
        data = self._get(WALLET_BOX, "current_wallet", RecordKind.WALLET)
        if data is None:
            return None
        try:
            return WalletModel.from_json(data)
        except ValidationError:
            logger.warning("Cached wallet record is unreadable, ignoring it")
            return None

    def clear_wallet(self) -> None:
        self._delete(WALLET_BOX, "current_wallet")

    # ------------------------------------------------------------
    # transactions
    # ------------------------------------------------------------

    def save_transactions(self, transactions: List[TransactionModel]) -> None:
        payload = [t.to_json() for t in transactions]
        self._put(TRANSACTIONS_BOX, "transactions", RecordKind.TRANSACTION_LIST, payload)

    def get_transactions(self) -> List[TransactionModel]:
        data = self._get(TRANSACTIONS_BOX, "transactions", RecordKind.TRANSACTION_LIST)
        if not data:
            return []
        transactions = []
        for item in data:
            try:
                transactions.append(TransactionModel.from_json(item))
            except ValidationError:
                logger.warning(f"Skipping unreadable cached transaction {item.get('id')!r}")
        return transactions

    def add_transaction(self, transaction: TransactionModel) -> None:
        transactions = self.get_transactions()
        transactions.insert(0, transaction)
        self.save_transactions(transactions[:MAX_CACHED_TRANSACTIONS])

    def clear_transactions(self) -> None:
        self._delete(TRANSACTIONS_BOX, "transactions")

    # ------------------------------------------------------------
    # pending transactions (offline queue)
    # ------------------------------------------------------------

    def save_pending_transaction(self, transaction: Dict[str, Any]) -> None:
        pending = self.get_pending_transactions()
        pending.append({**transaction, "queuedAt": datetime.now(timezone.utc).isoformat()})
        self._put(PENDING_TRANSACTIONS_BOX, "pending", RecordKind.PENDING_LIST, pending)

    def get_pending_transactions(self) -> List[Dict[str, Any]]:
        data = self._get(PENDING_TRANSACTIONS_BOX, "pending", RecordKind.PENDING_LIST)
        return [dict(item) for item in data] if data else []

    def remove_pending_transaction(self, transaction_id: str) -> None:
        pending = [p for p in self.get_pending_transactions() if p.get("id") != transaction_id]
        self._put(PENDING_TRANSACTIONS_BOX, "pending", RecordKind.PENDING_LIST, pending)

    def clear_pending_transactions(self) -> None:
        self._put(PENDING_TRANSACTIONS_BOX, "pending", RecordKind.PENDING_LIST, [])

    # ------------------------------------------------------------
    # settings
    # ------------------------------------------------------------

    def save_setting(self, key: str, value: Any) -> None:
        self._put(SETTINGS_BOX, key, RecordKind.SETTING, value)

    def get_setting(self, key: str, default: Any = None) -> Any:
        value = self._get(SETTINGS_BOX, key, RecordKind.SETTING)
        return default if value is None else value

    def get_all_settings(self) -> Dict[str, Any]:
        db = self._session_factory()
        try:
            entries = (
                db.query(CacheEntry)
                .filter(CacheEntry.box == SETTINGS_BOX, CacheEntry.key != self.KEY_AUTH_TOKEN)
                .all()
            )
            return {
                e.key: e.payload
                for e in entries
                if e.schema_version == SCHEMA_VERSIONS[RecordKind.SETTING]
            }
        finally:
            db.close()

    def save_auth_token(self, token: str) -> None:
        self.save_setting(self.KEY_AUTH_TOKEN, token)

    def get_auth_token(self) -> Optional[str]:
        return self.get_setting(self.KEY_AUTH_TOKEN)

    def clear_auth_token(self) -> None:
        self._delete(SETTINGS_BOX, self.KEY_AUTH_TOKEN)

    def get_last_sync_time(self) -> Optional[datetime]:
        value = self.get_setting(self.KEY_LAST_SYNC_TIME)
        return datetime.fromisoformat(value) if value else None

    def update_last_sync_time(self) -> None:
        self.save_setting(self.KEY_LAST_SYNC_TIME, datetime.now(timezone.utc).isoformat())

    # ------------------------------------------------------------
    # sign-out
    # ------------------------------------------------------------

    def clear_all(self) -> None:
        """Drop everything tied to the account, keeping display preferences."""
        preserved = {
            key: self.get_setting(key)
            for key in self.PRESERVED_SETTINGS
            if self.get_setting(key) is not None
        }
        self.clear_user()
        self.clear_wallet()
        self.clear_transactions()
        self.clear_pending_transactions()
        self.clear_auth_token()
        self._delete(SETTINGS_BOX)
        for key, value in preserved.items():
            self.save_setting(key, value)
        logger.info("Local cache cleared")
