import base64
import logging
import secrets
import time
from typing import List, Optional

from pydantic import ValidationError

from ..core.error_handler import ErrorHandler
from ..core.errors import AppException, WalletException
from ..schemas import (
    TransactionModel,
    TransactionResult,
    TransactionStatus,
    TransactionType,
    UserModel,
    WalletLookupResult,
    WalletModel,
    currency_symbol,
)
from ..schemas.base import utcnow
from .backend import BackendClient

logger = logging.getLogger(__name__)

SEND_MONEY_ERRORS = {
    "unauthenticated": "Please log in to send money",
    "not-found": "Recipient wallet not found",
    "failed-precondition": "Insufficient balance",
}


def generate_idempotency_key(operation: str) -> str:
    random_part = base64.urlsafe_b64encode(secrets.token_bytes(12)).decode().rstrip("=")
    return f"idem_{operation}_{int(time.time() * 1000)}_{random_part}"


class WalletService:
    """Wallet reads and money movement for the signed-in user.

    Money movement always goes through callable functions; the backend owns
    balances, fees and limits.
    """

    def __init__(self, backend: BackendClient):
        self.backend = backend

    @property
    def _user_id(self) -> Optional[str]:
        return self.backend.user_id

    # ------------------------------------------------------------
    # wallet
    # ------------------------------------------------------------

    def get_wallet(self) -> Optional[WalletModel]:
        if self._user_id is None:
            return None
        try:
            data = self.backend.get_document(f"wallets/{self._user_id}")
        except AppException as e:
            raise WalletException(ErrorHandler.user_friendly_message(e)) from e
        if not data:
            return None
        try:
            return WalletModel.from_json(data)
        except ValidationError as e:
            logger.error(f"Unreadable wallet document for {self._user_id}: {e}")
            raise WalletException("Failed to load wallet data") from e

    def lookup_wallet(self, wallet_id: str) -> WalletLookupResult:
        """Resolve a wallet ID to its owner through the rate-limited lookup function."""
        try:
            data = self.backend.call_function("lookupWallet", {"walletId": wallet_id}) or {}
        except AppException as e:
            if e.status == "not-found":
                return WalletLookupResult.not_found()
            if e.status == "resource-exhausted":
                raise WalletException("Too many requests. Please try again later.") from e
            raise WalletException(f"Failed to lookup wallet: {e.message}") from e

        currency = data.get("currency") or "GHS"
        return WalletLookupResult(
            found=True,
            wallet_id=data.get("walletId") or wallet_id,
            user_id="",
            full_name=data.get("userName") or "Unknown",
            profile_photo_url=data.get("profilePhotoUrl"),
            currency=currency,
            currency_symbol=currency_symbol(currency),
        )

    def _wallet_currency(self) -> str:
        data = self.backend.get_document(f"wallets/{self._user_id}")
        return (data or {}).get("currency") or "GHS"

    # ------------------------------------------------------------
    # money movement
    # ------------------------------------------------------------

    def send_money(self, recipient_wallet_id: str, amount: float, note: Optional[str] = None) -> TransactionResult:
        if self._user_id is None:
            return TransactionResult.failure("User not authenticated")

        idempotency_key = generate_idempotency_key("sendMoney")
        try:
            data = self.backend.call_function(
                "sendMoney",
                {
                    "recipientWalletId": recipient_wallet_id,
                    "amount": amount,
                    "note": note or "",
                    "idempotencyKey": idempotency_key,
                },
            ) or {}
        except AppException as e:
            logger.error(f"sendMoney to {recipient_wallet_id} failed: {e}")
            if e.status in SEND_MONEY_ERRORS:
                return TransactionResult.failure(SEND_MONEY_ERRORS[e.status])
            if e.status == "invalid-argument":
                return TransactionResult.failure(e.message or "Invalid request")
            return TransactionResult.failure(e.message or "Transaction failed")

        if data.get("success") is not True:
            return TransactionResult.failure(data.get("error") or "Transaction failed")

        try:
            sender_currency = self._wallet_currency()
        except AppException:
            logger.warning("Could not read wallet currency after send, assuming GHS")
            sender_currency = "GHS"

        now = utcnow()
        transaction = TransactionModel(
            id=data["transactionId"],
            sender_wallet_id="",
            receiver_wallet_id=recipient_wallet_id,
            sender_name="",
            receiver_name=data.get("recipientName") or "Unknown",
            amount=amount,
            fee=float(data.get("fee") or 0),
            currency=sender_currency,
            type=TransactionType.SEND,
            status=TransactionStatus.COMPLETED,
            note=note,
            created_at=now,
            completed_at=now,
            reference=data["transactionId"],
        )
        logger.info(f"Sent {amount} to {recipient_wallet_id} as {transaction.id}")
        return TransactionResult.ok(transaction)

    def add_money(self, amount: float, payment_reference: str, bank_name: Optional[str] = None) -> TransactionResult:
        """Confirm a card/bank payment; the backend verifies it and credits the wallet."""
        if self._user_id is None:
            return TransactionResult.failure("User not authenticated")

        try:
            data = self.backend.call_function("verifyPayment", {"reference": payment_reference}) or {}
        except AppException as e:
            logger.error(f"verifyPayment {payment_reference} failed: {e}")
            return TransactionResult.failure(e.message or "Payment verification failed")

        if data.get("success") is not True:
            if data.get("alreadyProcessed") is True:
                return TransactionResult.failure("Payment already processed")
            return TransactionResult.failure(data.get("error") or "Payment verification failed")

        wallet = None
        user_name = "Unknown"
        try:
            wallet_data = self.backend.get_document(f"wallets/{self._user_id}")
            wallet = WalletModel.from_json(wallet_data) if wallet_data else None
            user_data = self.backend.get_document(f"users/{self._user_id}")
            if user_data:
                user_name = UserModel.from_json(user_data).full_name
        except AppException:
            logger.warning("Could not read wallet details after deposit")

        now = utcnow()
        return TransactionResult.ok(
            TransactionModel(
                id=payment_reference,
                sender_wallet_id=bank_name or "Bank Account",
                receiver_wallet_id=wallet.wallet_id if wallet else "",
                sender_name=bank_name or "Bank Transfer",
                receiver_name=user_name,
                amount=float(data.get("amount") or amount),
                fee=0,
                currency=data.get("currency") or (wallet.currency if wallet else "GHS"),
                type=TransactionType.DEPOSIT,
                status=TransactionStatus.COMPLETED,
                note=f"Deposit via {bank_name or 'Bank'}",
                created_at=now,
                completed_at=now,
                reference=payment_reference,
            )
        )

    # ------------------------------------------------------------
    # history
    # ------------------------------------------------------------

    def get_transactions(
        self,
        limit: int = 20,
        type: Optional[TransactionType] = None,
        status: Optional[TransactionStatus] = None,
    ) -> List[TransactionModel]:
        if self._user_id is None:
            return []

        filters = []
        if type is not None:
            filters.append(("type", type.value))
        if status is not None:
            filters.append(("status", status.value))
        try:
            rows = self.backend.query_collection(
                f"users/{self._user_id}",
                "transactions",
                order_by="createdAt",
                descending=True,
                limit=limit,
                filters=filters,
            )
        except AppException as e:
            raise WalletException(ErrorHandler.user_friendly_message(e)) from e
        try:
            return [TransactionModel.from_json(row) for row in rows]
        except ValidationError as e:
            logger.error(f"Unreadable transaction document: {e}")
            raise WalletException("Failed to load transactions") from e

    def get_transaction(self, transaction_id: str) -> Optional[TransactionModel]:
        if self._user_id is None:
            return None
        try:
            data = self.backend.get_document(f"users/{self._user_id}/transactions/{transaction_id}")
        except AppException as e:
            raise WalletException(f"Failed to fetch transaction: {e.message}") from e
        if not data:
            return None
        try:
            return TransactionModel.from_json(data)
        except ValidationError as e:
            logger.error(f"Unreadable transaction document {transaction_id}: {e}")
            raise WalletException("Failed to fetch transaction: unreadable data") from e
