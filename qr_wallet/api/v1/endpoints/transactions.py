import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ...deps import WalletClient, require_signed_in
from ....core.errors import WalletException
from ....schemas import SendMoneyRequest, TransactionFilter, TransactionModel, TransactionResult, system_schemas
from ....state import TransactionsState

logger = logging.getLogger(__name__)
router = APIRouter()


def _transactions_state(state: TransactionsState) -> dict:
    return {
        "filter": state.filter.value,
        "isLoading": state.is_loading,
        "error": state.error,
        "transactions": state.filtered_transactions,
    }


@router.get("", response_model=system_schemas.TransactionsStateResponse)
def get_transactions(filter: Optional[TransactionFilter] = None, client: WalletClient = Depends(require_signed_in)):
    if filter is not None:
        client.transactions.set_filter(filter)
    return _transactions_state(client.transactions.state)


@router.post("/refresh", response_model=system_schemas.TransactionsStateResponse)
def refresh_transactions(client: WalletClient = Depends(require_signed_in)):
    client.transactions.refresh_transactions()
    return _transactions_state(client.transactions.state)


@router.post("/send", response_model=TransactionResult)
def send_money(request: SendMoneyRequest, client: WalletClient = Depends(require_signed_in)):
    wallet = client.wallet.state.wallet
    if wallet is not None and not wallet.can_transact(request.amount):
        raise HTTPException(status_code=400, detail="Amount exceeds your balance or limits")

    client.send_money.reset()
    client.send_money.set_sender_currency(client.wallet.state.currency)
    client.send_money.set_recipient(request.recipient_wallet_id, "")
    client.send_money.set_amount(request.amount)
    client.send_money.set_note(request.note)
    result = client.send_money.send_money()
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)

    logger.info(f"Transfer {result.transaction.id} completed")
    client.wallet.refresh_wallet()
    client.transactions.refresh_transactions()
    return result


@router.get("/{transaction_id}", response_model=TransactionModel)
def get_transaction(transaction_id: str, client: WalletClient = Depends(require_signed_in)):
    try:
        transaction = client.wallet_service.get_transaction(transaction_id)
    except WalletException as e:
        raise HTTPException(status_code=502, detail=e.message)
    if transaction is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return transaction
