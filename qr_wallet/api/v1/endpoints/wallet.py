import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from ...deps import WalletClient, require_signed_in
from ....core.errors import WalletException
from ....schemas import AddMoneyRequest, TransactionResult, WalletLookupResult, system_schemas
from ....services.currency_service import format_amount_with_separators, get_currency_by_code
from ....state import WalletState

logger = logging.getLogger(__name__)
router = APIRouter()


def _wallet_state(state: WalletState) -> dict:
    if state.balance_hidden:
        display = "****"
    else:
        display = format_amount_with_separators(state.balance, get_currency_by_code(state.currency))
    return {
        "wallet": state.wallet,
        "isLoading": state.is_loading,
        "error": state.error,
        "balanceHidden": state.balance_hidden,
        "balance": state.balance,
        "displayBalance": display,
    }


@router.get("", response_model=system_schemas.WalletStateResponse)
def get_wallet_state(client: WalletClient = Depends(require_signed_in)):
    return _wallet_state(client.wallet.state)


@router.post("/refresh", response_model=system_schemas.WalletStateResponse)
def refresh_wallet(client: WalletClient = Depends(require_signed_in)):
    client.wallet.refresh_wallet()
    return _wallet_state(client.wallet.state)


@router.post("/balance-visibility", response_model=system_schemas.WalletStateResponse)
def toggle_balance_visibility(client: WalletClient = Depends(require_signed_in)):
    client.wallet.toggle_balance_visibility()
    return _wallet_state(client.wallet.state)


@router.get("/lookup/{wallet_id}", response_model=WalletLookupResult)
def lookup_wallet(wallet_id: str, client: WalletClient = Depends(require_signed_in)):
    try:
        result = client.wallet.lookup_wallet(wallet_id)
    except WalletException as e:
        status = 429 if "Too many requests" in e.message else 502
        raise HTTPException(status_code=status, detail=e.message)
    if not result.found:
        raise HTTPException(status_code=404, detail="Wallet not found")
    return result


@router.get("/can-transact", response_model=system_schemas.CanTransactResponse)
def can_transact(amount: float = Query(gt=0), client: WalletClient = Depends(require_signed_in)):
    wallet = client.wallet.state.wallet
    if wallet is None:
        raise HTTPException(status_code=404, detail="Wallet not found")
    return {
        "amount": amount,
        "allowed": wallet.can_transact(amount),
        "remainingDailyLimit": wallet.remaining_daily_limit,
        "remainingMonthlyLimit": wallet.remaining_monthly_limit,
    }


@router.post("/add-money", response_model=TransactionResult)
def add_money(request: AddMoneyRequest, client: WalletClient = Depends(require_signed_in)):
    result = client.wallet_service.add_money(request.amount, request.payment_reference, request.bank_name)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    logger.info(f"Deposit {request.payment_reference} confirmed")
    client.wallet.refresh_wallet()
    client.transactions.refresh_transactions()
    return result
