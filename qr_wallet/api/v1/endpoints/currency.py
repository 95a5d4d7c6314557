from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from ...deps import WalletClient, get_client
from ....schemas import SUPPORTED_CURRENCIES, CurrencyModel, system_schemas
from ....services.currency_service import get_currency_by_code
from ....services.exchange_rate_service import UnsupportedCurrencyError
from ....state import CurrencyState

router = APIRouter()


def _currency_state(state: CurrencyState) -> dict:
    return {"currency": state.currency, "isLoading": state.is_loading, "error": state.error}


@router.get("", response_model=system_schemas.CurrencyStateResponse)
def get_currency(client: WalletClient = Depends(get_client)):
    return _currency_state(client.currency.state)


@router.get("/supported", response_model=List[CurrencyModel])
def list_supported_currencies():
    return SUPPORTED_CURRENCIES


@router.get("/convert", response_model=system_schemas.ConversionResponse)
def convert(
    amount: float = Query(gt=0),
    from_currency: str = Query(alias="from"),
    to_currency: str = Query(alias="to"),
    client: WalletClient = Depends(get_client),
):
    from_currency, to_currency = from_currency.upper(), to_currency.upper()
    try:
        rate = client.exchange_rates.get_exchange_rate(from_currency, to_currency)
    except UnsupportedCurrencyError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "amount": amount,
        "fromCurrency": from_currency,
        "toCurrency": to_currency,
        "rate": rate,
        "convertedAmount": amount * rate,
        "info": f"1 {from_currency} = {rate:.4f} {to_currency}",
    }


@router.put("", response_model=system_schemas.CurrencyStateResponse)
def set_currency(request: system_schemas.SetCurrencyRequest, client: WalletClient = Depends(get_client)):
    currency = get_currency_by_code(request.code)
    if currency.code != request.code.upper():
        raise HTTPException(status_code=400, detail=f"Unsupported currency {request.code}")
    if not client.backend.is_signed_in:
        client.currency.set_local_currency(currency)
    elif not client.currency.set_currency(currency):
        raise HTTPException(status_code=502, detail=client.currency.state.error)
    return _currency_state(client.currency.state)
