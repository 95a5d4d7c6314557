from fastapi import APIRouter
from .endpoints import auth, currency, notifications, transactions, wallet

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(wallet.router, prefix="/wallet", tags=["wallet"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
api_router.include_router(currency.router, prefix="/currency", tags=["currency"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
