import logging

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .api.v1.api import api_router
from .config import get_settings
from .core.errors import AppException
from .db import get_db

logger = logging.getLogger(__name__)


def configure_logging(level: str = None):
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


app = FastAPI(title="QR Wallet Client")


@app.exception_handler(AppException)
def app_exception_handler(request: Request, exc: AppException):
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=exc.http_status,
        content={"code": exc.code.value, "message": exc.message, "retryable": exc.retryable},
    )


@app.get("/")
def welcome():
    return {
        "message": "QR Wallet client API",
        "version": "1.0.0",
        "documentation": "/docs",
        "endpoints": {
            "/": "Overview of all available routes.",
            "/health": "Check API and cache database status.",
            "/v1/auth/state": "Current authentication state.",
            "/v1/auth/sign-up": "Create an account, profile and wallet.",
            "/v1/auth/sign-in": "Sign in with email and password.",
            "/v1/wallet": "Cached wallet snapshot and balance visibility.",
            "/v1/wallet/lookup/{walletId}": "Resolve a recipient wallet.",
            "/v1/transactions": "Transaction history with an optional filter.",
            "/v1/transactions/send": "Send money to another wallet.",
            "/v1/currency": "Display currency of the signed-in user.",
            "/v1/notifications": "Notifications, newest first.",
        },
    }


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ok"}
    except SQLAlchemyError as e:
        logger.exception("Cache database health check failed")
        return {"status": "error", "details": str(e)}


app.include_router(api_router, prefix="/v1")


if __name__ == "__main__":
    import uvicorn

    configure_logging()
    uvicorn.run(app, host="127.0.0.1", port=8000)
