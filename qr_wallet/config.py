"""Runtime configuration for the wallet client, read from the environment."""
import logging
import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


class Settings:
    """Client settings resolved once per process.

    Every value can be overridden through ``QR_WALLET_*`` environment
    variables or a ``.env`` file next to the working directory.
    """

    def __init__(self, **overrides):
        self.cache_url = overrides.get(
            "cache_url", os.getenv("QR_WALLET_CACHE_URL", "sqlite:///qr_wallet_cache.db")
        )
        self.api_key = overrides.get("api_key", os.getenv("QR_WALLET_API_KEY", ""))
        self.project_id = overrides.get("project_id", os.getenv("QR_WALLET_PROJECT_ID", ""))
        self.auth_url = overrides.get(
            "auth_url", os.getenv("QR_WALLET_AUTH_URL", "https://identitytoolkit.googleapis.com/v1")
        )
        self.token_url = overrides.get(
            "token_url", os.getenv("QR_WALLET_TOKEN_URL", "https://securetoken.googleapis.com/v1/token")
        )
        self.firestore_url = overrides.get(
            "firestore_url",
            os.getenv(
                "QR_WALLET_FIRESTORE_URL",
                f"https://firestore.googleapis.com/v1/projects/{self.project_id}/databases/(default)/documents",
            ),
        )
        self.functions_url = overrides.get(
            "functions_url",
            os.getenv(
                "QR_WALLET_FUNCTIONS_URL",
                f"https://us-central1-{self.project_id}.cloudfunctions.net",
            ),
        )
        self.http_timeout = float(overrides.get("http_timeout", os.getenv("QR_WALLET_HTTP_TIMEOUT", "30")))
        self.read_retries = int(overrides.get("read_retries", os.getenv("QR_WALLET_READ_RETRIES", "2")))
        self.transactions_limit = int(
            overrides.get("transactions_limit", os.getenv("QR_WALLET_TRANSACTIONS_LIMIT", "50"))
        )
        self.log_level = overrides.get("log_level", os.getenv("QR_WALLET_LOG_LEVEL", "INFO")).upper()

    def log_configuration(self):
        logger.info("Wallet client configuration:")
        logger.info(f"   Cache: {self.cache_url}")
        logger.info(f"   Functions: {self.functions_url}")
        logger.info(f"   API key set: {bool(self.api_key)}")


@lru_cache
def get_settings() -> Settings:
    return Settings()
