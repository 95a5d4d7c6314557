"""Account authentication against the identity REST API.

Sign-in state lives in the shared :class:`BackendClient` credentials. Every
change of the signed-in user is announced to the listeners registered with
:meth:`AuthService.add_listener` (called with the user id, or ``None`` after
sign-out), the same way the platform SDK publishes auth-state events.
"""
import logging
import random
from typing import Callable, List, Optional

import requests
from pydantic import ValidationError

from ..core.errors import AppException, AuthException
from ..schemas import AuthResult, UserModel, WalletModel
from ..schemas.base import utcnow
from .backend import BackendClient

logger = logging.getLogger(__name__)

AuthListener = Callable[[Optional[str]], None]

AUTH_ERROR_MESSAGES = {
    "EMAIL_NOT_FOUND": "No account found with this email",
    "INVALID_PASSWORD": "Incorrect password",
    "INVALID_LOGIN_CREDENTIALS": "Incorrect email or password",
    "EMAIL_EXISTS": "An account already exists with this email",
    "INVALID_EMAIL": "Please enter a valid email address",
    "WEAK_PASSWORD": "Password must be at least 6 characters",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Please try again later",
    "INVALID_CODE": "Invalid OTP code. Please try again",
    "INVALID_SESSION_INFO": "Verification session expired. Please request a new code",
    "SESSION_EXPIRED": "Verification session expired. Please request a new code",
    "CREDENTIAL_TOO_OLD_LOGIN_AGAIN": "Please sign in again to continue",
    "INVALID_ID_TOKEN": "Your session has expired. Please sign in again",
    "USER_DISABLED": "This account has been disabled",
    "INVALID_PHONE_NUMBER": "Please enter a valid phone number",
    "PHONE_NUMBER_EXISTS": "This phone number is already linked to another account",
}


def auth_error_message(reason: str) -> str:
    # reasons may carry a suffix: "WEAK_PASSWORD : Password should be at least 6 characters"
    key = reason.split(":", 1)[0].strip()
    return AUTH_ERROR_MESSAGES.get(key, "An error occurred. Please try again")


def generate_wallet_id() -> str:
    return f"QRW-{random.randint(1000, 9999)}-{random.randint(1000, 9999)}"


class AuthService:
    GOOGLE = "google.com"
    APPLE = "apple.com"

    def __init__(self, backend: BackendClient):
        self.backend = backend
        self.settings = backend.settings
        self._listeners: List[AuthListener] = []
        self.refresh_token: Optional[str] = None
        backend.token_refresher = self.refresh_id_token

    # ------------------------------------------------------------
    # auth-state events
    # ------------------------------------------------------------

    def add_listener(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _emit(self, user_id: Optional[str]) -> None:
        for listener in list(self._listeners):
            try:
                listener(user_id)
            except Exception:
                logger.exception("Auth-state listener failed")

    @property
    def current_user_id(self) -> Optional[str]:
        return self.backend.user_id

    @property
    def is_logged_in(self) -> bool:
        return self.backend.is_signed_in

    # ------------------------------------------------------------
    # identity API
    # ------------------------------------------------------------

    def _identity(self, endpoint: str, payload: dict) -> dict:
        url = f"{self.settings.auth_url}/accounts:{endpoint}"
        try:
            response = self.backend.session.post(
                url, params={"key": self.settings.api_key}, json=payload, timeout=self.settings.http_timeout
            )
        except requests.RequestException as e:
            logger.error(f"Identity API {endpoint} failed: {e}")
            raise AuthException("NETWORK_REQUEST_FAILED", "Network error. Please check your connection") from e
        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.status_code >= 400:
            reason = body.get("error", {}).get("message", f"HTTP_{response.status_code}")
            logger.warning(f"Identity API {endpoint} rejected: {reason}")
            raise AuthException(reason, auth_error_message(reason))
        return body

    def _signed_in(self, body: dict) -> str:
        user_id = body["localId"]
        self.refresh_token = body.get("refreshToken")
        self.backend.set_credentials(user_id, body.get("idToken"))
        self._emit(user_id)
        return user_id

    def _create_profile(
        self,
        user_id: str,
        full_name: str,
        email: str,
        phone_number: str,
        country: Optional[str],
        currency: Optional[str],
        profile_photo_url: Optional[str] = None,
    ) -> UserModel:
        wallet_id = generate_wallet_id()
        now = utcnow()
        user = UserModel(
            id=user_id,
            full_name=full_name,
            email=email,
            phone_number=phone_number,
            profile_photo_url=profile_photo_url,
            wallet_id=wallet_id,
            country=country,
            currency=currency or "NGN",
            created_at=now,
        )
        self.backend.set_document(f"users/{user_id}", user.to_json())
        wallet = WalletModel(
            id=user_id,
            wallet_id=wallet_id,
            user_id=user_id,
            currency=currency or "NGN",
            created_at=now,
            updated_at=now,
        )
        self.backend.set_document(f"wallets/{user_id}", wallet.to_json())
        logger.info(f"Created profile and wallet {wallet_id} for {user_id}")
        return user

    def _load_profile(self, user_id: str) -> Optional[UserModel]:
        data = self.backend.get_document(f"users/{user_id}")
        if not data:
            return None
        try:
            return UserModel.from_json(data)
        except ValidationError as e:
            logger.error(f"Unreadable profile for {user_id}: {e}")
            return None

    # ------------------------------------------------------------
    # email / password
    # ------------------------------------------------------------

    def sign_up_with_email(
        self,
        email: str,
        password: str,
        full_name: str,
        phone_number: str,
        country_code: Optional[str] = None,
        currency_code: Optional[str] = None,
    ) -> AuthResult:
        """Create the account, then the user and wallet documents.

        The auth-state event fires as soon as the account exists, before the
        documents are written.
        """
        try:
            body = self._identity("signUp", {"email": email, "password": password, "returnSecureToken": True})
            user_id = self._signed_in(body)
            self._identity("update", {"idToken": self.backend.id_token, "displayName": full_name})
            user = self._create_profile(
                user_id, full_name, email, phone_number, country_code or "NG", currency_code
            )
            return AuthResult.ok(user, is_new_user=True)
        except AuthException as e:
            return AuthResult.failure(e.message)
        except AppException as e:
            logger.error(f"Sign up failed after account creation: {e}")
            return AuthResult.failure(e.message)

    def sign_in_with_email(self, email: str, password: str) -> AuthResult:
        try:
            body = self._identity(
                "signInWithPassword", {"email": email, "password": password, "returnSecureToken": True}
            )
            user_id = self._signed_in(body)
            user = self._load_profile(user_id)
            if user is None:
                return AuthResult.failure("User data not found")
            return AuthResult.ok(user)
        except AuthException as e:
            return AuthResult.failure(e.message)
        except AppException as e:
            return AuthResult.failure(e.message)

    # ------------------------------------------------------------
    # federated
    # ------------------------------------------------------------

    def sign_in_with_provider(self, provider_id: str, id_token: Optional[str]) -> AuthResult:
        """Exchange a Google or Apple ID token; first sign-in creates the profile."""
        if not id_token:
            return AuthResult.failure(f"{provider_id} sign in cancelled")
        try:
            body = self._identity(
                "signInWithIdp",
                {
                    "postBody": f"id_token={id_token}&providerId={provider_id}",
                    "requestUri": "http://localhost",
                    "returnIdpCredential": True,
                    "returnSecureToken": True,
                },
            )
            user_id = self._signed_in(body)
            user = self._load_profile(user_id)
            if user is not None:
                return AuthResult.ok(user)
            user = self._create_profile(
                user_id,
                body.get("displayName") or body.get("fullName") or "User",
                body.get("email", ""),
                body.get("phoneNumber", ""),
                None,
                None,
                profile_photo_url=body.get("photoUrl"),
            )
            return AuthResult.ok(user, is_new_user=True)
        except AuthException as e:
            return AuthResult.failure(e.message)
        except AppException as e:
            return AuthResult.failure(e.message)

    def sign_in_with_google(self, id_token: Optional[str]) -> AuthResult:
        return self.sign_in_with_provider(self.GOOGLE, id_token)

    def sign_in_with_apple(self, id_token: Optional[str]) -> AuthResult:
        return self.sign_in_with_provider(self.APPLE, id_token)

    # ------------------------------------------------------------
    # verification
    # ------------------------------------------------------------

    def send_email_verification(self) -> AuthResult:
        if not self.backend.id_token:
            return AuthResult.failure("No user logged in")
        try:
            self._identity("sendOobCode", {"requestType": "VERIFY_EMAIL", "idToken": self.backend.id_token})
            return AuthResult.ok(None)
        except AuthException as e:
            return AuthResult.failure(e.message)

    def check_email_verified(self) -> bool:
        if not self.backend.id_token:
            return False
        try:
            body = self._identity("lookup", {"idToken": self.backend.id_token})
        except AuthException:
            return False
        users = body.get("users") or [{}]
        return bool(users[0].get("emailVerified"))

    def mark_email_verified(self) -> AuthResult:
        user_id = self.current_user_id
        if user_id is None:
            return AuthResult.failure("No user logged in")
        try:
            self.backend.update_document(f"users/{user_id}", {"isVerified": True})
            user = self._load_profile(user_id)
            return AuthResult.ok(user) if user else AuthResult.failure("User not found")
        except AppException as e:
            return AuthResult.failure(e.message)

    def send_password_reset_email(self, email: str) -> AuthResult:
        try:
            self._identity("sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})
            return AuthResult.ok(None)
        except AuthException as e:
            return AuthResult.failure(e.message)

    def send_otp(self, phone_number: str, recaptcha_token: Optional[str] = None) -> str:
        """Returns the verification session to pass back to :meth:`verify_otp`."""
        payload = {"phoneNumber": phone_number}
        if recaptcha_token:
            payload["recaptchaToken"] = recaptcha_token
        body = self._identity("sendVerificationCode", payload)
        return body["sessionInfo"]

    def verify_otp(self, session_info: str, code: str) -> AuthResult:
        payload = {"sessionInfo": session_info, "code": code}
        linking = self.current_user_id is not None
        if linking:
            payload["idToken"] = self.backend.id_token
        try:
            body = self._identity("signInWithPhoneNumber", payload)
            if linking:
                user_id = self.current_user_id
                self.backend.update_document(f"users/{user_id}", {"isVerified": True})
            else:
                user_id = self._signed_in(body)
            user = self._load_profile(user_id)
            if user is None:
                return AuthResult.failure("User not found")
            return AuthResult.ok(user)
        except AuthException as e:
            return AuthResult.failure(e.message)
        except AppException as e:
            return AuthResult.failure(e.message)

    # ------------------------------------------------------------
    # tokens
    # ------------------------------------------------------------

    def _exchange_refresh_token(self, refresh_token: str) -> Optional[dict]:
        try:
            response = self.backend.session.post(
                self.settings.token_url,
                params={"key": self.settings.api_key},
                data={"grant_type": "refresh_token", "refresh_token": refresh_token},
                timeout=self.settings.http_timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Token refresh failed: {e}")
            return None
        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.status_code >= 400 or "id_token" not in body:
            reason = body.get("error", {}).get("message", f"HTTP_{response.status_code}")
            logger.warning(f"Token refresh rejected: {reason}")
            return None
        return body

    def refresh_id_token(self) -> bool:
        """Swap the refresh token for a new ID token; False when the session cannot be renewed."""
        if not self.refresh_token:
            return False
        body = self._exchange_refresh_token(self.refresh_token)
        if body is None:
            return False
        self.refresh_token = body.get("refresh_token") or self.refresh_token
        self.backend.set_credentials(body.get("user_id") or self.backend.user_id, body["id_token"])
        logger.info("ID token refreshed")
        return True

    def restore_session(self, refresh_token: str) -> bool:
        """Sign back in from a stored refresh token, announcing the user on success."""
        body = self._exchange_refresh_token(refresh_token)
        if body is None or not body.get("user_id"):
            return False
        self._signed_in(
            {"localId": body["user_id"], "idToken": body["id_token"], "refreshToken": body.get("refresh_token") or refresh_token}
        )
        return True

    # ------------------------------------------------------------
    # sign out
    # ------------------------------------------------------------

    def sign_out(self) -> None:
        self.refresh_token = None
        self.backend.clear_credentials()
        self._emit(None)
