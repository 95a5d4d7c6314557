"""Authentication state machine.

    INITIAL ──event(uid)──> LOADING ──> AUTHENTICATED | UNAUTHENTICATED
    UNAUTHENTICATED ──sign_up──> SIGNING_UP ──> AUTHENTICATED | UNAUTHENTICATED
    any ──event(None)──> UNAUTHENTICATED

Auth events arriving in SIGNING_UP are ignored: the account exists before its
profile document does, and ``sign_up`` sets the final state itself.
"""
import enum
import logging
from typing import Callable, Optional

from ..core.errors import AuthException, UserException
from ..schemas import AuthResult, UserModel
from ..schemas.base import CamelModel
from ..services.auth_service import AuthService
from ..services.local_storage import LocalStorageService
from ..services.user_service import UserService
from .notifier import StateNotifier

logger = logging.getLogger(__name__)


class AuthStatus(str, enum.Enum):
    INITIAL = "initial"
    UNAUTHENTICATED = "unauthenticated"
    LOADING = "loading"
    SIGNING_UP = "signingUp"
    AUTHENTICATED = "authenticated"


class AuthState(CamelModel):
    status: AuthStatus = AuthStatus.INITIAL
    user: Optional[UserModel] = None
    error: Optional[str] = None

    @classmethod
    def unauthenticated(cls, error: Optional[str] = None):
        return cls(status=AuthStatus.UNAUTHENTICATED, error=error)

    @classmethod
    def authenticated(cls, user: UserModel):
        return cls(status=AuthStatus.AUTHENTICATED, user=user)

    @property
    def is_authenticated(self) -> bool:
        return self.status == AuthStatus.AUTHENTICATED

    @property
    def is_loading(self) -> bool:
        return self.status in (AuthStatus.LOADING, AuthStatus.SIGNING_UP)


class AuthNotifier(StateNotifier[AuthState]):
    def __init__(self, auth_service: AuthService, user_service: UserService, local_storage: LocalStorageService):
        super().__init__(AuthState())
        self.auth_service = auth_service
        self.user_service = user_service
        self.local_storage = local_storage
        self._session_info: Optional[str] = None
        self._remove_listener: Optional[Callable[[], None]] = None

    def start(self) -> None:
        """Begin following the auth-state events of :class:`AuthService`."""
        if self._remove_listener is None:
            self._remove_listener = self.auth_service.add_listener(self.handle_auth_event)

    def stop(self) -> None:
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None

    def handle_auth_event(self, user_id: Optional[str]) -> None:
        with self._lock:
            status = self.state.status
        if status == AuthStatus.SIGNING_UP:
            logger.info("Auth event during sign-up ignored")
            return
        if user_id is None:
            self._set_state(AuthState.unauthenticated())
            self.local_storage.clear_all()
            return
        self._load_user_data()

    def _load_user_data(self) -> None:
        self._update(status=AuthStatus.LOADING)

        cached = self.local_storage.get_user()
        if cached is not None:
            self._set_state(AuthState.authenticated(cached))

        try:
            user = self.user_service.get_current_user()
        except UserException as e:
            logger.warning(f"Could not load profile, using cached copy: {e}")
            self._set_state(AuthState.authenticated(cached) if cached else AuthState.unauthenticated())
            return

        if user is None:
            self._set_state(AuthState.unauthenticated())
            return
        self.local_storage.save_user(user)
        self._set_state(AuthState.authenticated(user))

    def refresh_user(self) -> None:
        self._load_user_data()

    def restore_session(self) -> bool:
        """Sign back in with the refresh token kept from the last session."""
        token = self.local_storage.get_auth_token()
        if not token:
            self._set_state(AuthState.unauthenticated())
            return False
        if not self.auth_service.restore_session(token):
            logger.info("Stored session could not be restored")
            self.local_storage.clear_auth_token()
            self._set_state(AuthState.unauthenticated())
            return False
        return True

    def _finish(self, result: AuthResult) -> AuthResult:
        if result.success and result.user is not None:
            self.local_storage.save_user(result.user)
            if self.auth_service.refresh_token:
                self.local_storage.save_auth_token(self.auth_service.refresh_token)
            self._set_state(AuthState.authenticated(result.user))
        else:
            self._set_state(AuthState.unauthenticated(result.error))
        return result

    # ------------------------------------------------------------
    # sign up / sign in
    # ------------------------------------------------------------

    def sign_up(
        self,
        email: str,
        password: str,
        full_name: str,
        phone_number: str,
        country_code: Optional[str] = None,
        currency_code: Optional[str] = None,
    ) -> AuthResult:
        self._update(status=AuthStatus.SIGNING_UP, error=None)
        try:
            result = self.auth_service.sign_up_with_email(
                email, password, full_name, phone_number, country_code, currency_code
            )
        except Exception:
            logger.exception("Sign up failed unexpectedly")
            self._set_state(AuthState.unauthenticated("An error occurred. Please try again"))
            raise
        return self._finish(result)

    def sign_in(self, email: str, password: str) -> AuthResult:
        self._update(status=AuthStatus.LOADING, error=None)
        return self._finish(self.auth_service.sign_in_with_email(email, password))

    def sign_in_with_google(self, id_token: Optional[str]) -> AuthResult:
        self._update(status=AuthStatus.LOADING, error=None)
        return self._finish(self.auth_service.sign_in_with_google(id_token))

    def sign_in_with_apple(self, id_token: Optional[str]) -> AuthResult:
        self._update(status=AuthStatus.LOADING, error=None)
        return self._finish(self.auth_service.sign_in_with_apple(id_token))

    def sign_out(self) -> None:
        self._update(status=AuthStatus.LOADING)
        self.auth_service.sign_out()
        self.local_storage.clear_all()
        self._set_state(AuthState.unauthenticated())
        logger.info("Signed out")

    def update_user(self, user: UserModel) -> None:
        self._set_state(AuthState.authenticated(user))
        self.local_storage.save_user(user)

    # ------------------------------------------------------------
    # verification
    # ------------------------------------------------------------

    def send_email_verification(self) -> AuthResult:
        return self.auth_service.send_email_verification()

    def check_email_verified(self) -> bool:
        return self.auth_service.check_email_verified()

    def _keep_verified_user(self, result: AuthResult) -> AuthResult:
        if result.success and result.user is not None:
            self._update(user=result.user)
            self.local_storage.save_user(result.user)
        return result

    def mark_email_verified(self) -> AuthResult:
        return self._keep_verified_user(self.auth_service.mark_email_verified())

    def send_phone_otp(self, phone_number: str, recaptcha_token: Optional[str] = None) -> bool:
        try:
            self._session_info = self.auth_service.send_otp(phone_number, recaptcha_token)
        except AuthException as e:
            logger.error(f"Sending OTP to {phone_number} failed: {e.reason}")
            self._update(error=e.message)
            return False
        return True

    def verify_phone_otp(self, code: str) -> AuthResult:
        if self._session_info is None:
            return AuthResult.failure("No verification ID. Please request OTP again.")
        return self._keep_verified_user(self.auth_service.verify_otp(self._session_info, code))
