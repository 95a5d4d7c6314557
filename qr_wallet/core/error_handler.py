"""Turns exceptions into strings safe to show to the user."""
from typing import Optional

from .errors import ERROR_MESSAGES, AppException, AuthException

DEFAULT_MESSAGE = "Something went wrong. Please try again or contact support if the problem persists."

SMILE_ID_RESULT_MESSAGES = {
    "0810": "Verification successful!",
    "0811": "Face verification failed. The selfie doesn't match the ID photo.",
    "0812": "ID document could not be verified. Please try with a different document.",
    "0813": "Liveness check failed. Please follow the on-screen instructions carefully.",
    "0814": "Document is expired. Please use a valid, non-expired ID.",
    "0815": "ID information mismatch. Please ensure you entered the correct details.",
    "0816": "Document not supported. Please try with a different ID type.",
    "0820": "Face not detected. Please ensure your face is clearly visible and well-lit.",
    "0821": "Multiple faces detected. Please ensure only your face is in the frame.",
    "0822": "Poor image quality. Please ensure good lighting and a clear photo.",
}

# identity API reasons and backend status strings, matched as substrings
BACKEND_MESSAGES = [
    ("network-request-failed", "Unable to connect. Please check your internet connection."),
    ("too-many-requests", "Too many attempts. Please wait a few minutes and try again."),
    ("too_many_attempts", "Too many attempts. Please wait a few minutes and try again."),
    ("user-not-found", "Account not found. Please check your credentials or sign up."),
    ("email_not_found", "Account not found. Please check your credentials or sign up."),
    ("wrong-password", "Incorrect password. Please try again."),
    ("invalid_password", "Incorrect password. Please try again."),
    ("invalid_login_credentials", "Incorrect email or password. Please try again."),
    ("email-already-in-use", "This email is already registered. Please sign in instead."),
    ("email_exists", "This email is already registered. Please sign in instead."),
    ("invalid-email", "Please enter a valid email address."),
    ("invalid_email", "Please enter a valid email address."),
    ("weak-password", "Password is too weak. Please use at least 6 characters."),
    ("weak_password", "Password is too weak. Please use at least 6 characters."),
    ("invalid-phone-number", "Please enter a valid phone number."),
    ("invalid_phone_number", "Please enter a valid phone number."),
    ("invalid-verification-code", "Invalid verification code. Please check and try again."),
    ("invalid_code", "Invalid verification code. Please check and try again."),
    ("quota-exceeded", "Service temporarily unavailable. Please try again later."),
    ("quota_exceeded", "Service temporarily unavailable. Please try again later."),
    ("user_disabled", "This account has been disabled. Please contact support."),
    ("permission-denied", "You don't have permission to perform this action."),
    ("permission_denied", "You don't have permission to perform this action."),
]


def _contains_any(text: str, *needles: str) -> bool:
    return any(n in text for n in needles)


class ErrorHandler:
    """Keyword heuristics over ``str(error)``, in the order the checks matter."""

    @staticmethod
    def is_already_enrolled_error(error) -> bool:
        # the KYC SDK reports a re-verification of an enrolled user as an error
        text = str(error).lower()
        return (
            "already enrolled" in text
            or "user is already enrolled" in text
            or ("wrong job type" in text and "enrolled" in text)
        )

    @staticmethod
    def is_momo_not_configured_error(error) -> bool:
        text = str(error).lower()
        return "momo" in text and _contains_any(text, "not configured", "coming soon", "not yet available")

    @classmethod
    def momo_user_friendly_message(cls, error) -> str:
        text = str(error).lower()
        if cls.is_momo_not_configured_error(error) or _contains_any(text, "config_missing", "service unavailable"):
            return (
                "Mobile Money is coming soon! This feature is not yet available. "
                "Please use Card or Bank Transfer instead."
            )
        if _contains_any(text, "rejected", "declined"):
            return "Payment was declined. Please check your Mobile Money balance and try again."
        if _contains_any(text, "insufficient", "not enough"):
            return "Insufficient funds in your Mobile Money account."
        if "invalid" in text and "phone" in text:
            return "Invalid phone number. Please check and try again."
        if _contains_any(text, "timeout", "timed out"):
            return "Payment request timed out. Please check your phone for approval prompt and try again."
        return cls.user_friendly_message(error)

    @classmethod
    def user_friendly_message(cls, error) -> str:
        if isinstance(error, AppException) and error.code in ERROR_MESSAGES:
            return ERROR_MESSAGES[error.code]
        if isinstance(error, AuthException):
            return cls._backend_message(error.reason.lower()) or error.message

        text = str(error).lower()

        if cls._is_network_error(text):
            return "Unable to connect. Please check your internet connection and try again."
        if cls._is_permission_error(text):
            return (
                "Camera access is required for verification. "
                "Please enable camera permissions in your device settings."
            )
        if cls._is_user_cancelled(text):
            return "Verification was cancelled. You can try again when ready."
        if cls._is_face_detection_error(text):
            return (
                "We couldn't detect your face clearly. "
                "Please ensure good lighting and position your face within the frame."
            )
        if cls._is_face_mismatch_error(text):
            return (
                "Face verification failed. The selfie doesn't match the ID photo. "
                "Please ensure you're using your own ID document."
            )
        if cls._is_id_verification_error(text):
            return (
                "ID verification failed. Please ensure your ID is valid, not expired, "
                "and the information entered is correct."
            )
        if cls._is_document_error(text):
            return (
                "We couldn't read your document clearly. "
                "Please ensure the document is well-lit, flat, and all text is visible."
            )
        if cls._is_server_error(text):
            return "Our service is temporarily unavailable. Please try again in a few minutes."
        if cls._is_timeout_error(text):
            return "The request took too long. Please check your connection and try again."
        if cls._is_auth_error(text):
            return "Your session has expired. Please sign in again to continue."
        backend = cls._backend_message(text)
        if backend:
            return backend
        return DEFAULT_MESSAGE

    @classmethod
    def smile_id_user_friendly_message(cls, result_code: Optional[str], error: Optional[str]) -> str:
        if result_code is not None and result_code in SMILE_ID_RESULT_MESSAGES:
            return SMILE_ID_RESULT_MESSAGES[result_code]
        if error is not None:
            return cls.user_friendly_message(error)
        return "Verification could not be completed. Please try again."

    @classmethod
    def kyc_error_message(cls, operation: str, error) -> str:
        text = str(error).lower()
        if operation == "id_validation":
            if _contains_any(text, "nin", "national identification"):
                return "Invalid NIN format. NIN must be exactly 11 digits."
            if _contains_any(text, "bvn", "bank verification"):
                return "Invalid BVN format. BVN must be exactly 11 digits."
            if "ssnit" in text:
                return "Invalid SSNIT format. SSNIT must be 1 letter followed by 12 digits."
        if operation == "document_upload":
            if cls._is_network_error(text):
                return "Failed to upload document. Please check your connection and try again."
            if _contains_any(text, "size", "large"):
                return "Image file is too large. Please use a smaller image."
            return "Failed to upload document. Please try again."
        if operation == "biometric_kyc":
            return cls.smile_id_user_friendly_message(None, str(error))
        return cls.user_friendly_message(error)

    @staticmethod
    def _is_network_error(text: str) -> bool:
        return _contains_any(
            text, "connectionerror", "network", "connection", "unreachable",
            "no internet", "host lookup", "name resolution",
        )

    @staticmethod
    def _is_permission_error(text: str) -> bool:
        return "camera_access" in text or ("permission" in text and "camera" in text) or (
            "denied" in text and "camera" in text
        )

    @staticmethod
    def _is_user_cancelled(text: str) -> bool:
        return _contains_any(text, "cancelled", "canceled", "user_cancelled", "user aborted", "dismissed")

    @staticmethod
    def _is_face_detection_error(text: str) -> bool:
        return _contains_any(text, "face not detected", "no face", "face_not_found", "unable to detect")

    @staticmethod
    def _is_face_mismatch_error(text: str) -> bool:
        return _contains_any(text, "face mismatch", "faces do not match", "face_mismatch", "comparison failed")

    @staticmethod
    def _is_id_verification_error(text: str) -> bool:
        return _contains_any(
            text, "id verification failed", "id not found", "invalid id",
            "id_verification_failed", "id number not found",
        )

    @staticmethod
    def _is_document_error(text: str) -> bool:
        return "document" in text and _contains_any(text, "blur", "unclear", "unreadable", "not detected")

    @staticmethod
    def _is_server_error(text: str) -> bool:
        return _contains_any(
            text, "500", "502", "503", "internal server", "service unavailable", "server error",
        )

    @staticmethod
    def _is_timeout_error(text: str) -> bool:
        return _contains_any(text, "timeout", "timed out")

    @staticmethod
    def _is_auth_error(text: str) -> bool:
        return _contains_any(text, "unauthenticated", "unauthorized", "session expired", "token expired")

    @staticmethod
    def _backend_message(text: str) -> Optional[str]:
        for needle, message in BACKEND_MESSAGES:
            if needle in text:
                return message
        return None
