import pytest

from qr_wallet.core.error_handler import ErrorHandler
from qr_wallet.core.errors import AppException, AuthException, ErrorCode


class TestAppException:
    def test_from_callable_error_without_details(self):
        error = AppException.from_callable_error({"status": "RESOURCE_EXHAUSTED", "message": "Slow down"})

        assert error.code == ErrorCode.RATE_LIMIT_EXCEEDED
        assert error.status == "resource-exhausted"
        assert error.is_rate_limited
        assert error.message == "Slow down"
        assert error.http_status == 429

    def test_details_code_wins(self):
        error = AppException.from_callable_error(
            {
                "status": "failed-precondition",
                "message": "generic",
                "details": {"code": "KYC_REQUIRED", "message": "Verify first"},
            }
        )

        assert error.is_kyc_required
        assert error.message == "Verify first"
        assert error.http_status == 412

    def test_unknown_code(self):
        error = AppException.from_callable_error({"details": {"code": "BRAND_NEW_CODE"}})
        assert error.code == ErrorCode.UNKNOWN
        assert error.http_status == 500

    def test_service_codes_are_retryable(self):
        assert AppException(ErrorCode.SERVICE_MOMO_ERROR).retryable
        assert not AppException(ErrorCode.TXN_SELF_TRANSFER).retryable

    def test_not_found_codes_map_to_404(self):
        assert AppException(ErrorCode.WALLET_NOT_FOUND).http_status == 404
        assert AppException(ErrorCode.TXN_RECIPIENT_NOT_FOUND).http_status == 404


class TestUserFriendlyMessage:
    def test_app_exception_uses_code_table(self):
        error = AppException(ErrorCode.TXN_SELF_TRANSFER, "raw backend text")
        assert ErrorHandler.user_friendly_message(error) == "You cannot transfer to your own wallet."

    def test_auth_exception(self):
        error = AuthException("EMAIL_EXISTS")
        assert ErrorHandler.user_friendly_message(error) == "This email is already registered. Please sign in instead."

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("ConnectionError: host unreachable", "Unable to connect. Please check your internet connection and try again."),
            ("User cancelled the flow", "Verification was cancelled. You can try again when ready."),
            ("HTTP 503 from upstream", "Our service is temporarily unavailable. Please try again in a few minutes."),
            ("request timed out", "The request took too long. Please check your connection and try again."),
            ("token expired", "Your session has expired. Please sign in again to continue."),
            ("something odd", "Something went wrong. Please try again or contact support if the problem persists."),
        ],
    )
    def test_keywords(self, text, expected):
        assert ErrorHandler.user_friendly_message(Exception(text)) == expected

    def test_already_enrolled(self):
        assert ErrorHandler.is_already_enrolled_error("Error: User is already enrolled")
        assert ErrorHandler.is_already_enrolled_error("wrong job type for enrolled user")
        assert not ErrorHandler.is_already_enrolled_error("face mismatch")

    def test_smile_id_result_codes(self):
        assert ErrorHandler.smile_id_user_friendly_message("0814", None).startswith("Document is expired")
        assert ErrorHandler.smile_id_user_friendly_message(None, None) == (
            "Verification could not be completed. Please try again."
        )

    def test_momo_not_configured(self):
        message = ErrorHandler.momo_user_friendly_message("MoMo is not configured")
        assert message.startswith("Mobile Money is coming soon!")

    def test_kyc_id_validation(self):
        assert ErrorHandler.kyc_error_message("id_validation", "bad BVN") == (
            "Invalid BVN format. BVN must be exactly 11 digits."
        )
