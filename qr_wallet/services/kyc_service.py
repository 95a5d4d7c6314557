"""Identity verification bookkeeping around the third-party KYC SDK.

The SDK itself runs in the UI process; this service only interprets what it
returns and reports the outcome to the backend.
"""
import logging
import time
from typing import Any, Dict, List, Optional

from ..core.error_handler import ErrorHandler
from ..core.errors import AppException
from ..schemas import KycVerificationResult
from .backend import BackendClient

logger = logging.getLogger(__name__)

COUNTRY_ID_TYPES: Dict[str, List[Dict[str, Any]]] = {
    "NG": [
        {"value": "NIN", "label": "National Identification Number (NIN)", "requiresNumber": True, "sdkIdType": "NIN_SLIP"},
        {"value": "BVN", "label": "Bank Verification Number (BVN)", "requiresNumber": True, "sdkIdType": "BVN"},
        {"value": "VOTERS_ID", "label": "Voter's ID", "requiresNumber": False, "sdkIdType": "VOTER_ID"},
        {"value": "DRIVERS_LICENSE", "label": "Driver's License", "requiresNumber": False, "sdkIdType": "DRIVERS_LICENSE"},
        {"value": "PASSPORT", "label": "International Passport", "requiresNumber": False, "sdkIdType": "PASSPORT"},
    ],
    "GH": [
        {"value": "NATIONAL_ID", "label": "Ghana Card (National ID)", "requiresNumber": False, "sdkIdType": "GHANA_CARD"},
        {"value": "SSNIT", "label": "SSNIT", "requiresNumber": True, "sdkIdType": "SSNIT"},
        {"value": "DRIVERS_LICENSE", "label": "Driver's License", "requiresNumber": False, "sdkIdType": "DRIVERS_LICENSE"},
        {"value": "PASSPORT", "label": "International Passport", "requiresNumber": False, "sdkIdType": "PASSPORT"},
    ],
    "KE": [
        {"value": "NATIONAL_ID", "label": "National ID", "requiresNumber": False, "sdkIdType": "NATIONAL_ID"},
        {"value": "PASSPORT", "label": "International Passport", "requiresNumber": False, "sdkIdType": "PASSPORT"},
        {"value": "ALIEN_ID", "label": "Alien ID", "requiresNumber": False, "sdkIdType": "ALIEN_CARD"},
    ],
    "ZA": [
        {"value": "NATIONAL_ID", "label": "National ID", "requiresNumber": True, "sdkIdType": "NATIONAL_ID"},
        {"value": "PASSPORT", "label": "International Passport", "requiresNumber": False, "sdkIdType": "PASSPORT"},
    ],
    "CI": [
        {"value": "NATIONAL_ID", "label": "National ID", "requiresNumber": False, "sdkIdType": "NATIONAL_ID"},
        {"value": "DRIVERS_LICENSE", "label": "Driver's License", "requiresNumber": False, "sdkIdType": "DRIVERS_LICENSE"},
        {"value": "PASSPORT", "label": "International Passport", "requiresNumber": False, "sdkIdType": "PASSPORT"},
    ],
}

PHONE_VERIFICATION_COUNTRIES = ("NG", "ZA")

# result codes the SDK returns for a rejected verification
FAILURE_RESULT_CODES = {"0811", "0812", "0813", "0814", "0815", "0816", "0820", "0821", "0822"}

DIAL_CODE_COUNTRIES = {
    "+234": "NG",
    "+233": "GH",
    "+254": "KE",
    "+27": "ZA",
    "+225": "CI",
}


def get_id_types_for_country(country_code: Optional[str]) -> List[Dict[str, Any]]:
    if country_code is None:
        return COUNTRY_ID_TYPES["NG"]
    return COUNTRY_ID_TYPES.get(country_code.upper(), COUNTRY_ID_TYPES["NG"])


def supports_phone_verification(country_code: Optional[str]) -> bool:
    return country_code is not None and country_code.upper() in PHONE_VERIFICATION_COUNTRIES


def extract_country_code(phone_number: Optional[str]) -> Optional[str]:
    if not phone_number:
        return None
    for dial_code, country in DIAL_CODE_COUNTRIES.items():
        if phone_number.startswith(dial_code):
            return country
    return None


def generate_job_id() -> str:
    return f"job_{int(time.time() * 1000)}"


class KycService:
    def __init__(self, backend: BackendClient):
        self.backend = backend

    def handle_sdk_result(
        self,
        result: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        id_type: Optional[str] = None,
    ) -> KycVerificationResult:
        """Turn the SDK callback into a result and report it to the backend.

        An "already enrolled" error means the user was verified before and is
        reported as a success.
        """
        if error is not None:
            if not ErrorHandler.is_already_enrolled_error(error):
                logger.warning(f"KYC verification failed: {error}")
                return KycVerificationResult.failure(ErrorHandler.smile_id_user_friendly_message(None, error))
            logger.info(f"User already enrolled with {id_type or 'KYC provider'}, treating as verified")
            outcome = KycVerificationResult(success=True, job_id=generate_job_id(), already_enrolled=True)
        else:
            result = result or {}
            result_code = result.get("resultCode")
            if result_code in FAILURE_RESULT_CODES:
                return KycVerificationResult(
                    success=False,
                    job_id=result.get("jobId"),
                    result_code=result_code,
                    result_text=result.get("resultText"),
                    error=ErrorHandler.smile_id_user_friendly_message(result_code, None),
                )
            outcome = KycVerificationResult(
                success=True,
                job_id=result.get("jobId") or generate_job_id(),
                result_code=result_code,
                result_text=result.get("resultText"),
                user_data=result.get("userData"),
            )

        try:
            self.report_status("pending", id_type=id_type)
        except AppException as e:
            logger.error(f"Could not report KYC status: {e}")
            return KycVerificationResult.failure(ErrorHandler.user_friendly_message(e))
        return outcome

    def report_status(self, status: str, id_type: Optional[str] = None) -> Any:
        """Call ``updateKycStatus``; the backend only accepts pending, verified or rejected."""
        data: Dict[str, Any] = {"status": status}
        if id_type:
            data["idType"] = id_type
        return self.backend.call_function("updateKycStatus", data)
