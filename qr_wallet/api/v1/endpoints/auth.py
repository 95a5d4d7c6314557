from fastapi import APIRouter, Depends, HTTPException

from ...deps import WalletClient, get_client, require_signed_in
from ....schemas import AuthResult, system_schemas
from ....state import AuthState

router = APIRouter()


def _auth_state(state: AuthState) -> dict:
    return {
        "status": state.status.value,
        "isAuthenticated": state.is_authenticated,
        "user": state.user,
        "error": state.error,
    }


def _signed_in(client: WalletClient, result: AuthResult) -> AuthResult:
    if not result.success:
        raise HTTPException(status_code=401, detail=result.error)
    client.load_account()
    return result


@router.get("/state", response_model=system_schemas.AuthStateResponse)
def get_auth_state(client: WalletClient = Depends(get_client)):
    return _auth_state(client.auth.state)


@router.post("/sign-up", response_model=AuthResult)
def sign_up(request: system_schemas.SignUpRequest, client: WalletClient = Depends(get_client)):
    result = client.auth.sign_up(
        request.email,
        request.password,
        request.fullName,
        request.phoneNumber,
        request.countryCode,
        request.currencyCode,
    )
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    client.load_account()
    return result


@router.post("/sign-in", response_model=AuthResult)
def sign_in(request: system_schemas.SignInRequest, client: WalletClient = Depends(get_client)):
    return _signed_in(client, client.auth.sign_in(request.email, request.password))


@router.post("/google", response_model=AuthResult)
def sign_in_with_google(request: system_schemas.IdpSignInRequest, client: WalletClient = Depends(get_client)):
    return _signed_in(client, client.auth.sign_in_with_google(request.idToken))


@router.post("/apple", response_model=AuthResult)
def sign_in_with_apple(request: system_schemas.IdpSignInRequest, client: WalletClient = Depends(get_client)):
    return _signed_in(client, client.auth.sign_in_with_apple(request.idToken))


@router.post("/sign-out", response_model=system_schemas.AuthStateResponse)
def sign_out(client: WalletClient = Depends(get_client)):
    client.auth.sign_out()
    client.reset_account()
    return _auth_state(client.auth.state)


@router.post("/refresh", response_model=system_schemas.AuthStateResponse)
def refresh_user(client: WalletClient = Depends(require_signed_in)):
    client.auth.refresh_user()
    return _auth_state(client.auth.state)


@router.post("/email-verification", response_model=AuthResult)
def send_email_verification(client: WalletClient = Depends(require_signed_in)):
    return client.auth.send_email_verification()


@router.post("/email-verified", response_model=AuthResult)
def confirm_email_verified(client: WalletClient = Depends(require_signed_in)):
    if not client.auth.check_email_verified():
        raise HTTPException(status_code=409, detail="Email not verified yet")
    return client.auth.mark_email_verified()


@router.post("/phone/otp")
def send_phone_otp(request: system_schemas.PhoneOtpRequest, client: WalletClient = Depends(get_client)):
    if not client.auth.send_phone_otp(request.phoneNumber, request.recaptchaToken):
        raise HTTPException(status_code=400, detail=client.auth.state.error)
    return {"status": "sent"}


@router.post("/phone/verify", response_model=AuthResult)
def verify_phone_otp(request: system_schemas.OtpVerifyRequest, client: WalletClient = Depends(get_client)):
    result = client.auth.verify_phone_otp(request.code)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return result
