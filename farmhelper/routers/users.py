import logging

from fastapi import APIRouter, HTTPException, status

from farmhelper.config import settings
from farmhelper.schemas.users import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    VerifyOtpRequest,
)
from farmhelper.services.auth import auth_workflow
from farmhelper.services.errors import FarmHelperError
from farmhelper.services.tokens import TokenError

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["user"])


@router.post("/register", response_model=RegisterResponse, response_model_exclude_none=True)
def register(payload: RegisterRequest) -> RegisterResponse:
    try:
        registration = auth_workflow.register(
            payload.username, payload.email, payload.password
        )
    except FarmHelperError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    minutes = max(1, registration.expires_in_seconds // 60)
    return RegisterResponse(
        message=f"OTP sent to email. Verify within {minutes} minutes!",
        email=registration.email,
        expires_in_seconds=registration.expires_in_seconds,
        otp=registration.code if settings.otp_debug else None,
    )


@router.post(
    "/verify-otp",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def verify_otp(payload: VerifyOtpRequest) -> MessageResponse:
    try:
        auth_workflow.verify_otp(payload.email, payload.otp)
    except FarmHelperError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return MessageResponse(message="Account created successfully!")


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest) -> TokenResponse:
    try:
        token = auth_workflow.login(payload.username, payload.password)
    except FarmHelperError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    except TokenError as exc:
        LOGGER.error("Could not issue token: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Something went wrong!",
        ) from exc
    return TokenResponse(token=token)
