"""
app/api/verification.py

Purpose: SMS verification endpoints

- POST /send-verification-code: issue a code and send it by SMS
- POST /verify-code: check a code
- Business failures are raised as service errors and rendered by
  the handlers in app.core.errors (400 / 429)
"""

from fastapi import APIRouter, Depends

from app.core.logging import get_logger
from app.schemas.verification import (
    SendCodeRequest,
    SendCodeResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from app.services.verification_service import VerificationService, get_verification_service
from utils.constants import MESSAGE_CODE_VERIFIED

logger = get_logger(__name__)
router = APIRouter()


@router.post(
    "/send-verification-code",
    response_model=SendCodeResponse,
    response_model_exclude_none=True,
)
async def send_verification_code(
    payload: SendCodeRequest,
    service: VerificationService = Depends(get_verification_service),
):
    """
    Sends a 6-digit verification code to the given phone number.

    Falls back to demo mode (code logged, not sent) when Twilio is not
    configured or fails for a reason other than a bad number.
    """
    result = await service.send_code(payload.phone_number, payload.user_email)

    return SendCodeResponse(
        success=result.success,
        method=result.method,
        phone_number=result.destination,
        message=result.message,
        verification_code=result.code,
        message_sid=result.provider_reference,
        status=result.status,
        demo_message=result.demo_message,
    )


@router.post("/verify-code", response_model=VerifyCodeResponse)
async def verify_code(
    payload: VerifyCodeRequest,
    service: VerificationService = Depends(get_verification_service),
):
    """
    Verifies a code previously sent to the phone number.
    A code can be used once and allows 3 wrong attempts.
    """
    await service.check_code(payload.phone_number, payload.code)

    return VerifyCodeResponse(message=MESSAGE_CODE_VERIFIED)
