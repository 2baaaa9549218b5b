"""
app/services/verification_service.py

Purpose: Verification workflow logic

- Normalizes phone numbers and applies the issuance rate limit
- Issues codes and dispatches them through the configured sender
- Falls back to demo delivery when the provider fails transiently
- Maps verification outcomes onto the service error taxonomy
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.core.config import Settings, settings
from app.core.exceptions import (
    ValidationError,
    RateLimitError,
    CodeNotFoundError,
    CodeExpiredError,
    AttemptsExhaustedError,
    InvalidCodeError,
    TransportError,
    DestinationRejectedError,
)
from app.core.logging import get_logger, LogContext
from app.services.code_store import CodeStore, VerificationOutcome
from app.services.message_sender import MessageSender, DemoSender, SendResult, get_message_sender
from app.services.rate_limiter import RateLimiter
from utils.constants import (
    SMS_MESSAGE_TEMPLATE,
    METHOD_REAL_SMS,
    METHOD_DEMO_MODE,
    MESSAGE_SMS_SENT,
    MESSAGE_DEMO_SENT,
    ERROR_PHONE_AND_CODE_REQUIRED,
    ERROR_RATE_LIMITED,
    TWILIO_PERMANENT_ERRORS,
    ERROR_DESTINATION_INVALID,
)
from utils.validation_utils import format_phone_number, normalize_phone_number, mask_phone_number

logger = get_logger(__name__)


@dataclass
class SendCodeResult:
    success: bool
    method: str
    destination: str
    message: str
    code: Optional[str] = None  # only populated when codes may be echoed
    provider_reference: Optional[str] = None
    status: Optional[str] = None
    demo_message: Optional[str] = None


class VerificationService:
    """
    Coordinates the rate limiter, code store and message sender.

    Constructed once per process; holds all verification state.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        code_store: CodeStore,
        sender: MessageSender,
        fallback_sender: Optional[MessageSender] = None,
        send_timeout: float = 10.0,
        expose_code: bool = True,
        service_name: str = "SMS Verification API",
    ):
        self.rate_limiter = rate_limiter
        self.code_store = code_store
        self.sender = sender
        self.fallback_sender = fallback_sender or DemoSender()
        self.send_timeout = send_timeout
        self.expose_code = expose_code
        self.service_name = service_name

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "VerificationService":
        config = config or settings
        sender = get_message_sender(config)
        fallback = sender if isinstance(sender, DemoSender) else DemoSender(config.DEMO_DELIVERY_DELAY_SECONDS)

        return cls(
            rate_limiter=RateLimiter(
                window_seconds=config.RATE_LIMIT_WINDOW_SECONDS,
                max_requests=config.RATE_LIMIT_MAX_REQUESTS,
            ),
            code_store=CodeStore(
                ttl_minutes=config.CODE_TTL_MINUTES,
                max_attempts=config.MAX_VERIFY_ATTEMPTS,
            ),
            sender=sender,
            fallback_sender=fallback,
            send_timeout=config.SMS_SEND_TIMEOUT_SECONDS,
            expose_code=config.expose_code,
            service_name=config.SERVICE_NAME,
        )

    def build_message(self, code: str) -> str:
        return SMS_MESSAGE_TEMPLATE.format(
            service_name=self.service_name,
            code=code,
            ttl_minutes=self.code_store.ttl_minutes,
        )

    async def send_code(self, phone_number: Optional[str], user_email: Optional[str] = None) -> SendCodeResult:
        """
        Issues a verification code and delivers it by SMS.

        Args:
            phone_number: Raw phone number from the user
            user_email: Optional email of the requesting account (never logged)

        Returns:
            SendCodeResult describing how the code was delivered

        Raises:
            ValidationError: Missing or malformed phone number
            RateLimitError: Too many requests for this destination
            DestinationRejectedError: Provider permanently rejected the number
        """
        destination = normalize_phone_number(phone_number)
        masked = mask_phone_number(destination)

        # LogContext swaps a process-global factory, so it is not held across awaits
        logger.info(
            "📱 SMS verification requested"
            + (" for a signed-in account" if user_email else ""),
            extra={"destination": masked}
        )

        decision = await self.rate_limiter.admit(destination)
        if not decision.allowed:
            raise RateLimitError(ERROR_RATE_LIMITED, retry_after=decision.retry_after)

        # Stored before sending; a failed send never un-issues the code
        record = await self.code_store.issue(destination)
        body = self.build_message(record.code)

        try:
            result = await self._deliver(self.sender, destination, body)
        except TransportError as e:
            logger.warning(
                f"SMS provider failed ({e.message}), falling back to demo mode",
                extra={"destination": masked}
            )
            result = await self._fall_back(destination, body, masked)

        return self._build_result(destination, record.code, body, result)

    async def _deliver(self, sender: MessageSender, destination: str, body: str) -> SendResult:
        """
        Sends with a bounded wait.

        Raises:
            TransportError: Timeout or transient provider failure
            DestinationRejectedError: Provider says the number can never receive SMS
        """
        try:
            result = await asyncio.wait_for(sender.send(destination, body), timeout=self.send_timeout)
        except asyncio.TimeoutError:
            raise TransportError(f"No response from SMS provider after {self.send_timeout}s")

        if result.success:
            return result

        if result.permanent:
            message = TWILIO_PERMANENT_ERRORS.get(result.error_code, ERROR_DESTINATION_INVALID)
            raise DestinationRejectedError(message, details={"providerCode": result.error_code})

        raise TransportError(result.error or "SMS provider error", details={"providerCode": result.error_code})

    async def _fall_back(self, destination: str, body: str, masked: str) -> SendResult:
        """
        Simulated delivery after a transient provider failure.

        Not bounded by the provider timeout and never raises a transport
        error: the code is already stored, so issuance reports demo_mode
        even if the fallback itself fails.
        """
        result = await self.fallback_sender.send(destination, body)
        if result.success:
            return result

        logger.error(
            f"Fallback delivery failed: {result.error}",
            extra={"destination": masked}
        )
        return SendResult(success=True, method=METHOD_DEMO_MODE, status="simulated")

    def _build_result(self, destination: str, code: str, body: str, result: SendResult) -> SendCodeResult:
        demo = result.method == METHOD_DEMO_MODE

        with LogContext(destination=mask_phone_number(destination), method=result.method):
            logger.info("Verification code dispatched")

        return SendCodeResult(
            success=True,
            method=METHOD_DEMO_MODE if demo else METHOD_REAL_SMS,
            destination=destination,
            message=MESSAGE_DEMO_SENT if demo else MESSAGE_SMS_SENT,
            code=code if self.expose_code else None,
            provider_reference=result.provider_reference,
            status=result.status,
            demo_message=body if demo and self.expose_code else None,
        )

    async def check_code(self, phone_number: Optional[str], code: Optional[str]) -> None:
        """
        Verifies a code. Returns normally on success.

        Raises:
            ValidationError: Phone number or code missing
            CodeNotFoundError / CodeExpiredError / AttemptsExhaustedError:
                The pending code is gone; a new one must be requested
            InvalidCodeError: Wrong code, retry allowed (attempts_remaining set)
        """
        if not phone_number or not phone_number.strip() or not code:
            raise ValidationError(ERROR_PHONE_AND_CODE_REQUIRED)

        destination = format_phone_number(phone_number.strip())
        result = await self.code_store.verify(destination, code)

        if result.outcome == VerificationOutcome.VERIFIED:
            logger.info(f"✅ Code verified for {mask_phone_number(destination)}")
            return
        if result.outcome == VerificationOutcome.NO_CODE:
            raise CodeNotFoundError()
        if result.outcome == VerificationOutcome.EXPIRED:
            raise CodeExpiredError()
        if result.outcome == VerificationOutcome.ATTEMPTS_EXHAUSTED:
            raise AttemptsExhaustedError()

        raise InvalidCodeError(attempts_remaining=result.attempts_remaining)

    def health(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "sender_configured": self.sender.is_configured(),
            "sender": self.sender.method,
            "pending_codes": self.code_store.pending_count(),
        }

    async def close(self):
        await self.sender.close()


# Global service instance
_verification_service: Optional[VerificationService] = None


def get_verification_service() -> VerificationService:
    """Get or create the process-wide verification service."""
    global _verification_service
    if _verification_service is None:
        _verification_service = VerificationService.from_settings()
    return _verification_service


async def close_verification_service():
    """Close the verification service (call on shutdown)."""
    global _verification_service
    if _verification_service is not None:
        await _verification_service.close()
        _verification_service = None
