"""
app/services/message_sender.py

Purpose: SMS delivery

- Provider-agnostic MessageSender interface
- TwilioSender: sends SMS through the Twilio REST API
- DemoSender: logs the message instead of sending it
- Classifies provider errors as permanent (bad destination) or transient
"""

import asyncio
import httpx
from dataclasses import dataclass
from typing import Optional

from app.core.config import Settings, settings
from app.core.logging import get_logger
from utils.constants import (
    METHOD_REAL_SMS,
    METHOD_DEMO_MODE,
    TWILIO_PERMANENT_ERRORS,
)
from utils.validation_utils import mask_phone_number

logger = get_logger(__name__)


@dataclass
class SendResult:
    """
    Outcome of a single send.

    permanent is only meaningful on failure: True when the provider
    says the destination can never receive messages.
    """
    success: bool
    method: str = METHOD_REAL_SMS
    provider_reference: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[int] = None
    permanent: bool = False


class MessageSender:
    """Provider-agnostic SMS sender interface."""

    method = METHOD_REAL_SMS

    async def send(self, destination: str, body: str) -> SendResult:
        """
        Send an SMS message.

        Args:
            destination: Phone number in E.164 format
            body: Message body
        """
        raise NotImplementedError("MessageSender.send() must be implemented by a provider-specific subclass.")

    def is_configured(self) -> bool:
        """True if this sender delivers real messages."""
        return False

    async def close(self):
        """Release any network resources."""


class TwilioSender(MessageSender):
    """Sends SMS via the Twilio Messages API"""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        base_url: str = "https://api.twilio.com/2010-04-01",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.base_url = f"{base_url.rstrip('/')}/Accounts/{account_sid}"
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def send(self, destination: str, body: str) -> SendResult:
        """
        Sends an SMS via Twilio

        Returns:
            SendResult with the message SID on success, or the Twilio
            error code and a permanent flag on failure
        """
        url = f"{self.base_url}/Messages.json"
        data = {
            "From": self.from_number,
            "To": destination,
            "Body": body
        }

        logger.info(f"📤 Sending SMS to {mask_phone_number(destination)}")

        try:
            response = await self._get_client().post(
                url,
                data=data,
                auth=(self.account_sid, self.auth_token),
            )
        except httpx.TimeoutException:
            logger.error("Twilio API timeout")
            return SendResult(success=False, error="Twilio API timeout")
        except httpx.RequestError as e:
            logger.error(f"Network error sending SMS: {e}")
            return SendResult(success=False, error="Network error connecting to Twilio")

        if response.status_code in (200, 201):
            try:
                result = response.json()
            except ValueError:
                result = None

            if not isinstance(result, dict):
                logger.error(f"Unexpected Twilio response body: {response.text[:200]}")
                return SendResult(success=False, error="Unexpected response from Twilio")

            logger.info(f"✅ SMS sent: SID={result.get('sid')} status={result.get('status')}")
            return SendResult(
                success=True,
                provider_reference=result.get("sid"),
                status=result.get("status")
            )

        return self._error_result(response)

    def _error_result(self, response: httpx.Response) -> SendResult:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        error_code = payload.get("code")
        message = payload.get("message") or f"Twilio API error: {response.status_code}"
        permanent = error_code in TWILIO_PERMANENT_ERRORS

        logger.error(
            f"❌ Twilio API error: {response.status_code} code={error_code} - {message}"
        )

        return SendResult(
            success=False,
            error=message,
            error_code=error_code,
            permanent=permanent
        )

    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class DemoSender(MessageSender):
    """
    Pretends to send. The message is written to the log so the code
    can be read from the console during local development.
    """

    method = METHOD_DEMO_MODE

    def __init__(self, delay_seconds: float = 1.0):
        self.delay_seconds = delay_seconds

    async def send(self, destination: str, body: str) -> SendResult:
        logger.info(f"📋 Demo mode - SMS would be sent to {destination}")
        logger.info(f"   Message: {body}")

        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

        return SendResult(success=True, method=METHOD_DEMO_MODE, status="simulated")


def get_message_sender(config: Optional[Settings] = None) -> MessageSender:
    """
    Factory for MessageSender.
    Uses Twilio when all TWILIO_* settings are present, else the demo sender.
    """
    config = config or settings

    if config.twilio_configured:
        logger.info(f"✅ Twilio configured, sending from {config.TWILIO_FROM_NUMBER}")
        return TwilioSender(
            account_sid=config.TWILIO_ACCOUNT_SID,
            auth_token=config.TWILIO_AUTH_TOKEN,
            from_number=config.TWILIO_FROM_NUMBER,
            base_url=config.TWILIO_BASE_URL,
            timeout=config.SMS_SEND_TIMEOUT_SECONDS,
        )

    logger.warning("⚠️ Twilio not configured, using demo mode")
    return DemoSender(delay_seconds=config.DEMO_DELIVERY_DELAY_SECONDS)
