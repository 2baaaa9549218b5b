"""Shared fixtures: a controllable clock, fresh verification components and
an HTTP client whose verification service is isolated per test."""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services.code_store import CodeStore
from app.services.message_sender import MessageSender, DemoSender, SendResult
from app.services.rate_limiter import RateLimiter
from app.services.verification_service import VerificationService, get_verification_service


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingSender(MessageSender):
    """Sender that records messages and returns a preset result."""

    def __init__(self, result: Optional[SendResult] = None, delay: float = 0, configured: bool = True):
        self.result = result or SendResult(success=True, provider_reference="SM123", status="queued")
        self.delay = delay
        self.configured = configured
        self.sent: List[Tuple[str, str]] = []

    async def send(self, destination: str, body: str) -> SendResult:
        self.sent.append((destination, body))
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.result

    def is_configured(self) -> bool:
        return self.configured


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(clock) -> RateLimiter:
    return RateLimiter(window_seconds=60, max_requests=3, clock=clock)


@pytest.fixture
def code_store(clock) -> CodeStore:
    return CodeStore(ttl_minutes=5, max_attempts=3, clock=clock)


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def service(rate_limiter, code_store, sender) -> VerificationService:
    return VerificationService(
        rate_limiter=rate_limiter,
        code_store=code_store,
        sender=sender,
        fallback_sender=DemoSender(delay_seconds=0),
        send_timeout=1.0,
        expose_code=True,
        service_name="Test Service",
    )


@pytest.fixture
def client(service):
    app.dependency_overrides[get_verification_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
