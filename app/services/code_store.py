"""
app/services/code_store.py

Purpose: Verification code lifecycle

- Generates 6-digit codes from a CSPRNG
- Keeps at most one pending code per destination
- Verifies codes with expiry and attempt limits
- Deletes codes lazily (on success, expiry or exhaustion)

Per-destination states:

    NO_PENDING_CODE --issue--> PENDING_CODE
    PENDING_CODE --issue--> PENDING_CODE (replaced, attempts reset)
    PENDING_CODE --verify--> VERIFIED | EXPIRED | ATTEMPTS_EXHAUSTED -> NO_PENDING_CODE
    PENDING_CODE --verify (wrong code)--> PENDING_CODE (attempts + 1)
"""

import secrets
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from app.db.memory_store import KeyedStore
from app.core.logging import get_logger, LogContext
from utils.constants import CODE_LENGTH
from utils.time_utils import utc_now, calculate_code_expiry, is_code_expired
from utils.validation_utils import mask_phone_number

logger = get_logger(__name__)


def generate_verification_code(length: int = CODE_LENGTH) -> str:
    """
    Generates a numeric code uniformly over 0..10**length - 1.
    Leading zeros are preserved (42 -> "000042").
    """
    return str(secrets.randbelow(10 ** length)).zfill(length)


@dataclass
class VerificationRecord:
    destination: str
    code: str
    expires_at: datetime
    attempts: int = 0


class VerificationOutcome(str, Enum):
    """Possible results of a verification attempt."""

    VERIFIED = "VERIFIED"
    NO_CODE = "NO_CODE"
    EXPIRED = "EXPIRED"
    ATTEMPTS_EXHAUSTED = "ATTEMPTS_EXHAUSTED"
    MISMATCH = "MISMATCH"


@dataclass(frozen=True)
class VerificationResult:
    outcome: VerificationOutcome
    attempts_remaining: Optional[int] = None  # only set for MISMATCH

    @property
    def verified(self) -> bool:
        return self.outcome == VerificationOutcome.VERIFIED


class CodeStore:
    """
    Owns all pending verification records.

    Every operation on a destination runs under that destination's lock,
    so an issue never interleaves with a verify of the same number.
    """

    def __init__(
        self,
        ttl_minutes: int = 5,
        max_attempts: int = 3,
        store: Optional[KeyedStore[VerificationRecord]] = None,
        clock: Callable[[], datetime] = utc_now,
        code_generator: Callable[[], str] = generate_verification_code,
    ):
        self.ttl_minutes = ttl_minutes
        self.max_attempts = max_attempts
        self.store: KeyedStore[VerificationRecord] = store or KeyedStore("verification_codes")
        self.clock = clock
        self.code_generator = code_generator

    async def issue(self, destination: str, now: Optional[datetime] = None) -> VerificationRecord:
        """
        Creates a fresh code for the destination, replacing any pending one.

        Args:
            destination: Canonical phone number
            now: Override for the current time

        Returns:
            The stored record (the caller handles delivery)
        """
        async with self.store.locked(destination):
            now = now or self.clock()
            record = VerificationRecord(
                destination=destination,
                code=self.code_generator(),
                expires_at=calculate_code_expiry(now, self.ttl_minutes),
                attempts=0,
            )
            replaced = destination in self.store
            self.store.put(destination, record)

        logger.info(
            f"Verification code issued for {mask_phone_number(destination)}"
            + (" (replaced pending code)" if replaced else "")
        )
        logger.debug(f"Issued code {record.code} for {destination}")
        return record

    async def verify(
        self,
        destination: str,
        supplied_code: str,
        now: Optional[datetime] = None
    ) -> VerificationResult:
        """
        Checks a supplied code against the pending record.

        Order of checks: missing record, expiry, attempt limit, comparison.
        The attempt limit is checked before comparing, so after
        ``max_attempts`` wrong codes the next call reports exhaustion
        even if its code is correct.
        """
        async with self.store.locked(destination):
            now = now or self.clock()
            record = self.store.get(destination)

            if record is None:
                result = VerificationResult(VerificationOutcome.NO_CODE)
            elif is_code_expired(record.expires_at, now):
                self.store.delete(destination)
                result = VerificationResult(VerificationOutcome.EXPIRED)
            elif record.attempts >= self.max_attempts:
                self.store.delete(destination)
                result = VerificationResult(VerificationOutcome.ATTEMPTS_EXHAUSTED)
            elif secrets.compare_digest(supplied_code.encode(), record.code.encode()):
                self.store.delete(destination)
                result = VerificationResult(VerificationOutcome.VERIFIED)
            else:
                record.attempts += 1
                result = VerificationResult(
                    VerificationOutcome.MISMATCH,
                    attempts_remaining=self.max_attempts - record.attempts,
                )

        with LogContext(destination=mask_phone_number(destination), outcome=result.outcome.value):
            logger.info("Verification attempt processed")

        return result

    def pending_count(self) -> int:
        """Number of destinations with a stored (possibly expired) code."""
        return len(self.store)
