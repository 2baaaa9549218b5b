import asyncio
import itertools
from unittest.mock import patch

import pytest

from app.services.code_store import CodeStore, VerificationOutcome, generate_verification_code

DEST = "+15551234567"


def test_generated_codes_are_six_digits():
    for _ in range(200):
        code = generate_verification_code()
        assert len(code) == 6
        assert code.isdigit()


def test_generated_code_preserves_leading_zeros():
    with patch("app.services.code_store.secrets.randbelow", return_value=42):
        assert generate_verification_code() == "000042"


@pytest.mark.asyncio
async def test_issue_sets_expiry_and_resets_attempts(code_store, clock):
    record = await code_store.issue(DEST)

    assert record.destination == DEST
    assert len(record.code) == 6
    assert record.attempts == 0
    assert (record.expires_at - clock.now).total_seconds() == 300
    assert code_store.store.get(DEST) is record


@pytest.mark.asyncio
async def test_code_verifies_exactly_once(code_store):
    record = await code_store.issue(DEST)

    first = await code_store.verify(DEST, record.code)
    assert first.verified

    second = await code_store.verify(DEST, record.code)
    assert second.outcome == VerificationOutcome.NO_CODE


@pytest.mark.asyncio
async def test_verify_without_code(code_store):
    result = await code_store.verify(DEST, "123456")
    assert result.outcome == VerificationOutcome.NO_CODE


@pytest.mark.asyncio
async def test_mismatch_counts_down_and_keeps_record(code_store):
    record = await code_store.issue(DEST)
    wrong = "000000" if record.code != "000000" else "111111"

    remaining = []
    for _ in range(3):
        result = await code_store.verify(DEST, wrong)
        assert result.outcome == VerificationOutcome.MISMATCH
        remaining.append(result.attempts_remaining)

    assert remaining == [2, 1, 0]
    assert DEST in code_store.store


@pytest.mark.asyncio
async def test_fourth_attempt_is_exhausted_even_with_correct_code(code_store):
    record = await code_store.issue(DEST)
    wrong = "000000" if record.code != "000000" else "111111"

    for _ in range(3):
        await code_store.verify(DEST, wrong)

    result = await code_store.verify(DEST, record.code)
    assert result.outcome == VerificationOutcome.ATTEMPTS_EXHAUSTED
    assert DEST not in code_store.store


@pytest.mark.asyncio
async def test_expired_code_is_deleted(code_store, clock):
    record = await code_store.issue(DEST)

    clock.advance(5 * 60 + 1)
    result = await code_store.verify(DEST, record.code)
    assert result.outcome == VerificationOutcome.EXPIRED
    assert DEST not in code_store.store

    again = await code_store.verify(DEST, record.code)
    assert again.outcome == VerificationOutcome.NO_CODE


@pytest.mark.asyncio
async def test_code_still_valid_at_exact_expiry(code_store, clock):
    record = await code_store.issue(DEST)

    clock.advance(5 * 60)
    result = await code_store.verify(DEST, record.code)
    assert result.verified


@pytest.mark.asyncio
async def test_expiry_checked_before_attempt_limit(code_store, clock):
    record = await code_store.issue(DEST)
    wrong = "000000" if record.code != "000000" else "111111"
    for _ in range(3):
        await code_store.verify(DEST, wrong)

    clock.advance(301)
    result = await code_store.verify(DEST, record.code)
    assert result.outcome == VerificationOutcome.EXPIRED


@pytest.mark.asyncio
async def test_reissue_replaces_code_and_attempts(code_store):
    codes = iter(["111111", "222222"])
    code_store.code_generator = lambda: next(codes)

    await code_store.issue(DEST)
    await code_store.verify(DEST, "999999")
    await code_store.issue(DEST)

    record = code_store.store.get(DEST)
    assert record.code == "222222"
    assert record.attempts == 0

    old = await code_store.verify(DEST, "111111")
    assert old.outcome == VerificationOutcome.MISMATCH
    assert old.attempts_remaining == 2


@pytest.mark.asyncio
async def test_concurrent_issues_leave_only_latest_record(clock):
    counter = itertools.count(1)
    store = CodeStore(clock=clock, code_generator=lambda: f"{next(counter):06d}")

    records = await asyncio.gather(*(store.issue(DEST) for _ in range(5)))

    assert store.pending_count() == 1
    assert store.store.get(DEST).code == records[-1].code


@pytest.mark.asyncio
async def test_concurrent_verifies_succeed_once(code_store):
    record = await code_store.issue(DEST)

    results = await asyncio.gather(*(code_store.verify(DEST, record.code) for _ in range(5)))

    assert sum(r.verified for r in results) == 1
    assert all(r.outcome == VerificationOutcome.NO_CODE for r in results if not r.verified)
