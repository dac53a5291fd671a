"""Retry-with-backoff tests."""

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from vista.errors import (
    ErrorKind,
    IndexSchemaMismatch,
    LLMAuthenticationError,
    LLMTimeoutError,
    StoreUnavailable,
    ValidationError,
)
from vista.retry import backoff_delay, classify_failure, with_retry


@pytest.fixture
def no_sleep():
    """Skip real backoff delays, recording them instead."""
    with patch("vista.retry.asyncio.sleep", new_callable=AsyncMock) as mock:
        yield mock


def flaky(failures: list[BaseException], result: str = "ok") -> AsyncMock:
    """An async callable raising each of ``failures`` in turn, then returning ``result``."""
    return AsyncMock(side_effect=[*failures, result])


# =============================================================================
# Classification
# =============================================================================


@pytest.mark.parametrize(
    "error, kind",
    [
        (LLMTimeoutError("slow"), ErrorKind.TRANSIENT),
        (StoreUnavailable("down"), ErrorKind.TRANSIENT),
        (IndexSchemaMismatch("dim"), ErrorKind.SCHEMA),
        (ValidationError("empty"), ErrorKind.VALIDATION),
        (LLMAuthenticationError("bad key"), ErrorKind.FATAL),
        (asyncio.TimeoutError(), ErrorKind.TRANSIENT),
        (ConnectionResetError(), ErrorKind.TRANSIENT),
        (httpx.ConnectError("refused"), ErrorKind.TRANSIENT),
        (KeyError("choices"), ErrorKind.FATAL),
    ],
)
def test_classify_failure(error, kind):
    assert classify_failure(error) is kind


def test_backoff_doubles_each_attempt():
    assert [backoff_delay(n, 0.5) for n in range(4)] == [0.5, 1.0, 2.0, 4.0]


# =============================================================================
# Retry loop
# =============================================================================


async def test_succeeds_after_transient_failures(no_sleep):
    """Two transient failures then success uses three invocations."""
    operation = flaky([LLMTimeoutError("1"), LLMTimeoutError("2")])

    result = await with_retry(operation, max_attempts=3, base_delay=1.0)

    assert result == "ok"
    assert operation.await_count == 3
    assert [c.args[0] for c in no_sleep.await_args_list] == [1.0, 2.0]


async def test_exhausted_attempts_raise_last_error(no_sleep):
    errors = [LLMTimeoutError("first"), LLMTimeoutError("second"), LLMTimeoutError("third")]
    operation = AsyncMock(side_effect=errors)

    with pytest.raises(LLMTimeoutError) as exc_info:
        await with_retry(operation, max_attempts=3, base_delay=0.1)

    assert exc_info.value is errors[-1]
    assert operation.await_count == 3
    # no sleep after the final attempt
    assert no_sleep.await_count == 2


async def test_fatal_error_is_not_retried(no_sleep):
    operation = flaky([LLMAuthenticationError("bad key")])

    with pytest.raises(LLMAuthenticationError):
        await with_retry(operation, max_attempts=3, base_delay=1.0)

    assert operation.await_count == 1
    no_sleep.assert_not_awaited()


async def test_schema_mismatch_is_not_retried(no_sleep):
    operation = flaky([IndexSchemaMismatch("dimension 512 != 768")])

    with pytest.raises(IndexSchemaMismatch):
        await with_retry(operation, max_attempts=5, base_delay=1.0)

    assert operation.await_count == 1


async def test_single_attempt_never_sleeps(no_sleep):
    operation = flaky([StoreUnavailable("down")])

    with pytest.raises(StoreUnavailable):
        await with_retry(operation, max_attempts=1, base_delay=1.0)

    no_sleep.assert_not_awaited()


async def test_first_success_returns_immediately(no_sleep):
    operation = flaky([], result="value")

    assert await with_retry(operation, max_attempts=3, base_delay=1.0) == "value"
    assert operation.await_count == 1


async def test_zero_attempts_is_rejected():
    with pytest.raises(ValueError):
        await with_retry(AsyncMock(), max_attempts=0, base_delay=1.0)


async def test_custom_classifier_controls_retries(no_sleep):
    operation = flaky([KeyError("flaky key")])

    result = await with_retry(
        operation,
        max_attempts=2,
        base_delay=0.0,
        classify=lambda e: ErrorKind.TRANSIENT,
    )

    assert result == "ok"
    assert operation.await_count == 2
