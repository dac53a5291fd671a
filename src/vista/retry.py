"""
Retry logic with exponential backoff for provider calls.

Each attempt is captured as an ``Attempt`` tagged TRANSIENT or FATAL by
``classify_failure``. The loop branches on that tag: transient failures sleep
``base_delay * 2**attempt`` and try again, fatal ones propagate at once. When
the attempts run out, the last failure propagates unchanged.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

import httpx

from vista.errors import ErrorKind, VistaError


logger = logging.getLogger(__name__)

T = TypeVar("T")


def classify_failure(error: BaseException) -> ErrorKind:
    """
    Map an exception to its retry classification.

    Vista errors carry their own kind. Bare timeouts and transport-level
    connection failures are transient. Anything else is fatal.

    Args:
        error: The exception raised by an attempt

    Returns:
        ErrorKind.TRANSIENT if the operation may be retried, otherwise the
        error's own (non-transient) kind
    """
    if isinstance(error, VistaError):
        return error.kind
    if isinstance(error, (TimeoutError, asyncio.TimeoutError, ConnectionError)):
        return ErrorKind.TRANSIENT
    if isinstance(error, httpx.TransportError):
        return ErrorKind.TRANSIENT
    return ErrorKind.FATAL


@dataclass
class Attempt(Generic[T]):
    """
    Result of a single attempt.

    Attributes:
        number: Attempt index, starting at 0
        value: The result value if the attempt succeeded
        error: The exception if it failed
        kind: Classification of the failure, None on success
    """
    number: int
    value: Optional[T] = None
    error: Optional[BaseException] = None
    kind: Optional[ErrorKind] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay in seconds before retrying after failed attempt ``attempt`` (0-based)."""
    return base_delay * (2 ** attempt)


async def _run_attempt(
    operation: Callable[[], Awaitable[T]],
    number: int,
    classify: Callable[[BaseException], ErrorKind],
) -> Attempt[T]:
    try:
        return Attempt(number=number, value=await operation())
    except Exception as e:
        return Attempt(number=number, error=e, kind=classify(e))


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int,
    base_delay: float,
    operation_name: str = "operation",
    classify: Callable[[BaseException], ErrorKind] = classify_failure,
) -> T:
    """
    Execute an async operation with retry and exponential backoff.

    Args:
        operation: Zero-argument coroutine factory, invoked once per attempt
        max_attempts: Maximum number of invocations (including the first)
        base_delay: Delay in seconds after the first failure; doubles each time
        operation_name: Name for logging
        classify: Maps a raised exception to its ErrorKind

    Returns:
        The operation's result

    Raises:
        The final attempt's exception when all attempts fail transiently, or
        the first non-transient exception immediately.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt: Attempt[T] | None = None
    for number in range(max_attempts):
        attempt = await _run_attempt(operation, number, classify)

        if attempt.succeeded:
            if number > 0:
                logger.info(f"{operation_name} succeeded after {number + 1} attempts")
            return attempt.value  # type: ignore[return-value]

        if attempt.kind is not ErrorKind.TRANSIENT:
            logger.error(f"{operation_name} failed with non-retryable error: {attempt.error}")
            raise attempt.error  # type: ignore[misc]

        logger.warning(
            f"{operation_name} failed on attempt {number + 1}/{max_attempts}: {attempt.error}"
        )
        if number < max_attempts - 1:
            delay = backoff_delay(number, base_delay)
            logger.debug(f"Backing off for {delay:.3f}s before retry")
            await asyncio.sleep(delay)

    logger.error(f"{operation_name} exhausted all {max_attempts} attempts")
    raise attempt.error  # type: ignore[union-attr,misc]
