"""Retry wrapper for fallible remote calls.

A single call is retried with exponential backoff and symmetric jitter. The
server's own hint (a ``retry-after`` header or a "try again in 2s" message)
takes precedence over the computed backoff. Payload-too-large failures are
permanent and short-circuit to an optional fallback handler.

Classes:
    RetryOptions: Tunables for one execute() call.

Functions:
    execute(fn, options, *, context, sleep, rand): Run ``fn`` until it succeeds or retries are exhausted.
    classify_status(error): Map an exception to an HTTP-like status, or None.
    suggested_delay(error): Server-suggested wait in seconds, or None.
    compute_delay(attempt, ...): Pure backoff plus jitter computation.
    default_retryable(status, error, attempt): Retry 429, 5xx and status-less failures.
"""

from __future__ import annotations

import asyncio
import logging
import random
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx
import openai
from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt

from jobfilter.core.config import Settings
from jobfilter.core.errors import PayloadTooLargeError

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

RetryPredicate = Callable[[Optional[int], BaseException, int], bool]
SleepFn = Callable[[float], Awaitable[Any]]

_RETRY_HINT = re.compile(r"try again in (?:(\d{1,4})ms|(\d+(?:\.\d+)?)s)", re.IGNORECASE)
_TOO_LARGE = re.compile(r"request too large", re.IGNORECASE)


def default_retryable(status: Optional[int], error: BaseException, attempt: int) -> bool:
    return status is None or status == 429 or 500 <= status < 600


@dataclass(slots=True)
class RetryOptions:
    retries: int = 5
    base_delay: float = 0.6
    max_delay: float = 8.0
    jitter_ratio: float = 0.4
    retryable: RetryPredicate = default_retryable
    on_payload_too_large: Optional[Callable[[], Awaitable[Any]]] = None

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "RetryOptions":
        values: dict[str, Any] = dict(
            retries=settings.retry_attempts,
            base_delay=settings.retry_base_delay_seconds,
            max_delay=settings.retry_max_delay_seconds,
            jitter_ratio=settings.retry_jitter_ratio,
        )
        values.update(overrides)
        return cls(**values)


def classify_status(error: BaseException) -> Optional[int]:
    if isinstance(error, PayloadTooLargeError):
        return 413
    if isinstance(error, openai.APIStatusError):
        return error.status_code
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None


def is_payload_too_large(error: BaseException) -> bool:
    if isinstance(error, PayloadTooLargeError):
        return True
    if classify_status(error) == 413:
        return True
    return isinstance(error, openai.APIError) and bool(_TOO_LARGE.search(error.message or ""))


def _response_headers(error: BaseException) -> Optional[httpx.Headers]:
    response = getattr(error, "response", None)
    if isinstance(response, httpx.Response):
        return response.headers
    return None


def _parse_retry_after(value: str, now: datetime) -> Optional[float]:
    value = value.strip()
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when is None:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    delta = (when - now).total_seconds()
    return delta if delta > 0 else None


def suggested_delay(error: BaseException, now: Optional[datetime] = None) -> Optional[float]:
    """Return the wait the server asked for, in seconds."""

    now = now or datetime.now(timezone.utc)
    headers = _response_headers(error)
    if headers is not None:
        header = headers.get("retry-after")
        if header is not None:
            parsed = _parse_retry_after(header, now)
            if parsed is not None:
                return parsed

    match = _RETRY_HINT.search(str(error))
    if match:
        millis, seconds = match.groups()
        if millis:
            return int(millis) / 1000.0
        if seconds:
            return float(seconds)
    return None


def compute_delay(
    attempt: int,
    *,
    base_delay: float,
    max_delay: float,
    jitter_ratio: float,
    suggested: Optional[float] = None,
    rand: float = 0.5,
) -> float:
    """Backoff for a zero-based ``attempt``; ``rand`` in [0, 1) drives the jitter."""

    delay = suggested if suggested is not None else min(max_delay, base_delay * (2 ** attempt))
    jitter = delay * jitter_ratio
    delay += (rand * 2.0 - 1.0) * jitter
    return max(0.0, delay)


async def execute(
    fn: Callable[[], Awaitable[T]],
    options: Optional[RetryOptions] = None,
    *,
    context: str = "remote call",
    sleep: SleepFn = asyncio.sleep,
    rand: Callable[[], float] = random.random,
) -> T:
    opts = options or RetryOptions()

    def _should_retry(retry_state: RetryCallState) -> bool:
        outcome = retry_state.outcome
        if outcome is None or not outcome.failed:
            return False
        error = outcome.exception()
        # CancelledError and friends end the loop; nothing resumes after cancellation.
        if not isinstance(error, Exception) or isinstance(error, PayloadTooLargeError):
            return False
        attempt = retry_state.attempt_number - 1
        status = classify_status(error)
        if attempt < opts.retries and opts.retryable(status, error, attempt):
            return True
        _LOGGER.error("%s failed (final, attempt %d, status=%s): %s", context, attempt + 1, status, error)
        return False

    def _wait(retry_state: RetryCallState) -> float:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        hint = suggested_delay(error) if error is not None else None
        return compute_delay(
            retry_state.attempt_number - 1,
            base_delay=opts.base_delay,
            max_delay=opts.max_delay,
            jitter_ratio=opts.jitter_ratio,
            suggested=hint,
            rand=rand(),
        )

    def _before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        _LOGGER.warning(
            "%s failed (attempt %d of %d, status=%s), retrying in %.2fs: %s",
            context,
            retry_state.attempt_number,
            opts.retries + 1,
            classify_status(error) if error is not None else None,
            delay,
            error,
        )

    async def _attempt() -> T:
        try:
            return await fn()
        except Exception as exc:
            if is_payload_too_large(exc) and not isinstance(exc, PayloadTooLargeError):
                raise PayloadTooLargeError(str(exc)) from exc
            raise

    retrying = AsyncRetrying(
        stop=stop_after_attempt(opts.retries + 1),
        retry=_should_retry,
        wait=_wait,
        sleep=sleep,
        before_sleep=_before_sleep,
        reraise=True,
    )
    try:
        return await retrying(_attempt)
    except PayloadTooLargeError:
        if opts.on_payload_too_large is None:
            _LOGGER.error("%s request too large; no handler", context)
            raise
        _LOGGER.warning("%s request too large; invoking handler", context)
        return await opts.on_payload_too_large()
