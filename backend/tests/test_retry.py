import asyncio
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

import httpx
import openai
import pytest

from jobfilter.core.errors import PayloadTooLargeError
from jobfilter.services.retry import (
    RetryOptions,
    classify_status,
    compute_delay,
    execute,
    suggested_delay,
)

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/embeddings")


def _status_error(cls, status: int, message: str = "error", headers: dict | None = None):
    response = httpx.Response(status, headers=headers or {}, request=_REQUEST)
    return cls(message, response=response, body=None)


class FlakyCall:
    def __init__(self, *outcomes):
        self._outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def test_compute_delay_is_exponential_and_capped():
    kwargs = dict(base_delay=0.6, max_delay=8.0, jitter_ratio=0.4, rand=0.5)
    assert compute_delay(0, **kwargs) == pytest.approx(0.6)
    assert compute_delay(2, **kwargs) == pytest.approx(2.4)
    assert compute_delay(6, **kwargs) == pytest.approx(8.0)


def test_compute_delay_prefers_server_hint_and_applies_symmetric_jitter():
    kwargs = dict(base_delay=0.6, max_delay=8.0, jitter_ratio=0.4, suggested=2.0)
    assert compute_delay(0, rand=0.5, **kwargs) == pytest.approx(2.0)
    assert compute_delay(0, rand=0.0, **kwargs) == pytest.approx(1.2)
    assert compute_delay(0, rand=0.999999, **kwargs) == pytest.approx(2.8, abs=1e-4)


def test_suggested_delay_reads_header_and_message_hints():
    rate_limited = _status_error(openai.RateLimitError, 429, headers={"retry-after": "2"})
    assert suggested_delay(rate_limited) == pytest.approx(2.0)

    now = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    dated = _status_error(
        openai.RateLimitError,
        429,
        headers={"retry-after": format_datetime(now + timedelta(seconds=5), usegmt=True)},
    )
    assert suggested_delay(dated, now=now) == pytest.approx(5.0)

    hinted = _status_error(openai.RateLimitError, 429, message="Rate limit reached. Please try again in 1.5s.")
    assert suggested_delay(hinted) == pytest.approx(1.5)
    assert suggested_delay(RuntimeError("try again in 250ms")) == pytest.approx(0.25)
    assert suggested_delay(RuntimeError("boom")) is None


def test_classify_status():
    assert classify_status(_status_error(openai.InternalServerError, 502)) == 502
    assert classify_status(openai.APIConnectionError(request=_REQUEST)) is None
    assert classify_status(ValueError("nope")) is None


@pytest.mark.asyncio
async def test_execute_honours_retry_after_then_succeeds():
    call = FlakyCall(
        _status_error(openai.RateLimitError, 429, headers={"retry-after": "2"}),
        "ok",
    )
    sleep = RecordingSleep()
    result = await execute(call, RetryOptions(jitter_ratio=0.4), sleep=sleep, rand=lambda: 0.0)
    assert result == "ok"
    assert call.calls == 2
    assert len(sleep.delays) == 1
    assert sleep.delays[0] >= 2.0 * (1 - 0.4) - 1e-9


@pytest.mark.asyncio
async def test_execute_fails_fast_on_non_retryable_status():
    call = FlakyCall(_status_error(openai.BadRequestError, 400, message="invalid input"))
    sleep = RecordingSleep()
    with pytest.raises(openai.BadRequestError):
        await execute(call, RetryOptions(), sleep=sleep)
    assert call.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_execute_surfaces_last_error_after_exhaustion():
    errors = [_status_error(openai.InternalServerError, 500, message=f"fail {i}") for i in range(3)]
    call = FlakyCall(*errors)
    sleep = RecordingSleep()
    with pytest.raises(openai.InternalServerError) as excinfo:
        await execute(call, RetryOptions(retries=2, base_delay=0.1, jitter_ratio=0.0), sleep=sleep)
    assert excinfo.value is errors[-1]
    assert call.calls == 3
    assert sleep.delays == pytest.approx([0.1, 0.2])


@pytest.mark.asyncio
async def test_execute_retries_transport_failures():
    call = FlakyCall(openai.APIConnectionError(request=_REQUEST), 42)
    sleep = RecordingSleep()
    assert await execute(call, RetryOptions(), sleep=sleep) == 42
    assert call.calls == 2


@pytest.mark.asyncio
async def test_execute_respects_custom_predicate():
    seen = []

    def never(status, error, attempt):
        seen.append((status, attempt))
        return False

    call = FlakyCall(_status_error(openai.RateLimitError, 429))
    sleep = RecordingSleep()
    with pytest.raises(openai.RateLimitError):
        await execute(call, RetryOptions(retryable=never), sleep=sleep)
    assert seen == [(429, 0)]
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_payload_too_large_uses_handler_once_without_retrying():
    handler_calls = []

    async def fallback():
        handler_calls.append(True)
        return "fallback"

    call = FlakyCall(_status_error(openai.BadRequestError, 400, message="Request too large for model"))
    sleep = RecordingSleep()
    result = await execute(call, RetryOptions(on_payload_too_large=fallback), sleep=sleep)
    assert result == "fallback"
    assert handler_calls == [True]
    assert call.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_payload_too_large_without_handler_raises():
    call = FlakyCall(_status_error(openai.APIStatusError, 413, message="payload"))
    sleep = RecordingSleep()
    with pytest.raises(PayloadTooLargeError):
        await execute(call, RetryOptions(), sleep=sleep)
    assert call.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_cancellation_during_backoff_stops_retrying():
    call = FlakyCall(*[_status_error(openai.InternalServerError, 503) for _ in range(3)])
    sleeping = asyncio.Event()

    async def blocking_sleep(delay: float) -> None:
        sleeping.set()
        await asyncio.Event().wait()

    task = asyncio.create_task(execute(call, RetryOptions(retries=2), sleep=blocking_sleep))
    await sleeping.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert call.calls == 1


@pytest.mark.asyncio
async def test_cancellation_during_call_is_not_retried():
    started = asyncio.Event()
    calls = []

    async def hanging_call():
        calls.append(True)
        started.set()
        await asyncio.Event().wait()

    sleep = RecordingSleep()
    task = asyncio.create_task(execute(hanging_call, RetryOptions(), sleep=sleep))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert calls == [True]
    assert sleep.delays == []
