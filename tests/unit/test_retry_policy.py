"""
Tests unitarios de la politica de reintentos.

Con max_retries = N una operacion que siempre falla se intenta N+1 veces,
esperando 2, 4, ..., 2^N segundos entre intentos.
"""
from __future__ import annotations

import asyncio
from typing import List

import pytest

from wms_integration.application.services.retry_policy import RetryExhaustedError, RetryPolicy


class _Recorder:
    """Sleep falso que registra las esperas."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.mark.asyncio
async def test_success_on_first_attempt_does_not_sleep() -> None:
    sleep = _Recorder()
    policy = RetryPolicy(3, sleep=sleep)

    async def operation(attempt: int) -> str:
        return f"ok-{attempt}"

    assert await policy.execute(operation) == "ok-1"
    assert sleep.delays == []


@pytest.mark.asyncio
@pytest.mark.parametrize("max_retries", [0, 1, 3, 5])
async def test_permanent_failure_attempts_n_plus_one_with_exponential_delays(max_retries: int) -> None:
    sleep = _Recorder()
    policy = RetryPolicy(max_retries, sleep=sleep)
    attempts: List[int] = []

    async def operation(attempt: int) -> None:
        attempts.append(attempt)
        raise IOError("archivo bloqueado")

    with pytest.raises(RetryExhaustedError) as exc_info:
        await policy.execute(operation, description="archivo x.xml")

    assert attempts == list(range(1, max_retries + 2))
    assert sleep.delays == [2 ** n for n in range(1, max_retries + 1)]
    assert exc_info.value.attempts == max_retries + 1
    assert isinstance(exc_info.value.last_error, IOError)
    assert exc_info.value.aborted is False


@pytest.mark.asyncio
async def test_recovers_after_transient_failures() -> None:
    sleep = _Recorder()
    policy = RetryPolicy(3, sleep=sleep)

    async def operation(attempt: int) -> int:
        if attempt < 3:
            raise ConnectionError("WMS caido")
        return attempt

    assert await policy.execute(operation) == 3
    assert sleep.delays == [2, 4]


@pytest.mark.asyncio
async def test_stop_event_prevents_further_retries() -> None:
    sleep = _Recorder()
    policy = RetryPolicy(5, sleep=sleep)
    stop_event = asyncio.Event()
    attempts: List[int] = []

    async def operation(attempt: int) -> None:
        attempts.append(attempt)
        stop_event.set()
        raise RuntimeError("fallo")

    with pytest.raises(RetryExhaustedError) as exc_info:
        await policy.execute(operation, stop_event=stop_event)

    assert attempts == [1]
    assert sleep.delays == []
    assert exc_info.value.aborted is True


def test_negative_max_retries_is_rejected() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(-1)


def test_delay_for_is_power_of_two() -> None:
    policy = RetryPolicy(3)

    assert [policy.delay_for(n) for n in (1, 2, 3)] == [2, 4, 8]
