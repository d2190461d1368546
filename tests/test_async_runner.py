"""
Tests for the background event loop used by Flask views.

Run:
    cd <project-root>
    python -m pytest tests/test_async_runner.py -v
"""

import asyncio
import time

import pytest

from makerhub.services.async_runner import AsyncRunner
from makerhub.services.degradation import is_backend_unavailable


@pytest.fixture
def runner():
    runner = AsyncRunner(default_timeout=2.0)
    yield runner
    runner.shutdown()


async def _double(value):
    await asyncio.sleep(0)
    return value * 2


async def _fail():
    raise ValueError('bad input')


def test_returns_result(runner):
    assert runner.run(_double(21)) == 42


def test_reuses_one_loop(runner):
    async def current_loop():
        return asyncio.get_running_loop()

    assert runner.run(current_loop()) is runner.run(current_loop())


def test_propagates_exceptions(runner):
    with pytest.raises(ValueError, match='bad input'):
        runner.run(_fail())


def test_timeout_cancels_and_is_unavailable(runner):
    cancelled = []

    async def slow():
        try:
            await asyncio.sleep(5)
        except asyncio.CancelledError:
            cancelled.append(True)
            raise

    with pytest.raises(TimeoutError) as excinfo:
        runner.run(slow(), timeout=0.05)

    assert 'timed out' in str(excinfo.value)
    assert is_backend_unavailable(excinfo.value)

    # the cancellation lands on the loop thread shortly after
    runner.run(asyncio.sleep(0.05))
    assert cancelled == [True]


def test_timeout_raised_inside_coroutine_is_kept(runner):
    async def pool_timeout():
        raise asyncio.TimeoutError('pool acquire timed out')

    started = time.monotonic()
    with pytest.raises(TimeoutError, match='pool acquire timed out'):
        runner.run(pool_timeout(), timeout=5.0)

    assert time.monotonic() - started < 1.0


def test_shutdown_is_idempotent():
    runner = AsyncRunner()
    runner.shutdown()

    assert runner.run(_double(1)) == 2
    runner.shutdown()
    runner.shutdown()

    # a fresh loop is started on demand
    assert runner.run(_double(2)) == 4
    runner.shutdown()
