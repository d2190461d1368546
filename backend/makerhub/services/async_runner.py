"""
Run data-layer coroutines from synchronous Flask views.

The asyncpg pool and the httpx client are bound to the event loop that
created them, so every call goes through one long-lived loop running on a
daemon thread.
"""

import asyncio
import logging
import threading
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Awaitable, Optional

logger = logging.getLogger(__name__)


class AsyncRunner:
    """Background event loop with a per-call timeout."""

    def __init__(self, default_timeout: Optional[float] = None):
        self.default_timeout = default_timeout
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        with self._lock:
            if self._loop is None:
                loop = asyncio.new_event_loop()
                thread = threading.Thread(
                    target=loop.run_forever,
                    name='makerhub-async-runner',
                    daemon=True,
                )
                thread.start()
                self._thread = thread
                self._loop = loop
        return self._loop

    def run(self, coro: Awaitable[Any], timeout: Optional[float] = None) -> Any:
        """Block until ``coro`` finishes; on timeout cancel it and raise ``TimeoutError``."""
        loop = self._ensure_loop()
        future = asyncio.run_coroutine_threadsafe(coro, loop)
        limit = self.default_timeout if timeout is None else timeout
        try:
            return future.result(timeout=limit)
        except FutureTimeoutError:
            # finished: the TimeoutError came from the coroutine itself
            if future.done():
                return future.result()
            future.cancel()
            raise TimeoutError(f"operation timed out after {limit}s") from None

    def shutdown(self, timeout: float = 5.0) -> None:
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None
        if loop is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        if thread is not None:
            thread.join(timeout=timeout)
        if not loop.is_running():
            loop.close()
        logger.info("Async runner stopped")
