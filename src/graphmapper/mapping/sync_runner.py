"""Run the async mapping engine from synchronous callers.

Outside an event loop a coroutine runs through ``asyncio.run``. Inside a
running loop (e.g. a sync custom map called from async code) it is handed to a
process-wide background loop thread and the caller blocks on the result.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Coroutine
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

T = TypeVar("T")


class SyncRunner:
    """Background event loop thread. Singleton per process."""

    _instance: SyncRunner | None = None
    _lock = threading.Lock()

    def __init__(self) -> None:
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None

    @classmethod
    def get(cls) -> SyncRunner:
        """Get the singleton runner, starting its loop thread on first use."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    inst = cls()
                    inst._start()
                    cls._instance = inst
        return cls._instance

    def _start(self) -> None:
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever,
            daemon=True,
            name="graphmapper-sync-loop",
        )
        self._thread.start()

    @property
    def loop(self) -> asyncio.AbstractEventLoop | None:
        return self._loop

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run a coroutine on the background loop, blocking until it completes."""
        if self._loop is None:
            raise RuntimeError("Runner not initialized")
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result()


def run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion from synchronous code."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    runner = SyncRunner.get()
    if loop is runner.loop:
        # Already on the background loop: blocking on it would deadlock
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="graphmapper-nested") as pool:
            return pool.submit(asyncio.run, coro).result()
    return runner.run(coro)
