"""Scheduling contexts that completion handlers are delivered on.

Asynchronous snapshot requests run on a worker thread, but their completion
handlers always run on the caller's main context. A ``Dispatcher`` is that
context: the worker posts the handler call to it and the owner runs it.
"""

from __future__ import annotations

import asyncio
import queue
from collections.abc import Callable
from typing import Protocol


class Dispatcher(Protocol):
    """Schedules a callable on a specific context."""

    def dispatch(self, fn: Callable[[], None]) -> None: ...


class MainThreadDispatcher:
    """Queue of callables run by the main thread.

    Worker threads call ``dispatch``; the main thread periodically calls
    ``run_pending`` (for example from its event loop) to execute them in
    posting order.
    """

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[Callable[[], None]] = queue.SimpleQueue()

    def dispatch(self, fn: Callable[[], None]) -> None:
        self._queue.put(fn)

    def run_pending(self, timeout: float | None = None) -> int:
        """Run every queued callable and return how many ran.

        Args:
            timeout: If given and the queue is empty, wait up to this many
                seconds for the first callable to arrive.
        """
        ran = 0
        block = timeout is not None
        while True:
            try:
                fn = self._queue.get(block=block, timeout=timeout)
            except queue.Empty:
                return ran
            block = False
            fn()
            ran += 1

    def pending(self) -> int:
        """Number of callables waiting to run."""
        return self._queue.qsize()


class AsyncioDispatcher:
    """Delivers onto a running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self.loop = loop

    def dispatch(self, fn: Callable[[], None]) -> None:
        self.loop.call_soon_threadsafe(fn)


class ImmediateDispatcher:
    """Runs callables inline on whichever thread dispatches them."""

    def dispatch(self, fn: Callable[[], None]) -> None:
        fn()


# Undrained callables (and the images they close over) stay queued until run_pending
main_dispatcher = MainThreadDispatcher()
