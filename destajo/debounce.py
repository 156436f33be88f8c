from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional

from destajo.config import DEBOUNCE_SECONDS


logger = logging.getLogger(__name__)


class Debouncer:
    """Trailing debounce on the running asyncio loop.

    Each `trigger` cancels the pending call and schedules a new one `wait`
    seconds out, so only the last trigger inside the window fires. Coroutine
    callbacks are scheduled as tasks; the most recent one is `last_task`.
    """

    def __init__(self, callback: Callable[..., Any], wait: float = DEBOUNCE_SECONDS) -> None:
        self._callback = callback
        self.wait = wait
        self._handle: Optional[asyncio.TimerHandle] = None
        self.last_task: Optional[asyncio.Future] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self, *args: Any, **kwargs: Any) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.wait, self._fire, args, kwargs)

    __call__ = trigger

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, args: tuple, kwargs: dict) -> None:
        self._handle = None
        result = self._callback(*args, **kwargs)
        if inspect.isawaitable(result):
            self.last_task = asyncio.ensure_future(result)
            self.last_task.add_done_callback(_log_task_failure)


def _log_task_failure(task: asyncio.Future) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("debounced call failed", exc_info=exc)
