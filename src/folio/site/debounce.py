"""Trailing-edge debounce with an injectable clock.

There is no event loop to schedule on, so the owner calls ``poll()`` when
time may have passed (tests drive a fake clock).
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

DEFAULT_DELAY = 0.25


class Debouncer:
    def __init__(
        self,
        callback: Callable[..., Any],
        delay: float = DEFAULT_DELAY,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.callback = callback
        self.delay = delay
        self.clock = clock
        self._due: float | None = None
        self._args: tuple[Any, ...] = ()
        self._kwargs: dict[str, Any] = {}

    @property
    def pending(self) -> bool:
        return self._due is not None

    def call(self, *args: Any, **kwargs: Any) -> None:
        """Schedule the callback, replacing any call still waiting."""
        self._args = args
        self._kwargs = kwargs
        self._due = self.clock() + self.delay

    def poll(self) -> bool:
        """Fire the pending call if its delay has elapsed."""
        if self._due is None or self.clock() < self._due:
            return False
        return self.flush()

    def flush(self) -> bool:
        """Fire the pending call now."""
        if self._due is None:
            return False
        args, kwargs = self._args, self._kwargs
        self.cancel()
        self.callback(*args, **kwargs)
        return True

    def cancel(self) -> None:
        self._due = None
        self._args = ()
        self._kwargs = {}
