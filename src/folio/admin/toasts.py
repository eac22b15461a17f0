"""Transient notifications for the admin panel."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

TOAST_LIFETIME = 3.2
KINDS = ("info", "success", "error")


@dataclass
class Toast:
    message: str
    kind: str
    expires_at: float

    @property
    def css_class(self) -> str:
        return f"admin-toast admin-toast-{self.kind}"


class ToastQueue:
    """Toasts disappear on their own after ``lifetime`` seconds."""

    def __init__(self, clock: Callable[[], float] = time.monotonic, lifetime: float = TOAST_LIFETIME):
        self.clock = clock
        self.lifetime = lifetime
        self._toasts: list[Toast] = []

    def push(self, message: str, kind: str = "info") -> Toast:
        if kind not in KINDS:
            kind = "info"
        toast = Toast(message, kind, self.clock() + self.lifetime)
        self._toasts.append(toast)
        return toast

    def success(self, message: str) -> Toast:
        return self.push(message, "success")

    def error(self, message: str) -> Toast:
        return self.push(message, "error")

    def expire(self) -> list[Toast]:
        """Drop toasts whose time is up and return them."""
        now = self.clock()
        gone = [t for t in self._toasts if t.expires_at <= now]
        self._toasts = [t for t in self._toasts if t.expires_at > now]
        return gone

    @property
    def visible(self) -> list[Toast]:
        self.expire()
        return list(self._toasts)

    def messages(self) -> list[str]:
        return [t.message for t in self.visible]
