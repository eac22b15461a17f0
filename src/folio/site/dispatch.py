"""Event dispatch keyed by ``(control, action)``.

Triggers (a click on a ``data-control="card"`` node, a keydown on the
document, a ``popstate`` on the window) are looked up here; the table maps
them to the transition that should run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from folio.site.document import Element

logger = logging.getLogger(__name__)


@dataclass
class Event:
    control: str
    action: str
    target: Element | None = None
    key: str | None = None
    shift: bool = False
    value: str | None = None
    detail: dict[str, Any] = field(default_factory=dict)
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


Handler = Callable[[Event], None]


class DispatchTable:
    def __init__(self) -> None:
        self._handlers: dict[tuple[str, str], Handler] = {}

    def register(self, control: str, action: str, handler: Handler) -> None:
        key = (control, action)
        if key in self._handlers:
            raise ValueError(f"Handler already registered for {key}")
        self._handlers[key] = handler

    def on(self, control: str, action: str) -> Callable[[Handler], Handler]:
        """Decorator form of ``register``."""

        def decorator(handler: Handler) -> Handler:
            self.register(control, action, handler)
            return handler

        return decorator

    def dispatch(self, event: Event) -> bool:
        """Run the handler for the event's pair. Returns False if there is none."""
        handler = self._handlers.get((event.control, event.action))
        if handler is None:
            logger.debug("no handler for (%s, %s)", event.control, event.action)
            return False
        handler(event)
        return True

    def __contains__(self, key: object) -> bool:
        return key in self._handlers

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)
