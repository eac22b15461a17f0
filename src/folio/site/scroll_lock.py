"""Reference-counted page scroll lock.

Nested openers (mobile nav, modal) each take a lock; the page only unfreezes
when the last one lets go.
"""

from __future__ import annotations

import logging

from folio.site.document import Document

logger = logging.getLogger(__name__)

LOCKED_CLASS = "scroll-locked"
LOCKED_STYLE_KEYS = ("position", "top", "left", "right", "width", "padding-right")


class ScrollLock:
    def __init__(self, document: Document):
        self.document = document
        self.count = 0
        self._saved_styles: dict[str, str | None] = {}
        self._saved_offset = (0, 0)

    @property
    def locked(self) -> bool:
        return self.count > 0

    def lock(self) -> None:
        self.count += 1
        if self.count > 1:
            return

        doc = self.document
        body = doc.body
        self._saved_offset = (doc.scroll_x, doc.scroll_y)
        self._saved_styles = {key: body.style.get(key) for key in LOCKED_STYLE_KEYS}

        gutter = doc.scrollbar_width
        body.style.update(
            {
                "position": "fixed",
                "top": f"-{doc.scroll_y}px",
                "left": "0",
                "right": "0",
                "width": "100%",
            }
        )
        if gutter:
            body.style["padding-right"] = f"{gutter}px"
        doc.html.add_class(LOCKED_CLASS)
        logger.debug("scroll locked at %s", self._saved_offset)

    def unlock(self) -> None:
        if self.count == 0:
            return
        self.count -= 1
        if self.count == 0:
            self._restore()

    def reset(self) -> None:
        """Drop every outstanding lock (page reactivated with nothing open)."""
        if self.count:
            self.count = 0
            self._restore()

    def _restore(self) -> None:
        doc = self.document
        body = doc.body
        for key, value in self._saved_styles.items():
            if value is None:
                body.style.pop(key, None)
            else:
                body.style[key] = value
        self._saved_styles = {}
        doc.html.remove_class(LOCKED_CLASS)
        doc.scroll_to(*self._saved_offset)
        logger.debug("scroll unlocked, restored to %s", self._saved_offset)
