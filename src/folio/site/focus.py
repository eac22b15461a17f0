"""Focus trap for the detail overlay.

While active, everything interactive outside the dialog gets ``tabindex=-1``
and ``aria-hidden=true`` and Tab/Shift+Tab cycle through the dialog's own
focusable elements. ``release`` puts every touched attribute back and returns
focus to whatever had it before, if that element is still in the page.
"""

from __future__ import annotations

from folio.site.document import Document, Element

FOCUSABLE_TAGS = {"button", "input", "select", "textarea"}
MASKED_ATTRS = ("tabindex", "aria-hidden")


def is_focusable(element: Element) -> bool:
    """``button,[href],input,select,textarea,[tabindex]:not([tabindex="-1"])``"""
    if element.tag in FOCUSABLE_TAGS or "href" in element.attrs:
        return True
    return "tabindex" in element.attrs and element.attrs["tabindex"] != "-1"


def focusables(container: Element) -> list[Element]:
    return container.find_all(is_focusable)


class FocusTrap:
    def __init__(self, document: Document, dialog: Element):
        self.document = document
        self.dialog = dialog
        self.active = False
        self.previous: Element | None = None
        self._masked: list[tuple[Element, dict[str, str | None]]] = []

    def activate(self, initial: Element | None = None) -> None:
        if self.active:
            return
        doc = self.document
        self.previous = doc.active_element
        self.active = True

        self.mask(doc.body)

        target = initial if initial is not None else next(iter(focusables(self.dialog)), None)
        if target is not None:
            doc.focus(target)

    def mask(self, container: Element) -> None:
        """Hide focusable nodes under *container* that sit outside the dialog.

        Safe to call again for nodes rendered while the trap is active.
        """
        seen = {id(element) for element, _ in self._masked}
        for element in focusables(container):
            if self.dialog.contains(element) or id(element) in seen:
                continue
            self._masked.append((element, {name: element.get(name) for name in MASKED_ATTRS}))
            element.set("tabindex", "-1")
            element.set("aria-hidden", "true")

    def handle_tab(self, shift: bool = False) -> bool:
        """Move focus to the next (or previous) element in the dialog, wrapping.

        Returns True when the key was consumed.
        """
        if not self.active:
            return False
        items = focusables(self.dialog)
        if not items:
            return True

        current = self.document.active_element
        if current not in items:
            self.document.focus(items[-1] if shift else items[0])
            return True

        step = -1 if shift else 1
        self.document.focus(items[(items.index(current) + step) % len(items)])
        return True

    def release(self) -> None:
        if not self.active:
            return
        try:
            for element, saved in self._masked:
                for name, value in saved.items():
                    if value is None:
                        element.remove_attr(name)
                    else:
                        element.set(name, value)
        finally:
            self._masked = []
            self.active = False
            previous, self.previous = self.previous, None
            if previous is not None and self.document.contains(previous):
                self.document.focus(previous)
            else:
                self.document.focus(self.document.body)
