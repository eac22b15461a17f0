"""
Headless document model for the public site.

Just enough of a browser page for the view model to drive and for tests to
inspect: an element tree with attributes, classes, and inline styles; a
document holding focus and scroll offset; and a window with a fragment-only
history stack that emits ``popstate``/``hashchange`` events.
"""

from __future__ import annotations

import html
import logging
from collections.abc import Callable, Iterator
from typing import Any

logger = logging.getLogger(__name__)

VOID_TAGS = {"img", "input", "br", "hr", "meta", "link"}


class Element:
    """A node in the page tree."""

    def __init__(
        self,
        tag: str,
        *children: Element,
        id: str | None = None,
        classes: tuple[str, ...] | list[str] = (),
        attrs: dict[str, str] | None = None,
        text: str = "",
    ):
        self.tag = tag
        self.attrs: dict[str, str] = dict(attrs or {})
        if id:
            self.attrs["id"] = id
        self.classes: list[str] = list(classes)
        self.style: dict[str, str] = {}
        self.text = text
        self.parent: Element | None = None
        self.children: list[Element] = []
        for child in children:
            self.append(child)

    def __repr__(self) -> str:
        ident = f"#{self.attrs['id']}" if "id" in self.attrs else ""
        cls = "".join(f".{c}" for c in self.classes)
        return f"<{self.tag}{ident}{cls}>"

    # -- tree ---------------------------------------------------------------

    def append(self, *children: Element) -> Element:
        for child in children:
            child.detach()
            child.parent = self
            self.children.append(child)
        return self

    def detach(self) -> None:
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None

    def replace_children(self, *children: Element) -> None:
        for child in list(self.children):
            child.detach()
        self.append(*children)

    def iter(self) -> Iterator[Element]:
        """This element and all descendants, document order."""
        yield self
        for child in self.children:
            yield from child.iter()

    def descendants(self) -> Iterator[Element]:
        for child in self.children:
            yield from child.iter()

    def contains(self, other: Element | None) -> bool:
        node = other
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False

    def root(self) -> Element:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def find_all(self, predicate: Callable[[Element], bool]) -> list[Element]:
        return [el for el in self.descendants() if predicate(el)]

    def find(self, predicate: Callable[[Element], bool]) -> Element | None:
        return next((el for el in self.descendants() if predicate(el)), None)

    def by_attr(self, name: str, value: str | None = None) -> list[Element]:
        """Descendants carrying attribute *name* (optionally equal to *value*)."""
        return self.find_all(lambda el: name in el.attrs and (value is None or el.attrs[name] == value))

    # -- attributes and classes ----------------------------------------------

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.attrs.get(name, default)

    def set(self, name: str, value: Any) -> None:
        self.attrs[name] = str(value)

    def remove_attr(self, name: str) -> None:
        self.attrs.pop(name, None)

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def add_class(self, name: str) -> None:
        if name not in self.classes:
            self.classes.append(name)

    def remove_class(self, name: str) -> None:
        if name in self.classes:
            self.classes.remove(name)

    def toggle_class(self, name: str, force: bool | None = None) -> bool:
        on = not self.has_class(name) if force is None else force
        if on:
            self.add_class(name)
        else:
            self.remove_class(name)
        return on

    @property
    def text_content(self) -> str:
        return self.text + "".join(child.text_content for child in self.children)

    # -- serialization -------------------------------------------------------

    def to_html(self) -> str:
        """Serialize with every attribute value and text node escaped."""
        attrs = dict(self.attrs)
        if self.classes:
            attrs["class"] = " ".join(self.classes)
        if self.style:
            attrs["style"] = "; ".join(f"{k}: {v}" for k, v in self.style.items())
        rendered = "".join(f' {name}="{html.escape(value, quote=True)}"' for name, value in attrs.items())
        if self.tag in VOID_TAGS:
            return f"<{self.tag}{rendered}>"
        inner = html.escape(self.text, quote=False) + "".join(child.to_html() for child in self.children)
        return f"<{self.tag}{rendered}>{inner}</{self.tag}>"


class Document:
    """The page: element tree, focused element, and scroll offset."""

    def __init__(self, inner_width: int = 1280, client_width: int = 1265):
        self.html = Element("html")
        self.body = Element("body")
        self.html.append(self.body)
        self.active_element: Element = self.body
        self.scroll_x = 0
        self.scroll_y = 0
        # inner_width - client_width is the vertical scrollbar's width
        self.inner_width = inner_width
        self.client_width = client_width
        self.visibility_state = "visible"

    @property
    def scrollbar_width(self) -> int:
        return max(0, self.inner_width - self.client_width)

    def contains(self, element: Element | None) -> bool:
        return self.html.contains(element)

    def by_id(self, element_id: str) -> Element | None:
        return self.html.find(lambda el: el.attrs.get("id") == element_id)

    def focus(self, element: Element | None) -> bool:
        """Move focus to *element* if it is attached; returns whether it moved."""
        if element is None or not self.contains(element):
            return False
        self.active_element = element
        return True

    def scroll_to(self, x: int, y: int) -> None:
        self.scroll_x = x
        self.scroll_y = y


Listener = Callable[[dict[str, Any]], None]


class Window:
    """Browser window: location fragment, history stack, and event listeners.

    ``push_state``/``replace_state`` change the fragment silently, as the
    History API does. ``back``/``forward`` fire ``popstate``; ``navigate``
    (a manual fragment edit or link click) fires ``hashchange``.
    """

    def __init__(self, document: Document | None = None, fragment: str = ""):
        self.document = document or Document()
        self._entries: list[str] = [normalize_fragment(fragment)]
        self._index = 0
        self._listeners: dict[str, list[Listener]] = {}

    @property
    def hash(self) -> str:
        return self._entries[self._index]

    @property
    def history_length(self) -> int:
        return len(self._entries)

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        self._listeners.setdefault(event_type, []).append(listener)

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, []))

    def dispatch_event(self, event_type: str, **detail: Any) -> None:
        for listener in list(self._listeners.get(event_type, [])):
            listener({"type": event_type, **detail})

    def push_state(self, fragment: str) -> None:
        del self._entries[self._index + 1:]
        self._entries.append(normalize_fragment(fragment))
        self._index += 1
        logger.debug("pushState %r", self.hash)

    def replace_state(self, fragment: str) -> None:
        self._entries[self._index] = normalize_fragment(fragment)
        logger.debug("replaceState %r", self.hash)

    def navigate(self, fragment: str) -> None:
        fragment = normalize_fragment(fragment)
        if fragment == self.hash:
            return
        self.push_state(fragment)
        self.dispatch_event("hashchange")

    def back(self) -> None:
        if self._index > 0:
            self._index -= 1
            self.dispatch_event("popstate")

    def forward(self) -> None:
        if self._index < len(self._entries) - 1:
            self._index += 1
            self.dispatch_event("popstate")

    def show_page(self, persisted: bool = True) -> None:
        """Simulate a ``pageshow`` (e.g. restore from the back/forward cache)."""
        self.dispatch_event("pageshow", persisted=persisted)

    def set_visibility(self, state: str) -> None:
        self.document.visibility_state = state
        self.dispatch_event("visibilitychange")


class RevealObserver:
    """Tracks nodes that fade in once scrolled into view."""

    def __init__(self) -> None:
        self.observed: list[Element] = []

    def observe(self, element: Element) -> None:
        if element not in self.observed:
            self.observed.append(element)

    def prune(self) -> None:
        """Forget nodes that are no longer attached anywhere."""
        self.observed = [el for el in self.observed if el.root().tag == "html"]

    def intersect(self, element: Element) -> None:
        if element in self.observed:
            element.add_class("visible")


def normalize_fragment(fragment: str) -> str:
    """``'p=x'`` and ``'#p=x'`` both become ``'#p=x'``; blank becomes ``''``."""
    fragment = (fragment or "").strip()
    if not fragment or fragment == "#":
        return ""
    return fragment if fragment.startswith("#") else f"#{fragment}"
