"""
Project detail overlay state machine.

States are ``closed`` and ``open(id, i)``. The URL fragment is the source of
truth: every transition made here writes the matching fragment, and
``sync_from_fragment`` re-derives the state from whatever the fragment says.
The ``_syncing`` guard keeps a fragment-driven sync from writing back, and a
write whose fragment equals the current one is skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from folio.site.document import Element, Window
from folio.site.focus import FocusTrap
from folio.site.fragment import CLOSED, ModalState, format_fragment, is_project_fragment, parse_fragment
from folio.site.manifest import Project
from folio.site.render import gallery_images, render_body, render_gallery, render_meta
from folio.site.scroll_lock import ScrollLock

logger = logging.getLogger(__name__)

OPEN_CLASS = "open"


@dataclass
class ModalNodes:
    """The overlay's fixed elements."""

    root: Element
    close_button: Element
    title: Element
    meta: Element
    gallery: Element
    body: Element

    @classmethod
    def build(cls) -> ModalNodes:
        close_button = Element(
            "button",
            classes=["modal-close"],
            attrs={"type": "button", "data-modal-close": "", "data-control": "modal-close", "aria-label": "Close"},
            text="×",
        )
        title = Element("h2", attrs={"data-modal-title": ""})
        meta = Element("p", classes=["modal-meta"], attrs={"data-modal-meta": ""})
        gallery = Element("div", classes=["modal-gallery"], attrs={"data-modal-gallery": ""})
        body = Element("div", classes=["modal-body"], attrs={"data-modal-body": ""})
        panel = Element("div", close_button, title, meta, gallery, body, classes=["modal-panel"])
        root = Element(
            "div",
            panel,
            classes=["modal"],
            attrs={
                "data-modal": "",
                "data-control": "backdrop",
                "role": "dialog",
                "aria-modal": "true",
                "aria-hidden": "true",
            },
        )
        return cls(root, close_button, title, meta, gallery, body)


class ModalController:
    """Opens, steps, and closes the overlay, keeping the fragment in step.

    Args:
        window: Page window (fragment + history)
        nodes: Overlay elements
        lock: Shared scroll lock
        lookup: Finds a project by id in the current filtered list
    """

    def __init__(
        self,
        window: Window,
        nodes: ModalNodes,
        lock: ScrollLock,
        lookup: Callable[[str], Project | None],
    ):
        self.window = window
        self.nodes = nodes
        self.lock = lock
        self.lookup = lookup
        self.trap = FocusTrap(window.document, nodes.root)
        self.state: ModalState = CLOSED
        self.project: Project | None = None
        self._syncing = False

    @property
    def is_open(self) -> bool:
        return self.state.is_open

    @property
    def image_count(self) -> int:
        return len(gallery_images(self.project)) if self.project else 0

    @property
    def current_image(self) -> str | None:
        if self.project is None:
            return None
        return gallery_images(self.project)[self.state.media_index]

    # -- user-driven transitions --------------------------------------------

    def open(self, project_id: str) -> bool:
        """Open the overlay on *project_id*. Returns False if it isn't in the list."""
        if self.state.project_id == project_id:
            return True
        project = self.lookup(project_id)
        if project is None:
            logger.debug("open(%r): not in the current list", project_id)
            return False
        if self.is_open:
            self._close()
        self._open(project)
        self._write_fragment()
        return True

    def close(self) -> None:
        if not self.is_open:
            return
        self._close()
        self._write_fragment()

    def step(self, delta: int) -> None:
        """Move through the gallery, wrapping at either end."""
        if not self.is_open:
            return
        self.select((self.state.media_index + delta) % self.image_count)

    def select(self, index: int) -> None:
        if not self.is_open or not 0 <= index < self.image_count:
            return
        self.state = ModalState(self.state.project_id, index)
        self._render_gallery()
        self._write_fragment()

    # -- fragment-driven sync -----------------------------------------------

    def sync_from_fragment(self) -> None:
        """Apply whatever the current fragment says.

        An id that isn't in the current list clears the fragment and leaves
        the overlay closed.
        """
        if self._syncing:
            return
        self._syncing = True
        try:
            fragment = self.window.hash
            target = parse_fragment(fragment)

            if not target.is_open:
                if self.is_open:
                    self._close()
                return

            if target.project_id == self.state.project_id:
                return

            project = self.lookup(str(target.project_id))
            if self.is_open:
                self._close()
            if project is None:
                logger.debug("fragment %r names an unknown project, clearing", fragment)
                self.window.replace_state("")
                return
            self._open(project)
        finally:
            self._syncing = False

    def _write_fragment(self) -> None:
        if self._syncing:
            return
        next_fragment = format_fragment(self.state)
        current = self.window.hash
        if next_fragment == current:
            return
        # Closing never clobbers an unrelated anchor such as #main-content
        if not next_fragment and not is_project_fragment(current):
            return
        self.window.push_state(next_fragment)

    # -- DOM side effects ---------------------------------------------------

    def _open(self, project: Project) -> None:
        nodes = self.nodes
        self.project = project
        self.state = ModalState(project.id, 0)
        self.lock.lock()
        try:
            nodes.title.text = project.title
            nodes.meta.text = render_meta(project)
            nodes.body.replace_children(*render_body(project))
            self._render_gallery()
            nodes.root.add_class(OPEN_CLASS)
            nodes.root.set("aria-hidden", "false")
            self.trap.activate(initial=nodes.close_button)
        except Exception:
            self._close()
            raise

    def _close(self) -> None:
        nodes = self.nodes
        try:
            nodes.root.remove_class(OPEN_CLASS)
            nodes.root.set("aria-hidden", "true")
        finally:
            self.state = CLOSED
            self.project = None
            self.trap.release()
            self.lock.unlock()

    def _render_gallery(self) -> None:
        if self.project is not None:
            self.nodes.gallery.replace_children(*render_gallery(self.project, self.state.media_index))
