"""
Public site controller.

One ``SiteController`` owns every piece of page state: the project list and
filter state, the scroll lock, the modal, the open-dropdown registry, and the
listener guard. Nothing lives at module level, so independent instances can
coexist (one per test).

Usage:
    site = SiteController(Window(fragment="#p=p1"))
    site.attach()
    site.load(load_manifest(path))
    site.trigger(site.cards()[0])            # card click
    site.press_key("Escape")
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from folio.site.debounce import DEFAULT_DELAY, Debouncer
from folio.site.dispatch import DispatchTable, Event
from folio.site.document import Document, Element, RevealObserver, Window
from folio.site.filters import WILDCARD, FilterState, apply_filters, count_label
from folio.site.lifecycle import rehydrate
from folio.site.manifest import PROJECT_TYPES, ManifestError, Project
from folio.site.modal import ModalController, ModalNodes
from folio.site.render import LOAD_ERROR_TEXT, render_cards, render_message
from folio.site.scroll_lock import ScrollLock

logger = logging.getLogger(__name__)

WINDOW_EVENTS = ("popstate", "hashchange", "pageshow", "visibilitychange")


@dataclass
class SitePage:
    """Fixed page elements the controller reads and writes."""

    nav_toggle: Element
    nav_links: Element
    collection_select: Element
    type_select: Element
    search_input: Element
    count: Element
    grid: Element
    modal: ModalNodes

    @classmethod
    def build(cls, document: Document) -> SitePage:
        skip = Element("a", classes=["skip-link"], attrs={"href": "#main-content"}, text="Skip to content")
        nav_toggle = Element(
            "button",
            classes=["nav-toggle"],
            attrs={"type": "button", "data-control": "nav-toggle", "aria-expanded": "false"},
            text="Menu",
        )
        nav_links = Element(
            "nav",
            *(Element("a", attrs={"href": href}, text=label) for href, label in (
                ("/", "Home"),
                ("/projects/", "Projects"),
                ("/services/", "Services"),
                ("/contact/", "Contact"),
            )),
            classes=["nav-links"],
        )
        header = Element("header", skip, nav_toggle, nav_links, classes=["site-header"])

        collection_select = Element(
            "select", attrs={"data-filter-collection": "", "data-control": "filter-collection"}
        )
        type_select = Element(
            "select",
            *(Element("option", attrs={"value": value}, text=value) for value in (WILDCARD, *PROJECT_TYPES)),
            attrs={"data-filter-type": "", "data-control": "filter-type"},
        )
        search_input = Element(
            "input", attrs={"type": "search", "data-filter-search": "", "data-control": "filter-search"}
        )
        count = Element("p", attrs={"data-results-count": "", "aria-live": "polite"})
        grid = Element("div", classes=["project-grid"], attrs={"data-project-grid": ""})
        main = Element("main", collection_select, type_select, search_input, count, grid, id="main-content")

        modal = ModalNodes.build()
        document.body.append(header, main, modal.root)
        return cls(nav_toggle, nav_links, collection_select, type_select, search_input, count, grid, modal)


class SiteController:
    def __init__(
        self,
        window: Window | None = None,
        default_collection: str = WILDCARD,
        clock: Callable[[], float] = time.monotonic,
        search_delay: float = DEFAULT_DELAY,
    ):
        self.window = window or Window()
        self.document = self.window.document
        self.page = SitePage.build(self.document)
        self.lock = ScrollLock(self.document)
        self.reveal = RevealObserver()

        self.projects: list[Project] = []
        self.filtered: list[Project] = []
        self.filters = FilterState(collection=default_collection)
        self.open_dropdowns: list[Element] = []
        self.nav_open = False
        self.load_error: str | None = None

        self.modal = ModalController(self.window, self.page.modal, self.lock, self.find_visible)
        self.search = Debouncer(self._apply_search, search_delay, clock)
        self.dispatch = DispatchTable()
        self._register_handlers()
        self._listeners_bound = False

    # -- setup --------------------------------------------------------------

    def attach(self) -> None:
        """Subscribe to window events. Safe to call more than once."""
        if self._listeners_bound:
            return
        for event_type in WINDOW_EVENTS:
            self.window.add_event_listener(event_type, self._on_window_event)
        self._listeners_bound = True

    def _on_window_event(self, detail: dict) -> None:
        self.dispatch.dispatch(Event("window", detail["type"], detail=detail))

    def load(self, projects: list[Project]) -> None:
        """Show *projects* and apply whatever the fragment already asks for."""
        self.projects = list(projects)
        self.load_error = None
        self._fill_collections()
        self.run_filters()
        self.modal.sync_from_fragment()

    def load_from(self, source: Callable[[], list[Project]]) -> bool:
        """Load from a manifest source; on failure show the inline error instead."""
        try:
            projects = source()
        except ManifestError as e:
            logger.warning("Manifest unavailable: %s", e)
            self.load_error = str(e)
            self.page.grid.replace_children(*render_message(LOAD_ERROR_TEXT))
            self.page.count.text = ""
            return False
        self.load(projects)
        return True

    def _fill_collections(self) -> None:
        names = sorted({name for p in self.projects for name in p.collections})
        options = [Element("option", attrs={"value": value}, text=value) for value in (WILDCARD, *names)]
        self.page.collection_select.replace_children(*options)
        self.page.collection_select.set("value", self.filters.collection)

    # -- filtering ----------------------------------------------------------

    def run_filters(self) -> None:
        """Recompute the filtered list and re-render the grid from scratch."""
        self.filtered = apply_filters(self.projects, self.filters)
        self.page.grid.replace_children(*render_cards(self.filtered))
        if self.modal.trap.active:
            self.modal.trap.mask(self.page.grid)
        self.page.count.text = count_label(len(self.filtered))

        self.reveal.prune()
        for node in self.page.grid.find_all(lambda el: el.has_class("reveal")):
            self.reveal.observe(node)

        if self.modal.is_open and self.find_visible(str(self.modal.state.project_id)) is None:
            self.modal.close()

    def find_visible(self, project_id: str) -> Project | None:
        return next((p for p in self.filtered if p.id == project_id), None)

    def cards(self) -> list[Element]:
        return self.page.grid.by_attr("data-control", "card")

    def _apply_search(self, raw: str) -> None:
        self.filters = self.filters.with_search(raw)
        self.run_filters()

    # -- menus and dropdowns ------------------------------------------------

    def toggle_nav(self) -> None:
        if self.nav_open:
            self.close_nav()
            return
        self.nav_open = True
        self.page.nav_links.add_class("open")
        self.page.nav_toggle.set("aria-expanded", "true")
        self.lock.lock()

    def close_nav(self) -> None:
        if not self.nav_open:
            return
        self.nav_open = False
        self.page.nav_links.remove_class("open")
        self.page.nav_toggle.set("aria-expanded", "false")
        self.lock.unlock()

    def toggle_dropdown(self, dropdown: Element) -> None:
        """Open *dropdown* (closing any other) or close it if it was open."""
        was_open = dropdown in self.open_dropdowns
        self.close_dropdowns()
        if not was_open:
            dropdown.add_class("open")
            dropdown.set("aria-expanded", "true")
            self.open_dropdowns.append(dropdown)

    def close_dropdowns(self) -> None:
        for dropdown in self.open_dropdowns:
            dropdown.remove_class("open")
            dropdown.set("aria-expanded", "false")
        self.open_dropdowns = []

    # -- triggers -----------------------------------------------------------

    def trigger(self, element: Element, action: str = "activate", value: str | None = None) -> bool:
        """Fire *element*'s control. ``data-action`` on the element overrides *action*."""
        control = element.get("data-control")
        if not control:
            return False
        event = Event(control, element.get("data-action") or action, target=element, value=value)
        return self.dispatch.dispatch(event)

    def press_key(self, key: str, shift: bool = False) -> Event:
        event = Event("document", "keydown", target=self.document.active_element, key=key, shift=shift)
        self.dispatch.dispatch(event)
        return event

    def set_collection(self, value: str) -> None:
        self.trigger(self.page.collection_select, "change", value)

    def set_type(self, value: str) -> None:
        self.trigger(self.page.type_select, "change", value)

    def type_search(self, value: str) -> None:
        self.trigger(self.page.search_input, "input", value)

    # -- dispatch table -----------------------------------------------------

    def _register_handlers(self) -> None:
        table = self.dispatch
        modal = self.modal

        @table.on("card", "activate")
        def open_card(event: Event) -> None:
            if event.target is not None:
                modal.open(str(event.target.get("data-open-id", "")))

        @table.on("modal-close", "activate")
        def close_button(event: Event) -> None:
            modal.close()

        @table.on("backdrop", "activate")
        def backdrop(event: Event) -> None:
            # Only a click on the backdrop itself, not bubbling from the panel
            if event.target is modal.nodes.root:
                modal.close()

        @table.on("gallery", "next")
        def gallery_next(event: Event) -> None:
            modal.step(1)

        @table.on("gallery", "prev")
        def gallery_prev(event: Event) -> None:
            modal.step(-1)

        @table.on("thumb", "activate")
        def thumb(event: Event) -> None:
            if event.target is not None:
                modal.select(int(event.target.get("data-thumb-index", "0") or 0))

        @table.on("filter-collection", "change")
        def collection_changed(event: Event) -> None:
            self.filters = FilterState(event.value or WILDCARD, self.filters.type, self.filters.search)
            self.page.collection_select.set("value", self.filters.collection)
            self.run_filters()

        @table.on("filter-type", "change")
        def type_changed(event: Event) -> None:
            self.filters = FilterState(self.filters.collection, event.value or WILDCARD, self.filters.search)
            self.page.type_select.set("value", self.filters.type)
            self.run_filters()

        @table.on("filter-search", "input")
        def search_input(event: Event) -> None:
            self.page.search_input.set("value", event.value or "")
            self.search.call(event.value or "")

        @table.on("nav-toggle", "activate")
        def nav_toggle(event: Event) -> None:
            self.toggle_nav()

        @table.on("dropdown", "activate")
        def dropdown(event: Event) -> None:
            if event.target is not None:
                self.toggle_dropdown(event.target)

        @table.on("document", "keydown")
        def keydown(event: Event) -> None:
            if event.key == "Escape":
                if modal.is_open:
                    modal.close()
                else:
                    self.close_nav()
                    self.close_dropdowns()
            elif event.key == "Tab" and modal.trap.handle_tab(event.shift):
                event.prevent_default()

        @table.on("window", "hashchange")
        def hashchange(event: Event) -> None:
            modal.sync_from_fragment()

        @table.on("window", "popstate")
        def popstate(event: Event) -> None:
            rehydrate(self)

        @table.on("window", "pageshow")
        def pageshow(event: Event) -> None:
            rehydrate(self)

        @table.on("window", "visibilitychange")
        def visibilitychange(event: Event) -> None:
            if self.document.visibility_state == "visible":
                rehydrate(self)
