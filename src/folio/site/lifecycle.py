"""Page (re)activation: reset transient UI and re-derive state from the URL.

Runs on ``pageshow``, ``visibilitychange`` (when visible), and ``popstate``.
Running it again right away changes nothing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from folio.site.document import Element

if TYPE_CHECKING:
    from folio.site.controller import SiteController

TRANSIENT_CLASSES = ("is-entering", "is-leaving", "is-animating", "is-transitioning")
NEUTRAL_STYLES = ("opacity", "transform")


def strip_transient_state(root: Element) -> int:
    """Remove leftover transition classes and inline opacity/transform.

    Returns the number of elements touched.
    """
    touched = 0
    for element in root.iter():
        dirty = False
        for name in TRANSIENT_CLASSES:
            if element.has_class(name):
                element.remove_class(name)
                dirty = True
        for prop in NEUTRAL_STYLES:
            if prop in element.style:
                del element.style[prop]
                dirty = True
        touched += dirty
    return touched


def rehydrate(controller: SiteController) -> None:
    strip_transient_state(controller.document.html)
    controller.close_nav()
    controller.close_dropdowns()
    controller.modal.sync_from_fragment()
    if not controller.modal.is_open:
        controller.lock.reset()
