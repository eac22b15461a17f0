"""Card grid and detail overlay rendering.

Renderers build ``Element`` trees rather than markup strings, so escaping
happens once, in ``Element.to_html``. Interactive nodes carry a
``data-control`` attribute naming their row in the dispatch table.
"""

from __future__ import annotations

from urllib.parse import quote

from folio.site.document import Element
from folio.site.manifest import Project

NO_MATCHES_TEXT = "No matching projects. Try clearing one or more filters."
LOAD_ERROR_TEXT = "Unable to load projects."

PLACEHOLDER_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 800 600" role="img" aria-label="{type} placeholder">'
    '<defs><linearGradient id="g" x1="0" y1="0" x2="1" y2="1">'
    '<stop offset="0%" stop-color="#16161d"/><stop offset="100%" stop-color="#0f0f13"/>'
    "</linearGradient></defs>"
    '<rect width="800" height="600" fill="url(#g)"/>'
    '<g opacity="0.6"><rect x="64" y="84" width="672" height="2" fill="#C1121F"/>'
    '<rect x="64" y="102" width="420" height="2" fill="rgba(245,245,245,0.45)"/></g>'
    '<g opacity="0.3"><circle cx="640" cy="180" r="120" fill="#C1121F"/></g>'
    '<text x="64" y="540" fill="rgba(245,245,245,0.75)" font-family="Inter,Arial,sans-serif" '
    'font-size="28" letter-spacing="5">{label}</text></svg>'
)


def type_label(project_type: str) -> str:
    return project_type.replace("_", " ")


def placeholder_image(project: Project) -> str:
    """An abstract SVG preview as a ``data:`` URI."""
    safe_type = "".join(ch for ch in (project.type or "project") if ch.isalpha() or ch == "_")
    label = type_label(project.type or "Project").upper()
    label = "".join(ch for ch in label if ch.isalnum() or ch == " ")
    svg = PLACEHOLDER_SVG.format(type=safe_type, label=label)
    return f"data:image/svg+xml;utf8,{quote(svg, safe='')}"


def render_card(project: Project) -> Element:
    tile = Element(
        "button",
        Element(
            "img",
            classes=["project-image"],
            attrs={
                "src": placeholder_image(project),
                "alt": f"{project.title} abstract preview",
                "loading": "lazy",
            },
        ),
        Element(
            "div",
            Element("div", classes=["caption-meta"], text=f"{type_label(project.type)} • {project.date}"),
            Element("h3", classes=["caption-title"], text=project.title),
            Element("p", classes=["caption-summary"], text=project.summary),
            classes=["caption-bar"],
        ),
        classes=["project-tile"],
        attrs={"type": "button", "data-control": "card", "data-open-id": project.id},
    )
    return Element("article", tile, classes=["project-card", "reveal"])


def render_cards(projects: list[Project]) -> list[Element]:
    """One card per project, or a single "no matches" paragraph."""
    if not projects:
        return [Element("p", classes=["no-results"], text=NO_MATCHES_TEXT)]
    return [render_card(project) for project in projects]


def render_message(text: str) -> list[Element]:
    return [Element("p", classes=["grid-message"], text=text)]


def render_meta(project: Project) -> str:
    return f"{project.type} • {project.date} • {', '.join(project.collections)}"


def _list(items: list[str]) -> Element:
    return Element("ul", *(Element("li", text=item) for item in items), classes=["list"])


def render_body(project: Project) -> list[Element]:
    """Summary plus the case-study sections."""
    sections = project.sections
    return [
        Element("p", text=project.summary),
        Element("h3", text="Problem"),
        Element("p", text=sections.problem),
        Element("h3", text="Constraints"),
        Element("p", text=sections.constraints),
        Element("h3", text="Actions"),
        _list(sections.actions),
        Element("h3", text="Results"),
        _list(sections.results),
        Element("h3", text="Next Steps"),
        _list(sections.next_steps),
        Element("h3", text="Tools"),
        Element("p", text=", ".join(project.tools)),
    ]


def gallery_images(project: Project) -> list[str]:
    return project.images or [placeholder_image(project)]


def render_gallery(project: Project, index: int) -> list[Element]:
    """Active image, prev/next controls, and thumbnails (controls only when N > 1)."""
    images = gallery_images(project)
    index %= len(images)
    nodes = [
        Element(
            "img",
            classes=["modal-image"],
            attrs={
                "src": images[index],
                "alt": f"{project.title} image {index + 1} of {len(images)}",
                "data-gallery-image": "",
            },
        )
    ]
    if len(images) < 2:
        return nodes

    nodes.append(
        Element(
            "button",
            classes=["gallery-prev"],
            attrs={"type": "button", "data-control": "gallery", "data-action": "prev", "aria-label": "Previous image"},
            text="‹",
        )
    )
    nodes.append(
        Element(
            "button",
            classes=["gallery-next"],
            attrs={"type": "button", "data-control": "gallery", "data-action": "next", "aria-label": "Next image"},
            text="›",
        )
    )
    thumbs = Element("div", classes=["gallery-thumbs"])
    for i, src in enumerate(images):
        thumb = Element(
            "button",
            Element("img", attrs={"src": src, "alt": ""}),
            classes=["gallery-thumb"],
            attrs={
                "type": "button",
                "data-control": "thumb",
                "data-thumb-index": str(i),
                "aria-label": f"Show image {i + 1}",
            },
        )
        if i == index:
            thumb.set("aria-current", "true")
            thumb.add_class("active")
        thumbs.append(thumb)
    nodes.append(thumbs)
    return nodes
