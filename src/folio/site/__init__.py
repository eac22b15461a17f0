"""Headless view model of the public portfolio site."""

from folio.site.controller import SiteController, SitePage
from folio.site.document import Document, Element, Window
from folio.site.filters import FilterState, apply_filters, count_label
from folio.site.fragment import CLOSED, ModalState, format_fragment, parse_fragment
from folio.site.manifest import ManifestError, Project, ProjectSections, fetch_manifest, load_manifest

__all__ = [
    "CLOSED",
    "Document",
    "Element",
    "FilterState",
    "ManifestError",
    "ModalState",
    "Project",
    "ProjectSections",
    "SiteController",
    "SitePage",
    "Window",
    "apply_filters",
    "count_label",
    "fetch_manifest",
    "format_fragment",
    "load_manifest",
    "parse_fragment",
]
