"""
Admin panel wiring: table states, form submission, inquiries, and media.

Every round trip follows the same shape: disable the submit control, make
the call, toast the outcome, and restore the control in ``finally``. Checks
that can fail locally (JSON fields that don't parse, a wrong confirmation
phrase, an empty note) fail before any request is made.
"""

from __future__ import annotations

import json
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from folio.admin.client import AdminApiError, AdminClient, AuthRequired, build_public_url
from folio.admin.toasts import ToastQueue
from folio.site.debounce import DEFAULT_DELAY, Debouncer

logger = logging.getLogger(__name__)

JSON_FIELDS = ("collections", "actions", "results", "next_steps", "data")
LOADING_TEXT = "Loading..."
EMPTY_TEXT = "No records found."
DELETE_PHRASE = "DELETE"


class FormValidationError(ValueError):
    """A form field failed a local check; nothing was sent."""

    def __init__(self, field_name: str, message: str):
        self.field_name = field_name
        super().__init__(f"{field_name}: {message}")


def parse_form(form: dict[str, Any]) -> dict[str, Any]:
    """Turn raw form values into a request body.

    JSON fields are decoded; ``data`` may hold any JSON value, the others are
    passed through as decoded.

    Raises:
        FormValidationError: If a JSON field does not parse
    """
    payload = dict(form)
    for name in JSON_FIELDS:
        raw = payload.get(name)
        if not isinstance(raw, str) or not raw.strip():
            continue
        try:
            payload[name] = json.loads(raw)
        except ValueError as e:
            raise FormValidationError(name, f"not valid JSON ({e.args[0] if e.args else e})") from e
    return payload


class SubmitButton:
    """A submit control that shows a loading state during a round trip."""

    def __init__(self, text: str = "Save", disabled: bool = False):
        self.text = text
        self.disabled = disabled
        self._prev: tuple[str, bool] | None = None

    def set_loading(self, loading: bool) -> None:
        if loading:
            self._prev = (self.text, self.disabled)
            self.disabled = True
            self.text = LOADING_TEXT
        elif self._prev is not None:
            self.text, self.disabled = self._prev
            self._prev = None


@dataclass
class TableView:
    """What the table body shows: loading, empty, error, or rows."""

    state: str = "empty"
    message: str = EMPTY_TEXT
    rows: list[dict[str, Any]] = field(default_factory=list)

    def loading(self) -> None:
        self.state, self.message, self.rows = "loading", LOADING_TEXT, []

    def empty(self, message: str = EMPTY_TEXT) -> None:
        self.state, self.message, self.rows = "empty", message, []

    def error(self, message: str) -> None:
        self.state, self.message, self.rows = "error", message, []

    def show(self, rows: list[dict[str, Any]], empty_message: str = EMPTY_TEXT) -> None:
        if not rows:
            self.empty(empty_message)
        else:
            self.state, self.message, self.rows = "rows", "", list(rows)


@dataclass
class Pagination:
    total: int = 0
    page: int = 1
    page_size: int = 20

    @classmethod
    def from_payload(cls, payload: dict[str, Any], page_size: int) -> Pagination:
        return cls(
            total=int(payload.get("total", 0) or 0),
            page=int(payload.get("page", 1) or 1),
            page_size=int(payload.get("pageSize", page_size) or page_size),
        )

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total / self.page_size)) if self.page_size else 1

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def label(self) -> str:
        return f"Page {self.page} of {self.total_pages} ({self.total} total)"


class _Panel:
    def __init__(self, client: AdminClient, toasts: ToastQueue):
        self.client = client
        self.toasts = toasts
        self.redirect: str | None = None

    def _fail(self, error: AdminApiError, fallback: str) -> None:
        if isinstance(error, AuthRequired):
            self.redirect = error.redirect
        self.toasts.error(error.message or fallback)


class CrudPanel(_Panel):
    """List + create/update form for one content resource."""

    def __init__(
        self,
        client: AdminClient,
        resource: str,
        toasts: ToastQueue,
        button: SubmitButton | None = None,
        id_field: str = "id",
    ):
        super().__init__(client, toasts)
        self.resource = resource
        self.button = button or SubmitButton()
        self.id_field = id_field
        self.table = TableView()

    def load(self) -> list[dict[str, Any]]:
        self.table.loading()
        try:
            rows = self.client.list_resource(self.resource)
        except AdminApiError as e:
            self.table.error(e.message)
            self._fail(e, f"Failed to load {self.resource}")
            return []
        self.table.show(rows)
        return rows

    def edit(self, row: dict[str, Any]) -> dict[str, str]:
        """Form values for editing *row*: scalars as text, everything else as JSON."""
        return {
            key: str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else json.dumps(value)
            for key, value in row.items()
            if value is not None
        }

    def submit(self, form: dict[str, Any]) -> bool:
        try:
            payload = parse_form(form)
        except FormValidationError as e:
            self.toasts.error(str(e))
            return False

        row_id = str(form.get(self.id_field) or "").strip()
        self.button.set_loading(True)
        try:
            self.client.save(self.resource, payload, row_id or None)
        except AdminApiError as e:
            self._fail(e, "Save failed")
            return False
        finally:
            self.button.set_loading(False)

        self.toasts.success("Saved")
        self.load()
        return True


class InquiryPanel(_Panel):
    """Filtered, paginated inquiry list with a detail view and notes."""

    FILTER_KEYS = ("status", "type", "q", "dateFrom", "dateTo")

    def __init__(
        self,
        client: AdminClient,
        toasts: ToastQueue,
        page_size: int = 20,
        clock: Callable[[], float] = time.monotonic,
        search_delay: float = DEFAULT_DELAY,
    ):
        super().__init__(client, toasts)
        self.page_size = page_size
        self.filters: dict[str, str] = {}
        self.pagination = Pagination(page_size=page_size)
        self.table = TableView()
        self.search = Debouncer(self._search_now, search_delay, clock)

    def load(self) -> None:
        self.table.loading()
        try:
            rows, pagination = self.client.list_inquiries(
                page=self.pagination.page, page_size=self.page_size, **self.filters
            )
        except AdminApiError as e:
            self.table.error(e.message)
            self._fail(e, "Failed to load inquiries")
            return
        self.table.show(rows, "No inquiries match these filters.")
        self.pagination = Pagination.from_payload(pagination, self.page_size)

    def apply_filters(self, **filters: str) -> None:
        self.filters = {k: v.strip() for k, v in filters.items() if k in self.FILTER_KEYS and v and v.strip()}
        self.pagination.page = 1
        self.load()

    def type_query(self, q: str) -> None:
        """Free-text search; reloads once typing pauses."""
        self.search.call(q)

    def poll(self) -> bool:
        return self.search.poll()

    def _search_now(self, q: str) -> None:
        if q.strip():
            self.filters["q"] = q.strip()
        else:
            self.filters.pop("q", None)
        self.pagination.page = 1
        self.load()

    def go_to(self, page: int) -> None:
        if 1 <= page <= self.pagination.total_pages and page != self.pagination.page:
            self.pagination.page = page
            self.load()

    def next_page(self) -> None:
        self.go_to(self.pagination.page + 1)

    def prev_page(self) -> None:
        self.go_to(self.pagination.page - 1)

    def open(self, inquiry_id: int) -> tuple[dict[str, Any], list[dict[str, Any]]] | None:
        try:
            return self.client.get_inquiry(inquiry_id), self.client.list_notes(inquiry_id)
        except AdminApiError as e:
            self._fail(e, "Failed to load inquiry")
            return None

    def set_status(self, inquiry_id: int, status: str) -> bool:
        try:
            self.client.update_inquiry(inquiry_id, status=status)
        except AdminApiError as e:
            self._fail(e, "Failed to update status")
            return False
        self.toasts.success("Status updated")
        self.load()
        return True

    def assign(self, inquiry_id: int, email: str) -> bool:
        try:
            self.client.update_inquiry(inquiry_id, assigned_to_email=email.strip())
        except AdminApiError as e:
            self._fail(e, "Assignment failed")
            return False
        self.toasts.success("Assignment updated")
        self.load()
        return True

    def add_note(self, inquiry_id: int, text: str) -> bool:
        if not text.strip():
            return False
        try:
            self.client.add_note(inquiry_id, text.strip())
        except AdminApiError as e:
            self._fail(e, "Failed to add note")
            return False
        self.toasts.success("Note added")
        return True


@dataclass
class DeletePrompt:
    """Confirmation shown before deleting a media asset."""

    asset_id: int
    key: str
    warnings: list[str] = field(default_factory=list)


class MediaPanel(_Panel):
    def __init__(self, client: AdminClient, toasts: ToastQueue, public_base: str = "/media"):
        super().__init__(client, toasts)
        self.public_base = public_base
        self.table = TableView()
        self.upload_status = ""

    def load(self, q: str = "") -> list[dict[str, Any]]:
        self.table.loading()
        try:
            rows = self.client.list_media(q.strip())
        except AdminApiError as e:
            self.table.error(e.message)
            self._fail(e, "Failed to load media")
            return []
        rows = [{**row, "url": build_public_url(row, self.public_base)} for row in rows]
        self.table.show(rows)
        return rows

    def upload(self, filename: str, content: bytes, content_type: str = "application/octet-stream", **fields: str) -> bool:
        try:
            self.client.upload_media(filename, content, content_type, **fields)
        except AdminApiError as e:
            self.upload_status = e.message or "Upload failed"
            if isinstance(e, AuthRequired):
                self.redirect = e.redirect
            return False
        self.upload_status = "Uploaded"
        self.load()
        return True

    def save_alt(self, asset_id: int, alt_text: str) -> bool:
        try:
            self.client.update_media(asset_id, alt_text=alt_text)
        except AdminApiError as e:
            self._fail(e, "Update failed")
            return False
        self.toasts.success("Media updated")
        return True

    def prepare_delete(self, asset_id: int) -> DeletePrompt | None:
        """Look up where the asset is used and build the confirmation warnings."""
        try:
            usage = self.client.media_usage(asset_id)
        except AdminApiError as e:
            self._fail(e, "Failed to check media usage")
            return None

        row = next((r for r in self.table.rows if r.get("id") == asset_id), {})
        prompt = DeletePrompt(asset_id=asset_id, key=str(row.get("key") or ""))
        attached = usage.get("attached") or []
        if attached:
            titles = ", ".join(str(a.get("title") or a.get("project_id")) for a in attached)
            prompt.warnings.append(f"Attached to {len(attached)} project(s): {titles}. They will lose this media.")
        if usage.get("visibility") == "public":
            prompt.warnings.append("This asset is public. Existing links to it will break.")
        return prompt

    def confirm_delete(self, prompt: DeletePrompt, typed: str) -> bool:
        if typed.strip() != DELETE_PHRASE:
            self.toasts.error(f"Type {DELETE_PHRASE} to confirm")
            return False
        try:
            self.client.delete_media(prompt.asset_id, DELETE_PHRASE)
        except AdminApiError as e:
            self._fail(e, "Delete failed")
            return False
        self.toasts.success("Media deleted")
        self.load()
        return True
