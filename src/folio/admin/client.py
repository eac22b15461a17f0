"""
Admin API client.

Talks to ``/api/admin/*``. On a local/dev host it authenticates with a bearer
token kept in session-scoped storage; anywhere else it relies on the upstream
identity proxy and sends no token.

Usage:
    client = AdminClient("http://localhost:8787")
    if client.login("secret"):
        counts = client.dashboard()
        client.save("projects", {"title": "Brand System Refresh", "status": "published"})
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any
from urllib.parse import quote, urlparse

import requests

logger = logging.getLogger(__name__)

LOGIN_PATH = "/admin/login/"
TOKEN_KEY = "admin_token"
ME_CACHE_KEY = "admin_me"
DEFAULT_TIMEOUT = 30

LOCAL_HOST_RE = re.compile(r"(^localhost$)|(^127\.0\.0\.1$)|(^\[::1\]$)|(^::1$)")


class AdminApiError(Exception):
    """Base exception for admin API errors."""

    def __init__(self, message: str, status_code: int | None = None, response: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(message)


class AuthRequired(AdminApiError):
    """401: the stored token (if any) has been cleared; log in again."""

    def __init__(self, message: str, status_code: int | None = 401, response: dict | None = None, redirect: str | None = None):
        super().__init__(message, status_code, response)
        self.redirect = redirect


class PermissionDenied(AdminApiError):
    """403: authenticated but not allowed. Auth state is left alone."""


class ApiRequestError(AdminApiError):
    """Any other failed round trip, including transport errors."""


def is_local_host(hostname: str | None) -> bool:
    return bool(hostname) and bool(LOCAL_HOST_RE.match(hostname or ""))


class SessionStorage:
    """String key/value storage that lives as long as the browser tab."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


class TokenStore:
    """Admin token and cached ``/me`` payload in session storage."""

    def __init__(self, storage: SessionStorage | None = None):
        self.storage = storage if storage is not None else SessionStorage()

    @property
    def token(self) -> str:
        return self.storage.get_item(TOKEN_KEY) or ""

    def set_token(self, token: str) -> None:
        self.storage.set_item(TOKEN_KEY, token.strip())

    def cached_me(self) -> dict[str, Any] | None:
        raw = self.storage.get_item(ME_CACHE_KEY)
        if not raw:
            return None
        try:
            me = json.loads(raw)
        except ValueError:
            return None
        return me if isinstance(me, dict) else None

    def cache_me(self, me: dict[str, Any]) -> None:
        self.storage.set_item(ME_CACHE_KEY, json.dumps(me))

    def clear(self) -> None:
        self.storage.remove_item(TOKEN_KEY)
        self.storage.remove_item(ME_CACHE_KEY)


class AdminClient:
    """Client for the admin REST API."""

    def __init__(
        self,
        base_url: str,
        tokens: TokenStore | None = None,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize admin client.

        Args:
            base_url: Site origin, e.g. ``http://localhost:8787``
            tokens: Session token storage (a fresh one if not provided)
            session: requests session to reuse
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.tokens = tokens or TokenStore()
        self.is_local = is_local_host(urlparse(self.base_url).hostname)
        self.timeout = timeout
        self._session = session or requests.Session()
        # Set when a 401 asks the UI to go to the login view
        self.redirect_to: str | None = None

    @property
    def needs_login(self) -> bool:
        """True when a local/dev session has no token yet."""
        return self.is_local and not self.tokens.token

    def _request(
        self,
        method: str,
        path: str,
        json_data: Any = None,
        params: dict[str, Any] | None = None,
        files: dict | None = None,
        data: dict | None = None,
    ) -> dict[str, Any]:
        """Make a request to the admin API.

        Raises:
            AuthRequired: On 401 (the local token is cleared first)
            PermissionDenied: On 403
            ApiRequestError: On any other failure
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers: dict[str, str] = {}
        if self.is_local and self.tokens.token:
            headers["Authorization"] = f"Bearer {self.tokens.token}"

        try:
            response = self._session.request(
                method,
                url,
                json=json_data,
                params=params,
                files=files,
                data=data,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ApiRequestError(f"Request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            payload = None
        message = (payload or {}).get("error")

        if response.status_code == 401:
            redirect = None
            if self.is_local:
                self.tokens.clear()
                redirect = self.redirect_to = LOGIN_PATH
            raise AuthRequired(message or "Unauthorized", 401, payload, redirect=redirect)

        if response.status_code == 403:
            raise PermissionDenied(message or "Forbidden", 403, payload)

        if not response.ok:
            raise ApiRequestError(
                message or f"Request failed: {response.status_code}",
                status_code=response.status_code,
                response=payload,
            )

        return payload or {}

    # -- session ------------------------------------------------------------

    def login(self, token: str) -> bool:
        """Store *token* and check it against the dashboard. Clears it on failure."""
        token = token.strip()
        if not token:
            return False
        self.tokens.set_token(token)
        try:
            self.dashboard()
        except AdminApiError as e:
            logger.info("Login rejected: %s", e.message)
            self.tokens.clear()
            return False
        self.redirect_to = None
        return True

    def logout(self) -> None:
        self.tokens.clear()
        self.redirect_to = LOGIN_PATH

    def me(self) -> dict[str, Any]:
        """``{email, role}`` for the caller, cached for the session."""
        cached = self.tokens.cached_me()
        if cached:
            return cached
        me = self._request("GET", "/api/admin/me")
        self.tokens.cache_me(me)
        return me

    def dashboard(self) -> dict[str, int]:
        counts: dict[str, int] = self._request("GET", "/api/admin/dashboard").get("counts", {})
        return counts

    # -- content resources --------------------------------------------------

    def list_resource(self, resource: str) -> list[dict[str, Any]]:
        data: list[dict[str, Any]] = self._request("GET", f"/api/admin/{resource}").get("data", [])
        return data

    def save(self, resource: str, payload: dict[str, Any], row_id: str | int | None = None) -> dict[str, Any]:
        """Create (no id) or update (with id) a row."""
        if row_id not in (None, ""):
            return self._request("PUT", f"/api/admin/{resource}/{quote(str(row_id), safe='')}", json_data=payload)
        return self._request("POST", f"/api/admin/{resource}", json_data=payload)

    # -- inquiries ----------------------------------------------------------

    def list_inquiries(
        self,
        page: int = 1,
        page_size: int = 20,
        **filters: str,
    ) -> tuple[list[dict[str, Any]], dict[str, int]]:
        """One page of inquiries. Filters: status, type, q, dateFrom, dateTo."""
        params: dict[str, Any] = {k: v for k, v in filters.items() if v}
        params["page"] = page
        params["pageSize"] = page_size
        result = self._request("GET", "/api/admin/inquiries", params=params)
        pagination = result.get("pagination") or {"total": 0, "page": page, "pageSize": page_size}
        return result.get("data", []), pagination

    def get_inquiry(self, inquiry_id: int) -> dict[str, Any]:
        inquiry: dict[str, Any] = self._request("GET", f"/api/admin/inquiries/{inquiry_id}").get("data", {})
        return inquiry

    def update_inquiry(self, inquiry_id: int, **fields: Any) -> dict[str, Any]:
        return self._request("PATCH", f"/api/admin/inquiries/{inquiry_id}", json_data=fields)

    def list_notes(self, inquiry_id: int) -> list[dict[str, Any]]:
        notes: list[dict[str, Any]] = self._request("GET", f"/api/admin/inquiries/{inquiry_id}/notes").get("data", [])
        return notes

    def add_note(self, inquiry_id: int, note_text: str) -> dict[str, Any]:
        return self._request("POST", f"/api/admin/inquiries/{inquiry_id}/notes", json_data={"note_text": note_text})

    # -- media --------------------------------------------------------------

    def list_media(self, q: str = "") -> list[dict[str, Any]]:
        params = {"q": q} if q else None
        media: list[dict[str, Any]] = self._request("GET", "/api/admin/media", params=params).get("data", [])
        return media

    def upload_media(
        self,
        filename: str,
        content: bytes,
        content_type: str = "application/octet-stream",
        alt_text: str = "",
        label: str = "",
        visibility: str = "private",
    ) -> dict[str, Any]:
        return self._request(
            "POST",
            "/api/admin/media",
            files={"file": (filename, content, content_type)},
            data={"alt_text": alt_text, "label": label, "visibility": visibility},
        )

    def update_media(self, asset_id: int, **fields: Any) -> dict[str, Any]:
        return self._request("PUT", f"/api/admin/media/{asset_id}", json_data=fields)

    def media_usage(self, asset_id: int) -> dict[str, Any]:
        return self._request("GET", f"/api/admin/media/{asset_id}/usage")

    def delete_media(self, asset_id: int, confirm: str) -> dict[str, Any]:
        return self._request("DELETE", f"/api/admin/media/{asset_id}", json_data={"confirm": confirm})

    def audit(self) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = self._request("GET", "/api/admin/audit").get("data", [])
        return rows


def build_public_url(item: dict[str, Any], public_base: str) -> str:
    """The asset's ``public_url``, or one derived from its key."""
    url = str(item.get("public_url") or "").strip()
    if url:
        return url
    return f"{public_base.rstrip('/')}/{str(item.get('key') or '').lstrip('/')}"
