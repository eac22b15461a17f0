"""Admin panel client and view logic."""

from folio.admin.client import (
    AdminApiError,
    AdminClient,
    ApiRequestError,
    AuthRequired,
    PermissionDenied,
    SessionStorage,
    TokenStore,
)
from folio.admin.crud import CrudPanel, FormValidationError, InquiryPanel, MediaPanel, parse_form
from folio.admin.toasts import ToastQueue

__all__ = [
    "AdminApiError",
    "AdminClient",
    "ApiRequestError",
    "AuthRequired",
    "CrudPanel",
    "FormValidationError",
    "InquiryPanel",
    "MediaPanel",
    "PermissionDenied",
    "SessionStorage",
    "ToastQueue",
    "TokenStore",
    "parse_form",
]
