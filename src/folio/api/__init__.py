"""Flask application factory for the folio API.

Usage:
    from folio.api import create_app

    app = create_app()
    app.run()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from flask import Flask, current_app, request

from folio.api.errors import BadRequest, register_error_handlers
from folio.core.config import Settings, SitePaths, get_paths, load_settings
from folio.core.database import Store
from folio.core.storage import ObjectStore


@dataclass
class Services:
    """Per-app collaborators shared by every request handler."""

    settings: Settings
    store: Store
    objects: ObjectStore


def services() -> Services:
    """Collaborators of the app handling the current request."""
    result: Services = current_app.extensions["folio"]
    return result


def json_body() -> dict[str, Any]:
    """The request's JSON object body.

    Raises:
        BadRequest: If the body is missing, malformed, or not an object
    """
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise BadRequest("Expected a JSON object body")
    return body


def create_app(
    settings: Settings | None = None,
    store: Store | None = None,
    objects: ObjectStore | None = None,
    paths: SitePaths | None = None,
) -> Flask:
    """Build the API app.

    Anything not passed in is resolved from the site root (.folio/).
    """
    if settings is None or store is None or objects is None:
        paths = paths or get_paths()
        settings = settings or load_settings(paths)
        store = store or Store(paths.db)
        objects = objects or ObjectStore(paths.media, settings.media_public_base)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = settings.media_max_bytes
    app.json.sort_keys = False
    app.extensions["folio"] = Services(settings=settings, store=store, objects=objects)

    register_error_handlers(app)

    from folio.api.admin import admin_bp
    from folio.api.media import files_bp, media_bp
    from folio.api.public import public_bp

    app.register_blueprint(public_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(media_bp)
    app.register_blueprint(files_bp)

    return app
