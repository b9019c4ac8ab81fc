"""CORS policy for the API blueprints."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS


def _allowed_origins(raw: str) -> list[str]:
    return [o.strip() for o in raw.split(",") if o.strip() and o.strip() != "*"]


def init_app(app: Flask) -> None:
    """Allow the configured frontend origins to call ``/api/*`` with cookies.

    Parameters
    ----------
    app: flask.Flask
        Application whose ``CORS_ORIGINS`` setting is consulted.

    Notes
    -----
    Token cookies are only sent cross-origin with credentials enabled, and
    browsers refuse credentialed requests against a ``*`` origin. A wildcard
    entry is therefore dropped; ``FRONTEND_URL`` is always allowed.
    """
    origins = _allowed_origins(app.config.get("CORS_ORIGINS", ""))
    frontend = app.config.get("FRONTEND_URL")
    if frontend and frontend.rstrip("/") not in origins:
        origins.append(frontend.rstrip("/"))

    CORS(
        app,
        resources={r"/api/*": {"origins": origins}},
        supports_credentials=True,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
