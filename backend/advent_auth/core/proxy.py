"""Reverse proxy awareness for the WSGI pipeline."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Wrap ``app.wsgi_app`` in :class:`~werkzeug.middleware.proxy_fix.ProxyFix`.

    The OAuth redirects and ``Secure`` cookies depend on the scheme and host
    the client actually used, which a TLS-terminating proxy reports through
    ``X-Forwarded-*``. ``PROXY_FIX_HOPS`` (default ``1``) sets how many hops
    are trusted; ``USE_PROXYFIX=False`` disables the wrapper.
    """
    if not app.config.get("USE_PROXYFIX", True):
        return
    hops = int(app.config.get("PROXY_FIX_HOPS", 1))
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops, x_proto=hops, x_host=hops, x_prefix=hops)
