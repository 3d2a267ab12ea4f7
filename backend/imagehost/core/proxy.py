"""Reverse-proxy awareness for deployments behind a load balancer."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Trust one hop of ``X-Forwarded-*`` headers unless ``USE_PROXYFIX`` is off.

    The rate limiter keys on the client address, so the real remote address
    must be restored before Flask-Limiter sees the request.
    """
    if app.config.get("USE_PROXYFIX", True):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)
