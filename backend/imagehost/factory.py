"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from flask import Flask

from imagehost.core.config import BaseConfig, check_secrets, get_config
from imagehost.core.logger import configure_logging, init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    Parameters
    ----------
    config:
        Configuration object or import path. Defaults to the class selected by
        ``APP_ENV`` (see :func:`imagehost.core.config.get_config`).
    instance_relative_config:
        Forwarded to :class:`flask.Flask`.
    instance_config_filename:
        Optional instance file applied on top of ``config`` when present.

    Raises
    ------
    RuntimeError
        When a production configuration still carries placeholder secrets.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)
    check_secrets(app.config)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from imagehost.core import proxy

    proxy.init_app(app)

    from imagehost.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from imagehost.core import cors

    cors.init_app(app)

    from imagehost.infra import storage

    storage.init_app(app)

    from imagehost.api import init_app as init_api

    init_api(app)

    from imagehost.core import errors

    errors.init_app(app)

    return app
