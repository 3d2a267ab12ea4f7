"""WSGI entrypoint for gunicorn and ``flask --app imagehost.wsgi``."""

from imagehost.factory import create_app

app = create_app()
