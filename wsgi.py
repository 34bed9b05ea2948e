"""
WSGI entrypoint for production servers (gunicorn/uwsgi).

The server imports `app` from this module to obtain the Flask application
object created by the application factory.

    gunicorn wsgi:app
"""

from socialhub import create_app

app = create_app()
