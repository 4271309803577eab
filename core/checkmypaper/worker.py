"""
Entry-point for the notification worker application.

The heart of the worker is a Celery application that listens for tasks on a
Redis queue. Tasks are identified by name, and get registered by the
:func:`.tasks.is_async` decorator. Importantly, this means that registration
of tasks is a side-effect of importing :mod:`.notifications`.

Run with ``celery -A checkmypaper.worker.worker_app worker``.
"""

from flask import Flask

from . import config, init_app
from . import notifications    # noqa: F401; registers tasks.
from .tasks import get_or_create_worker_app

app = Flask('checkmypaper')
app.config.from_object(config)
init_app(app)
app.app_context().push()
worker_app = get_or_create_worker_app()
