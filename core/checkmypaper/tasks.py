"""Provides support for asynchronous tasks."""

from typing import Any, Callable
from functools import wraps

from celery import Celery
from kombu.serialization import register

from . import logging
from .serializer import dumps, loads
from .util import get_application_config, get_application_global

logger = logging.getLogger(__name__)

# Task arguments are domain objects; use our own JSON serialization.
register('review-json', dumps, loads,
         content_type='application/x-review-json',
         content_encoding='utf-8')


def create_worker_app() -> Celery:
    """Initialize the worker application."""
    config = get_application_config()
    result_backend = config['RESULT_BACKEND']
    broker = config['BROKER_URL']
    celery_app = Celery('checkmypaper',
                        backend=result_backend,
                        broker=broker)
    celery_app.conf.task_default_queue = 'review-worker'
    celery_app.conf.accept_content = ['review-json']
    celery_app.conf.task_serializer = 'review-json'
    celery_app.conf.result_serializer = 'review-json'
    return celery_app


def get_or_create_worker_app() -> Celery:
    """
    Get the current worker app, or create one.

    Uses the Flask application global to keep track of the worker app.
    """
    g = get_application_global()
    if g is None:
        return create_worker_app()
    if 'worker' not in g:
        g.worker = create_worker_app()
    return g.worker


def name_for_callback(func: Callable) -> str:
    """Produce a name for a function suitable for use as a task name."""
    parent = func.__module__.split('.')[-1]
    return f'{parent}.{func.__name__}'


def is_async(func: Callable) -> Callable:
    """
    Turn a function into an asynchronous task.

    Registers the function with the worker application, and decorates the
    function with logic to dispatch the function to the worker when called.
    When the decorated function is called with ``ENABLE_ASYNC=1`` on the app
    config, a task is added to the worker queue and ``None`` is returned.
    Otherwise the function executes in-thread and returns normally.
    """
    worker_app = get_or_create_worker_app()
    name = name_for_callback(func)

    # Register the wrapped function.
    worker_app.task(name=name)(func)

    @wraps(func)
    def execute(*args: Any) -> Any:
        """Execute the function, possibly asynchronously."""
        config = get_application_config()
        if bool(int(config.get('ENABLE_ASYNC', 0))):
            logger.debug('Sending %s to the worker', name)
            get_or_create_worker_app().send_task(name, args)
            return None
        return func(*args)
    return execute
