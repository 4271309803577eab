"""Helpers for tests of the review core."""

import os
import shutil
import tempfile
from contextlib import contextmanager
from typing import Generator

from flask import Flask

from .. import init_app
from ..services import database


def create_test_app(db_path: str, artifact_root: str) -> Flask:
    """
    Create an app backed by a SQLite file and a local document directory.

    Notifications are delivered in-thread, without waiting between attempts.
    """
    app = Flask('test')
    app.config['REVIEW_DATABASE_URI'] = f'sqlite:///{db_path}'
    app.config['ARTIFACT_STORE'] = 'filesystem'
    app.config['ARTIFACT_ROOT'] = artifact_root
    app.config['ENABLE_ASYNC'] = 0
    app.config['NOTIFICATION_RETRY_DELAY'] = 0
    app.config['JWT_SECRET'] = 'foosecret'
    init_app(app)
    return app


@contextmanager
def temporary_app() -> Generator[Flask, None, None]:
    """Provide an app with fresh tables and documents for testing purposes."""
    fd, db_path = tempfile.mkstemp(suffix='.sqlite')
    os.close(fd)
    artifact_root = tempfile.mkdtemp()
    app = create_test_app(db_path, artifact_root)
    with app.app_context():
        database.create_all()
    try:
        yield app
    finally:
        with app.app_context():
            database.drop_all()
        os.remove(db_path)
        shutil.rmtree(artifact_root)
