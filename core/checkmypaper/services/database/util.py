"""Utility classes and functions for :mod:`.services.database`."""

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Optional, Generator

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from pytz import UTC
import sqlalchemy.types as types
from sqlalchemy.engine import Engine
from sqlalchemy.orm.session import Session

from ... import logging
from ... import serializer
from .exceptions import DatabaseBaseException, TransactionFailed

logger = logging.getLogger(__name__)


class ReviewSQLAlchemy(SQLAlchemy):
    """SQLAlchemy integration for the review database."""

    def init_app(self, app: Flask) -> None:
        """Set default configuration."""
        app.config.setdefault(
            'SQLALCHEMY_DATABASE_URI',
            app.config.get('REVIEW_DATABASE_URI', 'sqlite://')
        )
        app.config.setdefault('SQLALCHEMY_TRACK_MODIFICATIONS', False)
        super(ReviewSQLAlchemy, self).init_app(app)


db: SQLAlchemy = ReviewSQLAlchemy()


class SerializedJSON(types.TypeDecorator):
    """A JSON data type that understands the domain objects of this package."""

    impl = types.TEXT
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> Optional[str]:
        """Serialize a Python object to JSON."""
        if value is not None:
            value = serializer.dumps(value)
        return value

    def process_result_value(self, value: Optional[str],
                             dialect: Any) -> Any:
        """Deserialize JSON content."""
        if value is not None:
            value = serializer.loads(value)
        return value


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC, since not all backends keep tz."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value


def current_engine() -> Engine:
    """Get/create :class:`.Engine` for this context."""
    return db.engine


def current_session() -> Session:
    """Get/create :class:`.Session` for this context."""
    return db.session()


@contextmanager
def transaction() -> Generator:
    """Context manager for database transaction."""
    session = current_session()
    try:
        yield session
        session.commit()
    except DatabaseBaseException as e:
        logger.debug('Command failed, rolling back: %s', str(e))
        session.rollback()
        raise   # Propagate exceptions raised from this module.
    except Exception as e:
        logger.debug('Command failed, rolling back: %s', str(e))
        session.rollback()
        raise TransactionFailed('Failed to execute transaction') from e
