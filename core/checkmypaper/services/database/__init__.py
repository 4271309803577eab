"""
Persistence for submissions, notifications, and lifecycle events.

Submission state and the event that produced it are written in the same
transaction. Changes to existing submissions are conditional writes: the
``UPDATE`` only matches the row if its state and reviewer are still what the
caller read. If another writer got there first, no row matches and
:class:`.StaleState` is raised. No row locks are held between the read and
the write.

Reads always repopulate ORM instances from the database, so that nothing is
cached across operations in a long-lived session.
"""

from functools import wraps
from typing import Any, Callable, List, Optional, Tuple

from flask import Flask
from retry import retry
from sqlalchemy import or_
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import NoResultFound

from ... import logging
from ...domain.event import Event
from ...domain.notification import Notification
from ...domain.submission import Submission
from . import models
from .event import DBEvent
from .exceptions import DatabaseBaseException, NoSuchSubmission, \
    NoSuchNotification, TransactionFailed, Unavailable, StaleState
from .models import Base
from .util import transaction, current_session, current_engine, db

logger = logging.getLogger(__name__)


def init_app(app: Flask) -> None:
    """Register the database extension with a Flask app."""
    if 'sqlalchemy' not in app.extensions:
        db.init_app(app)


def create_all() -> None:
    """Create all tables in the database."""
    Base.metadata.create_all(current_engine())


def drop_all() -> None:
    """Drop all tables in the database."""
    Base.metadata.drop_all(current_engine())


def handle_operational_errors(func: Callable) -> Callable:
    """Catch SQLAlchemy OperationalErrors and raise :class:`.Unavailable`."""
    @wraps(func)
    def inner(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except OperationalError as e:
            logger.error('Database unavailable: %s', e)
            raise Unavailable('Review database unavailable') from e
    return inner


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def get_submission(submission_id: str) -> Submission:
    """
    Get the current state of a submission from the database.

    Parameters
    ----------
    submission_id : str

    Returns
    -------
    :class:`.domain.submission.Submission`

    Raises
    ------
    :class:`.NoSuchSubmission`
        Raised when there is no submission with the provided ID.

    """
    try:
        row = current_session().query(models.Submission) \
            .populate_existing() \
            .filter(models.Submission.submission_id == submission_id) \
            .one()
    except NoResultFound as e:
        raise NoSuchSubmission(f'Submission {submission_id} not found') from e
    return row.to_submission()


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def get_submissions_for_requester(requester_id: str) -> List[Submission]:
    """Get all of the submissions owned by a requester, newest first."""
    rows = current_session().query(models.Submission) \
        .populate_existing() \
        .filter(models.Submission.requester_id == requester_id) \
        .order_by(models.Submission.created_at.desc())
    return [row.to_submission() for row in rows]


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def get_submissions_for_reviewer(reviewer_id: str) -> List[Submission]:
    """
    Get submissions that are relevant to a reviewer, newest first.

    These are submissions waiting for a reviewer, and submissions assigned to
    ``reviewer_id``.
    """
    rows = current_session().query(models.Submission) \
        .populate_existing() \
        .filter(or_(
            models.Submission.state == Submission.SUBMITTED.value,
            models.Submission.reviewer_id == reviewer_id
        )) \
        .order_by(models.Submission.created_at.desc())
    return [row.to_submission() for row in rows]


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def get_events(submission_id: str) -> List[Event]:
    """
    Load the events for a submission, oldest first.

    Raises
    ------
    :class:`.NoSuchSubmission`
        Raised when there are no events for the provided submission ID.

    """
    rows = current_session().query(DBEvent) \
        .filter(DBEvent.submission_id == submission_id) \
        .order_by(DBEvent.created)
    events = [row.to_event() for row in rows]
    if not events:      # No events, no dice.
        raise NoSuchSubmission(f'Submission {submission_id} not found')
    return events


@handle_operational_errors
def store_event(event: Event, before: Optional[Submission],
                after: Submission) -> Submission:
    """
    Store an applied event and the resulting state of the submission.

    If ``before`` is ``None`` the submission is inserted. Otherwise it is
    updated only if the stored state and reviewer still match ``before``.

    Raises
    ------
    :class:`.StaleState`
        The submission changed after ``before`` was read.
    :class:`.TransactionFailed`
        The changes could not be committed.

    """
    with transaction() as session:
        if before is None:
            values = models.Submission.values_from(after)
            session.add(models.Submission(**values))
        else:
            _conditional_update(session, before, after)
        session.add(DBEvent.from_event(event))
    event.committed = True
    return after


def _conditional_update(session: Any, before: Submission,
                        after: Submission) -> None:
    query = session.query(models.Submission) \
        .filter(models.Submission.submission_id == before.submission_id) \
        .filter(models.Submission.state == before.state.value)
    if before.reviewer_id is None:
        query = query.filter(models.Submission.reviewer_id.is_(None))
    else:
        query = query.filter(
            models.Submission.reviewer_id == before.reviewer_id
        )
    values = models.Submission.values_from(after)
    values.pop('submission_id')
    values.pop('requester_id')      # Never changes.
    values.pop('created_at')
    count = query.update(values, synchronize_session=False)
    if count != 1:
        raise StaleState(f'Submission {before.submission_id} changed since'
                         ' it was read')


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def get_notification(notification_id: str) -> Notification:
    """Get a notification by its ID."""
    try:
        row = current_session().query(models.Notification) \
            .populate_existing() \
            .filter(models.Notification.notification_id == notification_id) \
            .one()
    except NoResultFound as e:
        raise NoSuchNotification(f'Notification {notification_id} not'
                                 ' found') from e
    return row.to_notification()


@handle_operational_errors
def store_notification(notification: Notification) -> Tuple[Notification,
                                                            bool]:
    """
    Store a new notification, unless it is already stored.

    Returns
    -------
    :class:`.domain.Notification`
        The stored notification.
    bool
        ``True`` if the notification was created by this call.

    """
    try:
        return get_notification(notification.notification_id), False
    except NoSuchNotification:
        pass
    with transaction() as session:
        session.add(models.Notification.from_notification(notification))
    return notification, True


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def get_notifications(target_id: str, limit: Optional[int] = None,
                      unread_only: bool = False) -> List[Notification]:
    """Get notifications addressed to an actor, newest first."""
    query = current_session().query(models.Notification) \
        .populate_existing() \
        .filter(models.Notification.target_id == target_id)
    if unread_only:
        query = query.filter(models.Notification.read.is_(False))
    query = query.order_by(models.Notification.created_at.desc())
    if limit is not None:
        query = query.limit(limit)
    return [row.to_notification() for row in query]


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def count_unread(target_id: str) -> int:
    """Count the unread notifications addressed to an actor."""
    return current_session().query(models.Notification) \
        .filter(models.Notification.target_id == target_id) \
        .filter(models.Notification.read.is_(False)) \
        .count()


@handle_operational_errors
def mark_read(notification_id: str) -> Notification:
    """Set the read flag on a notification."""
    with transaction() as session:
        count = session.query(models.Notification) \
            .filter(models.Notification.notification_id == notification_id) \
            .update({'read': True}, synchronize_session=False)
        if count == 0:
            raise NoSuchNotification(f'Notification {notification_id} not'
                                     ' found')
    return get_notification(notification_id)
