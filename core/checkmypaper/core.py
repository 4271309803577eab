"""Core persistence methods for submissions and their lifecycle events."""

import uuid
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Type

from flask import Flask

from . import logging, notifications
from .authorization import Operation, authorize, can_access, \
    can_access_notification
from .domain.actor import Actor
from .domain.change import Change, SUBMISSION, NOTIFICATION, CREATED, \
    UPDATED
from .domain.event import Event, CreateSubmission, DeclineSubmission, \
    FinalizeSubmission
from .domain.notification import Notification
from .domain.submission import Submission
from .exceptions import InvalidEvent, InvalidTransition, ValidationError, \
    Forbidden, NotFound, NoSuchSubmission, NoSuchNotification, \
    StoreUnavailable
from .services import database, ArtifactStore, StreamPublisher
from .services.artifacts import get_store, make_key, NoSuchArtifact, \
    ORIGINAL, REFERENCE, CHECKED
from .services.stream import PublishFailed

logger = logging.getLogger(__name__)


def _read(document: Any) -> bytes:
    """Get the content of an uploaded document; empty if there is none."""
    if document is None:
        return b''
    if hasattr(document, 'read'):
        document = document.read()
    return bytes(document)


def get_current(submission_id: str) -> Submission:
    """
    Read the current state of a submission, bypassing access control.

    Raises
    ------
    :class:`.NoSuchSubmission`
    :class:`.StoreUnavailable`

    """
    try:
        return database.get_submission(submission_id)
    except database.NoSuchSubmission as e:
        raise NoSuchSubmission(f'No submission with id {submission_id}') from e
    except database.Unavailable as e:
        raise StoreUnavailable('Could not read submission') from e


def save(event: Event, before: Optional[Submission] = None,
         stale: Type[InvalidEvent] = InvalidTransition) -> Submission:
    """
    Apply and commit an :class:`.Event`, and emit its side effects.

    The event is validated and projected against ``before``, and the result
    is checked against the access policy. The new state and the event are
    then stored together; the store refuses the write if the submission
    changed after ``before`` was read, in which case ``stale`` is raised.
    Only after that are the notification and the change emitted.

    Parameters
    ----------
    event : :class:`.Event`
    before : :class:`.Submission` or None
        The state that the event applies to, as just read from the store.
        ``None`` for :class:`.CreateSubmission`.
    stale : type
        Exception raised when a concurrent write got there first.

    Returns
    -------
    :class:`.Submission`
        The state of the submission after the event.

    Raises
    ------
    :class:`.InvalidEvent`
    :class:`.Forbidden`
    :class:`.StoreUnavailable`

    """
    after = event.apply(before)     # Raises InvalidEvent, Forbidden.
    authorize(event.creator, before if before is not None else after,
              Operation(event.OPERATION))
    try:
        database.store_event(event, before, after)
    except database.StaleState as e:
        logger.debug('Lost the race for %s: %s', after.submission_id, e)
        raise stale(event, 'Submission was changed by someone else') from e
    except (database.Unavailable, database.TransactionFailed) as e:
        raise StoreUnavailable('Could not store submission') from e
    logger.debug('Committed %s for %s', event.event_type, after.submission_id)

    prior = before.state if before is not None else None
    notifications.dispatch(prior, after)
    _publish(Change(SUBMISSION, after.submission_id,
                    CREATED if before is None else UPDATED))
    return after


def _publish(change: Change) -> None:
    try:
        StreamPublisher.put(change)
    except PublishFailed as e:
        logger.error('Could not publish %s %s %s: %s', change.entity_kind,
                     change.entity_id, change.change_kind, e)


def create_submission(requester: Actor, title: str, original: Any,
                      reference: Optional[Any] = None) -> Submission:
    """
    Create a new submission by uploading a document.

    Parameters
    ----------
    requester : :class:`.Actor`
    title : str
    original : bytes or file-like
        The document to be checked.
    reference : bytes or file-like
        An optional secondary document, e.g. the question paper.

    Returns
    -------
    :class:`.Submission`
        The new submission, in the ``submitted`` state.

    Raises
    ------
    :class:`.ValidationError`
        The title or the document is missing or malformed.
    :class:`.Forbidden`
        The actor is not a requester.
    :class:`.ArtifactStoreError`
        The documents could not be stored.

    """
    submission_id = str(uuid.uuid4())
    key = make_key(requester.identity, submission_id, ORIGINAL)
    original, reference = _read(original), _read(reference)
    event = CreateSubmission(creator=requester, submission_id=submission_id,
                             title=title,
                             original_locator=key if original else None)
    event.validate(None)    # Fail before anything is uploaded.

    store = get_store()
    event.original_locator = store.put(key, original)
    if reference:
        event.reference_locator = store.put(
            make_key(requester.identity, submission_id, REFERENCE),
            reference
        )
    return save(event)


def decline(submission_id: str, reviewer: Actor) -> Submission:
    """
    Decline to check a submission. The submission will not be checked.

    Raises
    ------
    :class:`.Forbidden`
        The actor is not a reviewer.
    :class:`.InvalidTransition`
        The submission is not waiting for a reviewer.
    :class:`.NoSuchSubmission`

    """
    before = get_current(submission_id)
    event = DeclineSubmission(creator=reviewer, submission_id=submission_id)
    return save(event, before)


def finalize(submission_id: str, reviewer: Actor, checked: Any, score: int,
             grade: str, feedback: Optional[str] = None) -> Submission:
    """
    Complete the review of a submission.

    Parameters
    ----------
    submission_id : str
    reviewer : :class:`.Actor`
        Must be the reviewer to whom the submission is assigned.
    checked : bytes or file-like
        The annotated document.
    score : int
    grade : str
        One of the labels in ``GRADES``.
    feedback : str

    Raises
    ------
    :class:`.Forbidden`
        The actor is not the assigned reviewer.
    :class:`.InvalidTransition`
        The submission is not assigned.
    :class:`.ValidationError`
        The score, grade, feedback, or document are malformed.
    :class:`.NoSuchSubmission`

    """
    before = get_current(submission_id)
    event = FinalizeSubmission(creator=reviewer, submission_id=submission_id,
                               score=score, grade=grade, feedback=feedback)
    event.validate(before)
    authorize(reviewer, before, Operation.FINALIZE)
    checked = _read(checked)
    if not checked:
        raise ValidationError(event, 'A checked document is required')
    event.checked_locator = get_store().put(
        make_key(before.requester_id, submission_id, CHECKED),
        checked
    )
    return save(event, before)


def load(submission_id: str, actor: Actor) -> Submission:
    """Get the current state of a submission that the actor may see."""
    submission = get_current(submission_id)
    authorize(actor, submission, Operation.READ)
    return submission


def load_history(submission_id: str, actor: Actor) -> List[Event]:
    """Get the events of a submission that the actor may see, oldest first."""
    load(submission_id, actor)
    try:
        return database.get_events(submission_id)
    except database.NoSuchSubmission as e:
        raise NoSuchSubmission(f'No submission with id {submission_id}') from e
    except database.Unavailable as e:
        raise StoreUnavailable('Could not read events') from e


def get_artifact(submission_id: str, actor: Actor, kind: str) -> bytes:
    """
    Get the content of a document attached to a submission.

    ``kind`` is one of ``original``, ``reference``, or ``checked``.

    Raises
    ------
    :class:`.NotFound`
        The submission does not exist, or has no such document.
    :class:`.Forbidden`
    :class:`.ArtifactStoreError`

    """
    submission = load(submission_id, actor)
    locator = {
        ORIGINAL: submission.original_locator,
        REFERENCE: submission.reference_locator,
        CHECKED: submission.checked_locator
    }.get(kind)
    if not locator:
        raise NotFound(f'Submission {submission_id} has no {kind} document')
    try:
        return get_store().get(locator)
    except NoSuchArtifact as e:
        raise NotFound(f'Document missing: {locator}') from e


def list_visible_submissions(actor: Actor) -> List[Submission]:
    """
    Get the submissions that an actor may see, newest first.

    Requesters see their own submissions. Reviewers see submissions waiting
    for a reviewer, and those assigned to them.
    """
    try:
        if actor.is_requester:
            candidates = database.get_submissions_for_requester(
                actor.identity
            )
        elif actor.is_reviewer:
            candidates = database.get_submissions_for_reviewer(
                actor.identity
            )
        else:
            return []
    except database.Unavailable as e:
        raise StoreUnavailable('Could not read submissions') from e
    return [submission for submission in candidates
            if can_access(actor, submission, Operation.READ)]


def summarize(actor: Actor) -> Dict[str, int]:
    """Count the submissions that an actor may see, by state."""
    counts: Dict[str, int] = OrderedDict(
        (state.value, 0) for state in Submission.State
    )
    for submission in list_visible_submissions(actor):
        counts[submission.state.value] += 1
    return counts


def list_notifications(actor: Actor, limit: Optional[int] = 10,
                       unread_only: bool = False) -> List[Notification]:
    """Get the most recent notifications addressed to an actor."""
    try:
        return database.get_notifications(actor.identity, limit=limit,
                                          unread_only=unread_only)
    except database.Unavailable as e:
        raise StoreUnavailable('Could not read notifications') from e


def count_unread_notifications(actor: Actor) -> int:
    """Count the unread notifications addressed to an actor."""
    try:
        return database.count_unread(actor.identity)
    except database.Unavailable as e:
        raise StoreUnavailable('Could not read notifications') from e


def mark_notification_read(notification_id: str,
                           actor: Actor) -> Notification:
    """
    Mark a notification as read.

    Raises
    ------
    :class:`.NoSuchNotification`
    :class:`.Forbidden`
        The actor is not the target of the notification.

    """
    try:
        notification = database.get_notification(notification_id)
        if not can_access_notification(actor, notification):
            raise Forbidden(f'{actor.identity} may not read'
                            f' {notification_id}')
        if notification.read:
            return notification
        notification = database.mark_read(notification_id)
    except database.NoSuchNotification as e:
        raise NoSuchNotification(f'No notification with id'
                                 f' {notification_id}') from e
    except (database.Unavailable, database.TransactionFailed) as e:
        raise StoreUnavailable('Could not update notification') from e
    _publish(Change(NOTIFICATION, notification_id, UPDATED))
    return notification


def init_app(app: Flask) -> None:
    """Set default configuration parameters for an application instance."""
    database.init_app(app)
    ArtifactStore.init_app(app)
    StreamPublisher.init_app(app)
    app.config.setdefault('ENABLE_ASYNC', 0)
