"""
Notifies requesters of what happened to their papers.

Each accepted transition produces at most one :class:`.Notification`, and
it is always addressed to the requester who owns the submission. Delivery
happens after the transition has been committed, and never affects the
outcome of the transition: if a notification cannot be delivered, that is
logged and nothing else.

Notifications have deterministic identifiers, derived from the submission and
the state that it entered. A state is entered at most once in the life of a
submission, so redelivering a notification never creates a second one.
"""

import uuid
from typing import Optional

from retry.api import retry_call

from . import logging
from .domain.change import Change, NOTIFICATION, CREATED
from .domain.notification import Notification
from .domain.submission import Submission
from .services import database, StreamPublisher
from .services.stream import PublishFailed
from .tasks import is_async
from .util import get_application_config

logger = logging.getLogger(__name__)

NAMESPACE = uuid.UUID('0b9ff1bc-3a8f-4a6e-9d4c-6d6e5c1f1e52')
"""Namespace for notification identifiers."""

MESSAGES = {
    (Submission.SUBMITTED, Submission.ASSIGNED):
        'Your paper "{title}" has been claimed by a reviewer and is being'
        ' checked.',
    (Submission.SUBMITTED, Submission.DECLINED):
        'Your paper "{title}" was not accepted for checking.',
    (Submission.ASSIGNED, Submission.FINALIZED):
        'Your paper "{title}" has been checked! Grade: {grade},'
        ' Score: {score}',
}


def notification_id_for(submission: Submission) -> str:
    """Generate the identifier of the notification for a state change."""
    name = f'{submission.submission_id}/{submission.state.value}'
    return str(uuid.uuid5(NAMESPACE, name))


def derive(prior: Optional[Submission.State],
           submission: Submission) -> Optional[Notification]:
    """
    Generate the notification for a transition, if there should be one.

    Parameters
    ----------
    prior : :class:`.Submission.State` or None
        The state of the submission before the transition. ``None`` for
        newly created submissions.
    submission : :class:`.Submission`
        The submission after the transition.

    Returns
    -------
    :class:`.Notification` or None

    """
    template = MESSAGES.get((prior, submission.state))
    if template is None:
        return None
    return Notification(
        notification_id=notification_id_for(submission),
        target_id=submission.requester_id,
        submission_id=submission.submission_id,
        message=template.format(title=submission.title,
                                grade=submission.grade,
                                score=submission.score),
        created=submission.updated
    )


def _store(notification: Notification) -> bool:
    _, created = database.store_notification(notification)
    return created


@is_async
def deliver(notification: Notification) -> None:
    """
    Put a notification in its target's inbox.

    Storage is attempted up to ``NOTIFICATION_RETRIES`` times. Delivering the
    same notification more than once has no further effect.
    """
    config = get_application_config()
    created = retry_call(
        _store, fargs=[notification],
        exceptions=(database.Unavailable, database.TransactionFailed),
        tries=int(config.get('NOTIFICATION_RETRIES', 3)),
        delay=float(config.get('NOTIFICATION_RETRY_DELAY', 1)),
        logger=logger
    )
    if not created:
        logger.debug('Notification %s already delivered',
                     notification.notification_id)
        return
    logger.debug('Delivered notification %s to %s',
                 notification.notification_id, notification.target_id)
    try:
        StreamPublisher.put(Change(NOTIFICATION, notification.notification_id,
                                   CREATED))
    except PublishFailed as e:
        logger.error('Could not publish new notification %s: %s',
                     notification.notification_id, e)


def dispatch(prior: Optional[Submission.State],
             submission: Submission) -> Optional[Notification]:
    """
    Derive and deliver the notification for a committed transition.

    Returns the notification, or ``None`` if the transition does not call for
    one. Delivery failures are logged and otherwise ignored.
    """
    notification = derive(prior, submission)
    if notification is None:
        return None
    try:
        deliver(notification)
    except Exception as e:
        logger.error('Failed to deliver notification %s for %s: %s',
                     notification.notification_id, submission.submission_id,
                     e)
    return notification
