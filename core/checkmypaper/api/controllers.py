"""
Controllers for the review API.

Each controller takes the actor making the request and the request data, and
returns a tuple of response data, HTTP status code, and response headers.
Exceptions raised by the review core are translated into their HTTP
equivalents here.
"""

from functools import wraps
from typing import Any, Callable, Dict, Tuple

from flask import url_for
from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import BadRequest, Forbidden, NotFound, Conflict, \
    ServiceUnavailable

from .. import logging, core, assignment, exceptions
from ..domain.actor import Actor
from ..domain.event import Event
from ..domain.notification import Notification
from ..domain.submission import Submission
from ..services.artifacts import KINDS

logger = logging.getLogger(__name__)

Response = Tuple[Any, int, Dict[str, str]]


def handle_core_exceptions(func: Callable) -> Callable:
    """Translate exceptions from the review core to HTTP exceptions."""
    @wraps(func)
    def inner(*args: Any, **kwargs: Any) -> Response:
        try:
            return func(*args, **kwargs)
        except exceptions.ValidationError as e:
            raise BadRequest(e.message) from e
        except (exceptions.InvalidTransition,
                exceptions.AlreadyAssigned) as e:
            raise Conflict(str(e)) from e
        except exceptions.Forbidden as e:
            raise Forbidden(str(e)) from e
        except exceptions.NotFound as e:
            raise NotFound(str(e)) from e
        except (exceptions.StoreUnavailable,
                exceptions.ArtifactStoreError) as e:
            logger.error('Service unavailable: %s', e)
            raise ServiceUnavailable('Try again later') from e
    return inner


def _submission_data(submission: Submission) -> Dict[str, Any]:
    return {
        'submission_id': submission.submission_id,
        'requester_id': submission.requester_id,
        'reviewer_id': submission.reviewer_id,
        'title': submission.title,
        'state': submission.state.value,
        'score': submission.score,
        'grade': submission.grade,
        'feedback': submission.feedback,
        'artifacts': [kind for kind, locator in (
            ('original', submission.original_locator),
            ('reference', submission.reference_locator),
            ('checked', submission.checked_locator)
        ) if locator],
        'created': submission.created.isoformat(),
        'updated': submission.updated.isoformat()
    }


def _notification_data(notification: Notification) -> Dict[str, Any]:
    return {
        'notification_id': notification.notification_id,
        'submission_id': notification.submission_id,
        'message': notification.message,
        'read': notification.read,
        'created': notification.created.isoformat()
    }


def _event_data(event: Event) -> Dict[str, Any]:
    return {
        'event_id': event.event_id,
        'event_type': event.event_type,
        'name': event.NAMED,
        'creator': event.creator.identity,
        'created': event.created.isoformat()
    }


def _location(submission: Submission) -> Dict[str, str]:
    return {'Location': url_for('review.get_submission',
                                submission_id=submission.submission_id)}


@handle_core_exceptions
def create_submission(actor: Actor, form: MultiDict,
                      files: MultiDict) -> Response:
    """Create a new submission from an uploaded document."""
    submission = core.create_submission(actor, form.get('title', ''),
                                        files.get('original'),
                                        files.get('reference'))
    logger.debug('Created submission %s', submission.submission_id)
    return _submission_data(submission), 201, _location(submission)


@handle_core_exceptions
def list_submissions(actor: Actor) -> Response:
    """Get the submissions that the actor may see."""
    submissions = core.list_visible_submissions(actor)
    return {'submissions': [_submission_data(s) for s in submissions]}, \
        200, {}


@handle_core_exceptions
def summarize(actor: Actor) -> Response:
    """Get counts of the submissions that the actor may see, by state."""
    return core.summarize(actor), 200, {}


@handle_core_exceptions
def get_submission(actor: Actor, submission_id: str) -> Response:
    """Get the current state of a submission."""
    return _submission_data(core.load(submission_id, actor)), 200, {}


@handle_core_exceptions
def get_history(actor: Actor, submission_id: str) -> Response:
    """Get the event log for a submission."""
    events = core.load_history(submission_id, actor)
    return {'events': [_event_data(e) for e in events]}, 200, {}


@handle_core_exceptions
def get_artifact(actor: Actor, submission_id: str, kind: str) -> Response:
    """Get a document attached to a submission."""
    if kind not in KINDS:
        raise NotFound(f'No such document: {kind}')
    content = core.get_artifact(submission_id, actor, kind)
    return content, 200, {'Content-Type': 'application/octet-stream'}


@handle_core_exceptions
def claim(actor: Actor, submission_id: str) -> Response:
    """Claim a submission for review."""
    submission = assignment.claim(submission_id, actor)
    return _submission_data(submission), 200, _location(submission)


@handle_core_exceptions
def decline(actor: Actor, submission_id: str) -> Response:
    """Decline to review a submission."""
    submission = core.decline(submission_id, actor)
    return _submission_data(submission), 200, _location(submission)


@handle_core_exceptions
def finalize(actor: Actor, submission_id: str, form: MultiDict,
             files: MultiDict) -> Response:
    """Return a checked submission with a score and grade."""
    score = form.get('score')
    try:
        score = int(score)
    except (TypeError, ValueError):
        pass    # Rejected by the core, after the reviewer is checked.
    submission = core.finalize(submission_id, actor, files.get('checked'),
                               score, form.get('grade'),
                               form.get('feedback') or None)
    return _submission_data(submission), 200, _location(submission)


@handle_core_exceptions
def list_notifications(actor: Actor, params: MultiDict) -> Response:
    """Get the most recent notifications for the actor."""
    unread_only = params.get('unread', '0') in ('1', 'true')
    try:
        limit = int(params.get('limit', 10))
    except ValueError as e:
        raise BadRequest('Limit must be an integer') from e
    if limit < 0:
        raise BadRequest('Limit may not be negative')
    notifications = core.list_notifications(actor, limit=limit,
                                            unread_only=unread_only)
    return {
        'notifications': [_notification_data(n) for n in notifications],
        'unread': core.count_unread_notifications(actor)
    }, 200, {}


@handle_core_exceptions
def mark_notification_read(actor: Actor, notification_id: str) -> Response:
    """Mark a notification as read."""
    notification = core.mark_notification_read(notification_id, actor)
    return _notification_data(notification), 200, {}
