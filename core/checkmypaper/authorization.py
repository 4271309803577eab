"""
Access policy for submissions and notifications.

The policy is a set of pure functions of the actor, the entity, and the
operation. Nothing is cached: callers evaluate it on every operation, against
the state they have just read.

- Requesters may read and create submissions that they own. They may never
  change the state of a submission.
- Reviewers may read any submission that is waiting for a reviewer, and any
  submission that is assigned to them. They may not read submissions that are
  assigned to someone else.
- Reviewers may claim or decline only submissions that are waiting for a
  reviewer, and may finalize only submissions assigned to themselves.
- Only the target of a notification may read it or mark it read.
"""

from enum import Enum

from .domain.actor import Actor
from .domain.notification import Notification
from .domain.submission import Submission
from .exceptions import Forbidden


class Operation(Enum):
    """Operations that are subject to access control."""

    READ = 'read'
    CREATE = 'create'
    CLAIM = 'claim'
    DECLINE = 'decline'
    FINALIZE = 'finalize'


def can_access(actor: Actor, submission: Submission,
               operation: Operation) -> bool:
    """Determine whether ``actor`` may perform ``operation``."""
    owns = submission.requester_id == actor.identity
    assigned_to_actor = submission.reviewer_id == actor.identity
    waiting = submission.state is Submission.SUBMITTED \
        and submission.reviewer_id is None

    if actor.is_requester:
        return owns and operation in (Operation.READ, Operation.CREATE)

    if actor.is_reviewer:
        if operation is Operation.READ:
            return waiting or assigned_to_actor
        if operation in (Operation.CLAIM, Operation.DECLINE):
            return waiting
        if operation is Operation.FINALIZE:
            return assigned_to_actor \
                and submission.state is Submission.ASSIGNED
    return False


def can_access_notification(actor: Actor, notification: Notification) -> bool:
    """Only the target of a notification may see or change it."""
    return notification.target_id == actor.identity


def authorize(actor: Actor, submission: Submission,
              operation: Operation) -> None:
    """Raise :class:`.Forbidden` if the actor may not perform the operation."""
    if not can_access(actor, submission, operation):
        raise Forbidden(f'{actor.role.value} {actor.identity} may not'
                        f' {operation.value} {submission.submission_id}')
