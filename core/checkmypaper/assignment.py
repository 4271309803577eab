"""
Race-safe assignment of submissions to reviewers.

Any number of reviewers may try to claim the same submission at the same
time. The claim is written with a conditional update that only matches while
the submission has no reviewer and is still waiting; exactly one of the
concurrent writes can match. Everyone else gets :class:`.AlreadyAssigned`,
which is also what a reviewer gets if they arrive after the fact (including
the winner, if they try again).
"""

from . import logging
from .core import get_current, save
from .domain.actor import Actor
from .domain.event import ClaimSubmission
from .domain.submission import Submission
from .exceptions import AlreadyAssigned

logger = logging.getLogger(__name__)


def claim(submission_id: str, reviewer: Actor) -> Submission:
    """
    Assign a waiting submission to a reviewer.

    Parameters
    ----------
    submission_id : str
    reviewer : :class:`.Actor`

    Returns
    -------
    :class:`.Submission`
        The submission, now assigned to ``reviewer``.

    Raises
    ------
    :class:`.AlreadyAssigned`
        Another reviewer claimed the submission first.
    :class:`.InvalidTransition`
        The submission was declined or has already been finalized.
    :class:`.Forbidden`
        The actor is not a reviewer.
    :class:`.NoSuchSubmission`

    """
    before = get_current(submission_id)
    event = ClaimSubmission(creator=reviewer, submission_id=submission_id)
    after = save(event, before, stale=AlreadyAssigned)
    logger.debug('%s claimed %s', reviewer.identity, submission_id)
    return after
