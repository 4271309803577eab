"""Provides the base event class."""

import copy
import hashlib
from datetime import datetime
from typing import Optional, List, Type, Any

from dataclasses import dataclass, field

from ...exceptions import InvalidTransition
from ... import logging
from ..actor import Actor, actor_factory
from ..submission import Submission
from ..util import get_tzaware_utc_now, to_utc

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """
    Base class for submission lifecycle events/commands.

    An event represents a change to a :class:`.domain.submission.Submission`.
    Rather than changing submissions directly, an operation creates (and
    stores) an event. Each event class must inherit from this base class,
    extend it with whatever data is needed for the event, and define methods
    for validation and projection (changing a submission):

    - ``validate(self, submission: Submission) -> None`` should raise
      :class:`.InvalidEvent` (or one of its subclasses), or
      :class:`.Forbidden` if the creator does not satisfy the guard of the
      transition.
    - ``project(self, submission: Submission) -> Submission`` should perform
      changes to the :class:`.domain.submission.Submission` and return it.

    The projection *must not* generate side-effects. Notifications and
    change feed messages are produced by the caller once the event has been
    stored.
    """

    NAME = 'base event'
    NAMED = 'base event'
    OPERATION = ''
    """The access-controlled operation that this event performs."""

    creator: Actor
    """The actor responsible for the operation represented by this event."""

    submission_id: Optional[str] = field(default=None)
    """The primary identifier of the submission being operated upon."""

    created: Optional[datetime] = field(default=None)
    """The timestamp when the event was applied."""

    committed: bool = field(default=False)
    """
    Indicates whether the event has been committed to the database.

    This should generally not be set from outside this package.
    """

    before: Optional[Submission] = None
    """The state of the submission prior to the event."""

    after: Optional[Submission] = None
    """The state of the submission after the event."""

    event_type: str = field(default_factory=str)

    def __post_init__(self) -> None:
        """Make sure data look right."""
        self.event_type = self.get_event_type()
        if self.creator and isinstance(self.creator, dict):
            self.creator = actor_factory(**self.creator)
        if self.before and isinstance(self.before, dict):
            self.before = Submission(**self.before)
        if self.after and isinstance(self.after, dict):
            self.after = Submission(**self.after)
        self.created = to_utc(self.created)

    @classmethod
    def get_event_type(cls) -> str:
        """Get the name of the event type."""
        return cls.__name__

    @property
    def event_id(self) -> str:
        """Unique ID for this event."""
        if not self.created:
            raise RuntimeError('Event not yet applied')
        h = hashlib.new('sha1')
        h.update(b'%s:%s:%s:%s' % (
            self.created.isoformat().encode('utf-8'),
            self.event_type.encode('utf-8'),
            self.creator.identity.encode('utf-8'),
            str(self.submission_id).encode('utf-8')
        ))
        return h.hexdigest()

    def apply(self, submission: Optional[Submission] = None) -> Submission:
        """
        Apply the projection for this :class:`.Event` instance.

        The passed submission is not modified. The returned submission has its
        last-modified time advanced to the time of the event (or left alone,
        if the clock would otherwise run backwards).
        """
        if self.created is None:
            self.created = get_tzaware_utc_now()
        self.before = copy.deepcopy(submission)
        self.validate(submission)    # type: ignore
        if submission is not None:
            after = self.project(copy.deepcopy(submission))
        else:   # Only creation events apply to nothing.
            after = self.project(None)    # type: ignore

        prior = submission.state if submission is not None else None
        if not Submission.is_transition(prior, after.state):
            raise InvalidTransition(self, f'Cannot go from {prior} to'
                                          f' {after.state}')

        if submission is None or submission.updated is None:
            after.updated = self.created
        else:
            after.updated = max(submission.updated, self.created)
        if after.created is None:
            after.created = self.created
        if not after.is_consistent:
            raise InvalidTransition(self, 'Would leave submission in an'
                                          ' inconsistent state')

        # Make sure that the submission has its own ID, if we know what it is.
        if after.submission_id is None and self.submission_id is not None:
            after.submission_id = self.submission_id
        if self.submission_id is None and after.submission_id is not None:
            self.submission_id = after.submission_id
        logger.debug('Applied %s to %s', self.event_type, self.submission_id)
        self.after = after
        return after

    def validate(self, submission: Submission) -> None:
        """Validate this event and its data against a submission."""
        raise NotImplementedError('Must be implemented by subclass')

    def project(self, submission: Submission) -> Submission:
        """Apply this event and its data to a submission."""
        raise NotImplementedError('Must be implemented by subclass')


def _get_subclasses(klass: Type[Event]) -> List[Type[Event]]:
    _subclasses = klass.__subclasses__()
    if _subclasses:
        return _subclasses + [sub for klass in _subclasses
                              for sub in _get_subclasses(klass)]
    return _subclasses


def event_factory(event_type: str, **data: Any) -> Event:
    """
    Generate an :class:`Event` instance from stored event data.

    Parameters
    ----------
    event_type : str
        Should be the name of a :class:`.Event` subclass.
    data : kwargs
        Keyword parameters passed to the event constructor.

    Returns
    -------
    :class:`.Event`
        An instance of an :class:`.Event` subclass.

    """
    etypes = {klas.get_event_type(): klas for klas in _get_subclasses(Event)}
    data.pop('event_type', None)
    if event_type in etypes:
        return etypes[event_type](**data)
    raise RuntimeError('Unknown event type: %s' % event_type)
