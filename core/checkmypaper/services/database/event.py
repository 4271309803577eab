"""Persistence for lifecycle events, which form the audit trail."""

from typing import Any, Dict

from dataclasses import fields
from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from ...domain.event import Event, event_factory
from ...domain.util import to_utc
from .models import Base
from .util import SerializedJSON, to_naive_utc

# These are stored in their own columns, or not at all.
_SKIP = ('creator', 'submission_id', 'created', 'committed', 'before',
         'after', 'event_type')


class DBEvent(Base):  # type: ignore
    """Database representation of an :class:`.Event`."""

    __tablename__ = 'event'

    event_id = Column(String(40), primary_key=True)
    event_type = Column(String(255))
    creator = Column(SerializedJSON)
    created = Column(DateTime)
    data = Column(SerializedJSON)
    submission_id = Column(
        ForeignKey('submission.submission_id'),
        index=True
    )

    submission = relationship("Submission")

    @classmethod
    def from_event(cls, event: Event) -> 'DBEvent':
        """Generate a row from an applied :class:`.Event`."""
        data: Dict[str, Any] = {
            f.name: getattr(event, f.name) for f in fields(event)
            if f.name not in _SKIP
        }
        return cls(event_id=event.event_id,
                   event_type=event.event_type,
                   submission_id=event.submission_id,
                   creator=event.creator,
                   created=to_naive_utc(event.created),
                   data=data)

    def to_event(self) -> Event:
        """
        Instantiate an :class:`.Event` using event data from this instance.

        Returns
        -------
        :class:`.Event`

        """
        return event_factory(
            self.event_type,
            creator=self.creator,
            submission_id=self.submission_id,
            created=to_utc(self.created),
            committed=True,     # Since we're loading from the DB.
            **(self.data or {})
        )
