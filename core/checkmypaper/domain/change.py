"""Data structures for the change feed."""

from datetime import datetime

from dataclasses import dataclass, field

from .util import get_tzaware_utc_now, to_utc

SUBMISSION = 'submission'
NOTIFICATION = 'notification'

CREATED = 'created'
UPDATED = 'updated'


@dataclass
class Change:
    """
    Signals that an entity has changed, so that observers can refresh.

    A change carries no entity data; observers re-read the entity if they
    care about it.
    """

    entity_kind: str
    """Either :const:`SUBMISSION` or :const:`NOTIFICATION`."""

    entity_id: str
    change_kind: str
    """Either :const:`CREATED` or :const:`UPDATED`."""

    created: datetime = field(default_factory=get_tzaware_utc_now)

    def __post_init__(self) -> None:
        """Make sure that the creation time is tz-aware."""
        self.created = to_utc(self.created)
