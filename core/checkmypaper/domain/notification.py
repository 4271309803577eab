"""Data structures for notifications."""

from datetime import datetime
from typing import Optional

from dataclasses import dataclass, field

from .util import get_tzaware_utc_now, to_utc


@dataclass
class Notification:
    """
    A message in an actor's inbox about one of their submissions.

    Notifications are only created as a side effect of a submission
    transition (see :mod:`checkmypaper.notifications`). The only change that
    may be made afterwards is the target actor marking it read.
    """

    notification_id: str
    target_id: str
    """Identity of the actor to whom the notification is addressed."""

    message: str
    submission_id: Optional[str] = field(default=None)
    read: bool = field(default=False)
    created: datetime = field(default_factory=get_tzaware_utc_now)

    def __post_init__(self) -> None:
        """Make sure that the creation time is tz-aware."""
        self.created = to_utc(self.created)
