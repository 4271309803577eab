"""Data structures for actors."""

from enum import Enum
from typing import Any, Optional

from dataclasses import dataclass, field

__all__ = ('Actor', 'Role', 'actor_factory')


class Role(Enum):
    """Roles that an actor may hold in the review process."""

    REQUESTER = 'requester'
    """Uploads documents to be checked (a learner)."""

    REVIEWER = 'reviewer'
    """Claims, annotates, and grades documents (a tutor)."""


@dataclass
class Actor:
    """
    A person who operates on submissions.

    Actors are owned by an external identity system; the review core only
    reads them. Every operation is passed the actor explicitly.
    """

    identity: str
    """Stable identifier for the actor, issued by the identity system."""

    role: Role

    full_name: str = field(default_factory=str)
    email: str = field(default_factory=str)
    class_info: Optional[str] = field(default=None)
    """For requesters, the class or level in which they are enrolled."""

    subject_info: Optional[str] = field(default=None)
    """For reviewers, the subjects that they check."""

    def __post_init__(self) -> None:
        """Make sure that :attr:`.role` is a :class:`.Role`."""
        self.identity = str(self.identity)
        if not isinstance(self.role, Role):
            self.role = Role(self.role)

    @property
    def is_requester(self) -> bool:
        return self.role is Role.REQUESTER

    @property
    def is_reviewer(self) -> bool:
        return self.role is Role.REVIEWER

    def __eq__(self, other: Any) -> bool:
        """Actors are the same if they have the same identity and role."""
        if not isinstance(other, Actor):
            return False
        return self.identity == other.identity and self.role == other.role


def actor_factory(**data: Any) -> Actor:
    """Instantiate an :class:`.Actor` from raw data."""
    if not data.get('identity') or not data.get('role'):
        raise ValueError('No such actor: %s, %s' % (data.get('identity'),
                                                    data.get('role')))
    data = {k: v for k, v in data.items() if k in Actor.__dataclass_fields__}
    return Actor(**data)
