"""Data structures for submissions."""

from datetime import datetime
from enum import Enum
from typing import ClassVar, FrozenSet, Optional, Tuple

from dataclasses import dataclass, field

from .util import to_utc


@dataclass
class Submission:
    """
    A document package moving through the review lifecycle.

    A submission is created by a requester when they upload the original
    document. A reviewer may then claim it (or decline it), annotate it, and
    finalize it with a score, a grade, and the checked document. Submissions
    are only ever changed by applying events from :mod:`.domain.event`.
    """

    class State(Enum):
        """Lifecycle states of a submission."""

        SUBMITTED = 'submitted'
        """Uploaded by the requester and waiting for a reviewer."""

        ASSIGNED = 'assigned'
        """Claimed by exactly one reviewer, who is checking it."""

        FINALIZED = 'finalized'
        """Checked and graded. Terminal."""

        DECLINED = 'declined'
        """Not accepted for checking. Terminal."""

    SUBMITTED = State.SUBMITTED
    ASSIGNED = State.ASSIGNED
    FINALIZED = State.FINALIZED
    DECLINED = State.DECLINED

    TERMINAL = frozenset({State.FINALIZED, State.DECLINED})

    TRANSITIONS: ClassVar[FrozenSet[Tuple[Optional[State], State]]] = \
        frozenset({
            (None, State.SUBMITTED),
            (State.SUBMITTED, State.ASSIGNED),
            (State.SUBMITTED, State.DECLINED),
            (State.ASSIGNED, State.FINALIZED),
        })
    """Every permitted ``(prior state, new state)`` pair."""

    submission_id: str
    requester_id: str
    """The requester who uploaded (and owns) the submission."""

    title: str
    original_locator: str
    """Artifact store locator for the document that was submitted."""

    state: State = field(default=State.SUBMITTED)

    reviewer_id: Optional[str] = field(default=None)
    """The reviewer who claimed the submission, once it is assigned."""

    reference_locator: Optional[str] = field(default=None)
    """Locator for a reference document, e.g. the question paper."""

    checked_locator: Optional[str] = field(default=None)
    """Locator for the annotated document produced by the reviewer."""

    score: Optional[int] = field(default=None)
    grade: Optional[str] = field(default=None)
    feedback: Optional[str] = field(default=None)

    created: Optional[datetime] = field(default=None)
    updated: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        """Make sure that enums and timestamps have the right types."""
        if not isinstance(self.state, self.State):
            self.state = self.State(self.state)
        self.created = to_utc(self.created)
        self.updated = to_utc(self.updated)

    @staticmethod
    def is_transition(prior: Optional['Submission.State'],
                      new: 'Submission.State') -> bool:
        """Determine whether ``prior -> new`` is a permitted transition."""
        return (prior, new) in Submission.TRANSITIONS

    @property
    def is_finalized(self) -> bool:
        return self.state is self.State.FINALIZED

    @property
    def is_terminal(self) -> bool:
        return self.state in self.TERMINAL

    @property
    def is_consistent(self) -> bool:
        """
        Determine whether the submission satisfies its data invariants.

        - A reviewer is assigned iff the submission is assigned or finalized.
        - The checked document, score, and grade are all set iff the
          submission is finalized.
        - The submission was not modified before it was created.
        """
        reviewed = self.state in (self.State.ASSIGNED, self.State.FINALIZED)
        if (self.reviewer_id is not None) != reviewed:
            return False
        graded = (self.checked_locator, self.score, self.grade)
        if self.is_finalized:
            if any(value is None for value in graded):
                return False
        elif any(value is not None for value in graded):
            return False
        if self.created and self.updated and self.updated < self.created:
            return False
        return True
