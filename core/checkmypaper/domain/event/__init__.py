"""
Commands/events that make up the paper lifecycle.

Submissions move ``submitted -> assigned -> finalized``, with a side branch
``submitted -> declined``. Each arrow is an event class in this module;
:class:`.CreateSubmission` is the entry point. No other transitions exist,
and :meth:`.Event.apply` refuses any projection that does not correspond to a
pair in :attr:`.Submission.TRANSITIONS`.

Writing new events/commands
===========================

Events/commands are implemented as classes that inherit from :class:`.Event`.
It should:

- Be a dataclass (i.e. be decorated with :func:`dataclasses.dataclass`).
- Define (using :func:`dataclasses.field`) associated data.
- Implement a validation method with the signature
  ``validate(self, submission: Submission) -> None``. Guard failures on the
  creator raise :class:`.Forbidden`; a submission in the wrong state raises
  :class:`.InvalidTransition`; bad event data raise :class:`.ValidationError`.
- Implement a projection method with the signature
  ``project(self, submission: Submission) -> Submission:`` that mutates
  the passed :class:`.domain.submission.Submission` instance.
- Set ``OPERATION`` to the name of the :class:`.authorization.Operation`
  that the event performs.

"""

from typing import Optional

from dataclasses import field, dataclass

from ...exceptions import InvalidTransition, AlreadyAssigned, \
    ValidationError, Forbidden
from ..submission import Submission
from .base import Event, event_factory
from . import validators

__all__ = ('Event', 'event_factory', 'CreateSubmission', 'ClaimSubmission',
           'DeclineSubmission', 'FinalizeSubmission')


@dataclass
class CreateSubmission(Event):
    """Creation of a new :class:`.domain.submission.Submission` by upload."""

    NAME = "create submission"
    NAMED = "submission created"
    OPERATION = 'create'

    title: str = field(default_factory=str)
    original_locator: Optional[str] = field(default=None)
    reference_locator: Optional[str] = field(default=None)

    def validate(self, submission: Optional[Submission] = None) -> None:
        """Only a requester may create a submission, and it must be new."""
        if submission is not None:
            raise InvalidTransition(self, 'Submission already exists')
        validators.must_be_requester(self, self.creator)
        validators.title_is_valid(self, self.title)
        if not self.original_locator:
            raise ValidationError(self, 'An original document is required')

    def project(self, submission: None = None) -> Submission:
        """Create a new :class:`.domain.submission.Submission`."""
        return Submission(
            submission_id=self.submission_id,
            requester_id=self.creator.identity,
            title=validators.clean_text(self.title),
            original_locator=self.original_locator,
            reference_locator=self.reference_locator,
            state=Submission.SUBMITTED,
            created=self.created,
            updated=self.created
        )


@dataclass
class ClaimSubmission(Event):
    """
    A reviewer takes ownership of an unassigned submission.

    Validation against a loaded submission catches claims that arrive after
    the submission was assigned. Claims that race each other are settled by
    the conditional write in :mod:`checkmypaper.assignment`.
    """

    NAME = "claim submission"
    NAMED = "submission claimed"
    OPERATION = 'claim'

    def validate(self, submission: Submission) -> None:
        """Only reviewers may claim, and only unassigned submissions."""
        validators.must_be_reviewer(self, self.creator)
        if submission.is_terminal:
            raise InvalidTransition(self, 'Submission is'
                                          f' {submission.state.value}')
        if submission.reviewer_id is not None \
                or submission.state is not Submission.SUBMITTED:
            raise AlreadyAssigned(self, 'Submission is already assigned')

    def project(self, submission: Submission) -> Submission:
        """Assign the submission to the creator of this event."""
        submission.reviewer_id = self.creator.identity
        submission.state = Submission.ASSIGNED
        return submission


@dataclass
class DeclineSubmission(Event):
    """A reviewer declines to check a submission. Terminal."""

    NAME = "decline submission"
    NAMED = "submission declined"
    OPERATION = 'decline'

    def validate(self, submission: Submission) -> None:
        """Only reviewers may decline, and only unassigned submissions."""
        validators.must_be_reviewer(self, self.creator)
        if submission.state is not Submission.SUBMITTED:
            raise InvalidTransition(self, 'Submission is'
                                          f' {submission.state.value}')

    def project(self, submission: Submission) -> Submission:
        """Mark the submission as declined."""
        submission.state = Submission.DECLINED
        return submission


@dataclass
class FinalizeSubmission(Event):
    """
    The assigned reviewer grades the submission and attaches the checked copy.

    :attr:`checked_locator` is usually set after :meth:`validate` succeeds,
    once the checked document has been uploaded; :meth:`project` requires it.
    """

    NAME = "finalize submission"
    NAMED = "submission finalized"
    OPERATION = 'finalize'

    checked_locator: Optional[str] = field(default=None)
    score: Optional[int] = field(default=None)
    grade: Optional[str] = field(default=None)
    feedback: Optional[str] = field(default=None)

    def validate(self, submission: Submission) -> None:
        """Only the assigned reviewer may finalize, with a valid grade."""
        self._must_be_assigned_reviewer(submission)
        if submission.state is not Submission.ASSIGNED:
            raise InvalidTransition(self, 'Submission is'
                                          f' {submission.state.value}')
        validators.score_is_valid(self, self.score)
        validators.grade_is_valid(self, self.grade)
        validators.feedback_is_valid(self, self.feedback)

    def _must_be_assigned_reviewer(self, submission: Submission) -> None:
        if not self.creator.is_reviewer \
                or submission.reviewer_id != self.creator.identity:
            raise Forbidden(f'{self.NAME}: only the assigned reviewer may'
                            ' finalize this submission')

    def project(self, submission: Submission) -> Submission:
        """Attach the checked document and the grade."""
        if not self.checked_locator:
            raise ValidationError(self, 'A checked document is required')
        submission.checked_locator = self.checked_locator
        submission.score = self.score
        submission.grade = self.grade
        submission.feedback = validators.clean_text(self.feedback) or None
        submission.state = Submission.FINALIZED
        return submission
