"""Tests for the paper lifecycle events."""

from datetime import datetime, timedelta
from unittest import TestCase

from flask import Flask
from pytz import UTC

from ...exceptions import InvalidTransition, AlreadyAssigned, \
    ValidationError, Forbidden
from .. import event
from ..actor import Actor, Role
from ..submission import Submission


def _submission(**kwargs) -> Submission:
    data = dict(submission_id='s1', requester_id='r1', title='Algebra Quiz',
                original_locator='file://r1/s1/original',
                created=datetime.now(UTC) - timedelta(hours=1),
                updated=datetime.now(UTC) - timedelta(hours=1))
    data.update(kwargs)
    return Submission(**data)


class TestCreateSubmission(TestCase):
    """A requester creates a submission by uploading a document."""

    def setUp(self):
        """We have a requester and a reviewer."""
        self.requester = Actor('r1', Role.REQUESTER, full_name='Ravi')
        self.reviewer = Actor('t1', Role.REVIEWER, full_name='Tara')

    def test_create(self):
        """A new submission is in the submitted state."""
        e = event.CreateSubmission(creator=self.requester, submission_id='s1',
                                   title='Algebra Quiz',
                                   original_locator='file://r1/s1/original')
        after = e.apply(None)
        self.assertEqual(after.state, Submission.SUBMITTED)
        self.assertEqual(after.requester_id, 'r1')
        self.assertIsNone(after.reviewer_id)
        self.assertEqual(after.created, e.created)
        self.assertEqual(after.updated, e.created)
        self.assertEqual(after.submission_id, 's1')

    def test_title_is_sanitized(self):
        """Markup is stripped from the title."""
        e = event.CreateSubmission(creator=self.requester, submission_id='s1',
                                   title='  <b>Algebra</b> Quiz ',
                                   original_locator='file://r1/s1/original')
        self.assertEqual(e.apply(None).title, 'Algebra Quiz')

    def test_title_keeps_special_characters(self):
        """Ampersands and angle brackets are stored as typed."""
        e = event.CreateSubmission(creator=self.requester, submission_id='s1',
                                   title='Q&A <3 x<y',
                                   original_locator='file://r1/s1/original')
        self.assertEqual(e.apply(None).title, 'Q&A <3 x<y')

    def test_title_length_counts_characters(self):
        """Length is measured on the text, not on its HTML encoding."""
        e = event.CreateSubmission(creator=self.requester, submission_id='s1',
                                   title='R&D ' * 55,
                                   original_locator='file://r1/s1/original')
        self.assertEqual(e.apply(None).title, ('R&D ' * 55).strip())

    def test_reviewer_cannot_create(self):
        """Only requesters may create submissions."""
        e = event.CreateSubmission(creator=self.reviewer, submission_id='s1',
                                   title='Algebra Quiz',
                                   original_locator='file://t1/s1/original')
        with self.assertRaises(Forbidden):
            e.apply(None)

    def test_title_required(self):
        """A submission must have a title."""
        e = event.CreateSubmission(creator=self.requester, submission_id='s1',
                                   title='<i></i>  ',
                                   original_locator='file://r1/s1/original')
        with self.assertRaises(ValidationError):
            e.apply(None)

    def test_title_too_long(self):
        """Titles are limited in length."""
        e = event.CreateSubmission(creator=self.requester, submission_id='s1',
                                   title='x' * 256,
                                   original_locator='file://r1/s1/original')
        with self.assertRaises(ValidationError):
            e.apply(None)

    def test_title_limit_cannot_exceed_column(self):
        """An app may not allow titles longer than the database can hold."""
        app = Flask('test')
        app.config['TITLE_MAX_LENGTH'] = 10000
        e = event.CreateSubmission(creator=self.requester, submission_id='s1',
                                   title='x' * 256,
                                   original_locator='file://r1/s1/original')
        with app.app_context():
            with self.assertRaises(ValidationError):
                e.apply(None)

    def test_title_limit_can_be_lowered(self):
        """An app may ask for shorter titles."""
        app = Flask('test')
        app.config['TITLE_MAX_LENGTH'] = 5
        e = event.CreateSubmission(creator=self.requester, submission_id='s1',
                                   title='Algebra Quiz',
                                   original_locator='file://r1/s1/original')
        with app.app_context():
            with self.assertRaises(ValidationError):
                e.apply(None)

    def test_document_required(self):
        """A submission must have an original document."""
        e = event.CreateSubmission(creator=self.requester, submission_id='s1',
                                   title='Algebra Quiz')
        with self.assertRaises(ValidationError):
            e.apply(None)

    def test_cannot_recreate(self):
        """An existing submission cannot be created again."""
        e = event.CreateSubmission(creator=self.requester, submission_id='s1',
                                   title='Algebra Quiz',
                                   original_locator='file://r1/s1/original')
        with self.assertRaises(InvalidTransition):
            e.apply(_submission())


class TestClaimSubmission(TestCase):
    """A reviewer claims a waiting submission."""

    def setUp(self):
        """We have a waiting submission."""
        self.reviewer = Actor('t1', Role.REVIEWER)
        self.submission = _submission()

    def test_claim(self):
        """The submission is assigned to the reviewer."""
        e = event.ClaimSubmission(creator=self.reviewer, submission_id='s1')
        after = e.apply(self.submission)
        self.assertEqual(after.state, Submission.ASSIGNED)
        self.assertEqual(after.reviewer_id, 't1')
        self.assertGreater(after.updated, self.submission.updated)
        self.assertTrue(after.is_consistent)

    def test_claim_does_not_mutate(self):
        """The submission passed to the event is left alone."""
        e = event.ClaimSubmission(creator=self.reviewer, submission_id='s1')
        e.apply(self.submission)
        self.assertEqual(self.submission.state, Submission.SUBMITTED)
        self.assertIsNone(self.submission.reviewer_id)
        self.assertEqual(e.before, self.submission)

    def test_requester_cannot_claim(self):
        """Requesters may not claim submissions."""
        e = event.ClaimSubmission(creator=Actor('r1', Role.REQUESTER),
                                  submission_id='s1')
        with self.assertRaises(Forbidden):
            e.apply(self.submission)

    def test_claim_assigned(self):
        """A submission that is already assigned cannot be claimed."""
        assigned = _submission(state=Submission.ASSIGNED, reviewer_id='t2')
        e = event.ClaimSubmission(creator=self.reviewer, submission_id='s1')
        with self.assertRaises(AlreadyAssigned):
            e.apply(assigned)

    def test_claim_declined(self):
        """A declined submission cannot be claimed."""
        declined = _submission(state=Submission.DECLINED)
        e = event.ClaimSubmission(creator=self.reviewer, submission_id='s1')
        with self.assertRaises(InvalidTransition):
            e.apply(declined)

    def test_claim_finalized(self):
        """A finalized submission cannot be claimed, not even by its owner."""
        finalized = _submission(state=Submission.FINALIZED, reviewer_id='t1',
                                checked_locator='file://r1/s1/checked',
                                score=85, grade='A')
        e = event.ClaimSubmission(creator=self.reviewer, submission_id='s1')
        with self.assertRaises(InvalidTransition):
            e.apply(finalized)

    def test_updated_never_goes_backward(self):
        """If the clock is behind the last change, the time is kept."""
        future = datetime.now(UTC) + timedelta(days=1)
        submission = _submission(updated=future)
        e = event.ClaimSubmission(creator=self.reviewer, submission_id='s1')
        self.assertEqual(e.apply(submission).updated, future)


class TestDeclineSubmission(TestCase):
    """A reviewer declines a waiting submission."""

    def setUp(self):
        """We have a reviewer."""
        self.reviewer = Actor('t1', Role.REVIEWER)

    def test_decline(self):
        """The submission is declined."""
        e = event.DeclineSubmission(creator=self.reviewer, submission_id='s1')
        after = e.apply(_submission())
        self.assertEqual(after.state, Submission.DECLINED)
        self.assertIsNone(after.reviewer_id)
        self.assertTrue(after.is_terminal)

    def test_decline_assigned(self):
        """An assigned submission cannot be declined."""
        e = event.DeclineSubmission(creator=self.reviewer, submission_id='s1')
        with self.assertRaises(InvalidTransition):
            e.apply(_submission(state=Submission.ASSIGNED, reviewer_id='t1'))

    def test_requester_cannot_decline(self):
        """Requesters may not decline submissions."""
        e = event.DeclineSubmission(creator=Actor('r1', Role.REQUESTER),
                                    submission_id='s1')
        with self.assertRaises(Forbidden):
            e.apply(_submission())


class TestFinalizeSubmission(TestCase):
    """The assigned reviewer finalizes a submission."""

    def setUp(self):
        """We have a submission assigned to t1."""
        self.reviewer = Actor('t1', Role.REVIEWER)
        self.submission = _submission(state=Submission.ASSIGNED,
                                      reviewer_id='t1')

    def _finalize(self, creator=None, **kwargs):
        data = dict(checked_locator='file://r1/s1/checked', score=85,
                    grade='A', feedback='Nice work')
        data.update(kwargs)
        return event.FinalizeSubmission(creator=creator or self.reviewer,
                                        submission_id='s1', **data)

    def test_finalize(self):
        """The submission is finalized with a score and grade."""
        after = self._finalize().apply(self.submission)
        self.assertEqual(after.state, Submission.FINALIZED)
        self.assertEqual(after.score, 85)
        self.assertEqual(after.grade, 'A')
        self.assertEqual(after.feedback, 'Nice work')
        self.assertEqual(after.checked_locator, 'file://r1/s1/checked')
        self.assertTrue(after.is_consistent)

    def test_other_reviewer(self):
        """Only the assigned reviewer may finalize, regardless of inputs."""
        other = Actor('t2', Role.REVIEWER)
        for kwargs in ({}, {'score': -1}, {'grade': 'Z'},
                       {'checked_locator': None}):
            with self.assertRaises(Forbidden):
                self._finalize(creator=other, **kwargs).apply(self.submission)

    def test_requester_cannot_finalize(self):
        """The requester cannot finalize their own submission."""
        requester = Actor('r1', Role.REQUESTER)
        with self.assertRaises(Forbidden):
            self._finalize(creator=requester).apply(self.submission)

    def test_not_assigned(self):
        """A finalized submission cannot be finalized again."""
        finalized = self._finalize().apply(self.submission)
        with self.assertRaises(InvalidTransition):
            self._finalize().apply(finalized)

    def test_bad_score(self):
        """Scores must be integers in range."""
        for score in (-1, 101, 85.5, '85', True, None):
            with self.assertRaises(ValidationError):
                self._finalize(score=score).apply(self.submission)

    def test_score_bounds(self):
        """The bounds themselves are valid scores."""
        for score in (0, 100):
            after = self._finalize(score=score).apply(self.submission)
            self.assertEqual(after.score, score)

    def test_bad_grade(self):
        """Grades must be one of the configured labels."""
        for grade in ('E', 'a', '', None):
            with self.assertRaises(ValidationError):
                self._finalize(grade=grade).apply(self.submission)

    def test_feedback_too_long(self):
        """Feedback is limited in length."""
        with self.assertRaises(ValidationError):
            self._finalize(feedback='x' * 5001).apply(self.submission)

    def test_feedback_keeps_special_characters(self):
        """Feedback is stored as typed, minus any markup."""
        after = self._finalize(feedback='<b>Q3:</b> x < y & y > z') \
            .apply(self.submission)
        self.assertEqual(after.feedback, 'Q3: x < y & y > z')

    def test_feedback_optional(self):
        """Feedback may be left out."""
        after = self._finalize(feedback=None).apply(self.submission)
        self.assertIsNone(after.feedback)

    def test_checked_document_required(self):
        """The checked document must be attached."""
        with self.assertRaises(ValidationError):
            self._finalize(checked_locator=None).apply(self.submission)


class TestSubmissionInvariants(TestCase):
    """Submissions know whether their data are consistent."""

    def test_transitions(self):
        """Only the lifecycle transitions are permitted."""
        S = Submission
        self.assertTrue(S.is_transition(None, S.SUBMITTED))
        self.assertTrue(S.is_transition(S.SUBMITTED, S.ASSIGNED))
        self.assertTrue(S.is_transition(S.SUBMITTED, S.DECLINED))
        self.assertTrue(S.is_transition(S.ASSIGNED, S.FINALIZED))
        self.assertFalse(S.is_transition(S.DECLINED, S.ASSIGNED))
        self.assertFalse(S.is_transition(S.DECLINED, S.FINALIZED))
        self.assertFalse(S.is_transition(S.FINALIZED, S.ASSIGNED))
        self.assertFalse(S.is_transition(S.ASSIGNED, S.SUBMITTED))
        self.assertFalse(S.is_transition(S.SUBMITTED, S.FINALIZED))

    def test_reviewer_without_assignment(self):
        """A waiting submission may not have a reviewer."""
        self.assertFalse(_submission(reviewer_id='t1').is_consistent)

    def test_partly_graded(self):
        """A finalized submission must have every grading field set."""
        submission = _submission(state=Submission.FINALIZED, reviewer_id='t1',
                                 checked_locator='file://r1/s1/checked',
                                 score=85)
        self.assertFalse(submission.is_consistent)

    def test_grade_before_finalized(self):
        """Grading fields are not set before the submission is finalized."""
        submission = _submission(state=Submission.ASSIGNED, reviewer_id='t1',
                                 score=85)
        self.assertFalse(submission.is_consistent)

    def test_modified_before_created(self):
        """A submission cannot be modified before it was created."""
        now = datetime.now(UTC)
        submission = _submission(created=now, updated=now - timedelta(1))
        self.assertFalse(submission.is_consistent)
