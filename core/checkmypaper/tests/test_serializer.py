"""Tests for :mod:`checkmypaper.serializer`."""

from datetime import datetime
from unittest import TestCase
import json

from pytz import UTC

from ..serializer import dumps, loads
from ..domain import Actor, Role, Submission, Change, ClaimSubmission


class TestSerializeDomainObjects(TestCase):
    """Domain objects survive a trip through JSON."""

    def test_submission(self):
        """A :class:`.Submission` is tagged, and comes back as one."""
        submission = Submission('s1', 'r1', 'Algebra Quiz', 'file://a',
                                state=Submission.ASSIGNED, reviewer_id='t1',
                                created=datetime.now(UTC),
                                updated=datetime.now(UTC))
        data = json.loads(dumps(submission))
        self.assertEqual(data['__type__'], 'submission')
        self.assertEqual(data['state'], 'assigned')
        self.assertEqual(loads(dumps(submission)), submission)

    def test_event(self):
        """Events drop their before/after states, and keep their creator."""
        tutor = Actor('t1', Role.REVIEWER, full_name='Tara')
        before = Submission('s1', 'r1', 'Algebra Quiz', 'file://a',
                            created=datetime.now(UTC),
                            updated=datetime.now(UTC))
        event = ClaimSubmission(creator=tutor, submission_id='s1')
        event.apply(before)

        data = json.loads(dumps(event))
        self.assertNotIn('before', data)
        self.assertNotIn('after', data)

        loaded = loads(dumps(event))
        self.assertIsInstance(loaded, ClaimSubmission)
        self.assertEqual(loaded.creator, tutor)
        self.assertEqual(loaded.event_id, event.event_id)

    def test_change(self):
        """A :class:`.Change` keeps its timestamp as tz-aware."""
        change = Change('submission', 's1', 'updated')
        loaded = loads(dumps(change))
        self.assertIsInstance(loaded, Change)
        self.assertEqual(loaded.created, change.created)
        self.assertIsNotNone(loaded.created.tzinfo)
