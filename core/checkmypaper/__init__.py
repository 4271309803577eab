"""
Core of the CheckMyPaper review system.

A requester uploads a document (a "paper") to be checked. A reviewer claims
it, annotates it, and returns it with a score, a grade, and some feedback.
Or declines to check it at all. This package implements that lifecycle, and
makes sure that it cannot go wrong in the ways that matter:

- Only one reviewer can ever hold a submission. Claims that race each other
  are settled by a conditional write in the store (see :mod:`.assignment`).
- Submissions only move forward: ``submitted -> assigned -> finalized``, or
  ``submitted -> declined``.
- Every accepted transition is recorded as an event, in the same transaction
  as the new state, and produces at most one notification for the requester.

Overview
========

Transitions are represented as commands/events, defined in
:mod:`.domain.event`. Each event type defines the data that it needs, and
has ``validate`` and ``project`` methods that implement its logic. Events
operate on :class:`.domain.submission.Submission` instances.

The operations in :mod:`.core` and :mod:`.assignment` load the current state
of a submission, apply an event, check the access policy in
:mod:`.authorization`, and store the result. Once the result is committed,
:mod:`.notifications` delivers the notification for the transition and a
:class:`.domain.Change` is put on the change feed.

.. code-block:: python

   from checkmypaper import create_submission, claim, finalize, Actor, Role

   learner = Actor('r1', Role.REQUESTER, full_name='Ravi')
   tutor = Actor('t1', Role.REVIEWER, full_name='Tara')
   submission = create_submission(learner, 'Algebra Quiz', pdf_bytes)
   claim(submission.submission_id, tutor)
   finalize(submission.submission_id, tutor, checked_bytes, 85, 'A')


Watch out for :class:`.exceptions.InvalidEvent` (and its subclasses) to catch
problems with the state of the submission or with the data passed in, and
:class:`.exceptions.Forbidden` for access control violations.
"""

from flask import Flask

from . import config
from .assignment import claim
from .core import create_submission, decline, finalize, load, load_history, \
    get_artifact, list_visible_submissions, summarize, list_notifications, \
    count_unread_notifications, mark_notification_read
from .domain import Actor, Role, Submission, Notification, Change, Event
from .services.stream import StreamSubscriber
from . import core


def init_app(app: Flask) -> None:
    """
    Configure a Flask app to use this package.

    Parameters from :mod:`.config` are used for anything that the app does not
    already set.
    """
    for key in dir(config):
        if key.isupper():
            app.config.setdefault(key, getattr(config, key))
    core.init_app(app)
