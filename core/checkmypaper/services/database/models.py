"""SQLAlchemy ORM classes for the review database."""

from typing import Any, Dict

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, \
    String, Text
from sqlalchemy.orm import declarative_base

from ... import config, domain
from ...domain.util import to_utc
from .util import to_naive_utc

Base = declarative_base()


class Submission(Base):    # type: ignore
    """A submitted document and its place in the review lifecycle."""

    __tablename__ = 'submission'

    submission_id = Column(String(36), primary_key=True)
    requester_id = Column(String(36), nullable=False, index=True)
    reviewer_id = Column(String(36), index=True)
    title = Column(String(config.TITLE_MAX_LENGTH), nullable=False)
    original_locator = Column(Text, nullable=False)
    reference_locator = Column(Text)
    checked_locator = Column(Text)
    state = Column(String(16), nullable=False, index=True,
                   default=domain.Submission.SUBMITTED.value)
    score = Column(Integer)
    grade = Column(String(16))
    feedback = Column(Text)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    @staticmethod
    def values_from(submission: domain.Submission) -> Dict[str, Any]:
        """Get column values for a :class:`.domain.Submission`."""
        return {
            'submission_id': submission.submission_id,
            'requester_id': submission.requester_id,
            'reviewer_id': submission.reviewer_id,
            'title': submission.title,
            'original_locator': submission.original_locator,
            'reference_locator': submission.reference_locator,
            'checked_locator': submission.checked_locator,
            'state': submission.state.value,
            'score': submission.score,
            'grade': submission.grade,
            'feedback': submission.feedback,
            'created_at': to_naive_utc(submission.created),
            'updated_at': to_naive_utc(submission.updated),
        }

    def to_submission(self) -> domain.Submission:
        """Generate a :class:`.domain.Submission` from this row."""
        return domain.Submission(
            submission_id=self.submission_id,
            requester_id=self.requester_id,
            reviewer_id=self.reviewer_id,
            title=self.title,
            original_locator=self.original_locator,
            reference_locator=self.reference_locator,
            checked_locator=self.checked_locator,
            state=domain.Submission.State(self.state),
            score=self.score,
            grade=self.grade,
            feedback=self.feedback,
            created=to_utc(self.created_at),
            updated=to_utc(self.updated_at)
        )


class Notification(Base):    # type: ignore
    """A message in an actor's inbox."""

    __tablename__ = 'notification'

    notification_id = Column(String(36), primary_key=True)
    target_id = Column(String(36), nullable=False, index=True)
    submission_id = Column(ForeignKey('submission.submission_id'),
                           index=True)
    message = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, nullable=False)

    @classmethod
    def from_notification(cls, notification: domain.Notification) \
            -> 'Notification':
        """Generate a row from a :class:`.domain.Notification`."""
        return cls(
            notification_id=notification.notification_id,
            target_id=notification.target_id,
            submission_id=notification.submission_id,
            message=notification.message,
            read=notification.read,
            created_at=to_naive_utc(notification.created)
        )

    def to_notification(self) -> domain.Notification:
        """Generate a :class:`.domain.Notification` from this row."""
        return domain.Notification(
            notification_id=self.notification_id,
            target_id=self.target_id,
            submission_id=self.submission_id,
            message=self.message,
            read=bool(self.read),
            created=to_utc(self.created_at)
        )
