"""Core data structures for the paper review system."""

from .actor import Actor, Role, actor_factory
from .change import Change
from .event import event_factory, Event, CreateSubmission, ClaimSubmission, \
    DeclineSubmission, FinalizeSubmission
from .notification import Notification
from .submission import Submission
