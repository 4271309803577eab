"""Exceptions raised by review operations."""

from typing import TypeVar

EventType = TypeVar('EventType')


class InvalidEvent(ValueError):
    """Raised when an event cannot be applied to a submission."""

    def __init__(self, event: EventType, message: str = '') -> None:
        """Use the :class:`.Event` to build an error message."""
        self.event = event
        self.message = message
        r = f"Invalid {event.event_type}: {message}"  # type: ignore
        super(InvalidEvent, self).__init__(r)


class ValidationError(InvalidEvent):
    """Event data are malformed; the caller may correct and resubmit."""


class InvalidTransition(InvalidEvent):
    """The submission is not in a state that allows the operation."""


class AlreadyAssigned(InvalidEvent):
    """The submission was claimed by a reviewer before this claim landed."""


class Forbidden(Exception):
    """The actor is not allowed to perform the operation."""


class NotFound(Exception):
    """An operation was performed on/for an entity that does not exist."""


class NoSuchSubmission(NotFound):
    """An operation was performed on/for a submission that does not exist."""


class NoSuchNotification(NotFound):
    """An operation was performed on/for a notification that does not exist."""


class StoreUnavailable(RuntimeError):
    """The persistent store could not complete the operation; retry later."""


class ArtifactStoreError(RuntimeError):
    """The artifact store could not complete the operation; retry later."""
