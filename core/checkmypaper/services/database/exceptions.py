"""Exceptions raised by :mod:`checkmypaper.services.database`."""


class DatabaseBaseException(RuntimeError):
    """Base for database service exceptions."""


class NoSuchSubmission(DatabaseBaseException):
    """A request was made for a submission that does not exist."""


class NoSuchNotification(DatabaseBaseException):
    """A request was made for a notification that does not exist."""


class TransactionFailed(DatabaseBaseException):
    """Raised when there was a problem committing changes to the database."""


class Unavailable(DatabaseBaseException):
    """The database is not available."""


class StaleState(DatabaseBaseException):
    """
    The stored submission no longer matches the state that was read.

    Raised when a conditional write affects no rows, i.e. another writer
    changed the submission after it was read.
    """
