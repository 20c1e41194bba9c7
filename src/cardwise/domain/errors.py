"""
Domain errors.

Every error here is local and recoverable by the caller: none of them leave
scheduler state half-mutated.
"""

from typing import Any


class CardwiseError(Exception):
    """Base class for all cardwise errors."""


class NoCardsAvailable(CardwiseError):
    """A session was requested with an empty queue."""

    def __init__(self, message: str = "No cards are due or new right now."):
        super().__init__(message)


class SessionAlreadyActive(CardwiseError):
    """The profile already has an active session; resume or abandon it first."""

    def __init__(self, session: Any):
        self.session = session
        super().__init__(
            f"Session {session.id} is already active for profile '{session.profile_id}'."
        )


class SessionNotFound(CardwiseError):
    pass


class SessionContractError(CardwiseError):
    """A session operation was called out of order."""


class SessionNotActive(SessionContractError):
    pass


class OutOfOrderReview(SessionContractError):
    pass


class QueueNotExhausted(SessionContractError):
    pass


class StorageError(CardwiseError):
    """A storage adapter could not read or write its backing file."""
