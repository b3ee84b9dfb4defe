"""
Exceptions raised by the deck engine.
"""


class DeckError(Exception):
    """Base exception for all deck engine errors."""
    pass


class NotFoundError(DeckError):
    """Raised when a card or an active session does not exist."""
    pass


class AlreadyExistsError(DeckError):
    """Raised when a catalog entry is already in the deck."""
    pass


class InvalidStateError(DeckError):
    """Raised when an operation is called out of turn or would break an invariant."""
    pass


class PersistenceError(DeckError):
    """Raised when the underlying store fails; the transaction was rolled back."""
    pass
