"""
Exceptions raised by the domain, service and persistence layers.

Everything derives from GameError, so callers (UI / API layer) can catch a single base type
and decide how to present the error. The subclasses tell apart recoverable user errors
(illegal move, wrong turn, ...) from backend failures.
"""


class GameError(Exception):
    """Base class for all errors raised by this package."""


# --- Validation errors: raised before any call to the store, no state change ---
class IllegalMoveError(GameError):
    """The rules engine refused the move."""


class NotYourTurnError(GameError):
    """The acting user does not own the seat of the side to move."""


class GameStateError(GameError):
    """The operation is not allowed in the current game status (e.g. moving after checkmate)."""


class AlreadyClaimedError(GameError):
    """The requested seat is already occupied."""


class NotAuthenticatedError(GameError):
    """The operation requires a logged in user."""


class MovePendingError(GameError):
    """A move by this client is still being written to the store."""


class InvalidRequestError(GameError):
    """Malformed input (square names, promotion piece, colour)."""


# --- Rules engine adapter ---
class InvalidFENError(GameError):
    """Position string could not be interpreted."""


class ReplayError(GameError):
    """The move log could not be replayed. Recovered from by loading the position instead."""


# --- Persistence ---
class RepositoryError(GameError):
    """Record could not be found or written."""


class StoreUnavailableError(RepositoryError):
    """Backend / network failure while talking to the record store. Transient."""


class HistoryWriteError(StoreUnavailableError):
    """A history record could not be written. Never undoes the game-ending move."""
