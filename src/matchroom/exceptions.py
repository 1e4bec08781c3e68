"""Exceptions for use in matchroom."""


# ========== Base Application Exception ==========


class MatchroomError(Exception):
    """Base exception for all matchroom errors.

    All custom exceptions in the application inherit from this class so that
    callers can catch every application-specific error with one except clause.
    """

    pass


# ========== Operation Exceptions ==========


class ValidationError(MatchroomError):
    """Raised for bad input: scores, roster size, 2v2 parity."""

    pass


class NotFoundError(MatchroomError):
    """Raised when a match, tournament, room or player does not exist.

    Also raised when a result is submitted for a match that is already completed.
    """

    pass


class ConflictError(MatchroomError):
    """Raised when a round has already been generated for a tournament."""

    pass


class PersistenceError(MatchroomError):
    """Raised when the underlying store fails a read or write."""

    pass


# ========== Configuration Exceptions ==========


class ConfigError(MatchroomError):
    """Configuration validation error."""

    pass
