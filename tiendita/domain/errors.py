"""Error taxonomy shared by the security, persistence and service layers."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Tags carried by rejected service results."""

    validation_error = "validation_error"
    missing_credentials = "missing_credentials"
    invalid_credentials = "invalid_credentials"
    not_found = "not_found"
    persistence_error = "persistence_error"


class InvalidInputError(ValueError):
    """Raised when a secret handed to the credential hasher is malformed."""


class PersistenceError(RuntimeError):
    """Raised by repositories when the relational store fails."""


class TokenError(ValueError):
    """Base class for session token verification failures."""


class TokenExpiredError(TokenError):
    pass


class TokenInvalidError(TokenError):
    pass
