"""Centralised error handling and custom exceptions.

The lifecycle services signal failures with the exceptions defined
here. Each exception carries an ``ErrorKind`` so the service boundary
can turn it into a failed deletion report, and a ``to_response``
method so the Flask app can serialise any that escape to a route.
"""
from __future__ import annotations

import enum

from flask import jsonify


class ErrorKind(enum.Enum):
    """Failure taxonomy reported by lifecycle operations."""
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    PERSISTENCE_FAILURE = "persistence_failure"
    INTERNAL_ERROR = "internal_error"


class LedgerError(Exception):
    """Base class for errors raised by the ledger services."""

    kind = ErrorKind.INTERNAL_ERROR
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self, status_code: int | None = None):
        response = {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }
        return jsonify(response), status_code or self.status_code


class NotFoundError(LedgerError):
    """Raised when a requested root entity cannot be found."""

    kind = ErrorKind.NOT_FOUND
    code = "NOT_FOUND"
    status_code = 404


class InvalidStateError(LedgerError):
    """Raised when an entity is not in the state an operation requires."""

    kind = ErrorKind.INVALID_STATE
    code = "INVALID_STATE"
    status_code = 409


class PersistenceError(LedgerError):
    """Raised when committing a cascade fails and the transaction is rolled back.

    ``conflict`` is set when the failure came from a concurrent change
    to the same rows rather than from the database being unavailable.
    """

    kind = ErrorKind.PERSISTENCE_FAILURE
    code = "PERSISTENCE_FAILURE"
    status_code = 500

    def __init__(self, message: str, conflict: bool = False) -> None:
        super().__init__(message)
        self.conflict = conflict
        if conflict:
            self.code = "CONFLICT"
            self.status_code = 409


def register_error_handlers(app) -> None:
    """Register custom error handlers on the given Flask app."""
    @app.errorhandler(LedgerError)
    def handle_ledger_error(err: LedgerError):
        return err.to_response()
