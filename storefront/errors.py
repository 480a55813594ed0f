"""Domain errors and small parsing and rounding helpers shared by the services."""

from __future__ import annotations

import enum
import math
import uuid
from http import HTTPStatus


class ErrorKind(enum.Enum):
    """Category of a domain error, as reported to clients."""

    VALIDATION = "validation_error"
    NOT_FOUND = "not_found_error"
    CONFLICT = "conflict_error"
    UNAUTHORIZED = "unauthorized_error"
    INTERNAL = "internal_error"


class DomainError(Exception):
    """An error carrying the HTTP status and kind a client should see."""

    def __init__(self, status, kind, message, cause=None):
        super().__init__(message)
        self.status = int(status)
        self.kind = kind
        self.message = message
        self.cause = cause

    def __str__(self):
        return self.message

    def __repr__(self):
        return f"{type(self).__name__}(status={self.status}, kind={self.kind.name}, message={self.message!r})"


class NotFoundError(DomainError):
    """A requested record does not exist."""

    def __init__(self, message="resource not found", cause=None):
        super().__init__(HTTPStatus.NOT_FOUND, ErrorKind.NOT_FOUND, message, cause)


class ConflictError(DomainError):
    """A record clashes with one that already exists."""

    def __init__(self, message="resource already exists", cause=None):
        super().__init__(HTTPStatus.CONFLICT, ErrorKind.CONFLICT, message, cause)


def internal_error(cause):
    """Wrap an unexpected failure as a 500 domain error."""
    return DomainError(HTTPStatus.INTERNAL_SERVER_ERROR, ErrorKind.INTERNAL, "internal server error", cause)


def validation_error(message):
    """Build a 400 validation error with the given message."""
    return DomainError(HTTPStatus.BAD_REQUEST, ErrorKind.VALIDATION, message)


def parse_uuid(value, label):
    """Parse ``value`` as a UUID, raising a validation error naming ``label``."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except (ValueError, TypeError, AttributeError) as exc:
        raise DomainError(HTTPStatus.BAD_REQUEST, ErrorKind.VALIDATION, f"invalid {label}", exc) from exc


def round2(value):
    """Round to two decimals, halves away from zero."""
    scaled = value * 100
    whole = math.trunc(scaled)
    if abs(scaled - whole) >= 0.5:
        whole += math.copysign(1, scaled)
    return whole / 100