# movieapi/core/errors.py
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """
    Failure categories carried from the session layer to the HTTP boundary.

    The status code lives on the kind so routes never branch on message text.
    CONFLICT is reported as 500: duplicate registration has always surfaced
    that way to API clients.
    """

    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL = "INTERNAL_ERROR"

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 500,
    ErrorKind.INTERNAL: 500,
}

_KIND_BY_STATUS: dict[int, ErrorKind] = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    405: ErrorKind.BAD_REQUEST,
    409: ErrorKind.CONFLICT,
    422: ErrorKind.BAD_REQUEST,
}


def kind_for_status(status_code: int) -> ErrorKind:
    return _KIND_BY_STATUS.get(int(status_code), ErrorKind.INTERNAL)


class AuthError(Exception):
    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def to_payload(self) -> dict:
        return {"error": True, "code": self.kind.value, "message": self.message}

    @classmethod
    def bad_request(cls, message: str) -> "AuthError":
        return cls(ErrorKind.BAD_REQUEST, message)

    @classmethod
    def unauthorized(cls, message: str) -> "AuthError":
        return cls(ErrorKind.UNAUTHORIZED, message)

    @classmethod
    def forbidden(cls, message: str = "Forbidden") -> "AuthError":
        return cls(ErrorKind.FORBIDDEN, message)

    @classmethod
    def not_found(cls, message: str = "User not found") -> "AuthError":
        return cls(ErrorKind.NOT_FOUND, message)

    @classmethod
    def conflict(cls, message: str) -> "AuthError":
        return cls(ErrorKind.CONFLICT, message)

    @classmethod
    def internal(cls, message: str) -> "AuthError":
        return cls(ErrorKind.INTERNAL, message)
