# mazao/errors.py
from __future__ import annotations

import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from flask import current_app, jsonify
from pymongo.errors import DuplicateKeyError, PyMongoError
from werkzeug.exceptions import HTTPException

T = TypeVar("T")


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "Unauthenticated"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    INVALID_INPUT = "InvalidInput"
    CONFLICT = "Conflict"
    INTERNAL = "Internal"


# Single source of truth for kind -> HTTP status.
STATUS_BY_KIND = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.CONFLICT: 400,
    ErrorKind.INTERNAL: 500,
}


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    detail: str

    @property
    def status(self) -> int:
        return STATUS_BY_KIND[self.kind]


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a service call: either a value or a Failure.
    Business-rule failures travel as values; exceptions are left for
    genuinely unexpected conditions.
    """

    value: Optional[T] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, detail: str) -> "Result[T]":
        return cls(failure=Failure(kind, detail))


# -------------------------------------------------------------------
# HTTP boundary
# -------------------------------------------------------------------
def error_response(kind: ErrorKind, message: str, stack: Optional[str] = None):
    body: dict[str, Any] = {"success": False, "message": message}
    if stack and not _is_production():
        body["stack"] = stack
    return jsonify(body), STATUS_BY_KIND[kind]


def respond(result: Result, status: int = 200, message: Optional[str] = None):
    """Translate a service Result into the {success, data?, message?} envelope."""
    if not result.ok:
        return error_response(result.failure.kind, result.failure.detail)

    body: dict[str, Any] = {"success": True}
    if result.value is not None:
        body["data"] = result.value
    if message:
        body["message"] = message
    return jsonify(body), status


def _is_production() -> bool:
    return current_app.config.get("APP_ENV") == "production"


def register_error_handlers(app):
    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        if e.code == 404:
            return error_response(ErrorKind.NOT_FOUND, "API endpoint not found")
        body = {"success": False, "message": e.description or e.name}
        return jsonify(body), e.code

    @app.errorhandler(DuplicateKeyError)
    def _duplicate_key(e: DuplicateKeyError):
        app.logger.warning("duplicate key: %s", e.details)
        return error_response(ErrorKind.CONFLICT, "A unique field constraint was violated")

    @app.errorhandler(PyMongoError)
    def _store_error(e: PyMongoError):
        app.logger.exception("store error")
        return error_response(
            ErrorKind.INTERNAL, "Database error", stack=traceback.format_exc()
        )

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        app.logger.exception("unhandled error")
        return error_response(
            ErrorKind.INTERNAL, str(e) or "Server error", stack=traceback.format_exc()
        )
