"""Error kinds and the explicit outcome type returned by service functions."""
import enum
from dataclasses import dataclass
from typing import Any, Optional

from flask import jsonify


class ErrorKind(enum.Enum):
    VALIDATION = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    INTERNAL = 500

    @property
    def status_code(self) -> int:
        return self.value


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class Outcome:
    value: Any = None
    error: Optional[ServiceError] = None

    @classmethod
    def ok(cls, value=None) -> "Outcome":
        return cls(value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "Outcome":
        return cls(error=ServiceError(kind, message))

    @property
    def failed(self) -> bool:
        return self.error is not None


INTERNAL_ERROR = ServiceError(ErrorKind.INTERNAL, "Internal Server Error")


def error_response(error: ServiceError, headers=None):
    return jsonify({"message": error.message}), error.kind.status_code, headers or {}


def register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(e):
        return error_response(ServiceError(ErrorKind.NOT_FOUND, "Not Found"))

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"message": "Method Not Allowed"}), 405

    @app.errorhandler(500)
    def internal_error(e):
        return error_response(INTERNAL_ERROR)
