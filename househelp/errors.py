from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

INTERNAL_ERROR_MESSAGE = "Internal server error"


class GatewayError(Exception):
    """Base for every failure the gateway turns into an ``{"error": ...}`` body."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class AuthenticationError(GatewayError):
    status_code = 401


class MissingIdentity(AuthenticationError):
    pass


class MissingToken(MissingIdentity):
    def __init__(self, message: str = "No token provided") -> None:
        super().__init__(message)


class InvalidToken(AuthenticationError):
    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


VerificationFailed = InvalidToken


class WrongRole(GatewayError):
    status_code = 403

    def __init__(self, required_type: str) -> None:
        super().__init__(f"Access restricted to {required_type}s")
        self.required_type = required_type


class UpstreamFailure(GatewayError):
    status_code = 502

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message, status_code)


class UpstreamUnavailable(UpstreamFailure):
    """Timeout or transport error; never a statement about the token itself."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 502)


class ValidationFailure(GatewayError):
    status_code = 400


class ConfigurationError(GatewayError):
    status_code = 500


def make_error_payload(message: str, **extra: Any) -> Dict[str, Any]:
    return {"error": message, **extra}


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=make_error_payload(message, **extra))


def ok_payload(**payload: Any) -> Dict[str, Any]:
    return {"ok": True, **payload}


def internal_error_payload(exc: BaseException, include_details: bool) -> Dict[str, Any]:
    if include_details:
        return make_error_payload(INTERNAL_ERROR_MESSAGE, details=str(exc)[:200])
    return make_error_payload(INTERNAL_ERROR_MESSAGE)


def format_validation_details(exc: RequestValidationError) -> List[Dict[str, Any]]:
    formatted: List[Dict[str, Any]] = []
    for err in exc.errors():
        formatted.append(
            {
                "loc": err.get("loc"),
                "msg": err.get("msg"),
                "type": err.get("type"),
            }
        )
    return formatted
