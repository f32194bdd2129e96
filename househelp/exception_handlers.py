from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from househelp import config
from househelp.errors import (
    GatewayError,
    error_response,
    format_validation_details,
    internal_error_payload,
)
from househelp.observability import log_structured

logger = logging.getLogger("househelp")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(GatewayError)  # type: ignore[misc]
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        if exc.status_code >= 500:
            log_structured(
                logging.ERROR,
                "gateway_error",
                message=exc.message,
                path=request.url.path,
                status_code=exc.status_code,
                error_type=type(exc).__name__,
            )
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)  # type: ignore[misc]
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(400, "Invalid request", details=format_validation_details(exc))

    @app.exception_handler(HTTPException)  # type: ignore[misc]
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        return error_response(exc.status_code, message)

    @app.exception_handler(Exception)  # type: ignore[misc]
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unexpected error during request handling", exc_info=exc)
        payload = internal_error_payload(exc, include_details=not config.is_prod())
        return JSONResponse(status_code=500, content=payload)
