import contextvars
import json
import logging
import re
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Request

from househelp import config
from househelp.security.identity import client_ip
from househelp.security_events import sanitize_str

SERVICE_LOGGER_NAME = "househelp"

REQUEST_ID_CTX: contextvars.ContextVar[str] = contextvars.ContextVar("househelp_request_id", default="")
REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")

SENSITIVE_KEY_TERMS = ("password", "token", "authorization", "apikey", "secret", "cookie")
REDACTED = "<redacted>"


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def iso_utc(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def days_ago_iso(days: int, now: Optional[datetime] = None) -> str:
    """Lower bound of a ``fromDays`` window; negative days point into the future."""
    return iso_utc((now or now_utc()) - timedelta(days=days))


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return any(term in lowered for term in SENSITIVE_KEY_TERMS)


def sanitize_payload(payload: Any) -> Any:
    if isinstance(payload, dict):
        return {
            key: REDACTED if _is_sensitive(str(key)) else sanitize_payload(value)
            for key, value in payload.items()
        }
    if isinstance(payload, list):
        return [sanitize_payload(item) for item in payload]
    return payload


class StructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": iso_utc(now_utc()),
            "level": record.levelname,
            "logger": record.name,
            "env": config.APP_ENV,
        }
        request_id = REQUEST_ID_CTX.get()
        if request_id:
            entry["request_id"] = request_id
        entry.update(getattr(record, "structured", None) or {"event": record.getMessage()})
        if record.exc_info and record.exc_info[0] is not None:
            entry["error_type"] = record.exc_info[0].__name__
        return json.dumps(entry, ensure_ascii=True, default=str)


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(SERVICE_LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def log_structured(level: int, event: str, **fields: Any) -> None:
    logging.getLogger(SERVICE_LOGGER_NAME).log(level, event, extra={"structured": {"event": event, **fields}})


def resolve_request_id(inbound: Optional[str]) -> str:
    # Caller-supplied ids are echoed only when they are short and log-safe.
    if inbound and REQUEST_ID_PATTERN.match(inbound):
        return inbound
    return str(uuid.uuid4())


def get_request_id(request: Request) -> str:
    rid = getattr(request.state, "request_id", "") or REQUEST_ID_CTX.get()
    return sanitize_str(rid, 64)


def status_level(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


async def request_context_middleware(request: Request, call_next):
    """Bind a request id for the duration of the request and log one summary line."""
    request_id = resolve_request_id(request.headers.get("X-Request-Id"))
    request.state.request_id = request_id
    ctx_token = REQUEST_ID_CTX.set(request_id)
    started = time.perf_counter()
    status_code = 500
    error_type: Optional[str] = None
    try:
        response = await call_next(request)
    except Exception as exc:
        error_type = type(exc).__name__
        raise
    else:
        status_code = response.status_code
        response.headers["X-Request-Id"] = request_id
        return response
    finally:
        user = getattr(request.state, "user", None)
        fields: Dict[str, Any] = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
            "client_ip": client_ip(request.headers),
            "user_id": getattr(user, "id", None),
        }
        if error_type:
            fields["error_type"] = error_type
        log_structured(status_level(status_code), "request", **fields)
        REQUEST_ID_CTX.reset(ctx_token)
