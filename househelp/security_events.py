import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from househelp.security_log_writer import write_security_log

REDACTED_KEY_TERMS = ("authorization", "cookie", "token", "password", "secret", "apikey")
HASHED_KEY_TERMS = ("email", "phone")

AUTH_VERIFY_FAIL = "AUTH_VERIFY_FAIL"
AUTHZ_DENY = "AUTHZ_DENY"
AUTH_LOGOUT = "AUTH_LOGOUT"
AUTH_CLAIM_MISMATCH = "AUTH_CLAIM_MISMATCH"

EVENT_SEVERITY = {
    AUTH_VERIFY_FAIL: "LOW",
    AUTHZ_DENY: "MEDIUM",
    AUTH_CLAIM_MISMATCH: "MEDIUM",
    AUTH_LOGOUT: "INFO",
}


def sanitize_str(value: Optional[str], max_len: int = 256) -> str:
    if value is None:
        return ""
    s = str(value).replace("\r", " ").replace("\n", " ").strip()
    return s[:max_len]


def safe_hash(value: Optional[str]) -> str:
    if not value:
        return ""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def _scrub(values: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    scrubbed: Dict[str, Any] = {}
    for raw_key, value in (values or {}).items():
        key = sanitize_str(str(raw_key), 64)
        lower_key = key.lower()
        if not isinstance(value, str):
            scrubbed[key] = value
        elif any(term in lower_key for term in REDACTED_KEY_TERMS):
            scrubbed[key] = "REDACTED"
        elif any(term in lower_key for term in HASHED_KEY_TERMS):
            scrubbed[key] = safe_hash(value)
        else:
            scrubbed[key] = sanitize_str(value)
    return scrubbed


def build_actor(user_id: Optional[str], user_type: Optional[str], token: Optional[str] = None) -> Dict[str, str]:
    # session_hash is the only form in which a token reaches the log.
    return {
        "user_id": sanitize_str(user_id),
        "user_type": sanitize_str(user_type),
        "session_hash": safe_hash(token),
    }


def emit_event(
    event: str,
    *,
    outcome: str = "FAIL",
    context: Optional[Mapping[str, Any]] = None,
    actor: Optional[Mapping[str, Any]] = None,
    resource: Optional[str] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Write one security event as a JSON line and return what was written.

    ``context`` carries ``request_id``, ``actor`` and ``source`` as built per
    request; an explicit ``actor`` replaces the one in ``context``.
    """
    context = context or {}
    payload = {
        "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "event": sanitize_str(event),
        "severity": EVENT_SEVERITY.get(event, "INFO"),
        "request_id": sanitize_str(context.get("request_id")),
        "actor": _scrub(actor if actor is not None else context.get("actor")),
        "source": _scrub(context.get("source")),
        "target": {"resource": sanitize_str(resource)} if resource else {},
        "outcome": sanitize_str(outcome),
        "meta": _scrub(meta),
    }
    write_security_log(json.dumps(payload, ensure_ascii=True, separators=(",", ":")))
    return payload
