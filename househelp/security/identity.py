from __future__ import annotations

from typing import Mapping, Optional

from househelp.schemas.base import USER_TYPES, CallerIdentity

AUTHORIZATION_HEADER = "authorization"
TOKEN_HEADER = "x-auth-token"
USER_ID_HEADER = "x-user-id"
USER_TYPE_HEADER = "x-user-type"
TOKEN_COOKIE = "hh-token"


def _lowered(headers: Mapping[str, str]) -> dict[str, str]:
    return {key.lower(): value for key, value in headers.items()}


def bearer_token(value: Optional[str]) -> str:
    if not value:
        return ""
    scheme, _, token = value.strip().partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def extract_identity(
    headers: Mapping[str, str],
    cookies: Optional[Mapping[str, str]] = None,
) -> CallerIdentity:
    """Pull the raw token and the claimed caller fields out of request headers.

    Never raises and never decodes the token. Missing values come back as
    empty strings. The claimed ``user_id``/``user_type`` are informational only;
    authorization decisions use the verified user.
    """
    lowered = _lowered(headers)
    token = bearer_token(lowered.get(AUTHORIZATION_HEADER))
    if not token:
        token = lowered.get(TOKEN_HEADER, "").strip()
    if not token and cookies:
        token = (cookies.get(TOKEN_COOKIE) or "").strip()
    user_type = lowered.get(USER_TYPE_HEADER, "").strip().lower()
    if user_type not in USER_TYPES:
        user_type = ""
    return CallerIdentity(
        user_id=lowered.get(USER_ID_HEADER, "").strip(),
        user_type=user_type,
        token=token,
    )


def client_ip(headers: Mapping[str, str]) -> str:
    lowered = _lowered(headers)
    forwarded = lowered.get("x-forwarded-for", "")
    if forwarded.strip():
        return forwarded.split(",")[0].strip()
    real_ip = lowered.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip
    return "unknown"
