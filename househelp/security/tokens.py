from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import jwt
from jwt import PyJWTError
from pydantic import ValidationError

from househelp import config
from househelp.errors import ConfigurationError, InvalidToken, MissingToken
from househelp.observability import log_structured
from househelp.schemas.base import USER_TYPES, VerifiedUser
from househelp.services.datastore import DatastoreClient, ensure_success

SESSION_TOKEN_PARAM = "session_token"
SUSPENDED_STATUS = "suspended"


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Dict[str, Any]:
    """Check signature and expiry locally; raises ``PyJWTError`` on any defect."""
    payload = jwt.decode(
        token,
        secret,
        algorithms=[algorithm],
        options={"require": ["exp"]},
    )
    user_id = payload.get("userId") or payload.get("sub")
    if not user_id:
        raise jwt.MissingRequiredClaimError("userId")
    if payload.get("userType") not in USER_TYPES:
        raise jwt.InvalidTokenError("unknown userType claim")
    payload["userId"] = str(user_id)
    return payload


def _first_row(body: Any) -> Optional[Dict[str, Any]]:
    if isinstance(body, list):
        return body[0] if body else None
    if isinstance(body, dict) and body:
        return body
    return None


class TokenVerifier:
    """Confirms a bearer token with the issuing authority on every call.

    Nothing is cached between calls, so a session deleted by logout stops
    authorizing on the very next request.
    """

    def __init__(
        self,
        datastore: Optional[DatastoreClient],
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        rpc_name: Optional[str] = None,
    ) -> None:
        self.datastore = datastore
        self.secret = config.JWT_SECRET if secret is None else secret
        self.algorithm = algorithm or config.JWT_ALGORITHM
        self.rpc_name = rpc_name or config.AUTH_VERIFY_RPC

    async def verify(self, token: str) -> VerifiedUser:
        if not token:
            raise MissingToken()
        if self.datastore is None:
            raise ConfigurationError("Missing data store configuration")
        if not self.secret:
            raise ConfigurationError("Token verification is not configured")
        try:
            claims = decode_token(token, self.secret, self.algorithm)
        except PyJWTError as exc:
            log_structured(logging.INFO, "token_rejected", reason=type(exc).__name__)
            raise InvalidToken() from exc

        response = await self.datastore.rpc(
            self.rpc_name, {SESSION_TOKEN_PARAM: token}, label="verify"
        )
        ensure_success(response, "verify")
        row = _first_row(response.json())
        if row is None:
            raise InvalidToken()
        if str(row.get("id", "")) != claims["userId"]:
            log_structured(logging.WARNING, "token_subject_mismatch", user_id=claims["userId"])
            raise InvalidToken()
        if row.get("status") == SUSPENDED_STATUS:
            raise InvalidToken("Account suspended")
        try:
            return VerifiedUser(
                id=claims["userId"],
                type=row.get("user_type") or claims["userType"],
                email=row.get("email") or claims.get("email"),
                name=row.get("name") or row.get("full_name"),
                phone=row.get("phone"),
            )
        except ValidationError as exc:
            raise InvalidToken() from exc
