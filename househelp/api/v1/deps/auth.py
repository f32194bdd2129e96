from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, Request

from househelp.errors import AuthenticationError, ConfigurationError
from househelp.observability import get_request_id, log_structured
from househelp.permissions import require_user_type
from househelp.schemas.base import CallerIdentity, VerifiedUser
from househelp.security.identity import client_ip, extract_identity
from househelp.security.tokens import TokenVerifier
from househelp.security_events import (
    AUTH_CLAIM_MISMATCH,
    AUTH_VERIFY_FAIL,
    build_actor,
    emit_event,
    sanitize_str,
)
from househelp.services.datastore import DatastoreClient


def get_optional_datastore(request: Request) -> Optional[DatastoreClient]:
    return getattr(request.app.state, "datastore", None)


def get_datastore(
    datastore: Optional[DatastoreClient] = Depends(get_optional_datastore),
) -> DatastoreClient:
    if datastore is None:
        raise ConfigurationError("Missing data store configuration")
    return datastore


def get_token_verifier(
    datastore: Optional[DatastoreClient] = Depends(get_optional_datastore),
) -> TokenVerifier:
    return TokenVerifier(datastore)


def get_caller_identity(request: Request) -> CallerIdentity:
    return extract_identity(request.headers, request.cookies)


def build_security_context(request: Request, identity: Optional[CallerIdentity] = None) -> Dict[str, Any]:
    return {
        "request_id": get_request_id(request),
        "actor": build_actor(
            identity.user_id if identity else "",
            identity.user_type if identity else "",
            identity.token if identity else "",
        ),
        "source": {
            "ip": sanitize_str(client_ip(request.headers)),
            "user_agent": sanitize_str(request.headers.get("user-agent", ""), 128),
        },
    }


def _check_claims(request: Request, identity: CallerIdentity, user: VerifiedUser) -> None:
    claimed = (identity.user_id, identity.user_type)
    if not any(claimed):
        return
    if identity.user_id in ("", user.id) and identity.user_type in ("", user.type):
        return
    emit_event(
        AUTH_CLAIM_MISMATCH,
        context=build_security_context(request, identity),
        resource=request.url.path,
        meta={"verified_user_id": user.id, "verified_user_type": user.type},
    )


async def authenticate(
    request: Request,
    identity: CallerIdentity,
    verifier: TokenVerifier,
) -> VerifiedUser:
    try:
        user = await verifier.verify(identity.token)
    except AuthenticationError as exc:
        emit_event(
            AUTH_VERIFY_FAIL,
            context=build_security_context(request, identity),
            resource=request.url.path,
            meta={"reason": type(exc).__name__},
        )
        raise
    _check_claims(request, identity, user)
    request.state.user = user
    log_structured(logging.DEBUG, "auth_verified", user_id=user.id, user_type=user.type)
    return user


async def get_verified_user(
    request: Request,
    identity: CallerIdentity = Depends(get_caller_identity),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> VerifiedUser:
    return await authenticate(request, identity, verifier)


def require_type(required_type: Optional[str]) -> Callable[..., Any]:
    """Dependency factory: verified user whose type exactly equals ``required_type``."""

    async def dependency(
        request: Request,
        identity: CallerIdentity = Depends(get_caller_identity),
        user: VerifiedUser = Depends(get_verified_user),
    ) -> VerifiedUser:
        return require_user_type(
            user,
            required_type,
            ctx=build_security_context(request, identity),
            resource=request.url.path,
        )

    return dependency
