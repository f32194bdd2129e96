from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Dict, Set, Union

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from househelp import config
from househelp.api.v1.deps.auth import (
    authenticate,
    build_security_context,
    get_caller_identity,
    get_datastore,
    get_token_verifier,
    get_verified_user,
)
from househelp.errors import (
    INTERNAL_ERROR_MESSAGE,
    GatewayError,
    error_response,
)
from househelp.observability import log_structured
from househelp.schemas.base import CallerIdentity, VerifiedUser
from househelp.security.identity import client_ip
from househelp.security.tokens import TokenVerifier
from househelp.security_events import AUTH_LOGOUT, build_actor, emit_event
from househelp.services.audit import AuditLogger, build_audit_event
from househelp.services.datastore import DatastoreClient
from househelp.services.sessions import SessionStore

router = APIRouter()

logger = logging.getLogger("househelp")


@router.get("/verify", response_model=None)
async def verify(
    request: Request,
    identity: CallerIdentity = Depends(get_caller_identity),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Union[Dict[str, Any], JSONResponse]:
    try:
        user = await authenticate(request, identity, verifier)
    except GatewayError as exc:
        if exc.status_code >= 500:
            log_structured(logging.ERROR, "verify_failed", message=exc.message, status_code=exc.status_code)
        return error_response(exc.status_code, exc.message, authenticated=False)
    except Exception:  # noqa: BLE001
        logger.exception("Token verification error")
        return error_response(500, INTERNAL_ERROR_MESSAGE, authenticated=False)
    return {
        "success": True,
        "authenticated": True,
        "user": user.model_dump(),
    }


# The event loop only keeps weak references to tasks; stragglers live here
# until they finish.
_PENDING_SIDE_EFFECTS: Set["asyncio.Task[Any]"] = set()


def _side_effect_done(task: "asyncio.Task[Any]") -> None:
    _PENDING_SIDE_EFFECTS.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log_structured(logging.WARNING, "logout_side_effect_failed", error_type=type(exc).__name__)


async def _join_side_effects(*side_effects: Awaitable[Any]) -> None:
    # Each side effect guards its own failures; this only bounds how long the
    # response waits for them. Stragglers keep running in the background.
    tasks = [asyncio.ensure_future(effect) for effect in side_effects]
    for task in tasks:
        _PENDING_SIDE_EFFECTS.add(task)
        task.add_done_callback(_side_effect_done)
    _, pending = await asyncio.wait(tasks, timeout=config.SIDE_EFFECT_WAIT_SECONDS)
    if pending:
        log_structured(
            logging.WARNING,
            "logout_side_effects_pending",
            pending=len(pending),
            wait_seconds=config.SIDE_EFFECT_WAIT_SECONDS,
        )


@router.post("/logout")
async def logout(
    request: Request,
    identity: CallerIdentity = Depends(get_caller_identity),
    user: VerifiedUser = Depends(get_verified_user),
    datastore: DatastoreClient = Depends(get_datastore),
) -> Dict[str, Any]:
    event = build_audit_event(
        user_id=user.id,
        user_type=user.type,
        action="logout",
        entity_type="auth",
        ip_address=client_ip(request.headers),
    )
    await _join_side_effects(
        SessionStore(datastore).invalidate(identity.token),
        AuditLogger(datastore).record(event),
    )
    emit_event(
        AUTH_LOGOUT,
        outcome="SUCCESS",
        context=build_security_context(request, identity),
        actor=build_actor(user.id, user.type, identity.token),
        resource="session",
    )
    return {"success": True, "message": "Logged out successfully"}
