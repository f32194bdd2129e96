from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from househelp.errors import WrongRole
from househelp.schemas.base import VerifiedUser
from househelp.security_events import AUTHZ_DENY, build_actor, emit_event

USER_HOUSEHOLD = "household"
USER_WORKER = "worker"
USER_ADMIN = "admin"


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


def authorize(user: VerifiedUser, required_type: Optional[str] = None) -> Decision:
    # Exact match only: admin does not inherit worker or household routes.
    if required_type is None:
        return Decision.ALLOW
    if user.type == required_type:
        return Decision.ALLOW
    return Decision.DENY


def require_user_type(
    user: VerifiedUser,
    required_type: Optional[str],
    ctx: Optional[Dict[str, Any]] = None,
    resource: str = "",
) -> VerifiedUser:
    if authorize(user, required_type) is Decision.ALLOW:
        return user
    emit_event(
        AUTHZ_DENY,
        context=ctx,
        actor=build_actor(user.id, user.type),
        resource=resource,
        meta={"required_type": required_type or ""},
    )
    raise WrongRole(required_type or "")
