import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field

from househelp.api.v1.deps.auth import get_caller_identity
from househelp.observability import get_request_id, log_structured, sanitize_payload
from househelp.schemas.base import CallerIdentity
from househelp.security.identity import client_ip

router = APIRouter()

MAX_STACK_CHARS = 4000


class ClientErrorReport(BaseModel):
    """What a front-end error boundary sends when a page crashes."""

    model_config = ConfigDict(extra="ignore")

    message: str = Field(..., min_length=1, max_length=2000)
    name: Optional[str] = Field(default=None, max_length=200)
    page: Optional[str] = Field(default=None, max_length=500)
    component_stack: Optional[str] = Field(default=None, alias="componentStack")
    stack: Optional[str] = None
    context: Optional[Dict[str, Any]] = None


@router.post("/error-report", status_code=202)
def report_client_error(
    report: ClientErrorReport,
    request: Request,
    identity: CallerIdentity = Depends(get_caller_identity),
) -> Dict[str, str]:
    data = report.model_dump(exclude_none=True)
    for key in ("stack", "component_stack"):
        if key in data:
            data[key] = data[key][:MAX_STACK_CHARS]
    # Caller headers are unverified here; they only help triage.
    log_structured(
        logging.ERROR,
        "client_error_report",
        report=sanitize_payload(data),
        claimed_user_type=identity.user_type or None,
        client_ip=client_ip(request.headers),
    )
    return {"status": "accepted", "request_id": get_request_id(request)}
