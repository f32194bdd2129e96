from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from househelp.api.v1.deps.auth import get_datastore, require_type
from househelp.permissions import USER_WORKER
from househelp.schemas.base import VerifiedUser
from househelp.services import listings
from househelp.services.datastore import DatastoreClient
from househelp.services.query_proxy import list_resource

router = APIRouter()

require_worker = require_type(USER_WORKER)


@router.get("/notifications")
async def worker_notifications(
    request: Request,
    worker: VerifiedUser = Depends(require_worker),
    datastore: DatastoreClient = Depends(get_datastore),
) -> Dict[str, Any]:
    envelope = await list_resource(
        datastore, listings.WORKER_NOTIFICATIONS, request.query_params, scope_value=worker.id
    )
    return envelope.to_payload()


@router.get("/earnings")
async def worker_earnings(
    request: Request,
    worker: VerifiedUser = Depends(require_worker),
    datastore: DatastoreClient = Depends(get_datastore),
) -> Dict[str, Any]:
    envelope = await list_resource(
        datastore, listings.WORKER_EARNINGS, request.query_params, scope_value=worker.id
    )
    return envelope.to_payload()


@router.get("/jobs")
async def worker_jobs(
    request: Request,
    worker: VerifiedUser = Depends(require_worker),
    datastore: DatastoreClient = Depends(get_datastore),
) -> Dict[str, Any]:
    envelope = await list_resource(
        datastore, listings.WORKER_JOBS, request.query_params, scope_value=worker.id
    )
    return envelope.to_payload()
