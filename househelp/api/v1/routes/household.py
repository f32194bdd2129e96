from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from househelp.api.v1.deps.auth import get_datastore, require_type
from househelp.permissions import USER_HOUSEHOLD
from househelp.schemas.base import VerifiedUser
from househelp.services import listings
from househelp.services.datastore import DatastoreClient
from househelp.services.query_proxy import list_resource

router = APIRouter()


@router.get("/notifications")
async def household_notifications(
    request: Request,
    household: VerifiedUser = Depends(require_type(USER_HOUSEHOLD)),
    datastore: DatastoreClient = Depends(get_datastore),
) -> Dict[str, Any]:
    envelope = await list_resource(
        datastore, listings.HOUSEHOLD_NOTIFICATIONS, request.query_params, scope_value=household.id
    )
    return envelope.to_payload()
