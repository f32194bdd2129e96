from fastapi import APIRouter

from househelp.api.v1.routes import (
    admin as admin_routes,
    auth as auth_routes,
    household as household_routes,
    meta as meta_routes,
    observability as observability_routes,
    worker as worker_routes,
)

api_router = APIRouter()

api_router.include_router(meta_routes.router, tags=["meta"])
api_router.include_router(auth_routes.router, prefix="/auth", tags=["auth"])
api_router.include_router(admin_routes.router, prefix="/admin", tags=["admin"])
api_router.include_router(worker_routes.router, prefix="/worker", tags=["worker"])
api_router.include_router(household_routes.router, prefix="/household", tags=["household"])
api_router.include_router(observability_routes.router, tags=["observability"])
