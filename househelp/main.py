import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from househelp import config
from househelp.api.v1.router import api_router
from househelp.errors import GatewayError
from househelp.exception_handlers import register_exception_handlers
from househelp.observability import configure_logging, log_structured, request_context_middleware
from househelp.security_headers import SecurityHeadersMiddleware
from househelp.services.datastore import DatastoreClient

logger = configure_logging()


def build_datastore() -> Optional[DatastoreClient]:
    try:
        return DatastoreClient.from_env()
    except GatewayError as exc:
        # Routes that need the store answer 500 until it is configured.
        log_structured(logging.WARNING, "datastore_unconfigured", message=exc.message)
        return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.datastore is None:
        app.state.datastore = build_datastore()
    log_structured(
        logging.INFO,
        "startup",
        datastore=app.state.datastore is not None,
        verify_rpc=config.AUTH_VERIFY_RPC,
    )
    try:
        yield
    finally:
        if app.state.datastore is not None:
            await app.state.datastore.close()
            app.state.datastore = None
        log_structured(logging.INFO, "shutdown")


app = FastAPI(
    title="HouseHelp Gateway",
    version=config.SERVICE_VERSION,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "meta", "description": "Service metadata and health"},
        {"name": "auth", "description": "Token verification and session revocation"},
        {"name": "admin", "description": "Administrator listings and platform counters"},
        {"name": "worker", "description": "Listings scoped to the calling worker"},
        {"name": "household", "description": "Listings scoped to the calling household"},
        {"name": "observability", "description": "Client error intake"},
    ],
)
app.state.app_env = config.APP_ENV
app.state.datastore = None

register_exception_handlers(app)
app.add_middleware(SecurityHeadersMiddleware, app_env=config.APP_ENV)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Auth-Token", "X-Request-Id"],
    expose_headers=["X-Request-Id"],
)
# Registered last so it wraps everything and sees the final status code.
app.middleware("http")(request_context_middleware)
app.include_router(api_router, prefix="/api")


class HealthzResponse(BaseModel):
    status: str
    version: str


@app.get("/healthz", response_model=HealthzResponse, tags=["meta"], summary="Liveness probe")
def healthz() -> HealthzResponse:
    return HealthzResponse(status="ok", version=config.SERVICE_VERSION)


@app.get("/health", tags=["meta"], summary="Configuration presence report")
def health() -> Dict[str, Any]:
    # Presence flags only; values never leave the process.
    return {
        "ok": True,
        "env": config.APP_ENV,
        "config": {
            "datastore": bool(config.SUPABASE_URL),
            "service_credential": bool(config.SUPABASE_SERVICE_ROLE),
            "jwt_secret": bool(config.JWT_SECRET),
        },
    }
