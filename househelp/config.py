from __future__ import annotations

import os
from typing import List

HOUSEHELP_ENV = os.getenv("HOUSEHELP_ENV", "dev").strip().lower()
APP_ENV = os.getenv("APP_ENV", HOUSEHELP_ENV).strip().lower()
SERVICE_VERSION = os.getenv("APP_VERSION") or "dev"

SUPABASE_URL = (
    os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL") or ""
).strip().rstrip("/")
SUPABASE_SERVICE_ROLE = os.getenv("SUPABASE_SERVICE_ROLE", "").strip()

JWT_SECRET = os.getenv("JWT_SECRET", "").strip()
JWT_ALGORITHM = os.getenv("JWT_ALG", "HS256")
AUTH_VERIFY_RPC = os.getenv("AUTH_VERIFY_RPC", "verify_session").strip()

DATASTORE_TIMEOUT_SECONDS = float(os.getenv("DATASTORE_TIMEOUT_SECONDS", "10"))
SIDE_EFFECT_WAIT_SECONDS = float(os.getenv("SIDE_EFFECT_WAIT_SECONDS", "2"))

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


def is_prod() -> bool:
    return APP_ENV == "prod"


def allowed_origins() -> List[str]:
    env_origins = [
        origin.strip()
        for origin in os.getenv("ALLOWED_ORIGINS", "").split(",")
        if origin.strip()
    ]
    if not env_origins:
        return list(DEFAULT_ALLOWED_ORIGINS)
    if any(origin == "*" for origin in env_origins):
        raise ValueError("ALLOWED_ORIGINS cannot contain '*' when allow_credentials=True")
    return env_origins
