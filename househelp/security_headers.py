from typing import Dict, Tuple

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

BASELINE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "X-Frame-Options": "SAMEORIGIN",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}
HSTS_VALUE = "max-age=31536000; includeSubDomains"

API_PREFIX = "/api/"
PROTECTED_ROUTE_PREFIXES: Tuple[Tuple[str, str], ...] = (
    ("/api/admin/", "admin"),
    ("/api/worker/", "worker"),
    ("/api/household/", "household"),
)


def _forwarded_https(request: Request) -> bool:
    if request.url.scheme == "https":
        return True
    proto = request.headers.get("x-forwarded-proto", "")
    return proto.split(",")[0].strip().lower() == "https"


def headers_for(path: str, app_env: str, https: bool) -> Dict[str, str]:
    headers = dict(BASELINE_HEADERS)
    if path.startswith(API_PREFIX):
        headers["Cache-Control"] = "no-store"
        for prefix, user_type in PROTECTED_ROUTE_PREFIXES:
            if path.startswith(prefix):
                headers["X-Protected-Route"] = user_type
                break
    if app_env == "prod" and https:
        headers["Strict-Transport-Security"] = HSTS_VALUE
    return headers


def apply_security_headers(response: Response, request: Request, app_env: str) -> None:
    for name, value in headers_for(request.url.path, app_env, _forwarded_https(request)).items():
        if name == "Cache-Control":
            response.headers[name] = value
        else:
            response.headers.setdefault(name, value)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, app_env: str) -> None:
        super().__init__(app)
        self.app_env = app_env

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        apply_security_headers(response, request, getattr(request.app.state, "app_env", self.app_env))
        return response
