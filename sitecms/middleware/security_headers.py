"""
Browser hardening headers for every response.

Responses that may carry a session token (the auth endpoints and the
admin pages) are additionally marked as not cacheable.
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from sitecms.config import settings

BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=(), payment=()",
}

API_CSP = "default-src 'none'; frame-ancestors 'none'; base-uri 'none'"
DOCS_PATHS = ("/docs", "/redoc")
NO_STORE_PATHS = ("/api/auth/", "/admin")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, enable_hsts: bool | None = None, hsts_max_age: int = 31536000):
        super().__init__(app)
        if enable_hsts is None:
            enable_hsts = settings.is_production
        self.hsts = f"max-age={hsts_max_age}; includeSubDomains" if enable_hsts else None

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        path = request.url.path

        response.headers.update(BASE_HEADERS)
        # The interactive docs load their own scripts
        if not path.startswith(DOCS_PATHS):
            response.headers["Content-Security-Policy"] = API_CSP
        if path.startswith(NO_STORE_PATHS):
            response.headers["Cache-Control"] = "no-store"
        if self.hsts:
            response.headers["Strict-Transport-Security"] = self.hsts

        return response
