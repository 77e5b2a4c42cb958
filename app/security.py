# =============================================================================
# app/security.py - Transport Security Headers
# =============================================================================
# Sends Strict-Transport-Security on HTTPS responses so browsers keep using
# HTTPS for this host. Plain HTTP responses never carry the header.
#
# Enabled outside development (see Settings.hsts_enabled).
# =============================================================================

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

HSTS_HEADER = "Strict-Transport-Security"


class HSTSMiddleware(BaseHTTPMiddleware):
    """Add the HSTS header to every response served over HTTPS."""

    def __init__(self, app, max_age: int, include_subdomains: bool = False):
        super().__init__(app)
        value = f"max-age={max_age}"
        if include_subdomains:
            value += "; includeSubDomains"
        self.header_value = value

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        if request.url.scheme == "https":
            response.headers.setdefault(HSTS_HEADER, self.header_value)
        return response
