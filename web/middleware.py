"""HTTP middleware: security headers + device-link / guardian-login access control."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

# Paths reachable with neither a linked device nor a guardian login
_PUBLIC_PREFIXES = (
    "/static", "/link-device", "/admin/login",
    "/api/yt-iframe-api.js", "/api/yt-widget-api.js",
)
# Guardian-only areas
_ADMIN_PREFIXES = ("/admin", "/api/youtube-batch")
# Reachable by either role; handlers check which one applies
_SHARED_PREFIXES = ("/api/videos",)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' 'unsafe-inline'; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' https://i.ytimg.com https://i1.ytimg.com https://i2.ytimg.com "
            "https://i3.ytimg.com https://i4.ytimg.com https://i9.ytimg.com https://img.youtube.com; "
            "frame-src https://www.youtube-nocookie.com https://www.youtube.com; "
            "connect-src 'self'; "
            "media-src https://*.googlevideo.com; "
            "object-src 'none'; "
            "base-uri 'self'"
        )
        return response


def _deny(path: str, login_url: str) -> Response:
    # Return JSON 401 for API endpoints instead of redirect
    if path.startswith("/api/") or path.startswith("/admin/api/"):
        return JSONResponse({"error": "unauthorized"}, status_code=401)
    return RedirectResponse(url=login_url, status_code=303)


class AccessMiddleware(BaseHTTPMiddleware):
    """Child views need a linked device; the dashboard needs a guardian login."""

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if path.startswith(_PUBLIC_PREFIXES):
            return await call_next(request)

        session = request.session
        if path.startswith(_ADMIN_PREFIXES):
            if session.get("admin_id"):
                return await call_next(request)
            return _deny(path, "/admin/login")

        if path.startswith(_SHARED_PREFIXES):
            if session.get("guardian_id") or session.get("admin_id"):
                return await call_next(request)
            return _deny(path, "/link-device")

        if session.get("guardian_id"):
            return await call_next(request)
        logger.debug("Unlinked device requested %s", path)
        return _deny(path, "/link-device")
