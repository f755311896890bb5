"""FastAPI application: routers, static files, error handlers.

Dependencies (store, catalog, resolver, configs) are put on app.state by
main.py; middleware is added there too, once the session secret is known.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded

from errors import SafeTubeError
from web.shared import limiter, static_dir
from web.routers.admin import router as admin_router
from web.routers.auth import router as auth_router
from web.routers.batch import router as batch_router
from web.routers.library import router as library_router
from web.routers.videos import router as videos_router
from web.routers.watch import router as watch_router
from web.routers.ytproxy import router as ytproxy_router

logger = logging.getLogger(__name__)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    if request.url.path.startswith(("/api/", "/admin/api/")):
        return JSONResponse({"error": "Too many requests"}, status_code=429)
    return HTMLResponse(
        content="<h1>Too many requests</h1><p>Please wait a moment and try again.</p>",
        status_code=429,
    )


async def safetube_error_handler(request: Request, exc: SafeTubeError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


def create_app() -> FastAPI:
    """Build the app with every router mounted. Middleware is left to the caller."""
    app = FastAPI(title="SafeTube")
    app.state.limiter = limiter
    app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(SafeTubeError, safetube_error_handler)

    app.include_router(auth_router)
    app.include_router(library_router)
    app.include_router(watch_router)
    app.include_router(videos_router)
    app.include_router(batch_router)
    app.include_router(admin_router)
    app.include_router(ytproxy_router)
    return app


app = create_app()
