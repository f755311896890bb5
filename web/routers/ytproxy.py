"""Same-origin copies of the YouTube IFrame API scripts the watch page loads."""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from web.cache import fetch_yt_scripts, yt_cache_stale

router = APIRouter()

_JS = "application/javascript"


async def _cached_script(request: Request, attr: str, label: str) -> PlainTextResponse:
    state = request.app.state
    if getattr(state, attr, None) is None or yt_cache_stale(state):
        await fetch_yt_scripts(state)
    body = getattr(state, attr, None)
    if not body:
        return PlainTextResponse(f"// {label} unavailable", media_type=_JS)
    return PlainTextResponse(body, media_type=_JS)


@router.get("/api/yt-iframe-api.js")
async def yt_iframe_api(request: Request):
    """IFrame API loader, with its widget script URL pointed back at this server."""
    return await _cached_script(request, "yt_iframe_api_cache", "iframe API")


@router.get("/api/yt-widget-api.js")
async def yt_widget_api(request: Request):
    return await _cached_script(request, "yt_widget_api_cache", "widget API")
