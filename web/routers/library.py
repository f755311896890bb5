"""Child library: the linked guardian's whitelist as a thumbnail grid."""

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from web.shared import templates
from web.deps import get_catalog, get_gate_registry, get_session_context
from web.helpers import base_ctx

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def library(request: Request):
    """Grid of whitelisted videos, newest first. Opening the library ends any playback session."""
    ctx = get_session_context(request)
    get_gate_registry(request).close(ctx.device_key)
    videos = await get_catalog(request).list_videos(ctx.guardian_id)
    return templates.TemplateResponse(request, "library.html", {
        **base_ctx(request, ctx),
        "videos": videos,
    })
