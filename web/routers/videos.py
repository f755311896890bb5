"""Catalog REST API: list, add, delete, watch count."""

import logging

from fastapi import APIRouter, Request, Query
from fastapi.responses import JSONResponse

from admin.curation import add_single
from web.shared import limiter
from web.deps import get_catalog, get_session_context
from web.helpers import AddVideoRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def _forbidden() -> JSONResponse:
    return JSONResponse({"error": "forbidden"}, status_code=403)


@router.get("/api/videos")
async def list_videos(request: Request, owner: str = Query("", max_length=64)):
    """A guardian's whitelist, newest first. Readable by that guardian or a device linked to them."""
    ctx = get_session_context(request)
    owner = owner or ctx.guardian_id or ctx.admin_id or ""
    if not ctx.may_read(owner):
        return _forbidden()
    videos = await get_catalog(request).list_videos(owner)
    return {"videos": videos}


@router.post("/api/videos")
@limiter.limit("30/minute")
async def add_video(request: Request, body: AddVideoRequest):
    """Whitelist one video by URL. Non-kids videos answer with a warning until confirmed."""
    ctx = get_session_context(request)
    if not ctx.is_admin:
        return _forbidden()
    result = await add_single(get_catalog(request), ctx.admin_id, body.url, body.confirmed)
    if result.warning:
        return result.to_json()
    return JSONResponse(result.to_json(), status_code=201)


@router.delete("/api/videos/{record_id}")
@limiter.limit("30/minute")
async def delete_video(request: Request, record_id: int):
    ctx = get_session_context(request)
    if not ctx.is_admin:
        return _forbidden()
    await get_catalog(request).delete_video(ctx.admin_id, record_id)
    return {"ok": True}


@router.post("/api/videos/{record_id}/watch")
@limiter.limit("30/minute")
async def record_watch(request: Request, record_id: int):
    """Count one watch against the caller's collection."""
    ctx = get_session_context(request)
    owner = ctx.guardian_id or ctx.admin_id
    await get_catalog(request).record_watch(owner, record_id)
    return {"ok": True}
