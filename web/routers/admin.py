"""Guardian dashboard: single adds, batch import with selection, deletes."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse

from admin.curation import add_single, bulk_delete_prompt, delete_prompt, delete_videos
from web.shared import templates, limiter
from web.deps import get_catalog, get_curation, get_session_context
from web.helpers import (
    AddVideoRequest, BatchRequest, DeleteRequest, SelectRequest, ToggleRequest,
    base_ctx, validate_csrf_header,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _csrf_failed() -> JSONResponse:
    return JSONResponse({"error": "invalid csrf token"}, status_code=403)


@router.get("/admin", response_class=HTMLResponse)
async def dashboard(request: Request):
    ctx = get_session_context(request)
    videos = await get_catalog(request).list_videos(ctx.admin_id)
    curation = get_curation(request, ctx)
    return templates.TemplateResponse(request, "admin.html", {
        **base_ctx(request, ctx),
        "videos": videos,
        "batch": curation.snapshot(),
    })


@router.post("/admin/api/add")
@limiter.limit("30/minute")
async def admin_add(request: Request, body: AddVideoRequest):
    """Add one video URL. Answers with a warning first for videos not made for kids."""
    if not validate_csrf_header(request):
        return _csrf_failed()
    ctx = get_session_context(request)
    result = await add_single(get_catalog(request), ctx.admin_id, body.url, body.confirmed)
    payload = result.to_json()
    if not result.warning:
        payload["videos"] = await get_catalog(request).list_videos(ctx.admin_id)
    return payload


# ---------------------------------------------------------------------------
# Batch import
# ---------------------------------------------------------------------------

@router.get("/admin/api/batch")
async def batch_state(request: Request):
    ctx = get_session_context(request)
    return get_curation(request, ctx).snapshot()


@router.post("/admin/api/batch/start")
@limiter.limit("30/minute")
async def batch_start(request: Request, body: BatchRequest):
    """Preview the first page of a channel or playlist, replacing any earlier preview."""
    if not validate_csrf_header(request):
        return _csrf_failed()
    ctx = get_session_context(request)
    curation = get_curation(request, ctx)
    await curation.start(body.url)
    return curation.snapshot()


@router.post("/admin/api/batch/more")
@limiter.limit("30/minute")
async def batch_more(request: Request):
    if not validate_csrf_header(request):
        return _csrf_failed()
    ctx = get_session_context(request)
    curation = get_curation(request, ctx)
    await curation.load_more()
    return curation.snapshot()


@router.post("/admin/api/batch/toggle")
async def batch_toggle(request: Request, body: ToggleRequest):
    if not validate_csrf_header(request):
        return _csrf_failed()
    ctx = get_session_context(request)
    curation = get_curation(request, ctx)
    curation.toggle(body.videoId)
    return curation.snapshot()


@router.post("/admin/api/batch/select")
async def batch_select(request: Request, body: SelectRequest):
    """Select every loaded preview, or none."""
    if not validate_csrf_header(request):
        return _csrf_failed()
    ctx = get_session_context(request)
    curation = get_curation(request, ctx)
    if body.all:
        curation.select_all()
    else:
        curation.select_none()
    return curation.snapshot()


@router.post("/admin/api/batch/commit")
@limiter.limit("10/minute")
async def batch_commit(request: Request):
    """Add every selected preview (pre-confirmed) and clear the preview."""
    if not validate_csrf_header(request):
        return _csrf_failed()
    ctx = get_session_context(request)
    curation = get_curation(request, ctx)
    if not curation.selected:
        return JSONResponse({"error": "No videos selected"}, status_code=400)
    catalog = get_catalog(request)
    result = await curation.commit(catalog, ctx.admin_id)
    return {
        "result": result.to_json(),
        "batch": curation.snapshot(),
        "videos": await catalog.list_videos(ctx.admin_id),
    }


@router.post("/admin/api/batch/cancel")
async def batch_cancel(request: Request):
    if not validate_csrf_header(request):
        return _csrf_failed()
    ctx = get_session_context(request)
    curation = get_curation(request, ctx)
    curation.cancel()
    return curation.snapshot()


# ---------------------------------------------------------------------------
# Deletes
# ---------------------------------------------------------------------------

@router.post("/admin/api/delete")
@limiter.limit("30/minute")
async def admin_delete(request: Request, body: DeleteRequest):
    """Two-step delete: unconfirmed requests only return the confirmation prompt."""
    if not validate_csrf_header(request):
        return _csrf_failed()
    if not body.ids:
        return JSONResponse({"error": "No videos selected"}, status_code=400)
    ctx = get_session_context(request)
    catalog = get_catalog(request)

    if not body.confirmed:
        if len(body.ids) == 1:
            videos = {v["id"]: v for v in await catalog.list_videos(ctx.admin_id)}
            prompt = delete_prompt(videos.get(body.ids[0], {}))
        else:
            prompt = bulk_delete_prompt(len(body.ids))
        return {"confirm": prompt}

    result, videos = await delete_videos(catalog, ctx.admin_id, list(dict.fromkeys(body.ids)))
    return {"result": result.to_json(), "videos": videos}
