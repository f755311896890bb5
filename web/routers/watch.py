"""Watch page and playback gate polling/event routes."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from errors import NotFoundError
from gate.events import GateAction, player_event_from_code
from utils import is_touch_handset
from web.shared import templates, limiter
from web.deps import get_catalog, get_gate_registry, get_session_context, get_web_config
from web.helpers import GateEventRequest, base_ctx

logger = logging.getLogger(__name__)

router = APIRouter()


def _gate_payload(registry, device_key: str) -> dict:
    """Gate snapshot plus the player commands queued since the last poll."""
    gate, remote = registry.get(device_key)
    payload = gate.snapshot()
    payload["commands"] = remote.drain()
    registry.discard_closed(device_key)
    return payload


@router.get("/watch/{record_id}", response_class=HTMLResponse)
async def watch_video(request: Request, record_id: int):
    """Open a gated playback session for one whitelisted video."""
    ctx = get_session_context(request)
    catalog = get_catalog(request)
    try:
        video = await catalog.get_video(ctx.guardian_id, record_id)
    except NotFoundError:
        return RedirectResponse(url="/", status_code=303)

    owner = ctx.guardian_id

    async def count_watch(v: dict) -> None:
        await catalog.record_watch(owner, v["id"])

    gate = get_gate_registry(request).open(
        ctx.device_key, video,
        on_watch=count_watch,
        touch_handset=is_touch_handset(request.headers.get("user-agent")),
    )
    w_cfg = get_web_config(request)
    poll_interval = w_cfg.poll_interval if w_cfg else 1000
    return templates.TemplateResponse(request, "watch.html", {
        **base_ctx(request, ctx),
        "video": video,
        "gate": gate.snapshot(),
        "poll_interval": poll_interval,
    })


@router.get("/api/gate")
async def gate_status(request: Request):
    """Current gate state for this device (polled by the watch page)."""
    ctx = get_session_context(request)
    registry = get_gate_registry(request)
    if registry.get(ctx.device_key) is None:
        return JSONResponse({"error": "no open video", "closed": True}, status_code=404)
    return _gate_payload(registry, ctx.device_key)


@router.post("/api/gate/event")
@limiter.limit("240/minute")
async def gate_event(request: Request, body: GateEventRequest):
    """Player state change or viewer action reported by the watch page."""
    ctx = get_session_context(request)
    registry = get_gate_registry(request)
    session = registry.get(ctx.device_key)
    if session is None:
        return JSONResponse({"error": "no open video", "closed": True}, status_code=404)
    gate, remote = session
    if gate.video.get("id") != body.record_id:
        # A newer watch page replaced this session; the stale page just stops.
        return JSONResponse({"error": "session replaced", "closed": True}, status_code=409)

    action = None
    if body.action:
        try:
            action = GateAction(body.action)
        except ValueError:
            return JSONResponse({"error": "unknown action"}, status_code=400)

    event = player_event_from_code(body.player_state) if body.player_state is not None else None
    remote.report(event, body.current_time)
    if event is not None:
        await gate.on_player_event(event)
    if action is not None:
        await gate.dispatch(action)
    return _gate_payload(registry, ctx.device_key)
