"""FastAPI dependency providers: read from app.state, set by main.py."""

from fastapi import Request

from admin.curation import PREVIEW_CAP, BatchCuration
from web.helpers import SessionContext, session_context


def get_video_store(request: Request):
    """VideoStore instance."""
    return request.app.state.video_store


def get_catalog(request: Request):
    """Catalog service (store + resolver)."""
    return request.app.state.catalog


def get_resolver(request: Request):
    """MetadataResolver for batch previews and single adds."""
    return request.app.state.resolver


def get_gate_registry(request: Request):
    """GateRegistry holding one playback gate per viewing device."""
    return request.app.state.gate_registry


def get_web_config(request: Request):
    """WebConfig instance."""
    return request.app.state.web_config


def get_youtube_config(request: Request):
    """YouTubeConfig instance."""
    return request.app.state.youtube_config


def get_session_context(request: Request) -> SessionContext:
    """Who the request comes from: linked guardian, logged-in guardian, device key."""
    return session_context(request)


def _curation_key(ctx: SessionContext) -> str:
    return f"{ctx.admin_id}:{ctx.device_key}"


def get_curation(request: Request, ctx: SessionContext) -> BatchCuration:
    """BatchCuration for this guardian's dashboard, created on first use."""
    curations = request.app.state.curations
    curation = curations.get(_curation_key(ctx))
    if curation is None:
        yt_cfg = get_youtube_config(request)
        cap = yt_cfg.preview_cap if yt_cfg else PREVIEW_CAP
        curation = BatchCuration(get_resolver(request), cap=cap)
        curations[_curation_key(ctx)] = curation
    return curation


def drop_curation(request: Request, ctx: SessionContext) -> None:
    """Forget this dashboard's batch preview (on logout)."""
    request.app.state.curations.pop(_curation_key(ctx), None)
