"""Authentication routes: guardian PIN login and device linking."""

import hmac
import logging
import secrets

from fastapi import APIRouter, Request, Form
from fastapi.responses import HTMLResponse, RedirectResponse

from web.shared import templates, limiter
from web.deps import drop_curation, get_gate_registry, get_session_context, get_video_store
from web.helpers import get_csrf_token, validate_csrf

logger = logging.getLogger(__name__)

router = APIRouter()


def _pin_ok(guardian: dict, pin: str) -> bool:
    if not guardian["pin"]:
        return True
    return bool(pin) and hmac.compare_digest(pin, guardian["pin"])


def _form_page(request: Request, template: str, error: bool = False,
               selected: str = "") -> HTMLResponse:
    vs = get_video_store(request)
    guardians = vs.get_guardians() if vs else []
    return templates.TemplateResponse(request, template, {
        "request": request,
        "csrf_token": get_csrf_token(request),
        "error": error,
        "guardians": guardians,
        "selected_guardian": selected or (guardians[0]["id"] if guardians else ""),
    })


# ---------------------------------------------------------------------------
# Guardian login (dashboard)
# ---------------------------------------------------------------------------

@router.get("/admin/login", response_class=HTMLResponse)
async def admin_login_page(request: Request):
    """Guardian picker + PIN entry."""
    if request.session.get("admin_id"):
        return RedirectResponse(url="/admin", status_code=303)
    vs = get_video_store(request)
    guardians = vs.get_guardians() if vs else []

    # Auto-login: single guardian with no PIN
    if len(guardians) == 1 and not guardians[0]["pin"]:
        request.session["admin_id"] = guardians[0]["id"]
        request.session["csrf_token"] = secrets.token_hex(32)
        return RedirectResponse(url="/admin", status_code=303)

    return _form_page(request, "login.html")


@router.post("/admin/login")
@limiter.limit("5/hour")
async def admin_login_submit(
    request: Request,
    pin: str = Form(""),
    guardian_id: str = Form(""),
    csrf_token: str = Form(""),
):
    """Validate PIN and start a guardian session."""
    if not validate_csrf(request, csrf_token):
        return RedirectResponse(url="/admin/login", status_code=303)

    vs = get_video_store(request)
    guardian = vs.get_guardian(guardian_id) if guardian_id else None
    if not guardian:
        return RedirectResponse(url="/admin/login", status_code=303)

    if _pin_ok(guardian, pin):
        request.session["admin_id"] = guardian["id"]
        request.session["csrf_token"] = secrets.token_hex(32)
        logger.info("Guardian %s logged in", guardian["id"])
        return RedirectResponse(url="/admin", status_code=303)

    logger.warning("Failed guardian login for %s", guardian_id)
    request.session["csrf_token"] = secrets.token_hex(32)
    return _form_page(request, "login.html", error=True, selected=guardian_id)


@router.get("/admin/logout")
async def admin_logout(request: Request):
    """End the guardian session. A linked device stays linked."""
    ctx = get_session_context(request)
    if ctx.is_admin:
        drop_curation(request, ctx)
    request.session.pop("admin_id", None)
    return RedirectResponse(url="/admin/login", status_code=303)


# ---------------------------------------------------------------------------
# Device linking (child views)
# ---------------------------------------------------------------------------

@router.get("/link-device", response_class=HTMLResponse)
async def link_device_page(request: Request):
    """Link this browser to a guardian's collection."""
    if request.session.get("guardian_id"):
        return RedirectResponse(url="/", status_code=303)
    vs = get_video_store(request)
    guardians = vs.get_guardians() if vs else []

    # Auto-link: single guardian with no PIN
    if len(guardians) == 1 and not guardians[0]["pin"]:
        request.session["guardian_id"] = guardians[0]["id"]
        return RedirectResponse(url="/", status_code=303)

    return _form_page(request, "link_device.html")


@router.post("/link-device")
@limiter.limit("5/hour")
async def link_device_submit(
    request: Request,
    pin: str = Form(""),
    guardian_id: str = Form(""),
    csrf_token: str = Form(""),
):
    """Validate the guardian PIN and remember the guardian on this device."""
    if not validate_csrf(request, csrf_token):
        return RedirectResponse(url="/link-device", status_code=303)

    vs = get_video_store(request)
    guardian = vs.get_guardian(guardian_id.strip()) if guardian_id.strip() else None
    if guardian and _pin_ok(guardian, pin):
        request.session["guardian_id"] = guardian["id"]
        request.session["csrf_token"] = secrets.token_hex(32)
        logger.info("Device linked to guardian %s", guardian["id"])
        return RedirectResponse(url="/", status_code=303)

    logger.warning("Failed device link for %r", guardian_id)
    request.session["csrf_token"] = secrets.token_hex(32)
    return _form_page(request, "link_device.html", error=True, selected=guardian_id)


@router.post("/unlink-device")
async def unlink_device(request: Request, csrf_token: str = Form("")):
    """Forget the linked guardian and drop any open playback session."""
    if not validate_csrf(request, csrf_token):
        return RedirectResponse(url="/", status_code=303)
    ctx = get_session_context(request)
    get_gate_registry(request).close(ctx.device_key)
    request.session.pop("guardian_id", None)
    return RedirectResponse(url="/link-device", status_code=303)
