"""Shared constants, request models, session context and helpers used across web routers."""

import hmac
import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class AddVideoRequest(BaseModel):
    url: str = Field("", max_length=500)
    confirmed: bool = False


class BatchRequest(BaseModel):
    url: str = Field("", max_length=500)
    pageToken: Optional[str] = Field(None, max_length=200)


class ToggleRequest(BaseModel):
    videoId: str = Field(..., max_length=64)


class SelectRequest(BaseModel):
    all: bool = True


class DeleteRequest(BaseModel):
    ids: list[int] = Field(default_factory=list, max_length=500)
    confirmed: bool = False


class GateEventRequest(BaseModel):
    record_id: int
    action: Optional[str] = Field(None, max_length=32)
    player_state: Optional[int] = None
    current_time: Optional[float] = None


# ---------------------------------------------------------------------------
# Session context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SessionContext:
    """Who is on the other end of this request, read once from the signed session cookie.

    guardian_id: guardian this device is linked to (child views)
    admin_id:    guardian logged in to the dashboard
    device_key:  random per-browser key scoping gate sessions and batch previews
    """
    guardian_id: Optional[str]
    admin_id: Optional[str]
    device_key: str

    @property
    def linked(self) -> bool:
        return bool(self.guardian_id)

    @property
    def is_admin(self) -> bool:
        return bool(self.admin_id)

    def may_read(self, owner: str) -> bool:
        return bool(owner) and owner in (self.guardian_id, self.admin_id)


def session_context(request: Request) -> SessionContext:
    """Build the SessionContext, minting a device key on first visit."""
    session = request.session
    device_key = session.get("device_key")
    if not device_key:
        device_key = secrets.token_hex(16)
        session["device_key"] = device_key
    return SessionContext(
        guardian_id=session.get("guardian_id") or None,
        admin_id=session.get("admin_id") or None,
        device_key=device_key,
    )


# ---------------------------------------------------------------------------
# CSRF helpers
# ---------------------------------------------------------------------------

def get_csrf_token(request: Request) -> str:
    """Get or create a CSRF token in the session."""
    token = request.session.get("csrf_token")
    if not token:
        token = secrets.token_hex(32)
        request.session["csrf_token"] = token
    return token


def validate_csrf(request: Request, token: str) -> bool:
    """Validate a submitted CSRF token against the session."""
    expected = request.session.get("csrf_token")
    if not expected or not token:
        return False
    return hmac.compare_digest(expected, token)


def validate_csrf_header(request: Request) -> bool:
    """CSRF check for JSON endpoints: token travels in the X-CSRF-Token header."""
    return validate_csrf(request, request.headers.get("x-csrf-token", ""))


# ---------------------------------------------------------------------------
# Template context helpers
# ---------------------------------------------------------------------------

def base_ctx(request: Request, ctx: SessionContext) -> dict:
    """Common template context for base.html."""
    vs = request.app.state.video_store
    guardian = None
    owner = ctx.guardian_id or ctx.admin_id
    if owner and vs:
        guardian = vs.get_guardian(owner)
    return {
        "request": request,
        "guardian_name": guardian["display_name"] if guardian else "",
        "linked": ctx.linked,
        "is_admin": ctx.is_admin,
        "csrf_token": get_csrf_token(request),
    }
