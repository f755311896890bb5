"""Shared web infrastructure: Jinja2 templates + slowapi rate limiter.

Neutral module with no imports from web.*, so safe for all web modules to import.
"""

from fastapi.templating import Jinja2Templates
from pathlib import Path
from slowapi import Limiter
from slowapi.util import get_remote_address

from utils import format_duration, format_iso8601_duration, plural
from version import __version__

templates_dir = Path(__file__).parent / "templates"
static_dir = Path(__file__).parent / "static"

templates = Jinja2Templates(directory=str(templates_dir))
limiter = Limiter(key_func=get_remote_address)

# Template globals
templates.env.globals["format_duration"] = format_duration
templates.env.globals["format_iso_duration"] = format_iso8601_duration
templates.env.globals["plural"] = plural
templates.env.globals["app_version"] = __version__
