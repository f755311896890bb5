"""Batch metadata endpoint: one page of previews for a video, channel or playlist URL."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from errors import InvalidInputError, SafeTubeError
from web.shared import limiter
from web.deps import get_resolver
from web.helpers import BatchRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/youtube-batch")
@limiter.limit("30/minute")
async def youtube_batch(request: Request, body: BatchRequest):
    if not body.url.strip():
        raise InvalidInputError("URL is required")
    try:
        page = await get_resolver(request).fetch_url(body.url, page_token=body.pageToken or None)
    except SafeTubeError:
        raise
    except Exception as e:
        logger.error("Batch fetch failed for %s: %s", body.url, e)
        return JSONResponse({"error": str(e) or "Failed to fetch videos"}, status_code=500)
    return page.to_json()
