"""HTTP Caching — weak ETags on successful GETs and 304 answers to conditional requests.

Invariants:
    - Only GET responses with status 200 are tagged; everything else passes through untouched
    - ETag is a digest of the response body, so equal bodies yield equal tags
    - If-None-Match matching the current tag (or "*") → 304 with the tag and no body
"""

import hashlib
import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


def compute_etag(body: bytes) -> str:
    return f'W/"{hashlib.sha256(body).hexdigest()[:32]}"'


def etag_matches(if_none_match: str | None, etag: str) -> bool:
    if not if_none_match:
        return False
    candidates = {tag.strip() for tag in if_none_match.split(",")}
    # Weak comparison: W/"x" and "x" are the same validator.
    bare = etag.removeprefix("W/")
    return "*" in candidates or any(tag.removeprefix("W/") == bare for tag in candidates)


class ETagMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        if request.method != "GET" or response.status_code != 200:
            return response

        body = b"".join([chunk async for chunk in response.body_iterator])
        etag = compute_etag(body)
        headers = dict(response.headers)
        headers["etag"] = etag

        if etag_matches(request.headers.get("if-none-match"), etag):
            logger.debug("Conditional GET matched", extra={"path": request.url.path})
            headers.pop("content-length", None)
            headers.pop("content-type", None)
            return Response(status_code=304, headers=headers)

        return Response(
            content=body,
            status_code=response.status_code,
            headers=headers,
            media_type=response.media_type,
        )
