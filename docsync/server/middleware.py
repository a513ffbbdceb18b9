"""Request body size limit for the sync server."""

from __future__ import annotations

import logging

from fastapi import HTTPException
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from docsync.models.sync import ErrorResponse

logger = logging.getLogger(__name__)

BODY_TOO_LARGE_MESSAGE = "Request body too large"


class BodyTooLargeError(HTTPException):
    """Raised while reading a request body that crossed the size limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(status_code=413, detail=BODY_TOO_LARGE_MESSAGE)
        self.limit = limit


def _content_length(scope: Scope) -> int | None:
    for name, value in scope.get("headers", ()):
        if name == b"content-length":
            try:
                return int(value)
            except ValueError:
                return None
    return None


class BodySizeLimitMiddleware:
    """
    Reject request bodies larger than ``max_bytes`` with 413.

    A declared ``Content-Length`` over the limit is refused before the
    route runs. Bodies without one (chunked uploads) are counted while
    they are read, and ``BodyTooLargeError`` is raised from ``receive``
    as soon as the count passes the limit. The app maps that error to
    the same 413 response.

    Add it before ``CORSMiddleware`` so the 413 still carries CORS headers.
    """

    def __init__(self, app: ASGIApp, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        length = _content_length(scope)
        if length is not None and length > self.max_bytes:
            logger.warning(
                "Rejecting %s %s: Content-Length %d exceeds %d bytes",
                scope.get("method"), scope.get("path"), length, self.max_bytes,
            )
            response = JSONResponse(
                ErrorResponse(error=BODY_TOO_LARGE_MESSAGE).model_dump(), status_code=413,
            )
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    logger.warning(
                        "Rejecting %s %s: streamed body exceeds %d bytes",
                        scope.get("method"), scope.get("path"), self.max_bytes,
                    )
                    raise BodyTooLargeError(self.max_bytes)
            return message

        await self.app(scope, limited_receive, send)
