"""FastAPI application factory for the sync server."""

from __future__ import annotations

import logging
import mimetypes
import re
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from docsync import __version__
from docsync.config import EDITOR_INDEX, STATIC_PREFIX, SYNC_ROUTE
from docsync.models.sync import ErrorResponse, SyncRequest, SyncResponse
from docsync.server.config_manager import ServerSettings
from docsync.server.middleware import (
    BODY_TOO_LARGE_MESSAGE,
    BodySizeLimitMiddleware,
    BodyTooLargeError,
)
from docsync.sync.errors import DocumentLockedError, MalformedRequestError
from docsync.sync.locking import LockManager
from docsync.sync.manager import SyncCoordinator

logger = logging.getLogger(__name__)

LOCKED_MESSAGE = "Document is locked, please try again later"
INTERNAL_ERROR_MESSAGE = "Internal server error"

_SLASHES = re.compile(r"/+")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(ErrorResponse(error=message).model_dump(), status_code=status_code)


async def _locked_handler(request: Request, exc: DocumentLockedError) -> JSONResponse:
    return _error(423, LOCKED_MESSAGE)


async def _malformed_handler(request: Request, exc: MalformedRequestError) -> JSONResponse:
    return _error(400, str(exc))


async def _validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    return _error(400, f"Invalid request: {problems}")


async def _body_too_large_handler(request: Request, exc: BodyTooLargeError) -> JSONResponse:
    return _error(413, BODY_TOO_LARGE_MESSAGE)


async def _internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return _error(500, INTERNAL_ERROR_MESSAGE)


def resolve_editor_file(dist: Path, request_path: str) -> Path | None:
    """Find the editor file for *request_path*, or None.

    Duplicate slashes are collapsed and a trailing slash dropped.
    Directories resolve to their ``index.html``. Paths without a file
    extension that match nothing fall back to the top-level
    ``index.html`` so client-side routes load the app.
    """
    normalized = _SLASHES.sub("/", request_path).strip("/")
    root = dist.resolve()
    candidate = (root / normalized).resolve()
    if candidate != root and root not in candidate.parents:
        return None

    if candidate.is_dir():
        candidate = candidate / EDITOR_INDEX
    if candidate.is_file():
        return candidate

    if not Path(normalized).suffix:
        index = root / EDITOR_INDEX
        if index.is_file():
            return index
    return None


def create_app(
    settings: ServerSettings | None = None,
    locks: LockManager | None = None,
) -> FastAPI:
    """Build the sync server.

    Parameters
    ----------
    settings:
        Server settings. Defaults to ``ServerSettings()``.
    locks:
        Lock table for this app. A fresh one is created if omitted.
    """
    settings = settings or ServerSettings()
    locks = locks or LockManager()

    storage_dir = Path(settings.storage_dir)
    storage_dir.mkdir(parents=True, exist_ok=True)

    coordinator = SyncCoordinator(
        storage_dir,
        locks,
        base_url=settings.base_url,
        static_prefix=STATIC_PREFIX,
        blob_subdir=settings.blob_subdir,
        rewrite_links=settings.rewrite_blob_links,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        locks.clear_all()
        logger.info("Using storage directory: %s", storage_dir)
        logger.info("Server started on port %s", settings.port)
        yield
        logger.info("Server shutting down")

    app = FastAPI(title="docsync", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.locks = locks
    app.state.coordinator = coordinator

    app.add_exception_handler(DocumentLockedError, _locked_handler)
    app.add_exception_handler(MalformedRequestError, _malformed_handler)
    app.add_exception_handler(RequestValidationError, _validation_handler)
    app.add_exception_handler(BodyTooLargeError, _body_too_large_handler)
    app.add_exception_handler(OSError, _internal_error_handler)
    app.add_exception_handler(Exception, _internal_error_handler)

    # Added first so CORS wraps it and 413 responses keep their CORS headers
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post(SYNC_ROUTE, response_model=SyncResponse, response_model_by_alias=True)
    async def sync_document(body: SyncRequest) -> SyncResponse:
        try:
            result = await coordinator.sync(
                body.document_id,
                body.file_content,
                blobs=body.blobs,
                file_name=body.file_name,
            )
        except (DocumentLockedError, MalformedRequestError):
            raise
        except Exception as exc:
            logger.error(
                "Error processing sync request",
                exc_info=True,
                extra={"document_id": body.document_id, "error": str(exc)},
            )
            raise

        return SyncResponse(file_content=result.content)

    app.mount(STATIC_PREFIX, StaticFiles(directory=storage_dir), name="static")

    editor_dist = Path(settings.editor_dist)

    @app.get("/{request_path:path}", include_in_schema=False)
    async def serve_editor(request_path: str) -> FileResponse:
        if request_path.strip("/") == SYNC_ROUTE.strip("/"):
            raise HTTPException(status_code=404)

        path = resolve_editor_file(editor_dist, request_path)
        if path is None:
            raise HTTPException(status_code=404)

        media_type, _ = mimetypes.guess_type(path.name)
        logger.debug("Serving %s with MIME type: %s", path, media_type)
        return FileResponse(path, media_type=media_type)

    return app
