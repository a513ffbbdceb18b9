"""SyncCoordinator — locked write of a document and its blobs."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from docsync.config import STATIC_PREFIX
from docsync.sync.blobs import decode_blobs
from docsync.sync.errors import DocumentLockedError, MalformedRequestError
from docsync.sync.locking import LockManager
from docsync.sync.paths import DocumentPath, derive_document_path
from docsync.sync.rewrite import rewrite_blob_links
from docsync.sync.storage import write_blobs, write_file_content

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of a successful sync."""

    document: DocumentPath
    content: str
    blob_count: int = 0


class SyncCoordinator:
    """Write documents into the storage tree, one writer per document.

    Parameters
    ----------
    storage_root:
        Directory that holds all synchronized documents.
    locks:
        Lock table shared by every request handled by this process.
    base_url:
        Public address of the service, used when rewriting blob links.
    static_prefix:
        URL prefix under which *storage_root* is served.
    blob_subdir:
        Sub-directory for blobs below the document directory. Empty
        stores blobs next to the document.
    rewrite_links:
        Replace ``(<blob>)`` references in the content with absolute URLs.
    """

    def __init__(
        self,
        storage_root: str | Path,
        locks: LockManager,
        *,
        base_url: str = "",
        static_prefix: str = STATIC_PREFIX,
        blob_subdir: str = "",
        rewrite_links: bool = False,
    ) -> None:
        self.storage_root = Path(storage_root)
        self.locks = locks
        self.base_url = base_url
        self.static_prefix = static_prefix
        self.blob_subdir = blob_subdir
        self.rewrite_links = rewrite_links

    async def sync(
        self,
        document_id: str,
        content: str,
        blobs: Mapping[str, Any] | None = None,
        file_name: str | None = None,
    ) -> SyncResult:
        """Persist *content* and *blobs* for *document_id*.

        Blobs are written first, then the (possibly rewritten) content.
        The document lock is held for both phases and always released.

        Raises
        ------
        MalformedRequestError
            Bad identifier or blob payload. Raised before locking.
        DocumentLockedError
            Another request holds the document lock. Nothing is written.
        OSError
            A write failed. Blobs written before the failure stay on disk.
        """
        document = derive_document_path(document_id, file_name)
        decoded = decode_blobs(blobs) if blobs else {}
        # Flat layout: a blob with the document's name would be overwritten
        if not self.blob_subdir and document.file_name in decoded:
            raise MalformedRequestError(
                f"Blob '{document.file_name}' has the same name as the document."
            )

        logger.info(
            "Received sync request for document at path %s",
            document.key,
            extra={
                "dir_path": document.directory,
                "file_name": document.file_name,
                "blob_count": len(decoded),
            },
        )

        acquired = False
        try:
            with self.locks.hold(document.key) as acquired:
                if not acquired:
                    logger.warning("Document %s is locked, rejecting request", document.key)
                    raise DocumentLockedError(document.key)
                content = await self._write(document, content, decoded)
        finally:
            if acquired:
                logger.info("Released lock for document %s", document.key)

        return SyncResult(document=document, content=content, blob_count=len(decoded))

    async def _write(
        self,
        document: DocumentPath,
        content: str,
        blobs: dict[str, bytes],
    ) -> str:
        if blobs:
            await write_blobs(self.storage_root, document, blobs, self.blob_subdir)
            logger.info("Written %d blobs for %s", len(blobs), document.key)
            if self.rewrite_links:
                content = rewrite_blob_links(content, blobs, self._url_for(document))

        await write_file_content(self.storage_root, document, content)
        logger.info("Written main file at %s", document.key)
        return content

    def _url_for(self, document: DocumentPath):
        def url_for(blob_name: str) -> str:
            return document.blob_url(
                self.base_url, self.static_prefix, blob_name, self.blob_subdir,
            )

        return url_for
