"""Filesystem writers for document content and blobs.

Blocking calls run in worker threads so a slow disk never stalls the
event loop serving other requests.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from pathlib import Path

from docsync.sync.paths import DocumentPath

logger = logging.getLogger(__name__)


def _write_bytes(path: Path, data: bytes) -> None:
    path.write_bytes(data)


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


async def write_file_content(
    root: str | Path,
    document: DocumentPath,
    content: str,
) -> Path:
    """Write the document text, creating parent directories as needed.

    Returns the path written.
    """
    path = document.content_path(root)
    await asyncio.to_thread(_write_text, path, content)
    logger.debug("Wrote %d characters to %s", len(content), path)
    return path


async def write_blobs(
    root: str | Path,
    document: DocumentPath,
    blobs: Mapping[str, bytes],
    subdir: str = "",
) -> list[Path]:
    """Write every blob into the document's blob directory concurrently.

    All writes are awaited together. If one fails the error propagates
    once the others have finished; blobs already on disk are left as is.
    """
    blob_dir = document.blob_dir(root, subdir)
    await asyncio.to_thread(blob_dir.mkdir, parents=True, exist_ok=True)

    paths = [blob_dir / name for name in blobs]
    results = await asyncio.gather(
        *(asyncio.to_thread(_write_bytes, path, data) for path, data in zip(paths, blobs.values())),
        return_exceptions=True,
    )

    failures = [
        (path, result) for path, result in zip(paths, results)
        if isinstance(result, BaseException)
    ]
    for path, exc in failures:
        logger.error("Failed to write blob %s: %s", path, exc)
    if failures:
        raise failures[0][1]

    return paths
