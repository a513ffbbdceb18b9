"""Map client document identifiers to storage locations."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

from docsync.sync.errors import MalformedRequestError


def check_segment(segment: str, what: str = "path segment") -> str:
    """Validate a single path segment and return it unchanged.

    Raises
    ------
    MalformedRequestError
        If the segment is empty, relative (``.``/``..``) or contains a
        separator or NUL byte.
    """
    if not segment or segment in (".", ".."):
        raise MalformedRequestError(f"Invalid {what}: '{segment}'.")
    if "/" in segment or "\\" in segment or "\x00" in segment:
        raise MalformedRequestError(f"Invalid {what}: '{segment}'.")
    return segment


def _split_identifier(document_id: str) -> list[str]:
    if not isinstance(document_id, str) or not document_id:
        raise MalformedRequestError("Document identifier must be a non-empty string.")
    if document_id.startswith("/"):
        raise MalformedRequestError(
            f"Document identifier '{document_id}' must be a relative path."
        )
    if "\\" in document_id:
        raise MalformedRequestError(
            f"Document identifier '{document_id}' must use '/' as separator."
        )

    segments = document_id.split("/")
    for segment in segments:
        check_segment(segment, what=f"segment in document identifier '{document_id}'")
    return segments


@dataclass(frozen=True)
class DocumentPath:
    """Where a document lives inside the storage root.

    ``key`` is the canonical lock key: ``directory/file_name``.
    """

    directory: str
    file_name: str

    @property
    def key(self) -> str:
        return f"{self.directory}/{self.file_name}"

    def content_path(self, root: str | Path) -> Path:
        return Path(root) / self.directory / self.file_name

    def blob_dir(self, root: str | Path, subdir: str = "") -> Path:
        folder = Path(root) / self.directory
        return folder / subdir if subdir else folder

    def blob_url(
        self,
        base_url: str,
        static_prefix: str,
        blob_name: str,
        subdir: str = "",
    ) -> str:
        """Absolute URL under which the static route serves *blob_name*.

        Every path segment is percent-encoded, so names with spaces or
        reserved characters such as ``#`` still resolve.
        """
        segments = self.directory.split("/")
        if subdir:
            segments.extend(subdir.split("/"))
        segments.append(blob_name)
        path = "/".join(quote(segment, safe="") for segment in segments)
        return "/".join([base_url.rstrip("/"), static_prefix.strip("/"), path])


def derive_document_path(document_id: str, file_name: str | None = None) -> DocumentPath:
    """Derive the storage location for a document.

    Without *file_name* the identifier is a path: the last segment is the
    file and everything before it the directory, so ``a/b/doc.md`` becomes
    directory ``a/b`` and file ``doc.md``.

    With *file_name* the identifier names the directory as a whole and
    *file_name* is stored inside it.

    Raises
    ------
    MalformedRequestError
        If the identifier or file name does not have that shape.
    """
    segments = _split_identifier(document_id)

    if file_name is not None:
        check_segment(file_name, what="file name")
        return DocumentPath(directory="/".join(segments), file_name=file_name)

    if len(segments) < 2:
        raise MalformedRequestError(
            f"Document identifier '{document_id}' must have the form "
            "'<directory>/<file name>'."
        )
    return DocumentPath(directory="/".join(segments[:-1]), file_name=segments[-1])
