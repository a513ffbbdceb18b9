"""Errors raised by the sync layer."""

from __future__ import annotations


class SyncError(Exception):
    """Base class for sync failures the client can act on."""


class MalformedRequestError(SyncError):
    """Raised when a document identifier or blob payload has the wrong shape.

    Nothing is locked or written when this is raised.
    """


class DocumentLockedError(SyncError):
    """Raised when another request is currently writing the same document."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Document '{key}' is locked.")
        self.key = key
