"""Pydantic models exchanged with sync clients."""

from docsync.models.sync import BlobContent, ErrorResponse, SyncRequest, SyncResponse

__all__ = ["BlobContent", "ErrorResponse", "SyncRequest", "SyncResponse"]
