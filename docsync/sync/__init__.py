"""Document sync — locked writes of documents and their blobs."""

from docsync.sync.errors import DocumentLockedError, MalformedRequestError, SyncError
from docsync.sync.locking import LockInfo, LockManager
from docsync.sync.manager import SyncCoordinator, SyncResult
from docsync.sync.paths import DocumentPath, derive_document_path

__all__ = [
    "DocumentLockedError",
    "DocumentPath",
    "LockInfo",
    "LockManager",
    "MalformedRequestError",
    "SyncCoordinator",
    "SyncError",
    "SyncResult",
    "derive_document_path",
]
