"""docsync — document and blob synchronization server for the LiaScript editor."""

__version__ = "1.0.0"

from docsync.sync.errors import DocumentLockedError, MalformedRequestError, SyncError
from docsync.sync.locking import LockInfo, LockManager
from docsync.sync.manager import SyncCoordinator, SyncResult
from docsync.sync.paths import DocumentPath, derive_document_path

__all__ = [
    "__version__",
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
