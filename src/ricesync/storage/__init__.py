"""ricesync remote file-store synchronization layer.

Provides revision-aware CRUD and listing over a versioned remote file API,
with conflict retry, per-directory mutual exclusion and recursive
directory operations.

Backends:
- GitHubFileApi: GitHub REST contents API (production)
- InMemoryFileApi: In-process versioned store (dev/test)
"""

from ricesync.storage.context import RepositoryContext
from ricesync.storage.errors import (
    ConfigurationError,
    ObjectNotFoundError,
    PathTraversalError,
    PersistentConflictError,
    RetryDeadlineExceededError,
    StoreError,
    TransportError,
    WriteConflictError,
)
from ricesync.storage.file_store import RemoteFileStore
from ricesync.storage.github_api import GitHubFileApi
from ricesync.storage.guard import DirectoryConcurrencyGuard
from ricesync.storage.memory_api import InMemoryFileApi
from ricesync.storage.models import (
    DirectoryEntry,
    DirectoryLockEntry,
    EntryKind,
    FileHandle,
    RepositoryCoordinates,
)
from ricesync.storage.remote_api import RemoteFileApi
from ricesync.storage.retry import ConflictRetryPolicy, compute_backoff_seconds
from ricesync.storage.tree import RecursiveDirectoryOps

__all__ = [
    "ConfigurationError",
    "ConflictRetryPolicy",
    "DirectoryConcurrencyGuard",
    "DirectoryEntry",
    "DirectoryLockEntry",
    "EntryKind",
    "FileHandle",
    "GitHubFileApi",
    "InMemoryFileApi",
    "ObjectNotFoundError",
    "PathTraversalError",
    "PersistentConflictError",
    "RecursiveDirectoryOps",
    "RemoteFileApi",
    "RemoteFileStore",
    "RepositoryContext",
    "RepositoryCoordinates",
    "RetryDeadlineExceededError",
    "StoreError",
    "TransportError",
    "WriteConflictError",
    "compute_backoff_seconds",
]
