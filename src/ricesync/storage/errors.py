"""ricesync remote file-store error types.

Provides typed exceptions for store operations. Absence is not an error at
the public store boundary: ObjectNotFoundError is raised by remote adapters
and absorbed by RemoteFileStore. Conflicts are absorbed by the retry loop;
everything else propagates to the caller.
"""

from __future__ import annotations


class StoreError(Exception):
    """Base exception for remote file-store operations.

    Attributes:
        message: Human-readable error message.
        path: Repository path associated with the operation (if applicable).
    """

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} path={self.path}"
        return self.message


class ObjectNotFoundError(StoreError):
    """Raised by a remote adapter when a path or repository does not exist."""

    def __init__(self, message: str = "Object not found", *, path: str | None = None) -> None:
        super().__init__(message, path=path)


class WriteConflictError(StoreError):
    """Raised when the supplied revision no longer matches the stored object.

    Also raised when a create omits the revision but the object already exists.
    """

    def __init__(
        self,
        message: str = "Write conflict",
        *,
        path: str | None = None,
        revision_id: str | None = None,
    ) -> None:
        super().__init__(message, path=path)
        self.revision_id = revision_id


class PersistentConflictError(StoreError):
    """Raised when a write conflict survives every retry attempt."""

    def __init__(
        self,
        message: str = "Persistent write conflict",
        *,
        path: str | None = None,
        attempts: int = 0,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, path=path)
        self.attempts = attempts
        self.cause = cause


class RetryDeadlineExceededError(PersistentConflictError):
    """Raised when the next backoff wait would overrun the retry deadline."""


class TransportError(StoreError):
    """Raised for any other remote-store failure.

    Covers network errors, authentication failures during a run and
    unexpected HTTP statuses.
    """

    def __init__(
        self,
        message: str = "Remote store request failed",
        *,
        path: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, path=path)
        self.status_code = status_code
        self.cause = cause


class PathTraversalError(StoreError):
    """Raised when a repository path contains traversal or unsafe sequences."""

    def __init__(
        self,
        message: str = "Invalid path: traversal or unsafe characters detected",
        *,
        path: str | None = None,
    ) -> None:
        super().__init__(message, path=path)


class ConfigurationError(Exception):
    """Raised when credentials or repository coordinates cannot be resolved.

    This is fatal at start-up: the service must not serve requests without
    a resolved repository. It is deliberately not a StoreError.
    """

    pass
