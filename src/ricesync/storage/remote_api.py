"""ricesync remote file API interface definition.

Provides the RemoteFileApi interface that every versioned file-hosting
backend must implement. Any API with these semantics satisfies it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ricesync.storage.models import DirectoryEntry, RemoteObject, RepositoryInfo


class RemoteFileApi(ABC):
    """Abstract base class for versioned remote file APIs.

    Implementations address content by path on a named ref and gate every
    mutation on a revision token. They report absence by raising
    ObjectNotFoundError and stale revisions by raising WriteConflictError.

    Implementations:
    - GitHubFileApi: GitHub REST contents API (production)
    - InMemoryFileApi: In-process versioned store (dev/test)
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for observability.

        Returns:
            Backend name string (e.g., "github", "memory").
        """
        ...

    @abstractmethod
    async def get_repository(self, owner: str, name: str) -> RepositoryInfo:
        """Describe a repository.

        Args:
            owner: Account or organization owning the repository.
            name: Repository name.

        Returns:
            RepositoryInfo including the default branch.

        Raises:
            ObjectNotFoundError: If the repository does not exist or is not visible.
            TransportError: If the backend cannot complete the request.
        """
        ...

    @abstractmethod
    async def get_object(self, path: str, ref: str) -> RemoteObject:
        """Fetch a file and its current revision.

        Args:
            path: Normalized repository path.
            ref: Branch to read from.

        Returns:
            RemoteObject with decoded content and revision token.

        Raises:
            ObjectNotFoundError: If no file exists at path.
            TransportError: If the backend cannot complete the read.
        """
        ...

    @abstractmethod
    async def get_revision(self, path: str, ref: str) -> str:
        """Fetch only the current revision token of a file.

        Mutations need the revision but not the content, so backends can
        answer from metadata even when the content is too large to inline.

        Raises:
            ObjectNotFoundError: If no file exists at path.
            TransportError: If the backend cannot complete the lookup.
        """
        ...

    @abstractmethod
    async def put_object(
        self,
        path: str,
        content: bytes,
        *,
        revision_id: str | None,
        ref: str,
        message: str,
    ) -> str:
        """Create or update a file.

        Args:
            path: Normalized repository path.
            content: New file content.
            revision_id: Revision being replaced, None when creating.
            ref: Branch to write to.
            message: Change description recorded with the mutation.

        Returns:
            Revision token of the newly stored version.

        Raises:
            WriteConflictError: If revision_id is stale, or omitted while the
                file already exists.
            TransportError: If the backend cannot complete the write.
        """
        ...

    @abstractmethod
    async def delete_object(
        self,
        path: str,
        *,
        revision_id: str,
        ref: str,
        message: str,
    ) -> None:
        """Delete a file.

        Args:
            path: Normalized repository path.
            revision_id: Revision being deleted.
            ref: Branch to write to.
            message: Change description recorded with the mutation.

        Raises:
            WriteConflictError: If revision_id is stale.
            ObjectNotFoundError: If no file exists at path.
            TransportError: If the backend cannot complete the deletion.
        """
        ...

    @abstractmethod
    async def list_directory(self, path: str, ref: str) -> list[DirectoryEntry]:
        """List a single directory level.

        Args:
            path: Normalized directory path ("" for the repository root).
            ref: Branch to read from.

        Returns:
            Entries in the order the backend reports them.

        Raises:
            ObjectNotFoundError: If the directory does not exist.
            TransportError: If the backend cannot complete the listing.
        """
        ...

    async def aclose(self) -> None:
        """Release backend resources. Default is a no-op."""
        return None
