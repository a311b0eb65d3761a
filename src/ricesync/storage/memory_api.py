"""In-memory versioned file API.

Provides a process-local backend honoring the RemoteFileApi contract for
development and testing:
- Revision tokens are fresh UUIDs per stored version
- Directories are implied by path prefixes
- Every call yields to the event loop once, like a real network round trip
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field

from ricesync.storage.errors import ObjectNotFoundError, WriteConflictError
from ricesync.storage.models import (
    DirectoryEntry,
    EntryKind,
    RemoteObject,
    RepositoryInfo,
)
from ricesync.storage.remote_api import RemoteFileApi

logger = logging.getLogger(__name__)


@dataclass
class _StoredFile:
    content: bytes
    revision_id: str
    message: str


@dataclass
class MutationRecord:
    """A successful mutation, kept for inspection in tests."""

    operation: str
    path: str
    message: str
    revision_id: str | None = None


@dataclass
class InMemoryFileApi(RemoteFileApi):
    """In-memory implementation of a single-repository versioned file API.

    Attributes:
        owner: Owner the repository answers to.
        repository: Repository name it answers to.
        default_branch: The only branch holding content.
        mutations: Log of successful put/delete calls in order.
    """

    owner: str = "ricesync"
    repository: str = "rices"
    default_branch: str = "main"
    mutations: list[MutationRecord] = field(default_factory=list)
    _files: dict[str, _StoredFile] = field(default_factory=dict, repr=False)

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "memory"

    def snapshot(self) -> dict[str, bytes]:
        """Return a copy of all stored content keyed by path."""
        return {path: stored.content for path, stored in self._files.items()}

    def revision_of(self, path: str) -> str | None:
        """Return the current revision of a path without yielding."""
        stored = self._files.get(path)
        return stored.revision_id if stored else None

    def _check_ref(self, ref: str, path: str) -> None:
        if ref != self.default_branch:
            raise ObjectNotFoundError(message=f"No commit found for ref {ref}", path=path)

    async def get_repository(self, owner: str, name: str) -> RepositoryInfo:
        await asyncio.sleep(0)
        if (owner, name) != (self.owner, self.repository):
            raise ObjectNotFoundError(message=f"Repository {owner}/{name} not found")
        return RepositoryInfo(
            owner=self.owner,
            repository=self.repository,
            default_branch=self.default_branch,
        )

    async def get_object(self, path: str, ref: str) -> RemoteObject:
        await asyncio.sleep(0)
        self._check_ref(ref, path)
        stored = self._files.get(path)
        if stored is None:
            raise ObjectNotFoundError(path=path)
        return RemoteObject(path=path, content=stored.content, revision_id=stored.revision_id)

    async def get_revision(self, path: str, ref: str) -> str:
        await asyncio.sleep(0)
        self._check_ref(ref, path)
        stored = self._files.get(path)
        if stored is None:
            raise ObjectNotFoundError(path=path)
        return stored.revision_id

    async def put_object(
        self,
        path: str,
        content: bytes,
        *,
        revision_id: str | None,
        ref: str,
        message: str,
    ) -> str:
        await asyncio.sleep(0)
        self._check_ref(ref, path)
        current = self._files.get(path)

        if current is None and revision_id is not None:
            raise WriteConflictError(
                message="Revision supplied for a file that does not exist",
                path=path,
                revision_id=revision_id,
            )
        if current is not None and current.revision_id != revision_id:
            raise WriteConflictError(
                message="Revision does not match the stored file",
                path=path,
                revision_id=revision_id,
            )

        new_revision = uuid.uuid4().hex
        self._files[path] = _StoredFile(content=content, revision_id=new_revision, message=message)
        self.mutations.append(
            MutationRecord(operation="put", path=path, message=message, revision_id=new_revision)
        )
        logger.debug("Stored %s revision=%s", path, new_revision)
        return new_revision

    async def delete_object(
        self,
        path: str,
        *,
        revision_id: str,
        ref: str,
        message: str,
    ) -> None:
        await asyncio.sleep(0)
        self._check_ref(ref, path)
        current = self._files.get(path)

        if current is None:
            raise ObjectNotFoundError(path=path)
        if current.revision_id != revision_id:
            raise WriteConflictError(
                message="Revision does not match the stored file",
                path=path,
                revision_id=revision_id,
            )

        del self._files[path]
        self.mutations.append(MutationRecord(operation="delete", path=path, message=message))
        logger.debug("Deleted %s", path)

    async def list_directory(self, path: str, ref: str) -> list[DirectoryEntry]:
        await asyncio.sleep(0)
        self._check_ref(ref, path)

        if path in self._files:
            return []

        prefix = f"{path}/" if path else ""
        children: dict[str, EntryKind] = {}
        for file_path in self._files:
            if not file_path.startswith(prefix):
                continue
            name, sep, _ = file_path[len(prefix) :].partition("/")
            children[name] = EntryKind.DIRECTORY if sep else EntryKind.FILE

        if not children and path:
            raise ObjectNotFoundError(path=path)

        return [
            DirectoryEntry(name=name, path=f"{prefix}{name}", kind=kind)
            for name, kind in sorted(children.items())
        ]
