"""Revision-aware remote file store.

Turns a versioned remote file API into a create/read/update/delete/list
interface safe for concurrent asyncio tasks in one process:
- Reads map absence to None and never take the directory guard
- Mutations hold the guard for the parent directory of the target path
- Each mutation attempt re-fetches the current revision before submitting
- Write conflicts are retried through the ConflictRetryPolicy
- Deletes of absent paths succeed (idempotent)
"""

from __future__ import annotations

import logging

from ricesync.storage.context import RepositoryContext
from ricesync.storage.errors import ObjectNotFoundError, WriteConflictError
from ricesync.storage.guard import DirectoryConcurrencyGuard
from ricesync.storage.models import DirectoryEntry, FileHandle
from ricesync.storage.paths import normalize_path, parent_of
from ricesync.storage.remote_api import RemoteFileApi
from ricesync.storage.retry import AttemptResult, ConflictRetryPolicy
from ricesync.storage.tracing import traced_store_operation

logger = logging.getLogger(__name__)


class RemoteFileStore:
    """Safe CRUD/list interface over a RemoteFileApi.

    The guard and retry policy are injected; defaults are created when
    omitted. The repository context must be initialized before any call.
    """

    def __init__(
        self,
        api: RemoteFileApi,
        context: RepositoryContext,
        *,
        guard: DirectoryConcurrencyGuard | None = None,
        retry_policy: ConflictRetryPolicy | None = None,
    ) -> None:
        self._api = api
        self._context = context
        self._guard = guard or DirectoryConcurrencyGuard()
        self._retry = retry_policy or ConflictRetryPolicy()

    @property
    def backend_name(self) -> str:
        return self._api.backend_name

    @property
    def branch(self) -> str | None:
        """Default branch, or None before the context is initialized."""
        if not self._context.is_initialized:
            return None
        return self._context.default_branch

    @property
    def guard(self) -> DirectoryConcurrencyGuard:
        return self._guard

    async def _current_revision(self, key: str) -> str | None:
        """Fetch the revision currently stored at key, None if absent."""
        try:
            return await self._api.get_revision(key, self._context.default_branch)
        except ObjectNotFoundError:
            return None

    @traced_store_operation("read")
    async def read_handle(self, path: str) -> FileHandle | None:
        """Fetch a file with its revision token.

        Returns:
            FileHandle, or None if no file exists at path.
        """
        key = normalize_path(path)
        try:
            obj = await self._api.get_object(key, self._context.default_branch)
        except ObjectNotFoundError:
            return None
        return FileHandle(path=key, content=obj.content, revision_id=obj.revision_id)

    async def read(self, path: str) -> bytes | None:
        """Fetch file content, or None if no file exists at path."""
        handle = await self.read_handle(path)
        return handle.content if handle is not None else None

    @traced_store_operation("write")
    async def write(self, path: str, content: bytes | str, change_description: str) -> None:
        """Create or update a file.

        Args:
            path: Repository path of the file.
            content: New content; str is encoded as UTF-8.
            change_description: Message recorded with the mutation.

        Raises:
            PersistentConflictError: If every attempt conflicted.
            TransportError: On any other remote failure.
        """
        key = normalize_path(path)
        data = content.encode("utf-8") if isinstance(content, str) else content
        branch = self._context.default_branch

        async def attempt(number: int) -> AttemptResult[None]:
            revision = await self._current_revision(key)
            try:
                await self._api.put_object(
                    key,
                    data,
                    revision_id=revision,
                    ref=branch,
                    message=change_description,
                )
            except WriteConflictError as exc:
                return AttemptResult.retryable(exc)
            return AttemptResult.success()

        async with self._guard.hold(parent_of(key)):
            await self._retry.run(attempt, path=key, operation="write")
        logger.info("File %s created/updated", key)

    @traced_store_operation("delete")
    async def delete(self, path: str, change_description: str) -> None:
        """Delete a file; an absent file counts as already deleted.

        Raises:
            PersistentConflictError: If every attempt conflicted.
            TransportError: On any other remote failure.
        """
        key = normalize_path(path)
        branch = self._context.default_branch

        async def attempt(number: int) -> AttemptResult[bool]:
            revision = await self._current_revision(key)
            if revision is None:
                return AttemptResult.success(False)
            try:
                await self._api.delete_object(
                    key,
                    revision_id=revision,
                    ref=branch,
                    message=change_description,
                )
            except WriteConflictError as exc:
                return AttemptResult.retryable(exc)
            except ObjectNotFoundError:
                return AttemptResult.success(False)
            return AttemptResult.success(True)

        async with self._guard.hold(parent_of(key)):
            deleted = await self._retry.run(attempt, path=key, operation="delete")

        if deleted:
            logger.info("File %s deleted", key)
        else:
            logger.warning("File %s does not exist; nothing to delete", key)

    @traced_store_operation("list_directory")
    async def list_directory(self, path: str) -> list[DirectoryEntry]:
        """List one directory level; an absent directory lists as empty."""
        key = normalize_path(path)
        try:
            return await self._api.list_directory(key, self._context.default_branch)
        except ObjectNotFoundError:
            logger.warning("Directory %s does not exist", key or "/")
            return []
