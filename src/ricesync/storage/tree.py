"""Recursive directory operations over a RemoteFileStore.

Traversal is an explicit depth-first worklist (a stack of listing iterators),
so tree depth never grows the call stack. Absent subtrees contribute nothing,
which tolerates directories vanishing under a concurrent deletion.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from ricesync.storage.file_store import RemoteFileStore
from ricesync.storage.models import DirectoryEntry
from ricesync.storage.paths import (
    GITIGNORE_NAME,
    PLACEHOLDER_NAME,
    basename,
    join_path,
    normalize_path,
)

logger = logging.getLogger(__name__)


class RecursiveDirectoryOps:
    """Subtree enumeration and cascade deletion."""

    def __init__(self, store: RemoteFileStore) -> None:
        self._store = store

    async def list_all(self, root: str) -> list[str]:
        """List every file path under root, depth first.

        Args:
            root: Directory to start from ("" for the repository root).

        Returns:
            File paths in depth-first listing order.
        """
        files: list[str] = []
        stack: list[Iterator[DirectoryEntry]] = [
            iter(await self._store.list_directory(normalize_path(root)))
        ]

        while stack:
            entry = next(stack[-1], None)
            if entry is None:
                stack.pop()
            elif entry.is_directory:
                stack.append(iter(await self._store.list_directory(entry.path)))
            else:
                files.append(entry.path)

        return files

    async def delete_subtree(self, root: str, change_description: str) -> int:
        """Delete every file under root, then its directory placeholder.

        Each delete is idempotent, so a partially failed run can be repeated.

        Args:
            root: Directory to remove.
            change_description: Message recorded with every deletion.

        Returns:
            Number of files found and deleted (placeholder included if listed).
        """
        key = normalize_path(root)
        files = await self.list_all(key)
        for file_path in files:
            await self._store.delete(file_path, change_description)

        placeholder = join_path(key, PLACEHOLDER_NAME)
        if placeholder not in files:
            await self._store.delete(placeholder, change_description)

        logger.info("Removed %d files under %s", len(files), key or "/")
        return len(files)

    async def clear_repository(self, change_description: str = "Clear repository") -> int:
        """Delete every file except the root .gitignore and .gitkeep placeholders.

        Returns:
            Number of files deleted.
        """
        logger.info("Starting repository cleanup")
        deleted = 0
        for file_path in await self.list_all(""):
            if file_path == GITIGNORE_NAME or basename(file_path) == PLACEHOLDER_NAME:
                continue
            await self._store.delete(file_path, f"{change_description}: Remove {file_path}")
            deleted += 1
        logger.info("Repository cleaned: %d files removed", deleted)
        return deleted
