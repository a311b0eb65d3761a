"""Per-directory mutual exclusion for store mutations.

Ensures at most one mutating RemoteFileStore operation is in flight per
normalized directory path within this process. Each path maps to an
asyncio.Lock, which wakes a waiter on release instead of polling. The table
is bounded: idle entries beyond max_entries are evicted least recently used
first.

This guard gives no protection across processes; the remote store's own
revision check still catches those races.
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from ricesync.storage.models import DirectoryLockEntry
from ricesync.storage.paths import normalize_path

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 1024


@dataclass
class _GuardEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0

    @property
    def idle(self) -> bool:
        return self.users == 0 and not self.lock.locked()


class DirectoryConcurrencyGuard:
    """Owned lock table keyed by normalized directory path."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._entries: OrderedDict[str, _GuardEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def _entry_for(self, key: str) -> _GuardEntry:
        entry = self._entries.get(key)
        if entry is None:
            entry = _GuardEntry()
            self._entries[key] = entry
            self._evict_idle(keep=key)
        else:
            self._entries.move_to_end(key)
        return entry

    def _evict_idle(self, keep: str) -> None:
        overflow = len(self._entries) - self._max_entries
        if overflow <= 0:
            return
        idle = [k for k, entry in self._entries.items() if entry.idle and k != keep]
        for key in idle[:overflow]:
            del self._entries[key]
            logger.debug("Evicted idle directory guard entry %s", key)

    async def acquire(self, path: str) -> None:
        """Wait until the directory is free, then hold it."""
        key = normalize_path(path)
        entry = self._entry_for(key)
        entry.users += 1
        if entry.lock.locked():
            logger.debug("Directory %s is locked. Waiting...", key)
        try:
            await entry.lock.acquire()
        except BaseException:
            entry.users -= 1
            raise
        logger.debug("Directory %s locked", key)

    def release(self, path: str) -> None:
        """Release a directory held by acquire()."""
        key = normalize_path(path)
        entry = self._entries.get(key)
        if entry is None or not entry.lock.locked():
            raise RuntimeError(f"Directory {key!r} is not held")
        entry.lock.release()
        entry.users -= 1
        logger.debug("Directory %s unlocked", key)

    @asynccontextmanager
    async def hold(self, path: str) -> AsyncIterator[str]:
        """Hold a directory for the duration of the block.

        Yields:
            The normalized directory path.
        """
        key = normalize_path(path)
        await self.acquire(key)
        try:
            yield key
        finally:
            self.release(key)

    def is_held(self, path: str) -> bool:
        entry = self._entries.get(normalize_path(path))
        return entry is not None and entry.lock.locked()

    def entries(self) -> list[DirectoryLockEntry]:
        """Snapshot of the lock table, least recently used first."""
        return [
            DirectoryLockEntry(normalized_path=key, held=entry.lock.locked())
            for key, entry in self._entries.items()
        ]
