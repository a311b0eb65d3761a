"""Pytest configuration and fixtures for ricesync tests.

Provides an in-memory backend, a recording fake sleep standing in for the
clock, and an initialized RemoteFileStore wired to both.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import pytest
import pytest_asyncio

from ricesync.observability.tracing import RICESYNC_OTEL_ENABLED_ENV
from ricesync.storage.context import RepositoryContext
from ricesync.storage.errors import WriteConflictError
from ricesync.storage.file_store import RemoteFileStore
from ricesync.storage.guard import DirectoryConcurrencyGuard
from ricesync.storage.memory_api import InMemoryFileApi
from ricesync.storage.retry import ConflictRetryPolicy
from ricesync.storage.tree import RecursiveDirectoryOps

TEST_OWNER = "zen-browser"
TEST_REPOSITORY = "rices-store"
TEST_BRANCH = "main"


class FakeSleep:
    """Records requested waits and yields once instead of sleeping."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


@dataclass
class ConflictingFileApi(InMemoryFileApi):
    """In-memory backend that rejects the first N mutations with a conflict."""

    put_conflicts: int = 0
    delete_conflicts: int = 0
    put_attempts: int = 0
    delete_attempts: int = 0

    async def put_object(self, path, content, *, revision_id, ref, message):  # type: ignore[no-untyped-def]
        self.put_attempts += 1
        if self.put_conflicts > 0:
            self.put_conflicts -= 1
            await asyncio.sleep(0)
            raise WriteConflictError(path=path, revision_id=revision_id)
        return await super().put_object(
            path, content, revision_id=revision_id, ref=ref, message=message
        )

    async def delete_object(self, path, *, revision_id, ref, message):  # type: ignore[no-untyped-def]
        self.delete_attempts += 1
        if self.delete_conflicts > 0:
            self.delete_conflicts -= 1
            await asyncio.sleep(0)
            raise WriteConflictError(path=path, revision_id=revision_id)
        await super().delete_object(path, revision_id=revision_id, ref=ref, message=message)


@dataclass
class StoreHarness:
    """A store wired to a backend and a fake sleep."""

    api: InMemoryFileApi
    store: RemoteFileStore
    sleep: FakeSleep
    tree: RecursiveDirectoryOps = field(init=False)

    def __post_init__(self) -> None:
        self.tree = RecursiveDirectoryOps(self.store)


async def build_harness(
    api: InMemoryFileApi,
    *,
    guard: DirectoryConcurrencyGuard | None = None,
) -> StoreHarness:
    """Initialize a context and store over api with a recording sleep."""
    sleep = FakeSleep()
    context = RepositoryContext(api, TEST_OWNER, TEST_REPOSITORY)
    await context.initialize()
    store = RemoteFileStore(
        api,
        context,
        guard=guard,
        retry_policy=ConflictRetryPolicy(sleep=sleep),
    )
    return StoreHarness(api=api, store=store, sleep=sleep)


@pytest.fixture(autouse=True)
def disable_tracing(monkeypatch: pytest.MonkeyPatch) -> None:
    """Tracing is off unless a test enables it explicitly."""
    monkeypatch.delenv(RICESYNC_OTEL_ENABLED_ENV, raising=False)


@pytest.fixture
def memory_api() -> ConflictingFileApi:
    """Return an empty in-memory backend for the test repository."""
    return ConflictingFileApi(
        owner=TEST_OWNER,
        repository=TEST_REPOSITORY,
        default_branch=TEST_BRANCH,
    )


@pytest.fixture
def harness_factory() -> Callable[..., Awaitable[StoreHarness]]:
    """Return the builder for additional stores (e.g. sharing one backend)."""
    return build_harness


@pytest_asyncio.fixture
async def harness(memory_api: ConflictingFileApi) -> StoreHarness:
    """Return an initialized store over the in-memory backend."""
    return await build_harness(memory_api)
