"""Wiring of the remote file-store layer from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ricesync.config import StoreSettings
from ricesync.storage.context import RepositoryContext
from ricesync.storage.file_store import RemoteFileStore
from ricesync.storage.github_api import GitHubFileApi
from ricesync.storage.guard import DirectoryConcurrencyGuard
from ricesync.storage.remote_api import RemoteFileApi
from ricesync.storage.retry import ConflictRetryPolicy
from ricesync.storage.tree import RecursiveDirectoryOps

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreComponents:
    """Initialized store layer, ready to serve requests."""

    api: RemoteFileApi
    context: RepositoryContext
    store: RemoteFileStore
    tree: RecursiveDirectoryOps


async def open_store(
    settings: StoreSettings,
    api: RemoteFileApi | None = None,
) -> StoreComponents:
    """Build the store layer and resolve the repository.

    Args:
        settings: Validated settings.
        api: Backend to use instead of a GitHubFileApi built from settings.

    Returns:
        StoreComponents with an initialized RepositoryContext.

    Raises:
        ConfigurationError: If the repository cannot be resolved. A backend
            created here is closed before the error propagates.
    """
    owns_api = api is None
    if api is None:
        api = GitHubFileApi(
            settings.github_token.get_secret_value(),
            settings.repo_owner,
            settings.repo_name,
            base_url=settings.api_base_url,
            timeout_seconds=settings.timeout_seconds,
        )

    context = RepositoryContext(api, settings.repo_owner, settings.repo_name)
    try:
        await context.initialize()
    except Exception:
        if owns_api:
            await api.aclose()
        raise

    store = RemoteFileStore(
        api,
        context,
        guard=DirectoryConcurrencyGuard(max_entries=settings.guard_max_entries),
        retry_policy=ConflictRetryPolicy(
            max_attempts=settings.max_attempts,
            base_seconds=settings.backoff_base_seconds,
            deadline_seconds=settings.retry_deadline_seconds,
        ),
    )
    logger.info("Remote file store ready on %s (%s)", context.coordinates, api.backend_name)
    return StoreComponents(api=api, context=context, store=store, tree=RecursiveDirectoryOps(store))
