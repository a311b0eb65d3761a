"""Repository coordinate resolution.

Resolves the owner/repository/default-branch coordinate once at start-up.
Any failure is a configuration error: the service must not serve requests
against an unresolved repository. There is no retry here.
"""

from __future__ import annotations

import logging

from ricesync.storage.errors import (
    ConfigurationError,
    ObjectNotFoundError,
    StoreError,
)
from ricesync.storage.models import RepositoryCoordinates
from ricesync.storage.remote_api import RemoteFileApi

logger = logging.getLogger(__name__)


class RepositoryContext:
    """Holds the resolved repository coordinate; immutable once set."""

    def __init__(self, api: RemoteFileApi, owner: str, repository: str) -> None:
        self._api = api
        self._owner = owner
        self._repository = repository
        self._coordinates: RepositoryCoordinates | None = None

    @property
    def is_initialized(self) -> bool:
        return self._coordinates is not None

    @property
    def coordinates(self) -> RepositoryCoordinates:
        """Return the resolved coordinate.

        Raises:
            ConfigurationError: If initialize() has not completed.
        """
        if self._coordinates is None:
            raise ConfigurationError("Repository context has not been initialized")
        return self._coordinates

    @property
    def default_branch(self) -> str:
        return self.coordinates.default_branch

    async def initialize(self) -> RepositoryCoordinates:
        """Confirm the repository exists and record its default branch.

        Returns:
            The resolved RepositoryCoordinates.

        Raises:
            ConfigurationError: If identifiers are missing, or the repository
                is not found or not accessible.
        """
        if self._coordinates is not None:
            return self._coordinates

        if not self._owner or not self._repository:
            logger.error("Repository owner or name is not configured")
            raise ConfigurationError("Repository owner and name must both be configured")

        try:
            info = await self._api.get_repository(self._owner, self._repository)
        except ObjectNotFoundError as exc:
            logger.error("Repository %s/%s not found", self._owner, self._repository)
            raise ConfigurationError(
                f"Repository {self._owner}/{self._repository} not found"
            ) from exc
        except StoreError as exc:
            logger.error(
                "Error fetching repository %s/%s: %s", self._owner, self._repository, exc
            )
            raise ConfigurationError(
                f"Repository {self._owner}/{self._repository} is not accessible: {exc}"
            ) from exc

        self._coordinates = RepositoryCoordinates(
            owner=info.owner,
            repository=info.repository,
            default_branch=info.default_branch,
        )
        logger.info("Default branch of %s resolved", self._coordinates)
        return self._coordinates
