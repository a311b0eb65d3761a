"""ricesync configuration loaded from the environment.

Environment Variables:
    GITHUB_TOKEN: Access token for the GitHub API (required)
    GITHUB_REPO_OWNER: Owner of the content repository (required)
    GITHUB_REPO_NAME: Name of the content repository (required)
    RICESYNC_GITHUB_API_URL: API root (default: https://api.github.com)
    RICESYNC_HTTP_TIMEOUT_SECONDS: Per-request timeout (default: 30)
    RICESYNC_MAX_ATTEMPTS: Attempts per mutation on conflict (default: 3)
    RICESYNC_BACKOFF_BASE_SECONDS: Wait after the first conflict (default: 1.0)
    RICESYNC_RETRY_DEADLINE_SECONDS: Overall retry deadline (default: none)
    RICESYNC_GUARD_MAX_ENTRIES: Idle directory lock entries kept (default: 1024)

Configuration is fail-closed: missing or malformed values raise
ConfigurationError at start-up.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError

from ricesync.storage.errors import ConfigurationError
from ricesync.storage.github_api import GITHUB_BASE_URL

GITHUB_TOKEN_ENV = "GITHUB_TOKEN"
GITHUB_REPO_OWNER_ENV = "GITHUB_REPO_OWNER"
GITHUB_REPO_NAME_ENV = "GITHUB_REPO_NAME"
RICESYNC_GITHUB_API_URL_ENV = "RICESYNC_GITHUB_API_URL"
RICESYNC_HTTP_TIMEOUT_SECONDS_ENV = "RICESYNC_HTTP_TIMEOUT_SECONDS"
RICESYNC_MAX_ATTEMPTS_ENV = "RICESYNC_MAX_ATTEMPTS"
RICESYNC_BACKOFF_BASE_SECONDS_ENV = "RICESYNC_BACKOFF_BASE_SECONDS"
RICESYNC_RETRY_DEADLINE_SECONDS_ENV = "RICESYNC_RETRY_DEADLINE_SECONDS"
RICESYNC_GUARD_MAX_ENTRIES_ENV = "RICESYNC_GUARD_MAX_ENTRIES"

_REQUIRED = (GITHUB_TOKEN_ENV, GITHUB_REPO_OWNER_ENV, GITHUB_REPO_NAME_ENV)

_OPTIONAL_FIELDS = {
    RICESYNC_GITHUB_API_URL_ENV: "api_base_url",
    RICESYNC_HTTP_TIMEOUT_SECONDS_ENV: "timeout_seconds",
    RICESYNC_MAX_ATTEMPTS_ENV: "max_attempts",
    RICESYNC_BACKOFF_BASE_SECONDS_ENV: "backoff_base_seconds",
    RICESYNC_RETRY_DEADLINE_SECONDS_ENV: "retry_deadline_seconds",
    RICESYNC_GUARD_MAX_ENTRIES_ENV: "guard_max_entries",
}


class StoreSettings(BaseModel):
    """Settings for the remote file-store layer.

    Attributes:
        github_token: API token; never logged.
        repo_owner: Owner of the content repository.
        repo_name: Name of the content repository.
        api_base_url: GitHub API root URL.
        timeout_seconds: Per-request HTTP timeout.
        max_attempts: Attempts per mutation when conflicts occur.
        backoff_base_seconds: Wait after the first conflicting attempt.
        retry_deadline_seconds: Optional overall bound on a retry sequence.
        guard_max_entries: Idle directory lock entries kept in memory.
    """

    model_config = ConfigDict(frozen=True)

    github_token: SecretStr
    repo_owner: str = Field(min_length=1)
    repo_name: str = Field(min_length=1)
    api_base_url: str = GITHUB_BASE_URL
    timeout_seconds: float = Field(default=30.0, gt=0)
    max_attempts: int = Field(default=3, ge=1)
    backoff_base_seconds: float = Field(default=1.0, ge=0)
    retry_deadline_seconds: float | None = Field(default=None, gt=0)
    guard_max_entries: int = Field(default=1024, ge=1)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> StoreSettings:
        """Build settings from environment variables.

        Args:
            environ: Mapping to read instead of os.environ (testing).

        Returns:
            Validated StoreSettings.

        Raises:
            ConfigurationError: If a required variable is missing or a value
                is malformed.
        """
        env = os.environ if environ is None else environ

        missing = [name for name in _REQUIRED if not env.get(name, "").strip()]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration. Set {', '.join(missing)} environment variable(s)."
            )

        values: dict[str, object] = {
            "github_token": env[GITHUB_TOKEN_ENV].strip(),
            "repo_owner": env[GITHUB_REPO_OWNER_ENV].strip(),
            "repo_name": env[GITHUB_REPO_NAME_ENV].strip(),
        }
        for env_name, field_name in _OPTIONAL_FIELDS.items():
            raw = env.get(env_name, "").strip()
            if raw:
                values[field_name] = raw

        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err.get("loc"))
            raise ConfigurationError(f"Invalid configuration for: {fields}") from exc
