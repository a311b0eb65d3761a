"""Tests for StoreSettings environment loading.

Configuration is fail-closed: missing or malformed values raise
ConfigurationError instead of falling back to defaults.
"""

from __future__ import annotations

import pytest

from ricesync.config import (
    GITHUB_REPO_NAME_ENV,
    GITHUB_REPO_OWNER_ENV,
    GITHUB_TOKEN_ENV,
    RICESYNC_BACKOFF_BASE_SECONDS_ENV,
    RICESYNC_GUARD_MAX_ENTRIES_ENV,
    RICESYNC_MAX_ATTEMPTS_ENV,
    RICESYNC_RETRY_DEADLINE_SECONDS_ENV,
    StoreSettings,
)
from ricesync.storage.errors import ConfigurationError
from ricesync.storage.github_api import GITHUB_BASE_URL

BASE_ENV = {
    GITHUB_TOKEN_ENV: "ghp_secret_value",
    GITHUB_REPO_OWNER_ENV: "zen-browser",
    GITHUB_REPO_NAME_ENV: "rices-store",
}


class TestFromEnv:
    """Tests for StoreSettings.from_env."""

    def test_defaults(self) -> None:
        settings = StoreSettings.from_env(BASE_ENV)

        assert settings.repo_owner == "zen-browser"
        assert settings.repo_name == "rices-store"
        assert settings.github_token.get_secret_value() == "ghp_secret_value"
        assert settings.api_base_url == GITHUB_BASE_URL
        assert settings.timeout_seconds == 30.0
        assert settings.max_attempts == 3
        assert settings.backoff_base_seconds == 1.0
        assert settings.retry_deadline_seconds is None
        assert settings.guard_max_entries == 1024

    def test_token_is_not_rendered(self) -> None:
        settings = StoreSettings.from_env(BASE_ENV)

        assert "ghp_secret_value" not in repr(settings)
        assert "ghp_secret_value" not in str(settings.github_token)

    def test_optional_overrides(self) -> None:
        env = {
            **BASE_ENV,
            RICESYNC_MAX_ATTEMPTS_ENV: "5",
            RICESYNC_BACKOFF_BASE_SECONDS_ENV: "0.5",
            RICESYNC_RETRY_DEADLINE_SECONDS_ENV: "10",
            RICESYNC_GUARD_MAX_ENTRIES_ENV: "64",
        }

        settings = StoreSettings.from_env(env)

        assert settings.max_attempts == 5
        assert settings.backoff_base_seconds == 0.5
        assert settings.retry_deadline_seconds == 10.0
        assert settings.guard_max_entries == 64

    def test_blank_optional_value_uses_default(self) -> None:
        settings = StoreSettings.from_env({**BASE_ENV, RICESYNC_MAX_ATTEMPTS_ENV: "  "})

        assert settings.max_attempts == 3

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for key, value in BASE_ENV.items():
            monkeypatch.setenv(key, value)

        assert StoreSettings.from_env().repo_name == "rices-store"

    @pytest.mark.parametrize("missing", [GITHUB_TOKEN_ENV, GITHUB_REPO_OWNER_ENV, GITHUB_REPO_NAME_ENV])
    def test_missing_required_variable(self, missing: str) -> None:
        env = {key: value for key, value in BASE_ENV.items() if key != missing}

        with pytest.raises(ConfigurationError, match=missing):
            StoreSettings.from_env(env)

    def test_blank_required_variable_counts_as_missing(self) -> None:
        with pytest.raises(ConfigurationError, match=GITHUB_TOKEN_ENV):
            StoreSettings.from_env({**BASE_ENV, GITHUB_TOKEN_ENV: "   "})

    def test_all_missing_listed(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            StoreSettings.from_env({})

        message = str(exc_info.value)
        assert GITHUB_TOKEN_ENV in message
        assert GITHUB_REPO_OWNER_ENV in message
        assert GITHUB_REPO_NAME_ENV in message

    @pytest.mark.parametrize(
        ("env_name", "value", "field"),
        [
            (RICESYNC_MAX_ATTEMPTS_ENV, "0", "max_attempts"),
            (RICESYNC_MAX_ATTEMPTS_ENV, "three", "max_attempts"),
            (RICESYNC_BACKOFF_BASE_SECONDS_ENV, "-1", "backoff_base_seconds"),
            (RICESYNC_RETRY_DEADLINE_SECONDS_ENV, "0", "retry_deadline_seconds"),
            (RICESYNC_GUARD_MAX_ENTRIES_ENV, "0", "guard_max_entries"),
        ],
    )
    def test_malformed_value_fails_closed(self, env_name: str, value: str, field: str) -> None:
        with pytest.raises(ConfigurationError, match=field):
            StoreSettings.from_env({**BASE_ENV, env_name: value})
