"""Tests for environment-driven settings."""

import pytest

from composekit.settings import ComposeSettings, get_settings


def test_defaults():
    settings = ComposeSettings()

    assert settings.engine_binary == "docker"
    assert settings.manifest_path == "docker-compose.yml"
    assert settings.name_max_attempts == 100
    assert settings.ready_max_attempts == 1200
    assert settings.offline is False


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("COMPOSEKIT_ENGINE_BINARY", "podman")
    monkeypatch.setenv("COMPOSEKIT_OFFLINE", "true")
    monkeypatch.setenv("COMPOSEKIT_READY_INTERVAL", "0.25")

    settings = ComposeSettings()

    assert settings.engine_binary == "podman"
    assert settings.offline is True
    assert settings.ready_interval == 0.25


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
