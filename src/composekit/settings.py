"""Settings for composekit.

Environment variables override defaults using the COMPOSEKIT_ prefix.

Example environment variables:
    COMPOSEKIT_ENGINE_BINARY=podman
    COMPOSEKIT_MANIFEST_PATH=ci/docker-compose.yml
    COMPOSEKIT_OFFLINE=true
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class ComposeSettings(BaseSettings):
    """Runtime settings for the compose orchestration layer."""

    model_config = SettingsConfigDict(env_prefix="COMPOSEKIT_")

    engine_binary: str = "docker"
    """Container engine CLI to invoke (docker, podman, ...)."""

    manifest_path: str = "docker-compose.yml"
    """Default manifest loaded when no manifest is passed explicitly."""

    project_name: str | None = None
    """Prefix for undeclared resource names. If None, uses the manifest name or the manifest directory basename."""

    bind_host: str = "0.0.0.0"
    """Host interface probed when allocating free local ports."""

    name_max_attempts: int = 100
    """Maximum number of suffixed container names tried before giving up."""

    probe_min_interval: float = 0.5
    """Minimum seconds between two listing calls of the same resource kind."""

    offline: bool = False
    """Skip image pulls entirely."""

    ready_interval: float = 1.0
    """Seconds between readiness probe attempts."""

    ready_max_attempts: int = 1200
    """Maximum number of readiness probe attempts."""

    run_wait_attempts: int = 10
    """Attempts to find a freshly started container in the engine listing."""

    run_wait_interval: float = 0.501
    """Seconds between attempts to find a freshly started container."""


@lru_cache
def get_settings() -> ComposeSettings:
    """Get composekit settings (cached)."""
    return ComposeSettings()


__all__ = [
    "ComposeSettings",
    "get_settings",
]
