"""Container engine backend abstraction.

This package provides a Protocol for engine backends and a CLI implementation
that works with docker and docker-compatible engines.
"""

from functools import lru_cache

from composekit.settings import get_settings

from .docker import DockerCliBackend
from .protocol import CommandResult, EngineBackend


@lru_cache
def get_default_backend() -> EngineBackend:
    """Get the default engine backend (CLI named by the engine_binary setting)."""
    return DockerCliBackend(binary=get_settings().engine_binary)


__all__ = [
    "CommandResult",
    "DockerCliBackend",
    "EngineBackend",
    "get_default_backend",
]
