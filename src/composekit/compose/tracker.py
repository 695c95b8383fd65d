"""Per-invocation registry of created engine resources."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from composekit.engine.handles import ContainerHandle, NetworkHandle, VolumeHandle

    from .service import ComposeService


@dataclass
class ResourceTracker:
    """Everything one invocation created, keyed by name.

    Teardown drains the collections. ``teardown_task`` holds the single
    in-flight teardown; concurrent teardown requests await it instead of
    starting a second one.
    """

    containers: dict[str, ContainerHandle] = field(default_factory=dict)
    networks: dict[str, NetworkHandle] = field(default_factory=dict)
    volumes: dict[str, VolumeHandle] = field(default_factory=dict)
    services: dict[str, ComposeService] = field(default_factory=dict)
    teardown_task: asyncio.Task[None] | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.containers or self.networks or self.volumes or self.services)

    def clear(self) -> None:
        self.containers.clear()
        self.networks.clear()
        self.volumes.clear()
        self.services.clear()


__all__ = ["ResourceTracker"]
