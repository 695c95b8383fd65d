"""Create-if-absent provisioning of named networks and volumes.

``ensure_*`` never touches an existing resource: a network or volume that
already exists is returned as is, even if its configuration differs from the
declaration. Calls for the same name on one provisioner are serialized so that
services brought up concurrently create a shared resource exactly once. Two
separate provisioners are not coordinated; if both create the same name the
loser sees whatever the engine reports for a duplicate create.
"""

from __future__ import annotations

import asyncio

from composekit.core.utils import logger
from composekit.engine.client import EngineClient
from composekit.engine.handles import NetworkHandle, VolumeHandle
from composekit.types.manifest import NetworkDefinition, VolumeDefinition

from .tracker import ResourceTracker


class ResourceProvisioner:
    """Ensures named networks and volumes exist.

    Args:
        client: Engine client used to probe and create resources.
    """

    def __init__(self, client: EngineClient) -> None:
        self.client = client
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}

    def _lock(self, kind: str, name: str) -> asyncio.Lock:
        return self._locks.setdefault((kind, name), asyncio.Lock())

    async def ensure_network(
        self,
        name: str,
        definition: NetworkDefinition | None = None,
        *,
        tracker: ResourceTracker | None = None,
    ) -> NetworkHandle:
        """Return the network named ``name``, creating it if absent.

        Args:
            name: Engine network name.
            definition: Declared options used when the network has to be created.
            tracker: Tracker that records the network if this call created it.

        Raises:
            CreationError: If the network could not be created.
        """
        async with self._lock("network", name):
            existing = await self.client.find_network(name)
            if existing is not None:
                return existing
            logger.info(f"Creating network {name}")
            network = await self.client.create_network(name, definition)
            if tracker is not None:
                tracker.networks[name] = network
            return network

    async def ensure_volume(
        self,
        name: str,
        definition: VolumeDefinition | None = None,
        *,
        tracker: ResourceTracker | None = None,
    ) -> VolumeHandle:
        """Return the volume named ``name``, creating it if absent.

        Args:
            name: Engine volume name.
            definition: Declared options used when the volume has to be created.
            tracker: Tracker that records the volume if this call created it.

        Raises:
            CreationError: If the volume could not be created.
        """
        async with self._lock("volume", name):
            existing = await self.client.find_volume(name, exact=True)
            if existing is not None:
                return existing
            logger.info(f"Creating volume {name}")
            volume = await self.client.create_volume(name, definition)
            if tracker is not None:
                tracker.volumes[name] = volume
            return volume


__all__ = ["ResourceProvisioner"]
