"""Engine client: mutating commands on top of the resource probe.

The client turns probe records into handles and issues the create/start/stop
/kill/rm commands the orchestration layer needs.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from composekit.core.utils import logger
from composekit.errors import ComposeError, CreationError, EngineCommandError
from composekit.types.manifest import NetworkDefinition, VolumeDefinition

from .backend import EngineBackend, get_default_backend
from .handles import ContainerHandle, NetworkHandle, VolumeHandle
from .probe import ResourceProbe

T = TypeVar("T")

REFIND_ATTEMPTS = 10
REFIND_INTERVAL = 0.501


async def _wait_for(
    finder: Callable[[], Awaitable[T | None]],
    *,
    attempts: int = REFIND_ATTEMPTS,
    interval: float = REFIND_INTERVAL,
) -> T | None:
    """Call ``finder`` until it returns something, at most ``attempts`` extra times."""
    found = await finder()
    attempt = 0
    while found is None and attempt < attempts:
        await asyncio.sleep(interval)
        found = await finder()
        attempt += 1
    return found


def network_create_args(name: str, definition: NetworkDefinition | None = None) -> list[str]:
    """Build ``network create`` arguments from a network definition.

    Args:
        name: Network name to create.
        definition: Declared network options, if any.

    Returns:
        Arguments for the engine, without the binary.
    """
    definition = definition or NetworkDefinition()
    args = ["network", "create"]
    for label in definition.labels:
        args.extend(["--label", label])
    for gateway in definition.gateways:
        args.extend(["--gateway", gateway])
    for subnet in definition.subnets:
        args.extend(["--subnet", subnet])
    for address in definition.aux_addresses:
        args.extend(["--aux-address", address])
    if definition.ip_range:
        args.extend(["--ip-range", definition.ip_range])
    if definition.ingress:
        args.append("--ingress")
    if definition.internal:
        args.append("--internal")
    if definition.ipv6:
        args.append("--ipv6")
    if definition.driver:
        args.extend(["-d", definition.driver])
    for key, value in definition.driver_opts.items():
        args.extend(["-o", f"{key}={value}"])
    args.append(name)
    return args


def volume_create_args(name: str, definition: VolumeDefinition | None = None) -> list[str]:
    """Build ``volume create`` arguments from a volume definition."""
    definition = definition or VolumeDefinition()
    args = ["volume", "create"]
    for label in definition.labels:
        args.extend(["--label", label])
    if definition.driver:
        args.extend(["-d", definition.driver])
    for key, value in definition.driver_opts.items():
        args.extend(["-o", f"{key}={value}"])
    args.append(name)
    return args


class EngineClient:
    """Issues container engine commands and wraps results in handles.

    Args:
        backend: Engine backend. If None, uses the default CLI backend.
        min_interval: Minimum seconds between two listings of the same kind.
    """

    def __init__(self, backend: EngineBackend | None = None, *, min_interval: float = 0.0) -> None:
        self.backend = backend or get_default_backend()
        self.probe = ResourceProbe(self.backend, min_interval=min_interval)

    # Containers

    async def list_containers(self, *, all_: bool = False) -> list[ContainerHandle]:
        return [ContainerHandle(record, self) for record in await self.probe.list_containers(all_=all_)]

    async def find_container(
        self, search: str, *, all_: bool = False, match_id: bool = True
    ) -> ContainerHandle | None:
        """Find a container by name or id prefix; None if it does not exist."""
        record = await self.probe.find_container(search, all_=all_, match_id=match_id)
        return ContainerHandle(record, self) if record else None

    async def start_container(self, container_id: str) -> None:
        await self.backend.run(["container", "start", container_id])

    async def restart_container(self, container_id: str) -> None:
        await self.backend.run(["container", "restart", container_id])

    async def stop_container(self, container_id: str, *, ignore_errors: bool = True) -> None:
        try:
            await self.backend.run(["container", "stop", container_id])
        except EngineCommandError as e:
            if not ignore_errors:
                raise EngineCommandError(e.command, e.returncode, f"Failed to stop container: {e.stderr}") from e

    async def kill_container(self, container_id: str, *, ignore_errors: bool = True) -> None:
        try:
            await self.backend.run(["container", "kill", container_id])
        except EngineCommandError as e:
            if not ignore_errors:
                raise EngineCommandError(e.command, e.returncode, f"Failed to kill container: {e.stderr}") from e

    async def rm_container(self, container_id: str, *, ignore_errors: bool = True) -> None:
        try:
            await self.backend.run(["container", "rm", container_id])
        except EngineCommandError as e:
            if not ignore_errors:
                raise
            logger.warning(f"Warning (ignored Error): Failed to remove container {container_id}: {e}")

    async def run_container(
        self,
        *,
        image: str,
        run_args: Sequence[str] = (),
        cmd: Sequence[str] = (),
    ) -> str:
        """Run ``container run`` and return its stdout."""
        result = await self.backend.run(["container", "run", *run_args, image, *cmd])
        return result.stdout

    async def run_daemon(
        self,
        *,
        image: str,
        run_args: Sequence[str] = (),
        cmd: Sequence[str] = (),
        wait_attempts: int = REFIND_ATTEMPTS,
        wait_interval: float = REFIND_INTERVAL,
    ) -> ContainerHandle:
        """Run a detached container and wait until the engine lists it.

        Args:
            image: Image to run.
            run_args: Engine run arguments (name, ports, volumes, ...).
            cmd: Command override passed after the image.
            wait_attempts: Attempts to find the new container in the listing.
            wait_interval: Seconds between attempts.

        Returns:
            Handle to the new container.

        Raises:
            CreationError: If the container could not be created or never showed up.
        """
        try:
            container_id = (await self.run_container(image=image, run_args=["-d", *run_args], cmd=cmd)).strip()
        except ComposeError as e:
            raise CreationError(f"Failed to create container from image {image}: {e}") from e

        # Containers don't always show up in the list right away
        container = await _wait_for(
            lambda: self.find_container(container_id, all_=True), attempts=wait_attempts, interval=wait_interval
        )

        if container is None:
            raise CreationError(f"Failed to find newly created container: {container_id}")
        return container

    async def pull_image(self, image: str, *, offline: bool = False) -> None:
        """Pull an image; skipped when running offline.

        Raises:
            EngineCommandError: If the pull fails.
        """
        if offline:
            logger.info(f"Offline mode, skipping pull of {image}")
            return
        await self.backend.run(["pull", image])

    async def prune_exited_containers(self, *, dry_run: bool = False) -> list[str]:
        """Remove stopped containers.

        Args:
            dry_run: If True, only log what would be removed.

        Returns:
            Ids of the exited containers found.
        """
        exited = [c for c in await self.list_containers(all_=True) if c.record.exited]
        ids = [c.id for c in exited]
        if dry_run:
            if ids:
                logger.info("Containers to delete (dry run):\n  " + "\n  ".join(ids))
            else:
                logger.info("No containers to delete (dry run)")
            return ids
        await asyncio.gather(*(c.rm(ignore_errors=True) for c in exited))
        return ids

    # Networks

    async def find_network(self, search: str) -> NetworkHandle | None:
        record = await self.probe.find_network(search)
        return NetworkHandle(record, self) if record else None

    async def create_network(self, name: str, definition: NetworkDefinition | None = None) -> NetworkHandle:
        """Issue ``network create`` and return the canonical handle.

        Raises:
            CreationError: If the engine rejects the create or the network never shows up.
        """
        try:
            await self.backend.run(network_create_args(name, definition))
        except ComposeError as e:
            raise CreationError(f"Failed to create network {name}: {e}") from e
        network = await _wait_for(lambda: self.find_network(name))
        if network is None:
            raise CreationError(f"Failed to find newly created network: {name}")
        return network

    async def rm_network(self, network_id: str) -> None:
        await self.backend.run(["network", "rm", network_id])

    async def delete_network(self, name: str) -> None:
        """Remove every network with the given name."""
        while (network := await self.find_network(name)) is not None:
            await network.rm()

    # Volumes

    async def find_volume(self, search: str, *, exact: bool = False) -> VolumeHandle | None:
        record = await self.probe.find_volume(search, exact=exact)
        return VolumeHandle(record, self) if record else None

    async def create_volume(self, name: str, definition: VolumeDefinition | None = None) -> VolumeHandle:
        """Issue ``volume create`` and return the canonical handle.

        Raises:
            CreationError: If the engine rejects the create or the volume never shows up.
        """
        try:
            await self.backend.run(volume_create_args(name, definition))
        except ComposeError as e:
            raise CreationError(f"Failed to create volume {name}: {e}") from e
        volume = await _wait_for(lambda: self.find_volume(name, exact=True))
        if volume is None:
            raise CreationError(f"Failed to find newly created volume: {name}")
        return volume

    async def rm_volume(self, name: str, *, ignore_errors: bool = True) -> None:
        try:
            await self.backend.run(["volume", "rm", name])
        except EngineCommandError as e:
            if not ignore_errors:
                raise
            logger.warning(f"Warning (ignored Error): Failed to remove volume {name}: {e}")


__all__ = [
    "EngineClient",
    "network_create_args",
    "volume_create_args",
]
