"""In-memory handles wrapping engine resources.

A handle pairs the record the engine reported when the resource was found
with the operations that query or mutate it. Handles never cache state: every
``is_running``/``exists`` call asks the engine again.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from composekit.core.utils import logger
from composekit.errors import ComposeError

if TYPE_CHECKING:
    from composekit.types.engine import ContainerInspect, ContainerRecord, NetworkRecord, VolumeRecord

    from .client import EngineClient


class ContainerHandle:
    """Handle to an engine container.

    Args:
        record: Listing record the container was found with.
        client: Engine client used for follow-up operations.
    """

    def __init__(self, record: ContainerRecord, client: EngineClient) -> None:
        self.record = record
        self.client = client

    def __repr__(self) -> str:
        return f"ContainerHandle(id={self.id[:12]!r}, name={self.name!r})"

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def names(self) -> list[str]:
        return self.record.names

    @property
    def image(self) -> str:
        return self.record.image

    async def inspect(self) -> ContainerInspect | None:
        """Inspect the container; None if it no longer exists."""
        return await self.client.probe.inspect_container(self.id)

    async def exists(self) -> bool:
        """Check if the container still exists (running or stopped)."""
        try:
            return await self.inspect() is not None
        except ComposeError as e:
            logger.warning(f"Failed to inspect <{self.name}> container, treating it as gone: {e}")
            return False

    async def is_running(self) -> bool:
        """Check if the container is currently running."""
        try:
            info = await self.inspect()
        except ComposeError as e:
            logger.warning(f"Failed to inspect <{self.name}> container, treating it as stopped: {e}")
            return False
        return bool(info and info.state.running)

    async def start(self) -> None:
        await self.client.start_container(self.id)

    async def stop(self, ignore_errors: bool = True) -> None:
        await self.client.stop_container(self.id, ignore_errors=ignore_errors)

    async def kill(self, ignore_errors: bool = True) -> None:
        await self.client.kill_container(self.id, ignore_errors=ignore_errors)

    async def rm(self, ignore_errors: bool = True) -> None:
        await self.client.rm_container(self.id, ignore_errors=ignore_errors)

    async def restart(self) -> None:
        await self.client.restart_container(self.id)

    async def teardown(self, *, verbose: bool = True, ignore_errors: bool = True) -> None:
        """Stop (falling back to kill) and remove the container.

        Stop and kill failures are logged and never block the removal attempt.

        Args:
            verbose: If True, log every step at INFO level.
            ignore_errors: If False, a failed removal is raised instead of logged.
        """

        def log(message: str) -> None:
            if verbose:
                logger.info(message)

        if await self.is_running():
            try:
                log(f"Stopping container: <{self.name}>...")
                await self.stop(ignore_errors=False)
                log(f"<{self.name}> container stopped.")
            except ComposeError as stop_error:
                logger.warning(f"Failed to stop <{self.name}> container: {stop_error}")
                try:
                    log(f"Killing container: <{self.name}>...")
                    await self.kill(ignore_errors=False)
                    log(f"<{self.name}> container killed.")
                except ComposeError as kill_error:
                    logger.warning(f"Failed to kill <{self.name}> container: {kill_error}")
        else:
            log(f"<{self.name}> container not running, skipping stop.")

        if await self.exists():
            await self.rm(ignore_errors=ignore_errors)
        else:
            log(f"<{self.name}> container does not exist, skipping rm.")


class NetworkHandle:
    """Handle to an engine network."""

    def __init__(self, record: NetworkRecord, client: EngineClient) -> None:
        self.record = record
        self.client = client

    def __repr__(self) -> str:
        return f"NetworkHandle(id={self.id[:12]!r}, name={self.name!r})"

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def driver(self) -> str:
        return self.record.driver

    async def exists(self) -> bool:
        return await self.client.probe.find_network(self.id) is not None

    async def rm(self) -> None:
        await self.client.rm_network(self.id)


class VolumeHandle:
    """Handle to an engine volume."""

    def __init__(self, record: VolumeRecord, client: EngineClient) -> None:
        self.record = record
        self.client = client

    def __repr__(self) -> str:
        return f"VolumeHandle(name={self.name!r})"

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def driver(self) -> str:
        return self.record.driver

    @property
    def mount_point(self) -> str:
        return self.record.mount_point

    async def exists(self) -> bool:
        return await self.client.probe.find_volume(self.name, exact=True) is not None

    async def inspect(self) -> dict[str, Any] | None:
        return await self.client.probe.inspect_volume(self.name)

    async def rm(self, ignore_errors: bool = True) -> None:
        await self.client.rm_volume(self.name, ignore_errors=ignore_errors)


__all__ = [
    "ContainerHandle",
    "NetworkHandle",
    "VolumeHandle",
]
