"""Compose project: the entry point tying manifest, engine and trackers together."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Iterable
from contextlib import AbstractAsyncContextManager
from typing import Any

from composekit.core.utils import logger
from composekit.engine.backend import DockerCliBackend
from composekit.engine.client import EngineClient
from composekit.engine.handles import NetworkHandle, VolumeHandle
from composekit.errors import ServiceNotFoundError
from composekit.settings import ComposeSettings, get_settings
from composekit.types.manifest import Manifest
from composekit.types.service import ContainerInfo

from .manifest import ManifestResolver, ManifestSource
from .ports import PortAllocator
from .provisioner import ResourceProvisioner
from .service import ComposeService
from .signals import teardown_on_signals
from .teardown import teardown
from .tracker import ResourceTracker


class ComposeProject:
    """A compose manifest bound to a container engine.

    The project owns the manifest resolver, the engine client, one shared
    provisioner and port allocator for all of its services, and a default
    tracker used whenever a caller does not pass its own.

    Args:
        manifest: Manifest source: None (``settings.manifest_path``), a file path,
            a ``Manifest`` or a raw mapping.
        client: Engine client; defaults to the docker CLI from settings.
        settings: Settings; defaults to ``get_settings()``.

    Example:
        >>> project = ComposeProject("docker-compose.yml")
        >>> info = await project.run_service("db", avoid_conflicts=True)
        >>> await project.teardown(include_networks=True, include_volumes=True)
    """

    def __init__(
        self,
        manifest: ManifestSource = None,
        *,
        client: EngineClient | None = None,
        settings: ComposeSettings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.manifest_source = manifest
        default_path = manifest if isinstance(manifest, str | os.PathLike) else self.settings.manifest_path
        self.resolver = ManifestResolver(default_path, project_name=self.settings.project_name)
        self.client = client or EngineClient(
            DockerCliBackend(self.settings.engine_binary),
            min_interval=self.settings.probe_min_interval,
        )
        self.provisioner = ResourceProvisioner(self.client)
        self.ports = PortAllocator(host=self.settings.bind_host)
        self.default_tracker = ResourceTracker()
        self._services: dict[str, ComposeService] = {}

    def manifest(self, *, force: bool = False) -> Manifest:
        return self.resolver.resolve(self.manifest_source, force=force)

    def service(self, name: str, *, force: bool = False) -> ComposeService | None:
        """Return the service declared under ``name``; None if not declared.

        Services are cached per project so that each keeps its own tracker
        across calls.
        """
        if force or name not in self._services:
            service = ComposeService.parse(name, self, force=force)
            if service is None:
                return None
            self._services[name] = service
        return self._services[name]

    def all_services(self) -> dict[str, ComposeService]:
        services = {}
        for name in self.manifest().services:
            service = self.service(name)
            if service is not None:
                services[name] = service
        return services

    async def create_networks(
        self,
        names: Iterable[str] | None = None,
        tracker: ResourceTracker | None = None,
    ) -> list[NetworkHandle]:
        """Ensure declared networks exist.

        Args:
            names: Engine names to create; None means every declared network.
            tracker: Tracker that records created networks; defaults to the project's.
        """
        tracker = tracker if tracker is not None else self.default_tracker
        declared = self.resolver.networks(self.manifest())
        wanted = set(names) if names is not None else None
        return [
            await self.provisioner.ensure_network(name, definition, tracker=tracker)
            for name, definition in declared.items()
            if wanted is None or name in wanted
        ]

    async def create_volumes(
        self,
        names: Iterable[str] | None = None,
        tracker: ResourceTracker | None = None,
    ) -> list[VolumeHandle]:
        """Ensure declared volumes exist.

        Args:
            names: Engine names to create; None means every declared volume.
            tracker: Tracker that records created volumes; defaults to the project's.
        """
        tracker = tracker if tracker is not None else self.default_tracker
        declared = self.resolver.volumes(self.manifest())
        wanted = set(names) if names is not None else None
        return [
            await self.provisioner.ensure_volume(name, definition, tracker=tracker)
            for name, definition in declared.items()
            if wanted is None or name in wanted
        ]

    async def teardown(
        self,
        tracker: ResourceTracker | None = None,
        *,
        include_defaults: bool = False,
        include_networks: bool = False,
        include_volumes: bool = False,
        ignore_errors: bool = True,
    ) -> None:
        """Tear down a tracker (the project's default tracker if omitted).

        Args:
            tracker: Tracker to drain.
            include_defaults: Also remove every default container, volume and
                network the manifest declares.
            include_networks: Also remove networks.
            include_volumes: Also remove volumes.
            ignore_errors: If True, log failures; if False, raise ``TeardownError``.
        """
        await teardown(
            tracker if tracker is not None else self.default_tracker,
            include_volumes=include_volumes,
            include_networks=include_networks,
            include_manifest_defaults=include_defaults,
            project=self,
            ignore_errors=ignore_errors,
        )

    def teardown_on_signals(
        self,
        tracker: ResourceTracker | None = None,
        **teardown_options: Any,
    ) -> AbstractAsyncContextManager[asyncio.Event]:
        """Tear down ``tracker`` if SIGINT or SIGTERM arrives inside the block.

        Yields the cancellation event that is set when a signal arrives; pass it
        to ``run_service(..., cancel=...)`` to abort readiness polling.
        """

        def on_signal() -> Awaitable[None]:
            return self.teardown(tracker, **teardown_options)

        return teardown_on_signals(on_signal)

    async def run_service(self, key: str, **up_options: Any) -> ContainerInfo:
        """Bring up the service declared under ``key`` and describe its container.

        Args:
            key: Service key in the manifest.
            **up_options: Passed to ``ComposeService.up``.

        Returns:
            ContainerInfo with the up result, the container id, image and name,
            and the first port's local and container-network URLs.

        Raises:
            ServiceNotFoundError: If the manifest does not declare ``key``.
        """
        service = self.service(key)
        if service is None:
            raise ServiceNotFoundError(key)

        result = await service.up(**up_options)
        for url in result.urls:
            if url.local:
                logger.info(f"{key} accessible at {url.local}")

        first_port = result.ports[0] if result.ports else None
        first_url = result.urls[0] if result.urls else None
        return ContainerInfo(
            service=result.service,
            container=result.container,
            container_name=result.container_name,
            aliases=result.aliases,
            ports=result.ports,
            urls=result.urls,
            volumes=result.volumes,
            id=result.container.id,
            image=result.container.image,
            name=result.container_name,
            port=first_port.local_port if first_port else None,
            url=first_url.local if first_url else None,
            docker_port=first_port.container_port if first_port else None,
            docker_url=first_url.docker if first_url else None,
        )

    async def prune_exited_containers(self, *, dry_run: bool = False) -> list[str]:
        return await self.client.prune_exited_containers(dry_run=dry_run)


__all__ = ["ComposeProject"]
