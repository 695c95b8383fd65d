"""Lifecycle of a single compose service: resolve, provision, run, tear down."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING

from composekit.core.utils import logger
from composekit.engine.handles import ContainerHandle
from composekit.errors import ComposeError
from composekit.types.manifest import Manifest, ServiceDefinition
from composekit.types.service import (
    ParsedNetworks,
    ParsedPorts,
    ParsedVolumes,
    PortMapping,
    ServiceNames,
    UpResult,
    UrlMapping,
)

from .args import BASE_RUN_ARGS, alias_args, env_args, label_args, parse_networks, parse_volumes, ulimit_args
from .naming import resolve_names
from .readiness import ReadinessCheck, wait_for_ready
from .teardown import teardown
from .tracker import ResourceTracker

if TYPE_CHECKING:
    from .project import ComposeProject

HealthCheck = Callable[[UpResult], Awaitable[None] | None]


class ComposeService:
    """One service declared in a compose manifest.

    The service keeps a private tracker of the resources it created itself, so
    it can be brought down on its own. ``up`` additionally registers the service
    in the caller's tracker, which lets a project-wide teardown reach it.

    Args:
        name: Service key in the manifest.
        definition: The service's manifest entry.
        project: Project that owns the manifest, engine client and provisioner.
    """

    def __init__(self, name: str, definition: ServiceDefinition, project: ComposeProject) -> None:
        self.name = name
        self.definition = definition
        self.project = project
        self._tracker = ResourceTracker()

        # Lazily computed from the definition
        self._default_ports: ParsedPorts | None = None
        self._default_networks: ParsedNetworks | None = None
        self._default_volumes: ParsedVolumes | None = None
        self._base_run_args: tuple[str, ...] | None = None
        # Local ports reserved by up, returned to the project's allocator by down
        self._allocated_ports: list[ParsedPorts] = []

    def __repr__(self) -> str:
        return f"ComposeService(name={self.name!r}, image={self.image!r})"

    @classmethod
    def parse(cls, name: str, project: ComposeProject, *, force: bool = False) -> ComposeService | None:
        """Build a service from the project manifest; None if ``name`` is not declared."""
        definition = project.resolver.service_definition(name, project.manifest_source, force=force)
        return cls(name, definition, project) if definition is not None else None

    @property
    def image(self) -> str | None:
        return self.definition.image

    @property
    def default_container_name(self) -> str:
        return self.definition.container_name or self.name

    @property
    def cmd(self) -> tuple[str, ...]:
        return self.definition.command

    @property
    def manifest(self) -> Manifest:
        return self.project.manifest()

    @property
    def tracker(self) -> ResourceTracker:
        """Private tracker of the resources this service created."""
        return self._tracker

    # Names and ports

    async def get_names(self, avoid_conflicts: bool = False) -> ServiceNames:
        return await resolve_names(
            self.project.client.probe,
            default_name=self.default_container_name,
            alias=self.name,
            avoid_conflicts=avoid_conflicts,
            max_attempts=self.project.settings.name_max_attempts,
        )

    def get_ports(self, avoid_conflicts: bool = False, map_local: bool = True) -> ParsedPorts:
        return self.project.ports.allocate(self.definition.ports, avoid_conflicts=avoid_conflicts, map_local=map_local)

    def default_port_info(self) -> ParsedPorts:
        if self._default_ports is None:
            self._default_ports = self.get_ports()
        return self._default_ports

    def default_ports(self) -> tuple[PortMapping, ...]:
        return self.default_port_info().ports

    def default_urls(self) -> tuple[UrlMapping, ...]:
        return self.get_urls(self.default_ports(), self.name)

    def default_network_info(self) -> ParsedNetworks:
        if self._default_networks is None:
            self._default_networks = parse_networks(self.definition.networks, self.manifest, self.project.resolver)
        return self._default_networks

    def default_volume_info(self) -> ParsedVolumes:
        if self._default_volumes is None:
            self._default_volumes = parse_volumes(self.definition.volumes, self.manifest, self.project.resolver)
        return self._default_volumes

    # Run arguments

    def base_run_args(self) -> tuple[str, ...]:
        """Arguments shared by every container of this service."""
        if self._base_run_args is None:
            self._base_run_args = (
                *BASE_RUN_ARGS,
                *env_args(self.definition.environment),
                *label_args(self.definition.labels),
                *self.default_network_info().run_args,
                *ulimit_args(self.definition.ulimits),
            )
        return self._base_run_args

    def assemble_run_args(
        self,
        container_name: str | None = None,
        aliases: Sequence[str] | None = None,
        additional_args: Sequence[str] | None = None,
    ) -> list[str]:
        """Full ``container run`` argument list.

        Args:
            container_name: Container name; defaults to the service's default name.
            aliases: Network aliases; defaults to the service name.
            additional_args: Port and volume arguments; defaults to the declared ones.
        """
        name = container_name if container_name is not None else self.default_container_name
        if aliases is None:
            aliases = [self.name]
        if additional_args is None:
            additional_args = [*self.default_port_info().run_args, *self.default_volume_info().run_args]
        return [
            *self.base_run_args(),
            *(["--name", name] if name else []),
            *alias_args(aliases),
            *additional_args,
        ]

    async def get_run_args(self, avoid_conflicts: bool = False, map_local_ports: bool = True) -> list[str]:
        names = await self.get_names(avoid_conflicts)
        ports = self.get_ports(avoid_conflicts, map_local_ports)
        volumes = parse_volumes(
            self.definition.volumes, self.manifest, self.project.resolver, name_suffix=names.suffix
        )
        return self.assemble_run_args(names.name, names.aliases, [*ports.run_args, *volumes.run_args])

    # Lifecycle

    async def pull(self) -> None:
        """Pull the service image.

        Raises:
            ComposeError: If the service declares no image.
            EngineCommandError: If the pull fails.
        """
        if not self.image:
            raise ComposeError(f"Cannot pull image for service '{self.name}', no image defined.")
        await self.project.client.pull_image(self.image, offline=self.project.settings.offline)

    async def _provision(self, volumes: ParsedVolumes) -> None:
        manifest = self.manifest
        provisioner = self.project.provisioner
        for key in self.definition.networks:
            if key in manifest.networks:
                name = self.project.resolver.network_name(key, manifest)
                await provisioner.ensure_network(name, manifest.networks[key], tracker=self._tracker)
        for name, key in zip(volumes.volumes, volumes.keys, strict=True):
            await provisioner.ensure_volume(name, manifest.volumes[key], tracker=self._tracker)

    async def up(
        self,
        *,
        avoid_conflicts: bool = False,
        map_ports: bool = True,
        map_volumes: bool = True,
        cmd: Sequence[str] | None = None,
        health_check: HealthCheck | None = None,
        ready_check: ReadinessCheck | None = None,
        cancel: asyncio.Event | None = None,
        tracker: ResourceTracker | None = None,
    ) -> UpResult:
        """Bring the service up, reusing an existing container of the same name.

        Args:
            avoid_conflicts: Pick an unused container name and free local ports.
            map_ports: Publish declared ports on the host.
            map_volumes: Mount declared volumes.
            cmd: Command override; defaults to the declared command.
            health_check: Awaited with the result once the container is up.
            ready_check: Readiness predicate polled before returning.
            cancel: Cancellation token for the readiness poll.
            tracker: Tracker that registers this service; defaults to the
                project's default tracker.

        Returns:
            UpResult describing the container, its names, ports, URLs and volumes.

        Raises:
            ComposeError: If the service declares no image, or any step fails.
        """
        if not self.image:
            raise ComposeError(f"Cannot bring up service '{self.name}', no image defined.")
        if tracker is None:
            tracker = self.project.default_tracker
        if self._tracker.containers:
            logger.warning(f"up called on service '{self.name}' with already running container")

        names = await self.get_names(avoid_conflicts)
        ports = self.get_ports(avoid_conflicts, map_ports)
        volumes = (
            parse_volumes(self.definition.volumes, self.manifest, self.project.resolver, name_suffix=names.suffix)
            if map_volumes
            else ParsedVolumes()
        )

        try:
            container = await self._start_container(names, ports, volumes, cmd)
        except BaseException:
            if avoid_conflicts:
                self.project.ports.release(ports.ports)
            raise
        if avoid_conflicts:
            self._allocated_ports.append(ports)

        # This service tracks the container it runs, the caller's tracker tracks the service
        self._tracker.containers[names.name] = container
        tracker.containers[names.name] = container
        tracker.services[self.name] = self

        id_alias = container.id[:12]
        result = UpResult(
            service=self,
            container=container,
            container_name=names.name,
            aliases=(*names.aliases, id_alias),
            ports=ports.ports,
            urls=self.get_urls(ports.ports, id_alias),
            volumes=volumes.volumes,
        )
        if ready_check is not None:
            await wait_for_ready(
                container,
                ready_check,
                interval=self.project.settings.ready_interval,
                max_attempts=self.project.settings.ready_max_attempts,
                cancel=cancel,
            )
        if health_check is not None:
            outcome = health_check(result)
            if inspect.isawaitable(outcome):
                await outcome
        return result

    async def _start_container(
        self,
        names: ServiceNames,
        ports: ParsedPorts,
        volumes: ParsedVolumes,
        cmd: Sequence[str] | None,
    ) -> ContainerHandle:
        container = await self.project.client.find_container(names.name, all_=True, match_id=False)
        if container is not None:
            logger.info(f"Reusing existing container for '{self.name}' service.")
            if not await container.is_running():
                await container.start()
            return container

        logger.info(f"Starting <{self.name}> service as <{names.name}>...")
        try:
            await self.pull()
        except ComposeError as e:
            logger.warning(f"Failed to pull image for '{self.name}', using local image: {e}")
        await self._provision(volumes)
        run_args = self.assemble_run_args(names.name, names.aliases, [*ports.run_args, *volumes.run_args])
        return await self.project.client.run_daemon(
            image=self.image,
            run_args=run_args,
            cmd=self.cmd if cmd is None else cmd,
            wait_attempts=self.project.settings.run_wait_attempts,
            wait_interval=self.project.settings.run_wait_interval,
        )

    async def down(
        self,
        *,
        include_defaults: bool = False,
        include_networks: bool = False,
        include_volumes: bool = False,
        ignore_errors: bool = True,
    ) -> None:
        """Tear down what this service created.

        Args:
            include_defaults: Also remove a container with the default name,
                even if this service did not create it.
            include_networks: Also remove the networks this service created.
            include_volumes: Also remove the volumes this service created.
            ignore_errors: If True, log failures; if False, raise them.

        Raises:
            TeardownError: If ``ignore_errors`` is False and a removal failed.
        """
        logger.info(f"Bringing down <{self.name}> service...")
        await teardown(
            self._tracker,
            include_networks=include_networks,
            include_volumes=include_volumes,
            ignore_errors=ignore_errors,
        )
        for allocated in self._allocated_ports:
            self.project.ports.release(allocated.ports)
        self._allocated_ports.clear()
        if include_defaults:
            container = await self.project.client.find_container(
                self.default_container_name, all_=True, match_id=False
            )
            if container is not None:
                await self._teardown_default(container, ignore_errors=ignore_errors)

    async def _teardown_default(self, container: ContainerHandle, *, ignore_errors: bool) -> None:
        try:
            await container.teardown(ignore_errors=False)
        except ComposeError as e:
            if not ignore_errors:
                raise
            logger.warning(f"Warning (ignored Error): Failed to tear down <{container.name}>: {e}")

    @staticmethod
    def get_urls(ports: Sequence[PortMapping], alias: str | None) -> tuple[UrlMapping, ...]:
        """Host and container-network URLs for each port mapping."""
        return tuple(
            UrlMapping(
                local=f"http://localhost:{p.local_port}" if p.local_port is not None else None,
                docker=f"http://{alias}:{p.container_port}" if alias else None,
            )
            for p in ports
        )


__all__ = [
    "ComposeService",
    "HealthCheck",
]
