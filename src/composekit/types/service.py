"""Result types produced while bringing up compose services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from composekit.compose.service import ComposeService
    from composekit.engine.handles import ContainerHandle


class PortMapping(BaseModel):
    """A resolved ``local:container`` port pair.

    Attributes:
        local_port: Local port actually published, None when no local exposure was requested.
        default_local_port: Local port declared in the manifest.
        container_port: Port inside the container.
    """

    model_config = ConfigDict(frozen=True)

    local_port: int | None = Field(description="Local port actually published")
    default_local_port: int = Field(description="Local port declared in the manifest")
    container_port: int = Field(description="Port inside the container")


class UrlMapping(BaseModel):
    """URLs derived from a port mapping.

    Attributes:
        local: URL reachable from the host (e.g., "http://localhost:8080").
        docker: URL reachable from inside the container network (e.g., "http://3f2a9c:80").
    """

    model_config = ConfigDict(frozen=True)

    local: str | None = Field(default=None, description="URL reachable from the host")
    docker: str | None = Field(default=None, description="URL reachable inside the container network")


class ServiceNames(BaseModel):
    """Container name resolved for a service."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Container name")
    aliases: tuple[str, ...] = Field(description="Network aliases for the container")
    suffix: str = Field(default="", description="Disambiguating suffix ('' or '-N')")


class ParsedPorts(BaseModel):
    """Port table and matching ``-p`` run arguments, in declaration order."""

    model_config = ConfigDict(frozen=True)

    ports: tuple[PortMapping, ...] = ()
    run_args: tuple[str, ...] = ()


class ParsedNetworks(BaseModel):
    """Resolved network names and matching ``--network`` run arguments."""

    model_config = ConfigDict(frozen=True)

    networks: tuple[str, ...] = ()
    run_args: tuple[str, ...] = ()


class ParsedVolumes(BaseModel):
    """Named volumes used by a service and matching ``-v`` run arguments."""

    model_config = ConfigDict(frozen=True)

    volumes: tuple[str, ...] = ()
    keys: tuple[str, ...] = Field(default=(), description="Manifest volume keys, parallel to volumes")
    run_args: tuple[str, ...] = ()


@dataclass(frozen=True)
class UpResult:
    """Snapshot of a service brought up by ``ComposeService.up``."""

    service: ComposeService
    container: ContainerHandle
    container_name: str
    aliases: tuple[str, ...]
    ports: tuple[PortMapping, ...]
    urls: tuple[UrlMapping, ...]
    volumes: tuple[str, ...]


@dataclass(frozen=True)
class ContainerInfo(UpResult):
    """``UpResult`` plus shortcuts for the container and its primary (first) port."""

    id: str = ""
    image: str = ""
    name: str | None = None
    port: int | None = None
    url: str | None = None
    docker_port: int | None = None
    docker_url: str | None = None


__all__ = [
    "ContainerInfo",
    "ParsedNetworks",
    "ParsedPorts",
    "ParsedVolumes",
    "PortMapping",
    "ServiceNames",
    "UpResult",
    "UrlMapping",
]
