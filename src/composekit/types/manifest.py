"""Schema for compose-style manifests.

Only the subset of the compose format that composekit provisions is accepted.
Unknown keys are rejected so that a typo in a manifest fails loudly instead of
being silently ignored.
"""

from __future__ import annotations

import re
import shlex
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

_PORT_RE = re.compile(r"^\d+:\d+$")

EnvValue = str | int | float | bool | None


def _labels_to_list(value: object) -> object:
    if isinstance(value, dict):
        return [f"{key}={val}" for key, val in value.items()]
    return value


class ULimit(BaseModel):
    """A ``{soft, hard}`` resource-limit pair."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    soft: int
    hard: int | None = None


class ServiceDefinition(BaseModel):
    """A single entry of the manifest ``services`` map."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    image: str | None = None
    command: tuple[str, ...] = ()
    container_name: str | None = None
    environment: tuple[str, ...] | dict[str, EnvValue] = ()
    ports: tuple[str, ...] = ()
    volumes: tuple[str, ...] = ()
    networks: tuple[str, ...] = ()
    ulimits: dict[str, int | ULimit] = Field(default_factory=dict)
    links: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()

    @field_validator("command", mode="before")
    @classmethod
    def _split_command(cls, value: object) -> object:
        if isinstance(value, str):
            return shlex.split(value)
        return value

    @field_validator("ports", mode="before")
    @classmethod
    def _stringify_ports(cls, value: object) -> object:
        if isinstance(value, list | tuple):
            return [str(port) for port in value]
        return value

    @field_validator("ports")
    @classmethod
    def _check_ports(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for port in value:
            if not _PORT_RE.match(port):
                raise ValueError(f"port declaration must look like 'local:container', got {port!r}")
        return value

    @field_validator("networks", mode="before")
    @classmethod
    def _network_keys(cls, value: object) -> object:
        # The compose mapping form ({net: {aliases: ...}}) only contributes its keys
        if isinstance(value, dict):
            return list(value)
        return value

    @field_validator("labels", mode="before")
    @classmethod
    def _labels(cls, value: object) -> object:
        return _labels_to_list(value)


class NetworkDefinition(BaseModel):
    """A single entry of the manifest ``networks`` map."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    name: str | None = None
    driver: str | None = None
    driver_opts: dict[str, str] = Field(default_factory=dict)
    gateways: tuple[str, ...] = ()
    subnets: tuple[str, ...] = ()
    aux_addresses: tuple[str, ...] = ()
    ip_range: str | None = None
    ingress: bool = False
    internal: bool = False
    ipv6: bool = Field(default=False, alias="enable_ipv6")
    labels: tuple[str, ...] = ()

    @field_validator("labels", mode="before")
    @classmethod
    def _labels(cls, value: object) -> object:
        return _labels_to_list(value)


class VolumeDefinition(BaseModel):
    """A single entry of the manifest ``volumes`` map."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str | None = None
    driver: str | None = None
    driver_opts: dict[str, str] = Field(default_factory=dict)
    labels: tuple[str, ...] = ()

    @field_validator("labels", mode="before")
    @classmethod
    def _labels(cls, value: object) -> object:
        return _labels_to_list(value)


class Manifest(BaseModel):
    """A parsed compose-style manifest."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: str | None = None
    name: str | None = None
    services: dict[str, ServiceDefinition] = Field(default_factory=dict)
    networks: dict[str, NetworkDefinition] = Field(default_factory=dict)
    volumes: dict[str, VolumeDefinition] = Field(default_factory=dict)

    @field_validator("version", mode="before")
    @classmethod
    def _stringify_version(cls, value: object) -> object:
        return str(value) if isinstance(value, int | float) else value

    @field_validator("services", "networks", "volumes", mode="before")
    @classmethod
    def _empty_entries(cls, value: Any) -> Any:
        # `net1:` with no body parses as None
        if value is None:
            return {}
        if isinstance(value, dict):
            return {key: {} if entry is None else entry for key, entry in value.items()}
        return value


__all__ = [
    "EnvValue",
    "Manifest",
    "NetworkDefinition",
    "ServiceDefinition",
    "ULimit",
    "VolumeDefinition",
]
