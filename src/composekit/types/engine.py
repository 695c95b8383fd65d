"""Typed records for container engine listing and inspect output.

The engine is asked for ``--format {{json .}}`` output, one JSON object per
line. Each line is validated into one of the records below; fields the engine
adds in newer releases are ignored, but a line missing a required field (or
carrying a wrong type) is rejected.
"""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

_SIZE_UNITS = {
    "b": 1,
    "kb": 1000,
    "mb": 1000**2,
    "gb": 1000**3,
    "tb": 1000**4,
    "kib": 1024,
    "mib": 1024**2,
    "gib": 1024**3,
    "tib": 1024**4,
}
_SIZE_RE = re.compile(r"^\s*([\d.]+)\s*([a-zA-Z]*)")
_DATE_RE = re.compile(r"^(\d{4}-\d{2}-\d{2}) (\d{2}:\d{2}:\d{2})(?:\.\d+)? ([+-]\d{4})")


def parse_engine_date(value: str) -> datetime | None:
    """Parse engine timestamps like ``2024-01-02 15:04:05 +0000 UTC``.

    Args:
        value: Timestamp as printed by the engine.

    Returns:
        Timezone-aware datetime, or None for an empty value.
    """
    value = value.strip()
    if not value:
        return None
    match = _DATE_RE.match(value)
    if not match:
        raise ValueError(f"Unrecognized engine timestamp: {value!r}")
    # Fractional seconds and the zone abbreviation are dropped, the numeric offset is authoritative
    return datetime.strptime(" ".join(match.groups()), "%Y-%m-%d %H:%M:%S %z")


def parse_size(value: str) -> int:
    """Parse a human readable engine size (``12.3MB (virtual 1GB)``) into bytes.

    Unparseable values yield 0.
    """
    match = _SIZE_RE.match(value or "")
    if not match:
        return 0
    number, unit = match.groups()
    multiplier = _SIZE_UNITS.get(unit.lower() or "b")
    if multiplier is None:
        return 0
    return int(float(number) * multiplier)


def split_list(value: str) -> list[str]:
    """Split an engine comma-separated field, dropping blanks."""
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class PublishedPort(BaseModel):
    """A published port entry (``0.0.0.0:8080->80/tcp``)."""

    model_config = ConfigDict(frozen=True)

    iface: str
    src: int
    dest: int

    @classmethod
    def parse_many(cls, value: str) -> list[PublishedPort]:
        """Parse the ``Ports`` column.

        Ranges (``0.0.0.0:8000-8001->8000-8001/tcp``) yield one entry per port.
        Exposed-but-unpublished and unrecognized entries are skipped.
        """
        ports = []
        for entry in split_list(value):
            if "->" not in entry:
                continue
            host, dest = entry.split("->", 1)
            iface, _, src = host.rpartition(":")
            src_ports = _port_range(src)
            dest_ports = _port_range(dest.split("/")[0])
            if not src_ports or len(src_ports) != len(dest_ports):
                continue
            ports.extend(cls(iface=iface, src=s, dest=d) for s, d in zip(src_ports, dest_ports))
        return ports


def _port_range(value: str) -> list[int]:
    """``"80"`` -> ``[80]``, ``"8000-8001"`` -> ``[8000, 8001]``; ``[]`` if malformed."""
    start, _, end = value.partition("-")
    if not start.isdigit() or (end and not end.isdigit()):
        return []
    first, last = int(start), int(end or start)
    return list(range(first, last + 1)) if first <= last else []


class ContainerRecord(BaseModel):
    """One line of ``container ls --format {{json .}}``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(alias="ID", min_length=1)
    image: str = Field(alias="Image")
    command: str = Field(default="", alias="Command")
    created_at: datetime | None = Field(default=None, alias="CreatedAt")
    labels: list[str] = Field(default_factory=list, alias="Labels")
    mounts: list[str] = Field(default_factory=list, alias="Mounts")
    names: list[str] = Field(alias="Names", min_length=1)
    networks: list[str] = Field(default_factory=list, alias="Networks")
    ports: list[PublishedPort] = Field(default_factory=list, alias="Ports")
    running_for: str = Field(default="", alias="RunningFor")
    size: int = Field(default=0, alias="Size")
    status: str = Field(default="", alias="Status")

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created(cls, value: object) -> object:
        return parse_engine_date(value) if isinstance(value, str) else value

    @field_validator("labels", "mounts", "names", "networks", mode="before")
    @classmethod
    def _split(cls, value: object) -> object:
        return split_list(value) if isinstance(value, str) else value

    @field_validator("ports", mode="before")
    @classmethod
    def _parse_ports(cls, value: object) -> object:
        return PublishedPort.parse_many(value) if isinstance(value, str) else value

    @field_validator("size", mode="before")
    @classmethod
    def _parse_size(cls, value: object) -> object:
        return parse_size(value) if isinstance(value, str) else value

    @property
    def name(self) -> str:
        """Primary container name."""
        return self.names[0]

    @property
    def exited(self) -> bool:
        """True if the engine reports the container as exited."""
        return self.status.startswith("Exited")


class NetworkRecord(BaseModel):
    """One line of ``network ls --format {{json .}}``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(alias="ID", min_length=1)
    name: str = Field(alias="Name", min_length=1)
    driver: str = Field(default="", alias="Driver")
    created_at: datetime | None = Field(default=None, alias="CreatedAt")
    ipv6: bool = Field(default=False, alias="IPv6")
    internal: bool = Field(default=False, alias="Internal")
    labels: list[str] = Field(default_factory=list, alias="Labels")
    scope: str = Field(default="", alias="Scope")

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created(cls, value: object) -> object:
        return parse_engine_date(value) if isinstance(value, str) else value

    @field_validator("labels", mode="before")
    @classmethod
    def _split(cls, value: object) -> object:
        return split_list(value) if isinstance(value, str) else value


class VolumeRecord(BaseModel):
    """One line of ``volume ls --format {{json .}}``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = Field(alias="Name", min_length=1)
    driver: str = Field(default="", alias="Driver")
    labels: list[str] = Field(default_factory=list, alias="Labels")
    mount_point: str = Field(default="", alias="Mountpoint")
    scope: str = Field(default="", alias="Scope")

    @field_validator("labels", mode="before")
    @classmethod
    def _split(cls, value: object) -> object:
        return split_list(value) if isinstance(value, str) else value


class ContainerState(BaseModel):
    """The ``State`` block of ``container inspect``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    running: bool = Field(alias="Running")
    status: str | None = Field(default=None, alias="Status")
    exit_code: int | None = Field(default=None, alias="ExitCode")


class ContainerInspect(BaseModel):
    """One line of ``container inspect --format {{json .}}``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(default="", alias="Id")
    name: str = Field(default="", alias="Name")
    state: ContainerState = Field(alias="State")


__all__ = [
    "ContainerInspect",
    "ContainerRecord",
    "ContainerState",
    "NetworkRecord",
    "PublishedPort",
    "VolumeRecord",
    "parse_engine_date",
    "parse_size",
    "split_list",
]
