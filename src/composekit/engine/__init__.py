"""Container engine access: process backend, probe, handles and client."""

from .backend import CommandResult, DockerCliBackend, EngineBackend, get_default_backend
from .client import EngineClient
from .handles import ContainerHandle, NetworkHandle, VolumeHandle
from .probe import ResourceProbe, parse_json_lines

__all__ = [
    "CommandResult",
    "ContainerHandle",
    "DockerCliBackend",
    "EngineBackend",
    "EngineClient",
    "NetworkHandle",
    "ResourceProbe",
    "VolumeHandle",
    "get_default_backend",
    "parse_json_lines",
]
