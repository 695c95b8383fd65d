from .engine import ContainerInspect, ContainerRecord, ContainerState, NetworkRecord, PublishedPort, VolumeRecord
from .manifest import Manifest, NetworkDefinition, ServiceDefinition, ULimit, VolumeDefinition
from .service import (
    ContainerInfo,
    ParsedNetworks,
    ParsedPorts,
    ParsedVolumes,
    PortMapping,
    ServiceNames,
    UpResult,
    UrlMapping,
)

__all__ = [
    "ContainerInfo",
    "ContainerInspect",
    "ContainerRecord",
    "ContainerState",
    "Manifest",
    "NetworkDefinition",
    "NetworkRecord",
    "ParsedNetworks",
    "ParsedPorts",
    "ParsedVolumes",
    "PortMapping",
    "PublishedPort",
    "ServiceDefinition",
    "ServiceNames",
    "ULimit",
    "UpResult",
    "UrlMapping",
    "VolumeDefinition",
    "VolumeRecord",
]
