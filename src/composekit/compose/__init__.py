"""Compose-style orchestration of services declared in a manifest."""

from .manifest import ManifestResolver, ManifestSource, load_manifest, parse_manifest
from .naming import resolve_names
from .ports import PortAllocator, find_free_port
from .project import ComposeProject
from .provisioner import ResourceProvisioner
from .readiness import ReadinessCheck, wait_for_ready
from .service import ComposeService
from .signals import teardown_on_signals
from .teardown import teardown
from .tracker import ResourceTracker

__all__ = [
    "ComposeProject",
    "ComposeService",
    "ManifestResolver",
    "ManifestSource",
    "PortAllocator",
    "ReadinessCheck",
    "ResourceProvisioner",
    "ResourceTracker",
    "find_free_port",
    "load_manifest",
    "parse_manifest",
    "resolve_names",
    "teardown",
    "teardown_on_signals",
    "wait_for_ready",
]
