"""Engine run-argument assembly for service definitions.

Pure functions: given parts of a service definition they return the matching
``container run`` flags, in declaration order.
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence

from composekit.types.manifest import EnvValue, Manifest, ULimit
from composekit.types.service import ParsedNetworks, ParsedVolumes

from .manifest import ManifestResolver

BASE_RUN_ARGS = ("--rm",)


def env_args(environment: Sequence[str] | Mapping[str, EnvValue]) -> list[str]:
    """``-e`` flags for a ``KEY=VALUE`` list or a key/value mapping.

    A mapping entry with a None value passes the variable through from the
    caller's environment (``-e KEY``).
    """
    if isinstance(environment, Mapping):
        args = []
        for key, value in environment.items():
            if value is None:
                args.extend(["-e", key])
            elif isinstance(value, bool):
                args.extend(["-e", f"{key}={str(value).lower()}"])
            else:
                args.extend(["-e", f"{key}={value}"])
        return args
    return [arg for entry in environment for arg in ("-e", entry)]


def ulimit_args(ulimits: Mapping[str, int | ULimit]) -> list[str]:
    """``--ulimit`` flags; a ``{soft, hard}`` pair renders as ``soft:hard``."""
    args = []
    for name, limit in ulimits.items():
        if isinstance(limit, ULimit):
            value = f"{limit.soft}:{limit.hard}" if limit.hard else str(limit.soft)
        else:
            value = str(limit)
        args.extend(["--ulimit", f"{name}={value}"])
    return args


def label_args(labels: Sequence[str]) -> list[str]:
    return [arg for label in labels for arg in ("--label", label)]


def alias_args(aliases: Sequence[str]) -> list[str]:
    return [arg for alias in aliases if alias for arg in ("--network-alias", alias)]


def parse_networks(networks: Sequence[str], manifest: Manifest, resolver: ManifestResolver) -> ParsedNetworks:
    """Resolve network references to engine names.

    References declared in the manifest resolve to their declared (or prefixed
    default) name; anything else is taken as an existing engine network such as
    ``host`` or ``bridge``.
    """
    names = [resolver.network_name(n, manifest) if n in manifest.networks else n for n in networks]
    return ParsedNetworks(
        networks=tuple(names),
        run_args=tuple(arg for name in names for arg in ("--network", name)),
    )


def parse_volumes(
    volumes: Sequence[str],
    manifest: Manifest,
    resolver: ManifestResolver,
    *,
    name_suffix: str = "",
) -> ParsedVolumes:
    """Resolve ``source:dest[:mode]`` mount specs.

    A source naming a manifest volume becomes that volume's engine name plus
    ``name_suffix`` and is reported in ``volumes``; any other source is a bind
    mount resolved to an absolute path.
    """
    names = []
    keys = []
    args = []
    for mount in volumes:
        source, *rest = mount.split(":")
        if source in manifest.volumes:
            name = f"{resolver.volume_name(source, manifest)}{name_suffix}"
            names.append(name)
            keys.append(source)
            real_source = name
        else:
            real_source = os.path.abspath(os.path.expanduser(source))
        args.extend(["-v", ":".join([real_source, *rest])])
    return ParsedVolumes(volumes=tuple(names), keys=tuple(keys), run_args=tuple(args))


__all__ = [
    "BASE_RUN_ARGS",
    "alias_args",
    "env_args",
    "label_args",
    "parse_networks",
    "parse_volumes",
    "ulimit_args",
]
