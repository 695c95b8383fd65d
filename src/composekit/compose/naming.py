"""Container name resolution.

Leftovers from an earlier run, or a concurrently running pipeline, may already
own a service's default container name. With ``avoid_conflicts`` the resolver
walks ``<name>``, ``<name>-1``, ``<name>-2``, ... and returns the first name
the engine does not know.
"""

from __future__ import annotations

from composekit.engine.probe import ResourceProbe
from composekit.errors import NameExhaustionError
from composekit.types.service import ServiceNames

DEFAULT_MAX_ATTEMPTS = 100


def name_suffix(attempt: int) -> str:
    """Suffix for the given zero-based attempt: ``""``, ``"-1"``, ``"-2"``, ..."""
    return f"-{attempt}" if attempt else ""


async def resolve_names(
    probe: ResourceProbe,
    *,
    default_name: str,
    alias: str,
    avoid_conflicts: bool = False,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> ServiceNames:
    """Find a (free) container name and its network aliases.

    Args:
        probe: Probe used to look for existing containers (running or stopped).
        default_name: Preferred container name.
        alias: Base network alias, suffixed like the name.
        avoid_conflicts: If False, return the default name without probing.
        max_attempts: Number of candidate names to try.

    Returns:
        ServiceNames with the chosen name, aliases and suffix.

    Raises:
        NameExhaustionError: If every candidate is taken.
    """
    if not avoid_conflicts:
        return ServiceNames(name=default_name, aliases=(alias,), suffix="")

    for attempt in range(max_attempts):
        suffix = name_suffix(attempt)
        candidate = f"{default_name}{suffix}"
        if await probe.find_container(candidate, all_=True, match_id=False) is None:
            return ServiceNames(name=candidate, aliases=(f"{alias}{suffix}",), suffix=suffix)
    raise NameExhaustionError(default_name, max_attempts)


__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "name_suffix",
    "resolve_names",
]
