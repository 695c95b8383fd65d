"""Teardown of everything a tracker recorded.

Teardown runs in a fixed order: tracked services, then (optionally) the
manifest's default service containers, then tracked containers, then volumes,
then networks. Every resource is attempted even if an earlier one failed; the
failures are collected and either logged (default) or raised together as a
``TeardownError``.

Only one teardown runs per tracker at a time. A request that arrives while one
is in flight awaits the in-flight run and receives its outcome; the options of
the first request win.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from typing import TYPE_CHECKING

from composekit.core.utils import logger
from composekit.errors import TeardownError

from .tracker import ResourceTracker

if TYPE_CHECKING:
    from .project import ComposeProject

Failure = tuple[str, Exception]


async def _attempt(resource: str, action: Awaitable[object]) -> list[Failure]:
    try:
        await action
    except TeardownError as e:
        return [(r, err) for r, err in e.failures if isinstance(err, Exception)]
    except Exception as e:
        return [(resource, e)]
    return []


async def _attempt_all(actions: Iterable[tuple[str, Awaitable[object]]]) -> list[Failure]:
    results = await asyncio.gather(*(_attempt(resource, action) for resource, action in actions))
    return [failure for failures in results for failure in failures]


async def _remove_volume_if_present(project: ComposeProject, name: str) -> None:
    volume = await project.client.find_volume(name, exact=True)
    if volume is not None:
        await volume.rm(ignore_errors=False)


async def _run_teardown(
    tracker: ResourceTracker,
    *,
    include_volumes: bool,
    include_networks: bool,
    include_manifest_defaults: bool,
    project: ComposeProject | None,
    ignore_errors: bool,
) -> None:
    failures: list[Failure] = []
    try:
        services = list(tracker.services.values())
        tracker.services.clear()
        failures += await _attempt_all(
            (
                f"service {service.name}",
                service.down(include_networks=include_networks, include_volumes=include_volumes, ignore_errors=False),
            )
            for service in services
        )

        if include_manifest_defaults and project is not None:
            failures += await _attempt_all(
                (
                    f"service {service.name}",
                    service.down(
                        include_defaults=True,
                        include_networks=include_networks,
                        include_volumes=include_volumes,
                        ignore_errors=False,
                    ),
                )
                for service in project.all_services().values()
            )

        containers = list(tracker.containers.values())
        tracker.containers.clear()
        failures += await _attempt_all(
            (f"container {container.name}", container.teardown(ignore_errors=False)) for container in containers
        )

        if include_volumes:
            volumes = list(tracker.volumes.values())
            tracker.volumes.clear()
            tracked = {volume.name for volume in volumes}
            failures += await _attempt_all(
                (f"volume {volume.name}", volume.rm(ignore_errors=False)) for volume in volumes
            )
            if include_manifest_defaults and project is not None:
                defaults = [name for name in project.resolver.volumes(project.manifest()) if name not in tracked]
                failures += await _attempt_all(
                    (f"volume {name}", _remove_volume_if_present(project, name)) for name in defaults
                )

        if include_networks:
            networks = list(tracker.networks.values())
            tracker.networks.clear()
            tracked = {network.name for network in networks}
            failures += await _attempt_all((f"network {network.name}", network.rm()) for network in networks)
            if include_manifest_defaults and project is not None:
                defaults = [name for name in project.resolver.networks(project.manifest()) if name not in tracked]
                failures += await _attempt_all(
                    (f"network {name}", project.client.delete_network(name)) for name in defaults
                )
    finally:
        tracker.teardown_task = None

    if not failures:
        return
    if not ignore_errors:
        raise TeardownError(failures)
    for resource, error in failures:
        logger.warning(f"Warning (ignored Error): Failed to tear down {resource}: {error}")


async def teardown(
    tracker: ResourceTracker,
    *,
    include_volumes: bool = False,
    include_networks: bool = False,
    include_manifest_defaults: bool = False,
    project: ComposeProject | None = None,
    ignore_errors: bool = True,
) -> None:
    """Tear down every resource recorded in ``tracker``.

    Args:
        tracker: Tracker to drain.
        include_volumes: Also remove tracked volumes.
        include_networks: Also remove tracked networks.
        include_manifest_defaults: Also remove the default containers, volumes
            and networks the manifest declares, whether tracked or not.
        project: Project whose manifest supplies the defaults. Required with
            ``include_manifest_defaults``.
        ignore_errors: If True, log failures; if False, raise them.

    Raises:
        TeardownError: If ``ignore_errors`` is False and any removal failed.
        ValueError: If manifest defaults are requested without a project.
    """
    if include_manifest_defaults and project is None:
        raise ValueError("include_manifest_defaults requires a project")

    task = tracker.teardown_task
    if task is None or task.done():
        task = asyncio.create_task(
            _run_teardown(
                tracker,
                include_volumes=include_volumes,
                include_networks=include_networks,
                include_manifest_defaults=include_manifest_defaults,
                project=project,
                ignore_errors=ignore_errors,
            )
        )
        tracker.teardown_task = task
    else:
        logger.debug("Teardown already in progress, waiting for it")
    await asyncio.shield(task)


__all__ = ["teardown"]
