"""Read-only queries against the container engine.

The probe lists containers, networks and volumes and normalizes the engine's
line-delimited JSON output into typed records. Listing the same kind of
resource in rapid succession can make the engine error out, so concurrent
identical listings share one in-flight call and consecutive listings are
spaced by ``min_interval`` seconds.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from composekit.errors import EngineOutputError
from composekit.types.engine import ContainerInspect, ContainerRecord, NetworkRecord, VolumeRecord

from .backend import EngineBackend

RecordT = TypeVar("RecordT", bound=BaseModel)
T = TypeVar("T")

JSON_FORMAT = ["--format", "{{json .}}"]


def parse_json_lines(output: str, model: type[RecordT]) -> list[RecordT]:
    """Parse engine output with one JSON object per line into records.

    Args:
        output: Raw engine stdout.
        model: Record type each line is validated into.

    Returns:
        Parsed records, in output order. Blank lines are skipped.

    Raises:
        EngineOutputError: If a line is not JSON or does not match the record shape.
    """
    records = []
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            records.append(model.model_validate(json.loads(line)))
        except (json.JSONDecodeError, ValidationError) as e:
            raise EngineOutputError(f"Unrecognized {model.__name__} output line {line!r}: {e}") from e
    return records


class ResourceProbe:
    """Queries the engine for existing containers, networks and volumes.

    Args:
        backend: Engine backend used to run commands.
        min_interval: Minimum seconds between two listings of the same kind.
    """

    def __init__(self, backend: EngineBackend, *, min_interval: float = 0.0) -> None:
        self.backend = backend
        self.min_interval = min_interval
        self._inflight: dict[str, asyncio.Task[Any]] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._last_call: dict[str, float] = {}

    async def _throttled(self, key: str, producer: Callable[[], Awaitable[T]]) -> T:
        """Run ``producer`` at most once concurrently per key, spaced by min_interval."""
        task = self._inflight.get(key)
        if task is None or task.done():
            task = asyncio.ensure_future(self._spaced(key, producer))
            self._inflight[key] = task
            task.add_done_callback(self._forget(key))
        return await asyncio.shield(task)

    def _forget(self, key: str) -> Callable[[asyncio.Task[Any]], None]:
        def callback(task: asyncio.Task[Any]) -> None:
            if self._inflight.get(key) is task:
                del self._inflight[key]

        return callback

    async def _spaced(self, key: str, producer: Callable[[], Awaitable[T]]) -> T:
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            wait = self._last_call.get(key, float("-inf")) + self.min_interval - time.monotonic()
            if wait > 0:
                await asyncio.sleep(wait)
            try:
                return await producer()
            finally:
                self._last_call[key] = time.monotonic()

    async def list_containers(self, *, all_: bool = False) -> list[ContainerRecord]:
        """List containers (running only, or all when ``all_`` is True)."""

        async def producer() -> list[ContainerRecord]:
            args = ["container", "ls", *(["--all"] if all_ else []), "--no-trunc", *JSON_FORMAT]
            result = await self.backend.run(args)
            return parse_json_lines(result.stdout, ContainerRecord)

        return await self._throttled(f"containers:{all_}", producer)

    async def list_networks(self) -> list[NetworkRecord]:
        """List all networks."""

        async def producer() -> list[NetworkRecord]:
            result = await self.backend.run(["network", "ls", *JSON_FORMAT])
            return parse_json_lines(result.stdout, NetworkRecord)

        return await self._throttled("networks", producer)

    async def list_volumes(self) -> list[VolumeRecord]:
        """List all volumes."""

        async def producer() -> list[VolumeRecord]:
            result = await self.backend.run(["volume", "ls", *JSON_FORMAT])
            return parse_json_lines(result.stdout, VolumeRecord)

        return await self._throttled("volumes", producer)

    async def find_container(
        self, search: str, *, all_: bool = False, match_id: bool = True
    ) -> ContainerRecord | None:
        """Find a container by exact name, any of its names, or id prefix.

        Args:
            search: Name or id (prefix) to look for.
            all_: If True, include stopped containers.
            match_id: If False, only match container names.

        Returns:
            The first matching record, or None if nothing matches. Name matches
            take precedence over id prefix matches.
        """
        containers = await self.list_containers(all_=all_)
        for record in containers:
            if record.name == search or search in record.names:
                return record
        if not match_id:
            return None
        for record in containers:
            if record.id.startswith(search):
                return record
        return None

    async def find_network(self, search: str) -> NetworkRecord | None:
        """Find a network by exact name or id."""
        for record in await self.list_networks():
            if search in (record.name, record.id):
                return record
        return None

    async def find_volume(self, search: str, *, exact: bool = False) -> VolumeRecord | None:
        """Find a volume by exact name, falling back to a name prefix match.

        Args:
            search: Volume name (or name prefix) to look for.
            exact: If True, skip the prefix fallback.
        """
        volumes = await self.list_volumes()
        for record in volumes:
            if record.name == search:
                return record
        if exact:
            return None
        for record in volumes:
            if record.name.startswith(search):
                return record
        return None

    async def inspect_container(self, container_id: str) -> ContainerInspect | None:
        """Inspect a container; None if the engine no longer knows it."""
        result = await self.backend.run(["container", "inspect", *JSON_FORMAT, container_id], check=False)
        if not result.success:
            return None
        records = parse_json_lines(result.stdout, ContainerInspect)
        return records[0] if records else None

    async def inspect_volume(self, name: str) -> dict[str, Any] | None:
        """Inspect a volume; None if the engine no longer knows it."""
        result = await self.backend.run(["volume", "inspect", *JSON_FORMAT, name], check=False)
        if not result.success or not result.stdout.strip():
            return None
        try:
            return json.loads(result.stdout.strip().splitlines()[0])
        except json.JSONDecodeError as e:
            raise EngineOutputError(f"Unrecognized volume inspect output for {name}: {e}") from e


__all__ = [
    "ResourceProbe",
    "parse_json_lines",
]
