"""Readiness polling for freshly started containers."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable

from composekit.core.utils import logger
from composekit.engine.handles import ContainerHandle
from composekit.errors import ContainerDiedError, OperationCancelledError, ReadinessTimeoutError

ReadinessCheck = Callable[[ContainerHandle], bool | Awaitable[bool]]

DEFAULT_INTERVAL = 1.0
DEFAULT_MAX_ATTEMPTS = 1200


async def _sleep(interval: float, cancel: asyncio.Event | None) -> None:
    if cancel is None:
        await asyncio.sleep(interval)
        return
    try:
        await asyncio.wait_for(cancel.wait(), timeout=interval)
    except TimeoutError:
        return


async def _evaluate(check: ReadinessCheck, container: ContainerHandle) -> bool:
    try:
        result = check(container)
        if inspect.isawaitable(result):
            result = await result
        return bool(result)
    except Exception as e:
        # A check that raises counts as "not ready yet"
        logger.debug(f"Readiness check for <{container.name}> raised: {e}")
        return False


async def wait_for_ready(
    container: ContainerHandle,
    check: ReadinessCheck,
    *,
    interval: float = DEFAULT_INTERVAL,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    cancel: asyncio.Event | None = None,
) -> None:
    """Poll ``check`` until it reports the container ready.

    Each tick waits ``interval`` seconds, verifies the container is still
    running, then evaluates the check. The check may be a plain or async
    callable receiving the container handle.

    Args:
        container: Container to watch.
        check: Readiness predicate.
        interval: Seconds between ticks.
        max_attempts: Number of ticks before giving up.
        cancel: Optional cancellation token; once set, polling stops.

    Raises:
        ContainerDiedError: If the container stops running while polling.
        ReadinessTimeoutError: If the check never succeeded within ``max_attempts``.
        OperationCancelledError: If ``cancel`` was set.
    """
    logger.info(f"Waiting for <{container.name}> to fully start...")
    for attempt in range(1, max_attempts + 1):
        await _sleep(interval, cancel)
        if cancel is not None and cancel.is_set():
            raise OperationCancelledError(f"Cancelled while waiting for <{container.name}>")
        if not await container.is_running():
            raise ContainerDiedError(container.name, attempt)
        if await _evaluate(check, container):
            logger.info(f"<{container.name}> is ready after {attempt} attempt(s)")
            return
        logger.debug(f"<{container.name}> not ready (attempt {attempt}/{max_attempts})")
    raise ReadinessTimeoutError(container.name, max_attempts)


__all__ = [
    "DEFAULT_INTERVAL",
    "DEFAULT_MAX_ATTEMPTS",
    "ReadinessCheck",
    "wait_for_ready",
]
