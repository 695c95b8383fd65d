"""Opt-in teardown on SIGINT/SIGTERM.

Nothing tears down implicitly when the process is signalled. Callers that
want that behavior wrap their work in ``teardown_on_signals``; the handlers are
installed on the running loop only for the lifetime of the block.
"""

from __future__ import annotations

import asyncio
import signal
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager

from composekit.core.utils import logger

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@asynccontextmanager
async def teardown_on_signals(
    on_signal: Callable[[], Awaitable[None]],
    *,
    signals: Sequence[signal.Signals] = DEFAULT_SIGNALS,
) -> AsyncIterator[asyncio.Event]:
    """Run ``on_signal`` once if one of ``signals`` arrives inside the block.

    Args:
        on_signal: Teardown coroutine factory, called at most once.
        signals: Signals to handle.

    Yields:
        Event set when a signal arrived; usable as a cancellation token.
    """
    loop = asyncio.get_running_loop()
    cancel = asyncio.Event()
    pending: list[asyncio.Task[None]] = []

    async def run_teardown() -> None:
        await on_signal()

    def handle(sig: signal.Signals) -> None:
        logger.info(f"Received {sig.name}, tearing down...")
        cancel.set()
        if not pending:
            pending.append(loop.create_task(run_teardown()))

    for sig in signals:
        loop.add_signal_handler(sig, handle, sig)
    try:
        yield cancel
    finally:
        for sig in signals:
            loop.remove_signal_handler(sig)
        if pending:
            await pending[0]


__all__ = [
    "DEFAULT_SIGNALS",
    "teardown_on_signals",
]
