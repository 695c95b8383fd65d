"""Docker CLI backend implementation.

Spawns the engine CLI without blocking the event loop. The binary is
configurable so that docker-compatible engines (podman) work unchanged.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from composekit.core.utils import logger
from composekit.errors import EngineCommandError, EngineNotFoundError

from .protocol import CommandResult


class DockerCliBackend:
    """Docker implementation of EngineBackend.

    Args:
        binary: Engine CLI to invoke (default: "docker").
    """

    def __init__(self, binary: str = "docker") -> None:
        self.binary = binary

    async def run(self, args: Sequence[str], *, check: bool = True) -> CommandResult:
        """Run an engine command and capture its output."""
        cmd = [self.binary, *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise EngineNotFoundError(self.binary) from e

        stdout, stderr = await process.communicate()
        result = CommandResult(
            args=tuple(args),
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
        )
        if check and not result.success:
            raise EngineCommandError(cmd, result.returncode, result.stderr)
        return result


__all__ = ["DockerCliBackend"]
