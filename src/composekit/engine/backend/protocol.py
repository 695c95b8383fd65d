"""Container engine backend protocol definition.

Defines the process-level interface the orchestration layer talks to. A
backend runs one engine CLI invocation and reports its outcome; everything
above it (parsing, retries, bookkeeping) is engine-agnostic.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a single engine invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        """Return True if the command exited with code 0."""
        return self.returncode == 0


class EngineBackend(Protocol):
    """Protocol for container engine backend implementations.

    Implemented by the CLI backend (docker, podman) and by test doubles.
    """

    async def run(self, args: Sequence[str], *, check: bool = True) -> CommandResult:
        """Run one engine command.

        Args:
            args: Command arguments, without the engine binary
                (e.g., ``["container", "ls", "--all"]``).
            check: If True, raise when the command exits with a non-zero status.

        Returns:
            CommandResult with captured stdout and stderr.

        Raises:
            EngineCommandError: If check is True and the command fails.
            EngineNotFoundError: If the engine binary cannot be spawned.
        """
        ...


__all__ = ["CommandResult", "EngineBackend"]
