"""Exception types raised by composekit.

Probing for a resource that does not exist is never an error: finders return
``None``. Everything below signals a definitive failure.
"""

from __future__ import annotations

from collections.abc import Sequence


class ComposeError(Exception):
    """Base exception for all composekit errors."""


class EngineNotFoundError(ComposeError):
    """Raised when the container engine binary cannot be spawned."""

    def __init__(self, binary: str) -> None:
        self.binary = binary
        super().__init__(f"Container engine '{binary}' not found. Is it installed and in PATH?")


class EngineCommandError(ComposeError):
    """Raised when an engine command exits with a non-zero status."""

    def __init__(self, args: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr
        message = f"{' '.join(self.command)} => {returncode} (error)"
        if stderr.strip():
            message += f": {stderr.strip()}"
        super().__init__(message)


class EngineOutputError(ComposeError):
    """Raised when engine output does not match the expected record shape."""


class ManifestError(ComposeError):
    """Base exception for manifest loading failures."""


class ManifestNotFoundError(ManifestError):
    """Raised when the manifest file does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Manifest file not found: {path}")


class ManifestParseError(ManifestError):
    """Raised when the manifest cannot be parsed or validated."""


class ServiceNotFoundError(ComposeError):
    """Raised when a service key is not declared in the manifest."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Failed to find service '{name}'")


class CreationError(ComposeError):
    """Raised when a container, network or volume could not be created."""


class NameExhaustionError(ComposeError):
    """Raised when no unused container name was found within the attempt bound."""

    def __init__(self, default_name: str, attempts: int) -> None:
        self.default_name = default_name
        self.attempts = attempts
        super().__init__(
            f"Failed to find available container name for {default_name} after {attempts} attempts"
        )


class ReadinessTimeoutError(ComposeError):
    """Raised when a readiness probe never succeeded within the attempt bound."""

    def __init__(self, name: str, attempts: int) -> None:
        self.name = name
        self.attempts = attempts
        super().__init__(f"Timeout waiting for '{name}' container to start after {attempts} attempts.")


class ContainerDiedError(ComposeError):
    """Raised when a container stops running while waiting for readiness."""

    def __init__(self, name: str, attempt: int) -> None:
        self.name = name
        self.attempt = attempt
        super().__init__(f"The '{name}' container is no longer running (attempt {attempt}).")


class OperationCancelledError(ComposeError):
    """Raised when a long-running operation observes its cancellation token."""


class TeardownError(ComposeError):
    """Aggregates the per-resource failures of a strict teardown."""

    def __init__(self, failures: Sequence[tuple[str, BaseException]]) -> None:
        self.failures = list(failures)
        details = "; ".join(f"{resource}: {error}" for resource, error in self.failures)
        super().__init__(f"Teardown failed for {len(self.failures)} resource(s): {details}")


__all__ = [
    "ComposeError",
    "ContainerDiedError",
    "CreationError",
    "EngineCommandError",
    "EngineNotFoundError",
    "EngineOutputError",
    "ManifestError",
    "ManifestNotFoundError",
    "ManifestParseError",
    "NameExhaustionError",
    "OperationCancelledError",
    "ReadinessTimeoutError",
    "ServiceNotFoundError",
    "TeardownError",
]
