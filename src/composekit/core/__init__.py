"""Core modules for composekit."""

from .utils.logging import setup_composekit_logging

__all__ = [
    "setup_composekit_logging",
]
