from .logging import logger, setup_composekit_logging

__all__ = [
    "logger",
    "setup_composekit_logging",
]
