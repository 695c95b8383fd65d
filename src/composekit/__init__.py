"""composekit - ephemeral compose-style container orchestration"""

from composekit.compose import ComposeProject, ComposeService, ResourceTracker
from composekit.core.utils import logger
from composekit.errors import ComposeError

__all__ = ["ComposeError", "ComposeProject", "ComposeService", "ResourceTracker", "logger"]
