"""Notes Engine status management module.

Export BuildState/BuildMetadata for sharing between the agent and its callers."""

from .state import BuildState, BuildMetadata

__all__ = ["BuildState", "BuildMetadata"]
