"""Notes Engine.

Release notes document generation: resolved tracker tickets are sorted into a nested
template of sections and materialized as AsciiDoc modules and assemblies, in an
internal and an external edition, together with a documentation status table."""

from .agent import BuildResult, NotesAgent, create_agent

__version__ = "1.0.0"
__author__ = "Notes Engine Team"

__all__ = ["BuildResult", "NotesAgent", "create_agent"]
