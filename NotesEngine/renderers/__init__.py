"""Notes Engine renderer collection.

Provides AsciiDocRenderer for generated modules, assemblies and the appendix."""

from .asciidoc_renderer import AsciiDocRenderer, include_statement, ticket_lookup

__all__ = ["AsciiDocRenderer", "include_statement", "ticket_lookup"]
