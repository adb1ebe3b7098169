"""Notes Engine exception hierarchy.

Configuration, cycle, source and materialization errors abort the whole build before
any file is written. Data anomalies are not exceptions; see `core.tickets.DataAnomaly`."""

from __future__ import annotations

from typing import List, Optional


class NotesEngineError(Exception):
    """Base class of every error raised by the engine."""


class TemplateConfigError(NotesEngineError):
    """The template configuration cannot be turned into a section tree.

    `errors` keeps every path-addressed problem found, so that the user can fix
    the whole file in one pass instead of one error per run."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors: List[str] = list(errors or [])
        if self.errors:
            message = message + "\n" + "\n".join(f"  - {err}" for err in self.errors)
        super().__init__(message)


class TemplateCycleError(TemplateConfigError):
    """A shared section reference includes itself, directly or transitively."""

    def __init__(self, chain: List[str]):
        self.chain = list(chain)
        super().__init__(
            "Shared section reference cycle: " + " -> ".join(self.chain),
        )


class TicketSourceError(NotesEngineError):
    """The resolved ticket records cannot be read or do not fit the record model."""


class MaterializationError(NotesEngineError):
    """The generated inclusion graph is inconsistent."""


__all__ = [
    "NotesEngineError",
    "TemplateConfigError",
    "TemplateCycleError",
    "TicketSourceError",
    "MaterializationError",
]
