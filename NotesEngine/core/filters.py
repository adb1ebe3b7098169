"""Section filter predicates.

A section filter is compiled once into a small, closed set of predicate objects:
doc type membership, component membership, subsystem membership and their conjunction.
Each predicate is side-effect free, so evaluation order never matters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..errors import TemplateConfigError
from ..ir import FILTER_FIELDS, TemplateValidator, filter_values
from .tickets import Ticket


class TicketPredicate(ABC):
    """A test over a single ticket."""

    @abstractmethod
    def matches(self, ticket: Ticket) -> bool:
        """Return True when the ticket satisfies the predicate."""

    @abstractmethod
    def describe(self) -> str:
        """Short human-readable form, used in logs."""

    def __call__(self, ticket: Ticket) -> bool:
        return self.matches(ticket)


@dataclass(frozen=True)
class DocTypeIn(TicketPredicate):
    """The ticket doc type equals one of the allowed values (case-sensitive)."""

    values: Tuple[str, ...]

    def matches(self, ticket: Ticket) -> bool:
        return ticket.doc_type in self.values

    def describe(self) -> str:
        return f"doc_type in {list(self.values)}"


@dataclass(frozen=True)
class ComponentIn(TicketPredicate):
    """At least one ticket component is an allowed value.

    A ticket without components never matches."""

    values: Tuple[str, ...]

    def matches(self, ticket: Ticket) -> bool:
        return any(component in self.values for component in ticket.components)

    def describe(self) -> str:
        return f"component in {list(self.values)}"


@dataclass(frozen=True)
class SubsystemIn(TicketPredicate):
    """At least one ticket subsystem is an allowed value."""

    values: Tuple[str, ...]

    def matches(self, ticket: Ticket) -> bool:
        return any(subsystem in self.values for subsystem in ticket.subsystems)

    def describe(self) -> str:
        return f"subsystem in {list(self.values)}"


@dataclass(frozen=True)
class AllOf(TicketPredicate):
    """Conjunction; with no parts it matches every ticket."""

    parts: Tuple[TicketPredicate, ...] = ()

    def matches(self, ticket: Ticket) -> bool:
        return all(part.matches(ticket) for part in self.parts)

    def describe(self) -> str:
        if not self.parts:
            return "any ticket"
        return " and ".join(part.describe() for part in self.parts)


MATCH_ALL = AllOf()

_FIELD_PREDICATES = {
    "doc_type": DocTypeIn,
    "component": ComponentIn,
    "subsystem": SubsystemIn,
}


def compile_filter(filter_def: Optional[Dict[str, Any]], path: str = "filter") -> TicketPredicate:
    """Turn a raw filter mapping into a predicate.

    Parameters:
        filter_def: Mapping with optional `doc_type`, `component` and `subsystem` lists.
        path: Location of the filter in the template, used in error messages.

    Return:
        TicketPredicate: `MATCH_ALL` when no field constrains anything."""
    errors: List[str] = []
    TemplateValidator().validate_filter(filter_def, path, errors)
    if errors:
        raise TemplateConfigError("Invalid section filter.", errors)
    if not filter_def:
        return MATCH_ALL

    parts = []
    for key in FILTER_FIELDS:
        values = filter_values(filter_def.get(key))
        if values is not None:
            parts.append(_FIELD_PREDICATES[key](values))
    return AllOf(tuple(parts))


__all__ = [
    "TicketPredicate",
    "DocTypeIn",
    "ComponentIn",
    "SubsystemIn",
    "AllOf",
    "MATCH_ALL",
    "compile_filter",
]
