"""Appendix data: every ticket of the document, grouped by component."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .tickets import DocumentVariant, Ticket

# Components that only categorize tickets internally, shown as one placeholder group.
INTERNAL_COMPONENTS = ("releng", "(none)", "Documentation")
INTERNAL_COMPONENT_PREFIXES = ("doc-", "Red_Hat_Enterprise_Linux-Release_Notes")
COMPONENT_PLACEHOLDER = "other"


def is_internal_component(component: str) -> bool:
    return component in INTERNAL_COMPONENTS or component.startswith(INTERNAL_COMPONENT_PREFIXES)


@dataclass
class ComponentGroup:
    """Tickets listed under one component of the appendix."""

    component: str
    is_placeholder: bool = False
    tickets: List[Ticket] = field(default_factory=list)

    @property
    def sort_key(self) -> tuple:
        return (self.is_placeholder, self.component)

    def to_dict(self) -> dict:
        return {
            "component": self.component,
            "placeholder": self.is_placeholder,
            "tickets": [str(ticket.id) for ticket in self.tickets],
        }


def tickets_by_component(tickets: Iterable[Ticket], variant: DocumentVariant) -> List[ComponentGroup]:
    """Group the tickets of one variant by component.

    A ticket is listed under each of its components; internal components collapse into
    the `other` group, which sorts after every real component. Tickets without a
    component are not listed. The external variant lists only complete tickets."""
    groups: Dict[tuple, ComponentGroup] = {}
    for ticket in tickets:
        if not ticket.has_note or not variant.admits(ticket):
            continue
        for component in ticket.components:
            placeholder = is_internal_component(component)
            name = COMPONENT_PLACEHOLDER if placeholder else component
            group = groups.setdefault(
                (placeholder, name), ComponentGroup(component=name, is_placeholder=placeholder)
            )
            if ticket not in group.tickets:
                group.tickets.append(ticket)
    return sorted(groups.values(), key=lambda group: group.sort_key)


__all__ = [
    "INTERNAL_COMPONENTS",
    "INTERNAL_COMPONENT_PREFIXES",
    "COMPONENT_PLACEHOLDER",
    "ComponentGroup",
    "is_internal_component",
    "tickets_by_component",
]
