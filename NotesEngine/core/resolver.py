"""Template tree resolver.

Assigns a ticket subset to every inclusion site of the template. The walk is top-down:
a chapter filters the tickets that carry a release note, every child filters its
parent's matched tickets, so membership only ever narrows with depth. A shared
definition referenced from several parents becomes one `ResolvedNode` per site."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from loguru import logger

from ..errors import TemplateCycleError
from .template_parser import Section, SectionEntry, SectionReference, Template
from .tickets import Ticket, TicketId

SIBLING_POLICIES = ("duplicate", "first_match")
EMPTY_CONTAINER_POLICIES = ("keep", "skip")


@dataclass
class ResolvedNode:
    """One inclusion site of a section, with the tickets it matched.

    `site` is the index path from the chapter list down to this node, and is the same
    for the same site in every variant. `via_reference` names the shared definition the
    site was expanded from, if any."""

    section: Section
    site: Tuple[int, ...]
    matched_tickets: Tuple[Ticket, ...] = ()
    children: List["ResolvedNode"] = field(default_factory=list)
    via_reference: Optional[str] = None
    parent: Optional["ResolvedNode"] = field(default=None, repr=False, compare=False)
    generates: bool = False

    @property
    def title(self) -> str:
        return self.section.title

    @property
    def slug(self) -> str:
        return self.section.slug

    @property
    def depth(self) -> int:
        return len(self.site) - 1

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def ticket_ids(self) -> List[TicketId]:
        return [ticket.id for ticket in self.matched_tickets]

    def walk(self) -> Iterator["ResolvedNode"]:
        """Pre-order traversal of this node and its descendants."""
        yield self
        for child in self.children:
            yield from child.walk()


def iter_nodes(nodes: Iterable[ResolvedNode]) -> Iterator[ResolvedNode]:
    for node in nodes:
        yield from node.walk()


class TemplateResolver:
    """Resolve a template against one ticket set.

    Parameters:
        template: Parsed template.
        sibling_policy: `duplicate` lets a ticket appear under every matching sibling;
            `first_match` keeps it only under the first matching sibling.
        empty_container_policy: `keep` generates a container whose own matched set is
            non-empty even when none of its children generates; `skip` does not."""

    def __init__(
        self,
        template: Template,
        sibling_policy: str = "duplicate",
        empty_container_policy: str = "keep",
    ):
        if sibling_policy not in SIBLING_POLICIES:
            raise ValueError(f"Unknown sibling policy: {sibling_policy!r}")
        if empty_container_policy not in EMPTY_CONTAINER_POLICIES:
            raise ValueError(f"Unknown empty container policy: {empty_container_policy!r}")
        self.template = template
        self.sibling_policy = sibling_policy
        self.empty_container_policy = empty_container_policy

    def resolve(self, tickets: Sequence[Ticket]) -> List[ResolvedNode]:
        """Return the resolved chapter nodes, in template order."""
        eligible = tuple(ticket for ticket in tickets if ticket.has_note)
        skipped = len(tickets) - len(eligible)
        if skipped:
            logger.debug(f"{skipped} ticket(s) without a release note are left out of every section")

        chapters = self._resolve_siblings(self.template.chapters, eligible, (), None, ())
        for chapter in chapters:
            self._mark_generation(chapter)
        return chapters

    # ======== Internal Tools ========

    def _resolve_siblings(
        self,
        entries: Sequence[SectionEntry],
        offered: Tuple[Ticket, ...],
        site: Tuple[int, ...],
        parent: Optional[ResolvedNode],
        expansion: Tuple[str, ...],
    ) -> List[ResolvedNode]:
        nodes: List[ResolvedNode] = []
        claimed = set()
        for idx, entry in enumerate(entries):
            available = offered
            if self.sibling_policy == "first_match":
                available = tuple(ticket for ticket in offered if ticket.id not in claimed)
            node = self._resolve_entry(entry, available, site + (idx,), parent, expansion)
            claimed.update(node.ticket_ids)
            nodes.append(node)
        return nodes

    def _resolve_entry(
        self,
        entry: SectionEntry,
        offered: Tuple[Ticket, ...],
        site: Tuple[int, ...],
        parent: Optional[ResolvedNode],
        expansion: Tuple[str, ...],
    ) -> ResolvedNode:
        via_reference = None
        if isinstance(entry, SectionReference):
            if entry.name in expansion:
                chain = list(expansion[expansion.index(entry.name):]) + [entry.name]
                raise TemplateCycleError(chain)
            via_reference = entry.name
            expansion = expansion + (entry.name,)
            section = self.template.registry.get(entry.name)
        else:
            section = entry

        matched = tuple(ticket for ticket in offered if section.predicate.matches(ticket))
        node = ResolvedNode(
            section=section,
            site=site,
            matched_tickets=matched,
            via_reference=via_reference,
            parent=parent,
        )
        # Children are expanded even when nothing matched, so that a reference
        # cycle is reported for every ticket set.
        node.children = self._resolve_siblings(section.children, matched, site, node, expansion)
        return node

    def _mark_generation(self, node: ResolvedNode) -> bool:
        child_flags = [self._mark_generation(child) for child in node.children]
        if node.is_leaf:
            node.generates = bool(node.matched_tickets)
        elif any(child_flags):
            node.generates = True
        else:
            node.generates = self.empty_container_policy == "keep" and bool(node.matched_tickets)
        return node.generates


def resolve_template(
    template: Template,
    tickets: Sequence[Ticket],
    sibling_policy: str = "duplicate",
    empty_container_policy: str = "keep",
) -> List[ResolvedNode]:
    """Convenience wrapper around `TemplateResolver`."""
    resolver = TemplateResolver(template, sibling_policy, empty_container_policy)
    return resolver.resolve(tickets)


__all__ = [
    "SIBLING_POLICIES",
    "EMPTY_CONTAINER_POLICIES",
    "ResolvedNode",
    "TemplateResolver",
    "resolve_template",
    "iter_nodes",
]
