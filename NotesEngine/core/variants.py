"""Variant splitter.

A build resolves and materializes the template twice: the internal variant sees every
ticket, the external variant only tickets whose documentation is complete. Each pass
builds its own resolved tree, so the passes share no mutable state and may run in
parallel."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from loguru import logger

from ..renderers.asciidoc_renderer import AsciiDocRenderer, ticket_lookup
from .materializer import DocumentMaterializer, MaterializedVariant
from .resolver import ResolvedNode, TemplateResolver
from .summary_list import tickets_by_component
from .template_parser import Template
from .tickets import DocumentVariant, Ticket, TicketId


@dataclass
class VariantOptions:
    """Settings shared by both passes of a build."""

    sibling_policy: str = "duplicate"
    empty_container_policy: str = "keep"
    module_prefix: str = "ref_"
    assembly_prefix: str = "assembly_"
    extension: str = ".adoc"
    master_file_name: str = "main-generated.adoc"
    summary_file_name: str = "ref_list-of-tickets-by-component.adoc"
    private_footnote: bool = False
    parallel: bool = False


@dataclass
class TicketUsage:
    """How often each ticket with a release note landed in a leaf module."""

    counts: Dict[TicketId, int] = field(default_factory=dict)

    @property
    def unused(self) -> List[TicketId]:
        return [ticket_id for ticket_id, count in self.counts.items() if count == 0]

    @property
    def overused(self) -> List[TicketId]:
        return [ticket_id for ticket_id, count in self.counts.items() if count > 1]

    def to_dict(self) -> Dict[str, object]:
        return {
            "unused": [str(ticket_id) for ticket_id in self.unused],
            "overused": [str(ticket_id) for ticket_id in self.overused],
        }


def variant_tickets(tickets: Sequence[Ticket], variant: DocumentVariant) -> List[Ticket]:
    """The ticket set a variant is resolved against, in input order."""
    return [ticket for ticket in tickets if variant.admits(ticket)]


def ticket_usage(tickets: Sequence[Ticket], chapters: Sequence[ResolvedNode]) -> TicketUsage:
    """Count leaf-module occurrences of every ticket that carries a release note."""
    counts: Dict[TicketId, int] = {ticket.id: 0 for ticket in tickets if ticket.has_note}
    for chapter in chapters:
        for node in chapter.walk():
            if node.is_leaf and node.generates:
                for ticket_id in node.ticket_ids:
                    counts[ticket_id] = counts.get(ticket_id, 0) + 1
    return TicketUsage(counts=counts)


def report_ticket_usage(usage: TicketUsage):
    if usage.unused:
        logger.warning(
            "Tickets unused in the templates:\n\t " + ", ".join(str(ticket_id) for ticket_id in usage.unused)
        )
    if usage.overused:
        logger.warning(
            "Tickets used more than once in the templates:\n\t "
            + ", ".join(str(ticket_id) for ticket_id in usage.overused)
        )


def build_variant(
    template: Template,
    tickets: Sequence[Ticket],
    variant: DocumentVariant,
    options: Optional[VariantOptions] = None,
) -> MaterializedVariant:
    """Resolve and materialize one variant, including its master file and appendix.

    Parameters:
        template: Parsed template.
        tickets: The full deduplicated ticket set; the variant gate is applied here.
        variant: Which edition to build.
        options: Naming and policy settings.

    Return:
        MaterializedVariant: documents plus the master and appendix files."""
    options = options or VariantOptions()
    logger.info(f"Resolving variant {variant} ...")
    selected = variant_tickets(tickets, variant)

    resolver = TemplateResolver(template, options.sibling_policy, options.empty_container_policy)
    chapters = resolver.resolve(selected)

    renderer = AsciiDocRenderer(private_footnote=options.private_footnote)
    materializer = DocumentMaterializer(
        module_prefix=options.module_prefix,
        assembly_prefix=options.assembly_prefix,
        extension=options.extension,
        renderer=renderer,
        reserved_names=(options.master_file_name, options.summary_file_name),
    )
    result = materializer.materialize(chapters, variant, ticket_lookup(tickets))

    summary = renderer.render_summary(tickets_by_component(selected, variant))
    result.extra_files[options.summary_file_name] = summary
    result.extra_files[options.master_file_name] = renderer.render_master(
        result.chapter_files, options.summary_file_name
    )
    logger.info(
        f"Variant {variant}: {len(selected)} ticket(s), {len(result.documents)} generated document(s), "
        f"{len(result.chapter_files)} chapter(s)"
    )
    return result


def build_variants(
    template: Template,
    tickets: Sequence[Ticket],
    options: Optional[VariantOptions] = None,
) -> Dict[DocumentVariant, MaterializedVariant]:
    """Build the internal and the external variant."""
    options = options or VariantOptions()
    order = (DocumentVariant.INTERNAL, DocumentVariant.EXTERNAL)

    if options.parallel:
        with ThreadPoolExecutor(max_workers=len(order), thread_name_prefix="notes-variant") as executor:
            futures = {variant: executor.submit(build_variant, template, tickets, variant, options)
                       for variant in order}
            return {variant: futures[variant].result() for variant in order}

    return {variant: build_variant(template, tickets, variant, options) for variant in order}


__all__ = [
    "VariantOptions",
    "TicketUsage",
    "variant_tickets",
    "ticket_usage",
    "report_ticket_usage",
    "build_variant",
    "build_variants",
]
