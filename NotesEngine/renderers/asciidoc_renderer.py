from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence

from ..core.summary_list import ComponentGroup
from ..core.tickets import DocumentVariant, Ticket, TicketId

SUMMARY_ID = "list-of-tickets-by-component"
SUMMARY_TITLE = "List of tickets by component"
PRIVATE_FOOTNOTE_ID = "PrivateTicketFootnote"


def include_statement(file_name: str) -> str:
    return f"include::{file_name}[leveloffset=+1]"


class AsciiDocRenderer:
    """Produce the AsciiDoc text of generated files.

    - Leaf modules list the release notes of their tickets;
    - Assemblies only carry include statements for the children that were generated;
    - The master file includes the chapters followed by the appendix."""

    def __init__(self, private_footnote: bool = False) -> None:
        self.private_footnote = private_footnote

    # ===== Document skeletons =====

    def render_leaf(
        self,
        module_id: str,
        title: str,
        intro_abstract: str,
        tickets: Sequence[Ticket],
        variant: DocumentVariant,
        lookup: Optional[Mapping[TicketId, Ticket]] = None,
    ) -> str:
        notes = [self.release_note(ticket, variant, lookup) for ticket in tickets]
        return self._compose(module_id, title, intro_abstract, notes)

    def render_assembly(
        self,
        module_id: str,
        title: str,
        intro_abstract: str,
        includes: Sequence[str],
    ) -> str:
        statements = [include_statement(name) for name in includes]
        return self._compose(module_id, title, intro_abstract, statements)

    def render_master(self, chapter_files: Sequence[str], summary_file: Optional[str] = None) -> str:
        statements = [include_statement(name) for name in chapter_files]
        if summary_file:
            statements.append(include_statement(summary_file))
        return "\n\n".join(statements) + "\n"

    def render_summary(self, groups: Sequence[ComponentGroup]) -> str:
        """Appendix table: one row per component, with the ticket signatures."""
        lines = [
            f'[id="{SUMMARY_ID}"]',
            f"= {SUMMARY_TITLE}",
            "",
            '[cols="1,3", options="header"]',
            "|===",
            "| Component | Tickets",
        ]
        for group in groups:
            component = group.component if group.is_placeholder else f"`{group.component}`"
            signatures = ", ".join(self.signature(ticket) for ticket in group.tickets)
            lines.extend(["", f"| {component}", f"| {signatures}"])
        lines.append("|===")
        return "\n".join(lines) + "\n"

    # ===== Release notes =====

    def release_note(
        self,
        ticket: Ticket,
        variant: DocumentVariant,
        lookup: Optional[Mapping[TicketId, Ticket]] = None,
    ) -> str:
        """Format one release note: anchor, body, then the signatures.

        The internal variant adds a debug line with the docs contact, the doc text
        status and the tracker link."""
        body = ticket.doc_text.replace("\r", "").strip("\n")
        signatures = self.all_signatures(ticket, lookup)
        if variant is DocumentVariant.INTERNAL:
            signatures = f"{signatures} {self.debug_info(ticket)}"
        return f'[id="{ticket.id.anchor}"]\n{body}\n\n{signatures}'

    def signature(self, ticket: Ticket) -> str:
        if not ticket.is_private and ticket.url:
            return f"link:{ticket.url}[{ticket.id}]"
        if ticket.is_private and self.private_footnote:
            return f"{ticket.id}footnoteref:[{PRIVATE_FOOTNOTE_ID}]"
        return str(ticket.id)

    def all_signatures(self, ticket: Ticket, lookup: Optional[Mapping[TicketId, Ticket]] = None) -> str:
        """The ticket signature followed by the signatures of its references."""
        lookup = lookup or {}
        signatures: List[str] = [self.signature(ticket)]
        for ref in ticket.references:
            referenced = lookup.get(ref)
            signatures.append(self.signature(referenced) if referenced else str(ref))
        return ", ".join(signatures)

    @staticmethod
    def debug_info(ticket: Ticket) -> str:
        contact = ticket.docs_contact or "Missing docs contact"
        return f"| {contact} | {ticket.doc_text_status} | link:{ticket.url}[]"

    # ===== Internal Tools =====

    @staticmethod
    def _compose(module_id: str, title: str, intro_abstract: str, blocks: Sequence[str]) -> str:
        parts: List[str] = [f'[id="{module_id}"]\n= {title}']
        if intro_abstract:
            parts.append(intro_abstract)
        parts.extend(blocks)
        return "\n\n".join(parts) + "\n"


def ticket_lookup(tickets: Sequence[Ticket]) -> Dict[TicketId, Ticket]:
    return {ticket.id: ticket for ticket in tickets}


__all__ = ["AsciiDocRenderer", "include_statement", "ticket_lookup", "SUMMARY_ID", "SUMMARY_TITLE"]
