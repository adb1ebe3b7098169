"""Canonical in-memory ticket representation.

Tickets arrive already fetched, with overrides applied. This module only normalizes
the identity and the documentation status, and merges duplicate identities that
overlapping tracker queries can produce."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple


class Tracker(str, Enum):
    """Issue tracker that owns a ticket."""

    JIRA = "Jira"
    BUGZILLA = "Bugzilla"

    @property
    def short_name(self) -> str:
        return "BZ" if self is Tracker.BUGZILLA else "Jira"

    @classmethod
    def parse(cls, value: str) -> "Tracker":
        """Accept the display name, the short name, or any casing of either."""
        lowered = str(value).strip().lower()
        for tracker in cls:
            if lowered in (tracker.value.lower(), tracker.short_name.lower()):
                return tracker
        raise ValueError(f"Unknown tracker: {value!r}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, order=True)
class TicketId:
    """Identity of a ticket: the tracker plus the tracker-specific key."""

    tracker: Tracker
    key: str

    @property
    def anchor(self) -> str:
        """AsciiDoc anchor of the release note, for example `BZ-12345`."""
        return f"{self.tracker.short_name}-{self.key}"

    def __str__(self) -> str:
        return f"{self.tracker.value}:{self.key}"


class DocTextStatus(str, Enum):
    """Completeness of the documentation text of a ticket."""

    COMPLETE = "Complete"
    IN_PROGRESS = "InProgress"
    UNSET = "Unset"

    def __str__(self) -> str:
        return self.value


# Tracker spellings, compared after folding case and dropping separators.
_STATUS_ALIASES: Dict[str, DocTextStatus] = {
    "complete": DocTextStatus.COMPLETE,
    "done": DocTextStatus.COMPLETE,
    "approved": DocTextStatus.COMPLETE,
    "+": DocTextStatus.COMPLETE,
    "inprogress": DocTextStatus.IN_PROGRESS,
    "proposed": DocTextStatus.IN_PROGRESS,
    "?": DocTextStatus.IN_PROGRESS,
    "unset": DocTextStatus.UNSET,
}
_CANONICAL_SPELLINGS = {"Complete", "InProgress", "Done", "Approved", "+", "In progress", "Proposed", "?"}
_STATUS_SEPARATORS = re.compile(r"[\s_\-]+")


@dataclass(frozen=True)
class DataAnomaly:
    """A recoverable data problem, corrected in place and reported to the caller."""

    ticket_id: Optional[TicketId]
    field: str
    value: str
    message: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "ticketId": str(self.ticket_id) if self.ticket_id else None,
            "field": self.field,
            "value": self.value,
            "message": self.message,
        }


def parse_doc_text_status(
    raw: Optional[str],
    ticket_id: Optional[TicketId] = None,
) -> Tuple[DocTextStatus, Optional[DataAnomaly]]:
    """Normalize a raw documentation status.

    Unset and unrecognized values become InProgress so that they never leak into the
    external variant; a value that is only recognized after case folding is accepted.
    Both cases return an anomaly describing the correction.

    Parameters:
        raw: Status exactly as the tracker reported it.
        ticket_id: Owner of the value, used in the anomaly record.

    Return:
        tuple: (status, anomaly or None)."""
    text = "" if raw is None else str(raw).strip()
    folded = _STATUS_SEPARATORS.sub("", text.lower())
    status = _STATUS_ALIASES.get(folded)

    if status is None or status is DocTextStatus.UNSET:
        reason = "unset" if not text or status is DocTextStatus.UNSET else "unrecognized"
        return DocTextStatus.IN_PROGRESS, DataAnomaly(
            ticket_id=ticket_id,
            field="doc_text_status",
            value=text,
            message=f"Doc text status is {reason}; treating it as {DocTextStatus.IN_PROGRESS}.",
        )

    if text not in _CANONICAL_SPELLINGS:
        return status, DataAnomaly(
            ticket_id=ticket_id,
            field="doc_text_status",
            value=text,
            message=f"Doc text status {text!r} matched {status} only case-insensitively.",
        )
    return status, None


def content_lines(doc_text: str) -> List[str]:
    """Lines of a doc text that are neither blank nor AsciiDoc comments."""
    return [
        line
        for line in (doc_text or "").splitlines()
        if line.strip() and not line.startswith("//")
    ]


@dataclass(frozen=True)
class Ticket:
    """A resolved tracker ticket, immutable for the rest of the build."""

    id: TicketId
    doc_type: str = ""
    components: Tuple[str, ...] = ()
    subsystems: Tuple[str, ...] = ()
    doc_text: str = ""
    doc_text_status: DocTextStatus = DocTextStatus.IN_PROGRESS
    priority: str = ""
    status: str = ""
    resolution: str = ""
    references: Tuple[TicketId, ...] = ()
    is_private: bool = False
    summary: str = ""
    url: str = ""
    docs_contact: str = ""
    target_releases: Tuple[str, ...] = ()
    is_open: bool = True

    @property
    def has_note(self) -> bool:
        return bool(content_lines(self.doc_text))

    @property
    def is_complete(self) -> bool:
        return self.doc_text_status is DocTextStatus.COMPLETE

    @property
    def closed_resolution(self) -> Optional[str]:
        """The resolution, reported only once the ticket is closed."""
        if self.is_open:
            return None
        return self.resolution or None

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": str(self.id),
            "docType": self.doc_type,
            "components": list(self.components),
            "subsystems": list(self.subsystems),
            "docTextStatus": self.doc_text_status.value,
            "priority": self.priority,
            "status": self.status,
            "resolution": self.resolution,
            "references": [str(ref) for ref in self.references],
            "private": self.is_private,
        }


class DocumentVariant(str, Enum):
    """Edition of the generated document.

    INTERNAL carries every ticket plus debugging details; EXTERNAL is the publishable
    edition and only carries tickets whose documentation is complete."""

    INTERNAL = "internal"
    EXTERNAL = "external"

    def admits(self, ticket: Ticket) -> bool:
        return self is DocumentVariant.INTERNAL or ticket.is_complete

    def __str__(self) -> str:
        return self.value


def _union(first: Iterable, second: Iterable) -> tuple:
    merged = list(first)
    for item in second:
        if item not in merged:
            merged.append(item)
    return tuple(merged)


def merge_tickets(kept: Ticket, duplicate: Ticket) -> Ticket:
    """Fold a duplicate record of the same identity into the first-seen record."""
    if kept.id != duplicate.id:
        raise ValueError(f"Cannot merge {kept.id} with {duplicate.id}")

    filled = {}
    for name in ("doc_type", "doc_text", "priority", "status", "resolution", "summary", "url", "docs_contact"):
        if not getattr(kept, name) and getattr(duplicate, name):
            filled[name] = getattr(duplicate, name)
    # The documentation status describes the text it came with.
    if "doc_text" in filled:
        filled["doc_text_status"] = duplicate.doc_text_status

    return replace(
        kept,
        components=_union(kept.components, duplicate.components),
        subsystems=_union(kept.subsystems, duplicate.subsystems),
        references=_union(kept.references, duplicate.references),
        target_releases=_union(kept.target_releases, duplicate.target_releases),
        is_private=kept.is_private or duplicate.is_private,
        **filled,
    )


def deduplicate_tickets(tickets: Iterable[Ticket]) -> List[Ticket]:
    """Collapse repeated identities into one merged record, keeping first-seen order."""
    merged: Dict[TicketId, Ticket] = {}
    for ticket in tickets:
        if ticket.id in merged:
            merged[ticket.id] = merge_tickets(merged[ticket.id], ticket)
        else:
            merged[ticket.id] = ticket
    return list(merged.values())


__all__ = [
    "Tracker",
    "TicketId",
    "DocTextStatus",
    "DataAnomaly",
    "Ticket",
    "DocumentVariant",
    "parse_doc_text_status",
    "content_lines",
    "merge_tickets",
    "deduplicate_tickets",
]
