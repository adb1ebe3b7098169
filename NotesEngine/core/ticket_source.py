"""Ticket source boundary.

The fetch stage (tracker queries, overrides, reference resolution) runs elsewhere and
hands over a JSON list of resolved records. This module validates those records with
pydantic, converts them into immutable `Ticket` objects and collects data anomalies."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, List, Optional, Tuple, Union

from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..errors import TicketSourceError
from .tickets import (
    DataAnomaly,
    Ticket,
    TicketId,
    Tracker,
    deduplicate_tickets,
    parse_doc_text_status,
)


def _as_list(value: Any) -> List[str]:
    """Trackers report single-valued components as a bare string."""
    if value is None:
        return []
    if isinstance(value, (str, int)):
        return [str(value)]
    return [str(item) for item in value]


class TicketReference(BaseModel):
    """Identity of a referenced ticket"""
    tracker: str = Field(..., description="Tracker name or short name (Jira, Bugzilla, BZ)")
    key: str = Field(..., description="Tracker-specific key")

    @field_validator("key", mode="before")
    @classmethod
    def _stringify_key(cls, value: Any) -> Any:
        if value is None:
            return value
        key = str(value).strip()
        if not key:
            raise ValueError("key must not be empty")
        return key

    def to_ticket_id(self) -> TicketId:
        return TicketId(tracker=Tracker.parse(self.tracker), key=self.key)


class TicketRecord(BaseModel):
    """One resolved ticket as delivered by the fetch stage"""
    tracker: str = Field(..., description="Tracker name or short name (Jira, Bugzilla, BZ)")
    key: str = Field(..., description="Tracker-specific key; Bugzilla numbers are accepted")
    doc_type: str = Field(default="", description="Documentation type")
    components: List[str] = Field(default_factory=list, description="Components, single string accepted")
    subsystems: List[str] = Field(default_factory=list, description="Subsystems, single string accepted")
    doc_text: str = Field(default="", description="Release note body, empty means no note")
    doc_text_status: Optional[str] = Field(default=None, description="Raw documentation status")
    priority: str = Field(default="", description="Priority")
    status: str = Field(default="", description="Development status")
    resolution: str = Field(default="", description="Resolution")
    references: List[TicketReference] = Field(default_factory=list, description="Referenced tickets")
    is_private: bool = Field(default=False, description="Hidden by tracker or project visibility rules")
    summary: str = Field(default="", description="Ticket summary")
    url: str = Field(default="", description="Link back to the tracker")
    docs_contact: str = Field(default="", description="Writer responsible for the note")
    target_releases: List[str] = Field(default_factory=list, description="Target releases")
    is_open: bool = Field(default=True, description="Whether the ticket is still open")

    @field_validator("key", mode="before")
    @classmethod
    def _stringify_key(cls, value: Any) -> Any:
        if value is None:
            return value
        key = str(value).strip()
        if not key:
            raise ValueError("key must not be empty")
        return key

    @field_validator("components", "subsystems", "target_releases", mode="before")
    @classmethod
    def _listify(cls, value: Any) -> List[str]:
        return _as_list(value)

    @field_validator("doc_type", "doc_text", "priority", "status", "resolution",
                     "summary", "url", "docs_contact", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def to_ticket(self) -> Tuple[Ticket, Optional[DataAnomaly]]:
        """Convert the payload into a `Ticket`, correcting the documentation status."""
        ticket_id = TicketId(tracker=Tracker.parse(self.tracker), key=self.key)
        status, anomaly = parse_doc_text_status(self.doc_text_status, ticket_id)
        ticket = Ticket(
            id=ticket_id,
            doc_type=self.doc_type,
            components=tuple(dict.fromkeys(self.components)),
            subsystems=tuple(dict.fromkeys(self.subsystems)),
            doc_text=self.doc_text,
            doc_text_status=status,
            priority=self.priority,
            status=self.status,
            resolution=self.resolution,
            references=tuple(ref.to_ticket_id() for ref in self.references),
            is_private=self.is_private,
            summary=self.summary,
            url=self.url,
            docs_contact=self.docs_contact,
            target_releases=tuple(self.target_releases),
            is_open=self.is_open,
        )
        return ticket, anomaly


def tickets_from_records(
    records: Iterable[Union[dict, TicketRecord]],
) -> Tuple[List[Ticket], List[DataAnomaly]]:
    """Validate raw records and return the deduplicated ticket set plus anomalies.

    Parameters:
        records: Dictionaries or already validated `TicketRecord` objects.

    Return:
        tuple: (tickets in first-seen order, anomalies in input order)."""
    tickets: List[Ticket] = []
    anomalies: List[DataAnomaly] = []

    for idx, raw in enumerate(records):
        try:
            record = raw if isinstance(raw, TicketRecord) else TicketRecord.model_validate(raw)
            ticket, anomaly = record.to_ticket()
        except (ValidationError, ValueError) as exc:
            raise TicketSourceError(f"Invalid ticket record #{idx}: {exc}") from exc
        tickets.append(ticket)
        if anomaly:
            logger.warning(f"{ticket.id}: {anomaly.message}")
            anomalies.append(anomaly)

    unique = deduplicate_tickets(tickets)
    if len(unique) != len(tickets):
        logger.info(f"Merged {len(tickets) - len(unique)} duplicate ticket record(s)")
    return unique, anomalies


def load_ticket_file(path: Union[str, Path]) -> Tuple[List[Ticket], List[DataAnomaly]]:
    """Read a JSON list of resolved ticket records from disk."""
    ticket_path = Path(path)
    try:
        payload = json.loads(ticket_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise TicketSourceError(f"Cannot read the ticket file {ticket_path}: {exc}") from exc

    if isinstance(payload, dict):
        payload = payload.get("tickets", [])
    if not isinstance(payload, list):
        raise TicketSourceError(f"The ticket file {ticket_path} must contain a list of tickets")

    logger.debug(f"Loaded {len(payload)} ticket record(s) from {ticket_path}")
    return tickets_from_records(payload)


__all__ = [
    "TicketReference",
    "TicketRecord",
    "tickets_from_records",
    "load_ticket_file",
]
