"""Status table builder.

An operational overview of every ticket, independent of the template: rows grouped by
component, each carrying the ticket identity, its status, its resolution once closed and
a set of documentation checks. Overall progress and per-writer statistics are computed
from the same checks."""

from __future__ import annotations

import json
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Sequence

from .tickets import DocTextStatus, Ticket, content_lines

NO_COMPONENT = "No component"
MAX_TITLE_LENGTH = 120
# These doc types do not belong to a particular release.
UNCHECKED_DOC_TYPES = ("known issue", "technology preview", "deprecated functionality")
EARLY_DEVELOPMENT_STATES = ("to do", "new", "assigned", "modified")
PLACEHOLDER_DOC_TYPE = "If docs needed, set a value"

_TITLE_PATTERN = re.compile(r"^ *\.(\S+.*)")


class CheckLevel(str, Enum):
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class CheckResult:
    level: CheckLevel = CheckLevel.OK
    message: str = "OK"

    @classmethod
    def warning(cls, message: str) -> "CheckResult":
        return cls(CheckLevel.WARNING, message)

    @classmethod
    def error(cls, message: str) -> "CheckResult":
        return cls(CheckLevel.ERROR, message)

    def to_dict(self) -> Dict[str, str]:
        return {"level": self.level.value, "message": self.message}


OK = CheckResult()


def check_development(status: str) -> CheckResult:
    if status.strip().lower() in EARLY_DEVELOPMENT_STATES:
        return CheckResult.warning("Early development.")
    return OK


def check_doc_type(doc_type: str) -> CheckResult:
    if doc_type == PLACEHOLDER_DOC_TYPE:
        return CheckResult.error("Bad doc type.")
    return OK


def check_doc_status(status: DocTextStatus) -> CheckResult:
    if status is DocTextStatus.COMPLETE:
        return OK
    return CheckResult.error("RN not approved.")


def check_title(line: str) -> CheckResult:
    """The first content line is an AsciiDoc block title: `.Title`."""
    match = _TITLE_PATTERN.match(line)
    if not match:
        return CheckResult.error("Missing title.")
    if line.startswith(" "):
        return CheckResult.error("Title starts with a space.")
    length = len(match.group(1))
    if length > MAX_TITLE_LENGTH:
        return CheckResult.warning(f"Long title: {length} characters.")
    return OK


def check_text(doc_text: str) -> CheckResult:
    lines = content_lines(doc_text)
    if not lines:
        return CheckResult.error("Empty RN.")
    if len(lines) == 1:
        return CheckResult.error("Text in one paragraph.")
    return check_title(lines[0])


def check_target_release(ticket: Ticket, likely_release: Optional[str]) -> CheckResult:
    if likely_release is None:
        return OK
    if likely_release in ticket.target_releases or ticket.doc_type.lower() in UNCHECKED_DOC_TYPES:
        return OK
    return CheckResult.warning("Check target release.")


@dataclass(frozen=True)
class TicketChecks:
    """Documentation checks of one ticket."""

    development: CheckResult = OK
    doc_type: CheckResult = OK
    doc_status: CheckResult = OK
    title_and_text: CheckResult = OK
    target_release: CheckResult = OK

    def overall(self) -> CheckResult:
        """All errors if there is one, otherwise all warnings, otherwise OK."""
        # The text check has its own column; keep its message short here.
        text = self.title_and_text
        if text.level is CheckLevel.ERROR:
            text = CheckResult.error("Bad text.")
        items = [self.doc_type, text, self.doc_status, self.development, self.target_release]

        errors = [item.message for item in items if item.level is CheckLevel.ERROR]
        if errors:
            return CheckResult.error(" ".join(errors))
        warnings = [item.message for item in items if item.level is CheckLevel.WARNING]
        if warnings:
            return CheckResult.warning(" ".join(warnings))
        return OK

    def to_dict(self) -> Dict[str, object]:
        return {
            "development": self.development.to_dict(),
            "docType": self.doc_type.to_dict(),
            "docStatus": self.doc_status.to_dict(),
            "titleAndText": self.title_and_text.to_dict(),
            "targetRelease": self.target_release.to_dict(),
            "overall": self.overall().to_dict(),
        }


def check_ticket(ticket: Ticket, likely_release: Optional[str] = None) -> TicketChecks:
    return TicketChecks(
        development=check_development(ticket.status),
        doc_type=check_doc_type(ticket.doc_type),
        doc_status=check_doc_status(ticket.doc_text_status),
        title_and_text=check_text(ticket.doc_text),
        target_release=check_target_release(ticket, likely_release),
    )


@dataclass
class StatusRow:
    ticket: Ticket
    checks: TicketChecks

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": str(self.ticket.id),
            "summary": self.ticket.summary,
            "status": self.ticket.status,
            "resolution": self.ticket.closed_resolution,
            "docType": self.ticket.doc_type,
            "docTextStatus": self.ticket.doc_text_status.value,
            "docsContact": self.ticket.docs_contact,
            "url": self.ticket.url,
            "checks": self.checks.to_dict(),
        }


@dataclass
class ComponentRows:
    """One row group of the table."""

    component: str
    rows: List[StatusRow] = field(default_factory=list)

    @property
    def is_no_component(self) -> bool:
        return self.component == NO_COMPONENT

    def to_dict(self) -> Dict[str, object]:
        return {"component": self.component, "rows": [row.to_dict() for row in self.rows]}


def percentage(part: int, total: int) -> float:
    return part / total * 100.0 if total else 0.0


@dataclass
class OverallProgress:
    all: int = 0
    complete: int = 0
    warnings: int = 0
    incomplete: int = 0

    @classmethod
    def from_checks(cls, checks: Sequence[TicketChecks]) -> "OverallProgress":
        levels = Counter(item.overall().level for item in checks)
        return cls(
            all=len(checks),
            complete=levels[CheckLevel.OK],
            warnings=levels[CheckLevel.WARNING],
            incomplete=levels[CheckLevel.ERROR],
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "all": self.all,
            "complete": self.complete,
            "completePct": percentage(self.complete, self.all),
            "warnings": self.warnings,
            "warningsPct": percentage(self.warnings, self.all),
            "incomplete": self.incomplete,
            "incompletePct": percentage(self.incomplete, self.all),
        }


@dataclass
class WriterStats:
    name: str
    total: int = 0
    complete: int = 0
    warnings: int = 0
    incomplete: int = 0

    def update(self, checks: TicketChecks):
        self.total += 1
        level = checks.overall().level
        if level is CheckLevel.OK:
            self.complete += 1
        elif level is CheckLevel.WARNING:
            self.warnings += 1
        else:
            self.incomplete += 1

    @property
    def percent(self) -> float:
        return percentage(self.complete, self.total)

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "total": self.total,
            "complete": self.complete,
            "warnings": self.warnings,
            "incomplete": self.incomplete,
            "percent": self.percent,
        }


@dataclass
class StatusTable:
    """Tabular overview exposed for external rendering."""

    groups: List[ComponentRows] = field(default_factory=list)
    progress: OverallProgress = field(default_factory=OverallProgress)
    writers: List[WriterStats] = field(default_factory=list)
    releases: List[str] = field(default_factory=list)
    generated_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def group(self, component: str) -> Optional[ComponentRows]:
        for group in self.groups:
            if group.component == component:
                return group
        return None

    def to_dict(self) -> Dict[str, object]:
        return {
            "generatedAt": self.generated_at,
            "releases": self.releases,
            "overallProgress": self.progress.to_dict(),
            "writers": [writer.to_dict() for writer in self.writers],
            "components": [group.to_dict() for group in self.groups],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2)


def common_releases(tickets: Sequence[Ticket], limit: int = 3) -> List[str]:
    """Target releases from most to least common."""
    counter: Counter = Counter()
    for ticket in tickets:
        counter.update(ticket.target_releases)
    return [release for release, _count in counter.most_common(limit)]


def build_status_table(tickets: Sequence[Ticket]) -> StatusTable:
    """Build the status table over the full ticket set.

    Parameters:
        tickets: Every ticket of the build, with or without a release note.

    Return:
        StatusTable: component groups sorted by name, the `No component` group last."""
    releases = common_releases(tickets)
    likely_release = releases[0] if releases else None

    groups: Dict[str, ComponentRows] = {}
    writers: Dict[str, WriterStats] = {}
    all_checks: List[TicketChecks] = []

    for ticket in tickets:
        checks = check_ticket(ticket, likely_release)
        all_checks.append(checks)
        row = StatusRow(ticket=ticket, checks=checks)
        for component in ticket.components or (NO_COMPONENT,):
            groups.setdefault(component, ComponentRows(component=component)).rows.append(row)
        writers.setdefault(ticket.docs_contact, WriterStats(name=ticket.docs_contact)).update(checks)

    ordered = sorted(groups.values(), key=lambda group: (group.is_no_component, group.component))
    return StatusTable(
        groups=ordered,
        progress=OverallProgress.from_checks(all_checks),
        writers=sorted(writers.values(), key=lambda stats: -stats.total),
        releases=releases,
    )


__all__ = [
    "NO_COMPONENT",
    "MAX_TITLE_LENGTH",
    "CheckLevel",
    "CheckResult",
    "TicketChecks",
    "StatusRow",
    "ComponentRows",
    "OverallProgress",
    "WriterStats",
    "StatusTable",
    "check_ticket",
    "common_releases",
    "build_status_table",
]
