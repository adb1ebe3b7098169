"""Test the ticket record model and the ticket source boundary

Covers tracker parsing, documentation status correction, duplicate merging and loading
of the resolved ticket file."""

import json
import sys
from pathlib import Path

import pytest

# Add project root directory to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from NotesEngine.core.ticket_source import load_ticket_file, tickets_from_records
from NotesEngine.core.tickets import (
    DocTextStatus,
    DocumentVariant,
    TicketId,
    Tracker,
    content_lines,
    parse_doc_text_status,
)
from NotesEngine.errors import TicketSourceError
from tests import notes_test_data as test_data


class TestTracker:
    """Tracker names and ticket identity"""

    def test_parse_accepts_short_and_long_names(self):
        assert Tracker.parse("Jira") is Tracker.JIRA
        assert Tracker.parse("bugzilla") is Tracker.BUGZILLA
        assert Tracker.parse("BZ") is Tracker.BUGZILLA

    def test_parse_rejects_unknown_tracker(self):
        with pytest.raises(ValueError):
            Tracker.parse("GitHub")

    def test_ticket_id_formats(self):
        ticket_id = TicketId(Tracker.BUGZILLA, "12345")
        assert str(ticket_id) == "Bugzilla:12345"
        assert ticket_id.anchor == "BZ-12345"


class TestDocTextStatus:
    """Status normalization and anomaly reporting"""

    def test_canonical_values_have_no_anomaly(self):
        assert parse_doc_text_status("Complete") == (DocTextStatus.COMPLETE, None)
        assert parse_doc_text_status("InProgress") == (DocTextStatus.IN_PROGRESS, None)
        assert parse_doc_text_status("+") == (DocTextStatus.COMPLETE, None)

    def test_case_mismatch_is_accepted_with_anomaly(self):
        status, anomaly = parse_doc_text_status("complete")
        assert status is DocTextStatus.COMPLETE
        assert anomaly is not None
        assert anomaly.field == "doc_text_status"

    def test_spaced_in_progress_is_in_progress(self):
        status, _ = parse_doc_text_status("In Progress")
        assert status is DocTextStatus.IN_PROGRESS

    def test_unset_and_unknown_become_in_progress(self):
        for raw in (None, "", "Unset", "whatever"):
            status, anomaly = parse_doc_text_status(raw)
            assert status is DocTextStatus.IN_PROGRESS
            assert anomaly is not None


class TestTicketRecords:
    """Conversion of raw records into tickets"""

    def test_content_lines_skip_blank_and_comment_lines(self):
        assert content_lines("// note\n\n.Title\nBody\n") == [".Title", "Body"]

    def test_ticket_without_note_text(self):
        tickets, _ = tickets_from_records([test_data.TICKET_E])
        assert tickets[0].has_note is False

    def test_single_component_string_is_accepted(self):
        tickets, _ = tickets_from_records([test_data.record("X-1", components="oc")])
        assert tickets[0].components == ("oc",)

    def test_numeric_bugzilla_key(self):
        tickets, _ = tickets_from_records([{"tracker": "BZ", "key": 2045, "doc_text_status": "Done"}])
        assert tickets[0].id == TicketId(Tracker.BUGZILLA, "2045")

    def test_anomalies_are_collected_in_input_order(self):
        _, anomalies = tickets_from_records(test_data.MIXED_RECORDS)
        assert [str(anomaly.ticket_id) for anomaly in anomalies] == ["Jira:C-1", "Jira:E-1"]

    def test_duplicates_are_merged(self):
        tickets, _ = tickets_from_records(test_data.DUPLICATE_RECORDS)
        assert len(tickets) == 1
        merged = tickets[0]
        assert merged.components == ("oc", "Image Registry")
        assert merged.docs_contact == "writer@example.org"
        assert merged.is_private is True

    def test_merged_text_keeps_its_own_status(self):
        tickets, _ = tickets_from_records(
            [
                test_data.record("M-1", doc_text=""),
                test_data.record("M-1", doc_text=".Title\n\nDraft text", doc_status="In Progress"),
            ]
        )
        merged = tickets[0]
        assert merged.doc_text == ".Title\n\nDraft text"
        assert merged.doc_text_status is DocTextStatus.IN_PROGRESS
        assert not DocumentVariant.EXTERNAL.admits(merged)

    def test_first_text_keeps_first_status(self):
        tickets, _ = tickets_from_records(
            [
                test_data.record("M-2"),
                test_data.record("M-2", doc_text=".Other\n\nText", doc_status="In Progress"),
            ]
        )
        assert tickets[0].doc_text == test_data.NOTE_TEXT
        assert tickets[0].doc_text_status is DocTextStatus.COMPLETE

    def test_missing_or_empty_key_raises(self):
        for key in (None, "", "  "):
            with pytest.raises(TicketSourceError):
                tickets_from_records([test_data.record(key)])

    def test_invalid_record_raises(self):
        with pytest.raises(TicketSourceError):
            tickets_from_records([{"tracker": "GitHub", "key": "1"}])
        with pytest.raises(TicketSourceError):
            tickets_from_records([{"key": "1"}])

    def test_variant_admission(self):
        tickets, _ = tickets_from_records([test_data.TICKET_A, test_data.TICKET_C])
        complete, in_progress = tickets
        assert DocumentVariant.INTERNAL.admits(in_progress)
        assert DocumentVariant.EXTERNAL.admits(complete)
        assert not DocumentVariant.EXTERNAL.admits(in_progress)


class TestTicketFile:
    """Loading the resolved ticket file"""

    def test_load_list_and_wrapped_payload(self, tmp_path):
        plain = tmp_path / "tickets.json"
        plain.write_text(json.dumps(test_data.BASIC_RECORDS), encoding="utf-8")
        wrapped = tmp_path / "wrapped.json"
        wrapped.write_text(json.dumps({"tickets": test_data.BASIC_RECORDS}), encoding="utf-8")

        assert len(load_ticket_file(plain)[0]) == 2
        assert len(load_ticket_file(wrapped)[0]) == 2

    def test_unreadable_file_raises(self, tmp_path):
        with pytest.raises(TicketSourceError):
            load_ticket_file(tmp_path / "missing.json")

        broken = tmp_path / "broken.json"
        broken.write_text("{not json", encoding="utf-8")
        with pytest.raises(TicketSourceError):
            load_ticket_file(broken)

    def test_sample_ticket_file(self):
        tickets, anomalies = load_ticket_file(project_root / "NotesEngine" / "sample" / "tickets.json")
        assert [str(ticket.id) for ticket in tickets] == [
            "Jira:OCPBUGS-101",
            "Bugzilla:2045",
            "Jira:OCPBUGS-102",
            "Jira:OCPBUGS-103",
        ]
        assert len(anomalies) == 2
