"""Test the variant splitter and the appendix

Covers the internal/external split, the subset relation between the two variants,
ticket usage statistics and the tickets-by-component appendix."""

import sys
from pathlib import Path

# Add project root directory to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from NotesEngine.core.resolver import iter_nodes
from NotesEngine.core.summary_list import COMPONENT_PLACEHOLDER, tickets_by_component
from NotesEngine.core.template_parser import parse_template
from NotesEngine.core.ticket_source import tickets_from_records
from NotesEngine.core.tickets import DocumentVariant
from NotesEngine.core.variants import (
    VariantOptions,
    build_variant,
    build_variants,
    ticket_usage,
    variant_tickets,
)
from tests import notes_test_data as test_data


class TestVariants:
    """Internal and external passes over the same template"""

    def setup_method(self):
        self.template = parse_template(test_data.BUG_FIX_TEMPLATE)
        self.tickets, _ = tickets_from_records(test_data.MIXED_RECORDS)
        self.variants = build_variants(self.template, self.tickets)

    def test_external_drops_incomplete_tickets(self):
        assert [ticket.id.key for ticket in variant_tickets(self.tickets, DocumentVariant.EXTERNAL)] == [
            "A-1",
            "B-1",
            "D-1",
            "F-1",
        ]
        assert len(variant_tickets(self.tickets, DocumentVariant.INTERNAL)) == len(self.tickets)

    def test_in_progress_ticket_only_in_internal(self):
        internal = self.variants[DocumentVariant.INTERNAL]
        external = self.variants[DocumentVariant.EXTERNAL]
        assert any("C-1" in [t.key for t in doc.ticket_ids] for doc in internal.documents)
        assert all("C-1" not in [t.key for t in doc.ticket_ids] for doc in external.documents)

    def test_external_sets_are_subsets(self):
        internal = {node.site: set(node.ticket_ids) for node in iter_nodes(self.variants[DocumentVariant.INTERNAL].chapters)}
        for node in iter_nodes(self.variants[DocumentVariant.EXTERNAL].chapters):
            assert set(node.ticket_ids) <= internal[node.site]

    def test_variant_tags(self):
        for variant, built in self.variants.items():
            assert built.variant is variant
            assert all(doc.variant is variant for doc in built.documents)

    def test_master_and_appendix_files(self):
        files = self.variants[DocumentVariant.EXTERNAL].files()
        assert files["main-generated.adoc"] == (
            "include::assembly_bug-fixes.adoc[leveloffset=+1]\n\n"
            "include::ref_list-of-tickets-by-component.adoc[leveloffset=+1]\n"
        )
        assert "= List of tickets by component" in files["ref_list-of-tickets-by-component.adoc"]

    def test_section_named_like_the_appendix(self):
        template = parse_template(test_data.APPENDIX_TITLE_TEMPLATE)
        tickets, _ = tickets_from_records(test_data.BASIC_RECORDS)
        built = build_variant(template, tickets, DocumentVariant.INTERNAL)
        files = built.files()
        assert built.chapter_files == ["ref_list-of-tickets-by-component-2.adoc"]
        assert "Jira:A-1" in files["ref_list-of-tickets-by-component-2.adoc"]
        assert files["main-generated.adoc"] == (
            "include::ref_list-of-tickets-by-component-2.adoc[leveloffset=+1]\n\n"
            "include::ref_list-of-tickets-by-component.adoc[leveloffset=+1]\n"
        )

    def test_empty_module_prefix_cannot_shadow_the_master_file(self):
        template = parse_template(
            "chapters:\n  - title: Main generated\n    filter:\n      doc_type: [\"Bug Fix\"]\n"
        )
        tickets, _ = tickets_from_records(test_data.BASIC_RECORDS)
        built = build_variant(template, tickets, DocumentVariant.INTERNAL, VariantOptions(module_prefix=""))
        assert built.file_names == ["main-generated-2.adoc"]
        assert built.files()["main-generated.adoc"].startswith("include::main-generated-2.adoc")

    def test_parallel_passes_match_sequential(self):
        parallel = build_variants(self.template, self.tickets, VariantOptions(parallel=True))
        for variant, built in self.variants.items():
            assert parallel[variant].file_names == built.file_names
            assert parallel[variant].files() == built.files()

    def test_chapter_can_vanish_from_external_only(self):
        template = parse_template(test_data.SHARED_TEMPLATE)
        tickets, _ = tickets_from_records([test_data.TICKET_C, test_data.record("G-1", doc_type="Feature", doc_status="Proposed")])
        internal = build_variant(template, tickets, DocumentVariant.INTERNAL)
        external = build_variant(template, tickets, DocumentVariant.EXTERNAL)
        assert internal.chapter_files == ["assembly_new-features.adoc", "assembly_bug-fixes.adoc"]
        assert external.chapter_files == []


class TestTicketUsage:
    """Usage statistics of tickets in leaf modules"""

    def test_unused_and_overused(self):
        template = parse_template(test_data.BUG_FIX_TEMPLATE)
        tickets, _ = tickets_from_records(test_data.MIXED_RECORDS)
        internal = build_variant(template, tickets, DocumentVariant.INTERNAL)
        usage = ticket_usage(tickets, internal.chapters)
        assert [ticket_id.key for ticket_id in usage.unused] == ["F-1"]
        assert [ticket_id.key for ticket_id in usage.overused] == ["D-1"]
        assert usage.to_dict()["overused"] == ["Jira:D-1"]


class TestSummaryList:
    """Appendix grouping"""

    def setup_method(self):
        self.tickets, _ = tickets_from_records(
            [
                test_data.record("A-1", components=["oc", "releng"]),
                test_data.record("B-1", components=["doc-Release_Notes"], doc_status="In Progress"),
                test_data.record("C-1", components=["Image Registry"]),
                test_data.record("N-1", components=[]),
            ]
        )

    def test_internal_groups(self):
        groups = tickets_by_component(self.tickets, DocumentVariant.INTERNAL)
        assert [group.component for group in groups] == ["Image Registry", "oc", COMPONENT_PLACEHOLDER]
        assert [ticket.id.key for ticket in groups[-1].tickets] == ["A-1", "B-1"]

    def test_external_groups(self):
        groups = tickets_by_component(self.tickets, DocumentVariant.EXTERNAL)
        assert [ticket.id.key for ticket in groups[-1].tickets] == ["A-1"]
