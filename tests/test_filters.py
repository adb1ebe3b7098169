"""Test the section filter predicates and the template parser

Covers predicate semantics, filter compilation and the configuration errors reported
for a template before any ticket is resolved."""

import sys
import textwrap
from pathlib import Path

import pytest

# Add project root directory to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from NotesEngine.core.filters import MATCH_ALL, AllOf, ComponentIn, DocTypeIn, compile_filter
from NotesEngine.core.naming import ensure_unique_name, slugify
from NotesEngine.core.template_parser import Section, SectionReference, load_template, parse_template
from NotesEngine.core.ticket_source import tickets_from_records
from NotesEngine.errors import TemplateConfigError
from tests import notes_test_data as test_data


class TestPredicates:
    """Predicate variants evaluated against single tickets"""

    def setup_method(self):
        tickets, _ = tickets_from_records(
            [
                test_data.TICKET_A,
                test_data.TICKET_D,
                test_data.record("N-1", components=[]),
            ]
        )
        self.oc_ticket, self.two_components, self.no_components = tickets

    def test_doc_type_is_case_sensitive(self):
        assert DocTypeIn(("Bug Fix",)).matches(self.oc_ticket)
        assert not DocTypeIn(("bug fix",)).matches(self.oc_ticket)

    def test_component_membership(self):
        registry = ComponentIn(("Image Registry",))
        assert registry.matches(self.two_components)
        assert not registry.matches(self.oc_ticket)

    def test_empty_components_never_match(self):
        assert not ComponentIn(("oc",)).matches(self.no_components)

    def test_empty_conjunction_matches_everything(self):
        assert MATCH_ALL.matches(self.no_components)
        assert AllOf().describe() == "any ticket"

    def test_compiled_filter_requires_every_field(self):
        predicate = compile_filter({"doc_type": ["Bug Fix"], "component": ["Image Registry"]})
        assert predicate.matches(self.two_components)
        assert not predicate.matches(self.oc_ticket)

    def test_empty_value_list_is_a_wildcard(self):
        predicate = compile_filter({"doc_type": [], "component": ["oc"]})
        assert predicate == AllOf((ComponentIn(("oc",)),))

    def test_bare_string_value(self):
        assert compile_filter({"doc_type": "Bug Fix"}) == AllOf((DocTypeIn(("Bug Fix",)),))

    def test_invalid_filters_raise(self):
        with pytest.raises(TemplateConfigError):
            compile_filter({"team": ["core"]})
        with pytest.raises(TemplateConfigError):
            compile_filter({"doc_type": {"nested": True}})
        with pytest.raises(TemplateConfigError):
            compile_filter(["Bug Fix"])


class TestNaming:
    """Slugs and unique names"""

    def test_slugify(self):
        assert slugify("Bug fixes") == "bug-fixes"
        assert slugify("[command]`oc` CLI") == "oc-cli"
        assert slugify("Red Hat Enterprise Linux 9.2: Überblick") == "red-hat-enterprise-linux-9-2-uberblick"
        assert slugify("???") == "section"

    def test_ensure_unique_name(self):
        used = set()
        assert ensure_unique_name("ref_oc", used) == "ref_oc"
        assert ensure_unique_name("ref_oc", used) == "ref_oc-2"
        assert ensure_unique_name("ref_oc", used) == "ref_oc-3"


class TestTemplateParser:
    """Parsing templates into sections"""

    def test_parse_chapters(self):
        template = parse_template(test_data.BUG_FIX_TEMPLATE)
        titles = [chapter.title for chapter in template.chapters]
        assert titles == ["Bug fixes", "Known issues"]
        bug_fixes = template.chapters[0]
        assert [child.title for child in bug_fixes.children] == ["oc", "Images"]
        assert template.chapters[1].is_leaf

    def test_shared_sections_stay_references(self):
        template = parse_template(test_data.SHARED_TEMPLATE)
        first, second = template.chapters
        assert first.children == (SectionReference("cli"),)
        assert second.children == (SectionReference("cli"),)
        shared = template.registry.get("cli")
        assert isinstance(shared, Section)
        assert shared.is_shared_definition
        assert "cli" in template.registry

    def test_yaml_aliases_expand_as_sections(self):
        text = textwrap.dedent(
            """
            chapters:
              - title: One
                filter: &bugs {doc_type: ["Bug Fix"]}
              - title: Two
                filter: *bugs
            """
        )
        template = parse_template(text)
        assert template.chapters[0].predicate == template.chapters[1].predicate

    def test_every_problem_is_reported(self):
        with pytest.raises(TemplateConfigError) as excinfo:
            parse_template(test_data.INVALID_TEMPLATE)
        errors = excinfo.value.errors
        assert "chapters[0].filter: unknown field 'team'" in errors
        assert "chapters[0].filter references no recognized field" in errors
        assert "chapters[1].title is missing" in errors
        assert "chapters[2] has neither a filter nor subsections" in errors
        assert "chapters[3].sections[0].ref: undefined shared section 'missing'" in errors

    def test_missing_chapters(self):
        with pytest.raises(TemplateConfigError):
            parse_template("sections: []")

    def test_duplicate_shared_names(self):
        text = textwrap.dedent(
            """
            chapters:
              - ref: a
            sections:
              - {name: a, title: A, filter: {doc_type: [x]}}
              - {name: a, title: B, filter: {doc_type: [y]}}
            """
        )
        with pytest.raises(TemplateConfigError) as excinfo:
            parse_template(text)
        assert any("defined more than once" in err for err in excinfo.value.errors)

    def test_broken_yaml(self):
        with pytest.raises(TemplateConfigError):
            parse_template("chapters: [title: {")

    def test_sample_template(self):
        template = load_template(project_root / "NotesEngine" / "sample" / "templates.yaml")
        assert len(template.chapters) == 3
        assert sorted(template.registry.names()) == ["by-cli", "by-registry"]
        assert template.to_dict()["chapters"][0]["slug"] == "new-features"
