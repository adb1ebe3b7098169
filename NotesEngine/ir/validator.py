"""Template structure validator.

The template is checked as a whole before any section object is built, so that
every configuration error of a file is reported at once with a path that points to
the offending entry, for example `chapters[1].sections[0].filter`."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Set, Tuple

from .schema import (
    FILTER_FIELDS,
    REFERENCE_KEY,
    SECTION_KEYS,
    SHARED_SECTION_KEYS,
    TEMPLATE_ROOT_KEYS,
)


def filter_values(value: Any) -> Optional[Tuple[str, ...]]:
    """Normalize one filter field to a tuple of allowed values.

    None and an empty list both mean the field is absent. A bare string is a
    single allowed value."""
    if value is None:
        return None
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)) and all(isinstance(item, (str, int)) for item in value):
        values = tuple(dict.fromkeys(str(item) for item in value))
        return values or None
    raise TypeError(f"expected a string or a list of strings, got {type(value).__name__}")


class TemplateValidator:
    """Template configuration validator.

    Description:
        - validate_template returns (whether passed, error list)
        - Error location uses path syntax to facilitate quick tracking
        - Shared definitions are checked once, at their definition site"""

    # ======== External interface ========

    def validate_template(self, template: Any) -> Tuple[bool, List[str]]:
        """Verify the root keys, every shared definition and every chapter"""
        errors: List[str] = []
        if not isinstance(template, Mapping):
            return False, ["template must be a mapping with a `chapters` list"]

        for key in template:
            if key not in TEMPLATE_ROOT_KEYS:
                errors.append(f"unknown top-level key {key!r}")

        shared = template.get("sections")
        defined: Set[str] = set()
        if shared is not None:
            if not isinstance(shared, list):
                errors.append("sections must be an array of named section definitions")
            else:
                defined = self._collect_names(shared, errors)

        chapters = template.get("chapters")
        if not isinstance(chapters, list) or not chapters:
            errors.append("chapters must be a non-empty array")
        else:
            for idx, chapter in enumerate(chapters):
                self._validate_section(chapter, f"chapters[{idx}]", defined, errors, set())

        if isinstance(shared, list):
            for idx, definition in enumerate(shared):
                self._validate_section(
                    definition, f"sections[{idx}]", defined, errors, set(), shared_definition=True
                )

        return len(errors) == 0, errors

    def validate_filter(self, filter_def: Any, path: str, errors: List[str]):
        """Filter is a mapping over the recognized fields only"""
        if filter_def is None:
            return
        if not isinstance(filter_def, Mapping):
            errors.append(f"{path} must be a mapping of {list(FILTER_FIELDS)}")
            return

        unknown = [key for key in filter_def if key not in FILTER_FIELDS]
        for key in unknown:
            errors.append(f"{path}: unknown field {key!r}")
        if filter_def and len(unknown) == len(filter_def):
            errors.append(f"{path} references no recognized field")

        for key in FILTER_FIELDS:
            if key not in filter_def:
                continue
            try:
                filter_values(filter_def[key])
            except TypeError as exc:
                errors.append(f"{path}.{key}: {exc}")

    # ======== Internal Tools ========

    def _collect_names(self, shared: List[Any], errors: List[str]) -> Set[str]:
        """Shared definitions need a unique, non-empty name"""
        names: Set[str] = set()
        for idx, definition in enumerate(shared):
            name = definition.get("name") if isinstance(definition, Mapping) else None
            if not isinstance(name, str) or not name.strip():
                errors.append(f"sections[{idx}].name is missing")
                continue
            if name in names:
                errors.append(f"sections[{idx}].name {name!r} is defined more than once")
            names.add(name)
        return names

    def _validate_section(
        self,
        section: Any,
        path: str,
        defined: Set[str],
        errors: List[str],
        open_aliases: Set[int],
        shared_definition: bool = False,
    ):
        """title is required; a section needs a filter, children, or both"""
        if not isinstance(section, Mapping):
            errors.append(f"{path} must be an object")
            return

        if REFERENCE_KEY in section and not shared_definition:
            self._validate_reference(section, path, defined, errors)
            return

        # A YAML alias can nest a mapping inside itself.
        if id(section) in open_aliases:
            errors.append(f"{path} includes itself through a YAML alias")
            return
        open_aliases = open_aliases | {id(section)}

        allowed = SHARED_SECTION_KEYS if shared_definition else SECTION_KEYS
        for key in section:
            if key not in allowed:
                errors.append(f"{path}: unknown key {key!r}")

        title = section.get("title")
        if not isinstance(title, str) or not title.strip():
            errors.append(f"{path}.title is missing")

        intro = section.get("intro_abstract")
        if intro is not None and not isinstance(intro, str):
            errors.append(f"{path}.intro_abstract must be a string")

        self.validate_filter(section.get("filter"), f"{path}.filter", errors)

        children = section.get("sections")
        if children is not None and not isinstance(children, list):
            errors.append(f"{path}.sections must be an array")
            children = None

        if section.get("filter") is None and not children:
            errors.append(f"{path} has neither a filter nor subsections")

        for idx, child in enumerate(children or []):
            self._validate_section(child, f"{path}.sections[{idx}]", defined, errors, open_aliases)

    def _validate_reference(self, entry: Mapping, path: str, defined: Set[str], errors: List[str]):
        """A reference entry only names a shared definition"""
        extra = [key for key in entry if key != REFERENCE_KEY]
        if extra:
            errors.append(f"{path}: a reference cannot also set {extra}")
        name = entry.get(REFERENCE_KEY)
        if not isinstance(name, str) or not name.strip():
            errors.append(f"{path}.{REFERENCE_KEY} must be a section name")
        elif name not in defined:
            errors.append(f"{path}.{REFERENCE_KEY}: undefined shared section {name!r}")


__all__ = ["TemplateValidator", "filter_values"]
