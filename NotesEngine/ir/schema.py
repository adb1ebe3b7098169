"""Template configuration contract.

Key names shared by the template validator, the template parser and the filter compiler."""

TEMPLATE_ROOT_KEYS = ("chapters", "sections")

SECTION_KEYS = ("title", "intro_abstract", "filter", "sections")

# Only shared definitions under the top-level `sections` list carry a name.
SHARED_SECTION_KEYS = SECTION_KEYS + ("name",)

REFERENCE_KEY = "ref"

FILTER_FIELDS = ("doc_type", "component", "subsystem")

__all__ = [
    "TEMPLATE_ROOT_KEYS",
    "SECTION_KEYS",
    "SHARED_SECTION_KEYS",
    "REFERENCE_KEY",
    "FILTER_FIELDS",
]
