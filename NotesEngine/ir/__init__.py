"""Notes Engine template contract and validation tool.

This module exposes the template key names and the validator that the parser and
the filter compiler reuse, so that configuration errors are reported consistently."""

from .schema import (
    TEMPLATE_ROOT_KEYS,
    SECTION_KEYS,
    SHARED_SECTION_KEYS,
    REFERENCE_KEY,
    FILTER_FIELDS,
)
from .validator import TemplateValidator, filter_values

__all__ = [
    "TEMPLATE_ROOT_KEYS",
    "SECTION_KEYS",
    "SHARED_SECTION_KEYS",
    "REFERENCE_KEY",
    "FILTER_FIELDS",
    "TemplateValidator",
    "filter_values",
]
