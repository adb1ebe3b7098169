"""Slug and file name helpers for generated documents."""

from __future__ import annotations

import re
import unicodedata
from typing import Set

# AsciiDoc semantic markup that should not leak into IDs, e.g. `[command]oc` -> `oc`.
_SEMANTIC_MARKUP = re.compile(
    r"\[(?:package|option|parameter|variable|command|replaceable|filename|literal"
    r"|systemitem|application|function|gui)\]"
)
_NON_ALNUM = re.compile(r"[^a-z0-9]+")

DEFAULT_SLUG = "section"


def slugify(title: str) -> str:
    """Turn a section title into an ID fragment that is safe for AsciiDoc and HTML.

    `Bug fixes` -> `bug-fixes`, `[command]oc` CLI -> `oc-cli`."""
    text = unicodedata.normalize("NFKD", title or "")
    text = text.encode("ascii", "ignore").decode("ascii").lower()
    text = _SEMANTIC_MARKUP.sub("", text)
    text = text.replace("@", "-at-")
    text = _NON_ALNUM.sub("-", text)
    return text.strip("-") or DEFAULT_SLUG


def ensure_unique_name(stem: str, used: Set[str]) -> str:
    """Append `-2/-3...` until the stem is not in `used`, then record it."""
    if stem not in used:
        used.add(stem)
        return stem
    idx = 2
    candidate = f"{stem}-{idx}"
    while candidate in used:
        idx += 1
        candidate = f"{stem}-{idx}"
    used.add(candidate)
    return candidate


__all__ = ["DEFAULT_SLUG", "slugify", "ensure_unique_name"]
