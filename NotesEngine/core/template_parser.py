"""Template source parsing.

The template is a YAML document with a `chapters` list and an optional list of named,
shared `sections`. The raw data is validated as a whole first, then turned into
immutable `Section` objects. Inclusion sites that point at a shared definition stay
`SectionReference` placeholders; the resolver looks them up in the `SectionRegistry`
so that every site is resolved independently."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

import yaml
from loguru import logger

from ..errors import TemplateConfigError
from ..ir import REFERENCE_KEY, TemplateValidator
from .filters import MATCH_ALL, TicketPredicate, compile_filter
from .naming import slugify


@dataclass(frozen=True)
class SectionReference:
    """Inclusion site of a shared section definition."""

    name: str

    def to_dict(self) -> dict:
        return {"ref": self.name}


@dataclass(frozen=True)
class Section:
    """Template section definition.

    Holds the title, the optional introduction, the raw and compiled filter and the
    ordered children. A definition from the shared `sections` list carries its name."""

    title: str
    intro_abstract: str = ""
    filter_def: Optional[Mapping[str, Any]] = None
    predicate: TicketPredicate = MATCH_ALL
    children: Tuple[Union["Section", SectionReference], ...] = ()
    is_shared_definition: bool = False
    name: Optional[str] = None

    @property
    def slug(self) -> str:
        return slugify(self.title)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def to_dict(self) -> dict:
        data: Dict[str, Any] = {"title": self.title, "slug": self.slug}
        if self.name:
            data["name"] = self.name
        if self.intro_abstract:
            data["introAbstract"] = self.intro_abstract
        if self.filter_def:
            data["filter"] = {key: list(value) if isinstance(value, (list, tuple)) else value
                              for key, value in self.filter_def.items()}
        if self.children:
            data["sections"] = [child.to_dict() for child in self.children]
        return data


SectionEntry = Union[Section, SectionReference]


class SectionRegistry:
    """Named, shared section definitions."""

    def __init__(self):
        self._sections: Dict[str, Section] = {}

    def register(self, section: Section):
        if not section.name:
            raise TemplateConfigError("A shared section needs a name.")
        if section.name in self._sections:
            raise TemplateConfigError(f"Shared section {section.name!r} is defined more than once.")
        self._sections[section.name] = section

    def get(self, name: str) -> Section:
        try:
            return self._sections[name]
        except KeyError:
            raise TemplateConfigError(f"Undefined shared section {name!r}.") from None

    def names(self) -> List[str]:
        return list(self._sections)

    def __contains__(self, name: object) -> bool:
        return name in self._sections

    def __len__(self) -> int:
        return len(self._sections)


@dataclass(frozen=True)
class Template:
    """Parsed template: the ordered chapters plus the shared definitions they use."""

    chapters: Tuple[SectionEntry, ...]
    registry: SectionRegistry = field(default_factory=SectionRegistry, compare=False)

    def iter_sections(self) -> Iterator[Section]:
        """Every section definition written in the file, chapters first."""
        pending: List[SectionEntry] = list(self.chapters)
        pending.extend(self.registry.get(name) for name in self.registry.names())
        while pending:
            entry = pending.pop(0)
            if isinstance(entry, Section):
                yield entry
                pending.extend(entry.children)

    def to_dict(self) -> dict:
        return {
            "chapters": [chapter.to_dict() for chapter in self.chapters],
            "sections": [self.registry.get(name).to_dict() for name in self.registry.names()],
        }


def build_template(data: Any, source: str = "<template>") -> Template:
    """Validate raw template data and build the immutable section tree.

    Parameters:
        data: Object loaded from YAML (or an equivalent mapping).
        source: Name used in error messages.

    Return:
        Template: chapters and shared definitions.

    Raises:
        TemplateConfigError: with every problem found in the data."""
    ok, errors = TemplateValidator().validate_template(data)
    if not ok:
        raise TemplateConfigError(f"Invalid template {source}.", errors)

    registry = SectionRegistry()
    for idx, definition in enumerate(data.get("sections") or []):
        registry.register(_build_section(definition, f"sections[{idx}]", shared_definition=True))

    chapters = tuple(
        _build_section(chapter, f"chapters[{idx}]") for idx, chapter in enumerate(data["chapters"])
    )
    logger.debug(f"Template {source}: {len(chapters)} chapter(s), {len(registry)} shared section(s)")
    return Template(chapters=chapters, registry=registry)


def parse_template(text: str, source: str = "<template>") -> Template:
    """Parse template YAML text."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise TemplateConfigError(f"Cannot parse template {source}.", [str(exc)]) from exc
    return build_template(data, source)


def load_template(path: Union[str, Path]) -> Template:
    """Read and parse a template file."""
    template_path = Path(path)
    try:
        text = template_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TemplateConfigError(f"Cannot read template {template_path}: {exc}") from exc
    return parse_template(text, str(template_path))


def _build_section(raw: Mapping[str, Any], path: str, shared_definition: bool = False) -> SectionEntry:
    if REFERENCE_KEY in raw and not shared_definition:
        return SectionReference(name=raw[REFERENCE_KEY])

    filter_def = raw.get("filter")
    children = tuple(
        _build_section(child, f"{path}.sections[{idx}]")
        for idx, child in enumerate(raw.get("sections") or [])
    )
    return Section(
        title=raw["title"].strip(),
        intro_abstract=(raw.get("intro_abstract") or "").strip(),
        filter_def=dict(filter_def) if filter_def else None,
        predicate=compile_filter(filter_def, f"{path}.filter"),
        children=children,
        is_shared_definition=shared_definition,
        name=raw.get("name") if shared_definition else None,
    )


__all__ = [
    "Section",
    "SectionReference",
    "SectionEntry",
    "SectionRegistry",
    "Template",
    "build_template",
    "parse_template",
    "load_template",
]
