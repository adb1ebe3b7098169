"""Document materializer.

Walks resolved chapter trees and turns every generating node into a document: leaves
become reference modules, containers become assemblies that include exactly the
children that were generated. The inclusion graph is checked before it is handed out,
so an include never points at a file that does not exist."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from loguru import logger

from ..errors import MaterializationError
from ..renderers.asciidoc_renderer import AsciiDocRenderer, include_statement
from .naming import ensure_unique_name
from .resolver import ResolvedNode, iter_nodes
from .tickets import DocumentVariant, Ticket, TicketId


class DocumentRole(str, Enum):
    LEAF = "leaf"
    CONTAINER = "container"


@dataclass
class GeneratedDocument:
    """A generated file and the facts a caller needs to wire and cross-reference it."""

    file_name: str
    role: DocumentRole
    variant: DocumentVariant
    module_id: str
    title: str
    site: Tuple[int, ...]
    parent_file: Optional[str] = None
    includes: List[str] = field(default_factory=list)
    ticket_ids: List[TicketId] = field(default_factory=list)
    text: str = ""

    @property
    def depth(self) -> int:
        return len(self.site) - 1

    def include_statement(self) -> str:
        return include_statement(self.file_name)

    def to_dict(self) -> Dict[str, object]:
        return {
            "fileName": self.file_name,
            "role": self.role.value,
            "variant": self.variant.value,
            "moduleId": self.module_id,
            "title": self.title,
            "depth": self.depth,
            "parentFile": self.parent_file,
            "includes": list(self.includes),
            "tickets": [str(ticket_id) for ticket_id in self.ticket_ids],
        }


@dataclass
class MaterializedVariant:
    """All documents of one variant, in pre-order, plus the resolved tree they came from."""

    variant: DocumentVariant
    documents: List[GeneratedDocument] = field(default_factory=list)
    chapters: List[ResolvedNode] = field(default_factory=list, repr=False)
    extra_files: Dict[str, str] = field(default_factory=dict)

    @property
    def chapter_files(self) -> List[str]:
        return [doc.file_name for doc in self.documents if doc.parent_file is None]

    @property
    def file_names(self) -> List[str]:
        return [doc.file_name for doc in self.documents]

    @property
    def include_edges(self) -> List[Tuple[Optional[str], str]]:
        """(including file or None for the master file, included file)"""
        return [(doc.parent_file, doc.file_name) for doc in self.documents]

    def master_include_statements(self) -> List[str]:
        return [include_statement(name) for name in self.chapter_files]

    def document(self, name: str) -> GeneratedDocument:
        for doc in self.documents:
            if doc.file_name == name:
                return doc
        raise KeyError(name)

    def document_for_site(self, site: Tuple[int, ...]) -> Optional[GeneratedDocument]:
        for doc in self.documents:
            if doc.site == site:
                return doc
        return None

    def files(self) -> Dict[str, str]:
        """File name -> text of everything this variant writes."""
        files = {doc.file_name: doc.text for doc in self.documents}
        for name, text in self.extra_files.items():
            if name in files:
                raise MaterializationError(f"{name} is both a generated document and a support file")
            files[name] = text
        return files

    def to_dict(self) -> Dict[str, object]:
        return {
            "variant": self.variant.value,
            "chapters": self.chapter_files,
            "documents": [doc.to_dict() for doc in self.documents],
            "extraFiles": sorted(self.extra_files),
        }


class DocumentMaterializer:
    """Decide file names and produce document skeletons for one variant.

    Naming:
        - `<module prefix><slug><ext>` for leaves, `<assembly prefix><slug><ext>` for containers;
        - every node whose base name is shared by another generated node gets the
          including parent's slug appended;
        - names that still collide, or that equal a reserved support file name such as
          the master file or the appendix, get `-2/-3...` in pre-order."""

    def __init__(
        self,
        module_prefix: str = "ref_",
        assembly_prefix: str = "assembly_",
        extension: str = ".adoc",
        renderer: Optional[AsciiDocRenderer] = None,
        reserved_names: Iterable[str] = (),
    ):
        self.module_prefix = module_prefix
        self.assembly_prefix = assembly_prefix
        self.extension = extension
        self.renderer = renderer or AsciiDocRenderer()
        self.reserved_names = tuple(reserved_names)

    def materialize(
        self,
        chapters: Sequence[ResolvedNode],
        variant: DocumentVariant,
        lookup: Optional[Mapping[TicketId, Ticket]] = None,
    ) -> MaterializedVariant:
        generated = [node for node in iter_nodes(chapters) if node.generates]
        names = self._assign_names(generated)

        documents: List[GeneratedDocument] = []
        for node in generated:
            stem, prefix = names[id(node)]
            role = DocumentRole.LEAF if node.is_leaf else DocumentRole.CONTAINER
            includes = [names[id(child)][0] + self.extension for child in node.children if child.generates]
            module_id = stem[len(prefix):]
            if role is DocumentRole.LEAF:
                text = self.renderer.render_leaf(
                    module_id, node.title, node.section.intro_abstract, node.matched_tickets, variant, lookup
                )
            else:
                text = self.renderer.render_assembly(
                    module_id, node.title, node.section.intro_abstract, includes
                )
            documents.append(
                GeneratedDocument(
                    file_name=stem + self.extension,
                    role=role,
                    variant=variant,
                    module_id=module_id,
                    title=node.title,
                    site=node.site,
                    parent_file=names[id(node.parent)][0] + self.extension if node.parent else None,
                    includes=includes,
                    ticket_ids=node.ticket_ids,
                    text=text,
                )
            )

        check_inclusion_graph(documents)
        logger.debug(f"Materialized {len(documents)} document(s) for the {variant} variant")
        return MaterializedVariant(variant=variant, documents=documents, chapters=list(chapters))

    def _assign_names(self, generated: Sequence[ResolvedNode]) -> Dict[int, Tuple[str, str]]:
        """id(node) -> (file stem, prefix), deterministic for a given tree."""
        prefixes = {id(node): self.module_prefix if node.is_leaf else self.assembly_prefix for node in generated}
        bases = {id(node): prefixes[id(node)] + node.slug for node in generated}
        counts = Counter(bases.values())

        used: Set[str] = {
            name[: -len(self.extension)] if self.extension else name
            for name in self.reserved_names
            if name.endswith(self.extension)
        }
        names: Dict[int, Tuple[str, str]] = {}
        for node in generated:
            stem = bases[id(node)]
            if counts[stem] > 1 and node.parent is not None:
                stem = f"{stem}-{node.parent.slug}"
            names[id(node)] = (ensure_unique_name(stem, used), prefixes[id(node)])
        return names


def check_inclusion_graph(documents: Sequence[GeneratedDocument]):
    """Every include points at a generated file and every non-chapter file is included once."""
    by_name: Dict[str, GeneratedDocument] = {}
    for doc in documents:
        if doc.file_name in by_name:
            raise MaterializationError(f"File name {doc.file_name} is generated twice")
        by_name[doc.file_name] = doc

    included_by: Dict[str, str] = {}
    for doc in documents:
        for name in doc.includes:
            if name not in by_name:
                raise MaterializationError(f"{doc.file_name} includes {name}, which is not generated")
            if name in included_by:
                raise MaterializationError(f"{name} is included by both {included_by[name]} and {doc.file_name}")
            included_by[name] = doc.file_name

    for doc in documents:
        if doc.parent_file is None:
            continue
        if included_by.get(doc.file_name) != doc.parent_file:
            raise MaterializationError(f"{doc.file_name} is not included by its parent {doc.parent_file}")


def materialize(
    chapters: Sequence[ResolvedNode],
    variant: DocumentVariant,
    lookup: Optional[Mapping[TicketId, Ticket]] = None,
    **naming,
) -> MaterializedVariant:
    """Convenience wrapper around `DocumentMaterializer`."""
    return DocumentMaterializer(**naming).materialize(chapters, variant, lookup)


__all__ = [
    "DocumentRole",
    "GeneratedDocument",
    "MaterializedVariant",
    "DocumentMaterializer",
    "check_inclusion_graph",
    "materialize",
]
