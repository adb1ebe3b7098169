"""Notes Engine core tool collection.

This package encapsulates ticket records, section filters, template parsing, tree
resolution, document materialization, the variant split, the status table and
staged file storage."""

from .tickets import DataAnomaly, DocTextStatus, DocumentVariant, Ticket, TicketId, Tracker
from .filters import MATCH_ALL, AllOf, ComponentIn, DocTypeIn, SubsystemIn, compile_filter
from .template_parser import Section, SectionReference, Template, load_template, parse_template
from .resolver import ResolvedNode, TemplateResolver, resolve_template
from .summary_list import tickets_by_component
from .status_table import StatusTable, build_status_table
from .materializer import DocumentMaterializer, GeneratedDocument, MaterializedVariant, materialize
from .variants import VariantOptions, build_variant, build_variants, variant_tickets
from .document_storage import DocumentStorage
from .ticket_source import load_ticket_file, tickets_from_records

__all__ = [
    "DataAnomaly",
    "DocTextStatus",
    "DocumentVariant",
    "Ticket",
    "TicketId",
    "Tracker",
    "MATCH_ALL",
    "AllOf",
    "ComponentIn",
    "DocTypeIn",
    "SubsystemIn",
    "compile_filter",
    "Section",
    "SectionReference",
    "Template",
    "load_template",
    "parse_template",
    "ResolvedNode",
    "TemplateResolver",
    "resolve_template",
    "tickets_by_component",
    "StatusTable",
    "build_status_table",
    "DocumentMaterializer",
    "GeneratedDocument",
    "MaterializedVariant",
    "materialize",
    "VariantOptions",
    "build_variant",
    "build_variants",
    "variant_tickets",
    "DocumentStorage",
    "load_ticket_file",
    "tickets_from_records",
]
