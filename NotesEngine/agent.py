"""Notes Engine main scheduler.

Connects the ticket source, the template parser, the variant splitter, the status
table and the staged writer into one build:
1. Load the resolved ticket records and the template;
2. Resolve and materialize the internal and the external variant;
3. Build the status table over the full ticket set;
4. Stage every file, then swap the stage into the output directory."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from loguru import logger

from .core.document_storage import DocumentStorage, PendingFile
from .core.status_table import StatusTable, build_status_table
from .core.template_parser import Template, load_template
from .core.ticket_source import load_ticket_file
from .core.tickets import DataAnomaly, DocumentVariant, Ticket
from .core.variants import (
    TicketUsage,
    VariantOptions,
    build_variants,
    report_ticket_usage,
    ticket_usage,
)
from .core.materializer import MaterializedVariant
from .state import BuildState
from .utils.config import Settings, settings

BUILD_STATE_FILE = "build-state.json"


@dataclass
class BuildResult:
    """Everything one build produced, before or after writing."""

    variants: Dict[DocumentVariant, MaterializedVariant]
    status_table: StatusTable
    usage: TicketUsage
    anomalies: List[DataAnomaly] = field(default_factory=list)
    output_dir: Optional[Path] = None

    @property
    def internal(self) -> MaterializedVariant:
        return self.variants[DocumentVariant.INTERNAL]

    @property
    def external(self) -> MaterializedVariant:
        return self.variants[DocumentVariant.EXTERNAL]


class NotesAgent:
    """Notes Agent main class.

    Responsible for integrating:
    - Ticket and template loading with configuration validation;
    - The two variant passes and the status table;
    - Status management, logging and staged persistence."""

    _LOG_SINKS: Set[str] = set()

    def __init__(self, config: Optional[Settings] = None):
        """Initialize Notes Agent.

        Args:
            config: configuration object, the global settings if not provided"""
        self.config = config or settings
        self._setup_logging()
        self.storage = DocumentStorage(self.config.OUTPUT_DIR, workers=self.config.WRITE_WORKERS)
        self.state = BuildState()
        logger.info("Notes Agent has been initialized")

    def _setup_logging(self):
        """Add the Notes Engine file sink once per log file."""
        log_dir = os.path.dirname(self.config.LOG_FILE)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        log_file_path = str(Path(self.config.LOG_FILE).resolve())
        if log_file_path in NotesAgent._LOG_SINKS:
            logger.debug(f"The log handler already exists, skip adding: {log_file_path}")
            return

        handler_id = logger.add(
            self.config.LOG_FILE,
            level=self.config.LOG_LEVEL,
            enqueue=False,
            buffering=1,
            encoding="utf-8",
            mode="a",
        )
        NotesAgent._LOG_SINKS.add(log_file_path)
        logger.debug(f"Added log handler (ID: {handler_id}): {self.config.LOG_FILE}")

    def variant_options(self) -> VariantOptions:
        return VariantOptions(
            sibling_policy=self.config.SIBLING_POLICY,
            empty_container_policy=self.config.EMPTY_CONTAINER_POLICY,
            module_prefix=self.config.MODULE_PREFIX,
            assembly_prefix=self.config.ASSEMBLY_PREFIX,
            extension=self.config.FILE_EXTENSION,
            master_file_name=self.config.MASTER_FILE_NAME,
            summary_file_name=self.config.SUMMARY_FILE_NAME,
            private_footnote=self.config.PRIVATE_FOOTNOTE,
            parallel=self.config.PARALLEL_VARIANTS,
        )

    # ======== Build ========

    def load_inputs(
        self,
        template_file: Optional[str] = None,
        tickets_file: Optional[str] = None,
    ) -> Tuple[Template, List[Ticket], List[DataAnomaly]]:
        """Parse the template first, so configuration errors surface before ticket data is read."""
        template_file = template_file or self.config.TEMPLATE_FILE
        tickets_file = tickets_file or self.config.TICKETS_FILE
        template = load_template(template_file)
        logger.info(f"Loaded template {template_file} ({len(template.chapters)} chapter(s))")
        tickets, anomalies = load_ticket_file(tickets_file)
        logger.info(f"Loaded {len(tickets)} ticket(s) from {tickets_file}")
        return template, tickets, anomalies

    def generate(
        self,
        template: Template,
        tickets: Sequence[Ticket],
        anomalies: Sequence[DataAnomaly] = (),
    ) -> BuildResult:
        """Resolve, materialize and analyze without touching the disk."""
        variants = build_variants(template, tickets, self.variant_options())

        usage = ticket_usage(tickets, variants[DocumentVariant.INTERNAL].chapters)
        report_ticket_usage(usage)

        status_table = build_status_table(tickets)
        logger.info(
            f"Status table: {len(status_table.groups)} component group(s), "
            f"{status_table.progress.complete}/{status_table.progress.all} release note(s) complete"
        )
        return BuildResult(
            variants=variants,
            status_table=status_table,
            usage=usage,
            anomalies=list(anomalies),
        )

    def build(
        self,
        template_file: Optional[str] = None,
        tickets_file: Optional[str] = None,
        write: bool = True,
    ) -> BuildResult:
        """Run a whole build; any error aborts it before the output directory changes.

        Args:
            template_file: template path, `TEMPLATE_FILE` if not provided
            tickets_file: ticket records path, `TICKETS_FILE` if not provided
            write: whether to persist the result to `OUTPUT_DIR`

        Returns:
            BuildResult"""
        start_time = datetime.now()
        self.state = BuildState()
        self.state.metadata.template_file = str(template_file or self.config.TEMPLATE_FILE)
        self.state.metadata.tickets_file = str(tickets_file or self.config.TICKETS_FILE)
        self.state.metadata.sibling_policy = self.config.SIBLING_POLICY
        self.state.metadata.empty_container_policy = self.config.EMPTY_CONTAINER_POLICY
        self.state.mark_processing()

        try:
            template, tickets, anomalies = self.load_inputs(template_file, tickets_file)
            result = self.generate(template, tickets, anomalies)
            self._record(result, len(tickets))
            self.state.metadata.generation_time = (datetime.now() - start_time).total_seconds()
            self.state.mark_completed()
            if write:
                result.output_dir = self.write_outputs(result)
            logger.info(f"Build completed, taking: {self.state.metadata.generation_time:.2f} seconds")
            return result
        except Exception as e:
            self.state.mark_failed(str(e))
            logger.exception(f"An error occurred during the build: {str(e)}")
            raise

    def write_outputs(self, result: BuildResult) -> Path:
        """Stage every file of the build and swap it into `OUTPUT_DIR`."""
        self.state.output_dir = str(self.storage.output_dir)
        stage_dir = self.storage.start_session(
            self.state.build_id,
            {
                "templateFile": self.state.metadata.template_file,
                "ticketsFile": self.state.metadata.tickets_file,
                "variants": {variant.value: built.to_dict() for variant, built in result.variants.items()},
            },
        )
        try:
            pending: List[PendingFile] = []
            for variant, built in result.variants.items():
                roles = {doc.file_name: doc.role.value for doc in built.documents}
                for name, text in built.files().items():
                    pending.append(
                        PendingFile(f"{variant.value}/{name}", text, variant=variant.value, role=roles.get(name, "support"))
                    )
            self.storage.write_files(stage_dir, pending)
            self.storage.write_json(stage_dir, self.config.STATUS_TABLE_FILE, result.status_table.to_dict(), role="status")
            self.storage.write_json(stage_dir, BUILD_STATE_FILE, self.state.to_dict(), role="state")
            return self.storage.commit(stage_dir)
        except Exception:
            self.storage.discard(stage_dir)
            self.state.output_dir = ""
            raise

    def _record(self, result: BuildResult, ticket_count: int):
        self.state.ticket_count = ticket_count
        self.state.anomalies = [anomaly.to_dict() for anomaly in result.anomalies]
        self.state.documents = {variant.value: len(built.documents) for variant, built in result.variants.items()}
        self.state.chapters = {variant.value: built.chapter_files for variant, built in result.variants.items()}
        self.state.unused_tickets = [str(ticket_id) for ticket_id in result.usage.unused]
        self.state.overused_tickets = [str(ticket_id) for ticket_id in result.usage.overused]

    # ======== Status ========

    def get_progress_summary(self) -> Dict[str, Any]:
        return self.state.to_dict()

    def load_state(self, filepath: str):
        state = BuildState.load_from_file(filepath)
        if state is not None:
            self.state = state
            logger.info(f"Status loaded from {filepath}")

    def save_state(self, filepath: str):
        self.state.save_to_file(filepath)
        logger.info(f"Status saved to {filepath}")


def create_agent(config_file: Optional[str] = None) -> NotesAgent:
    """Convenience function for creating Notes Agent instances.

    Args:
        config_file: optional `.env` style file read instead of the default `.env`

    Returns:
        NotesAgent instance"""
    config = Settings(_env_file=config_file) if config_file else Settings()
    return NotesAgent(config)
