"""Notes Engine build status management
Define the status record written next to the generated files"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger


@dataclass
class BuildMetadata:
    """Build metadata"""
    template_file: str = ""              # Template source
    tickets_file: str = ""               # Ticket source
    sibling_policy: str = "duplicate"
    empty_container_policy: str = "keep"
    generation_time: float = 0.0         # Build time (seconds)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "template_file": self.template_file,
            "tickets_file": self.tickets_file,
            "sibling_policy": self.sibling_policy,
            "empty_container_policy": self.empty_container_policy,
            "generation_time": self.generation_time,
            "timestamp": self.timestamp,
        }


@dataclass
class BuildState:
    """Status of one build.

    Stores the counters of every stage plus the corrected data anomalies, so that a
    caller can tell what happened without reading the log."""
    build_id: str = ""
    status: str = "pending"              # Status: pending, processing, completed, failed
    error_message: str = ""

    ticket_count: int = 0
    anomalies: List[Dict[str, Any]] = field(default_factory=list)
    documents: Dict[str, int] = field(default_factory=dict)   # variant -> generated documents
    chapters: Dict[str, List[str]] = field(default_factory=dict)
    unused_tickets: List[str] = field(default_factory=list)
    overused_tickets: List[str] = field(default_factory=list)
    output_dir: str = ""

    metadata: BuildMetadata = field(default_factory=BuildMetadata)

    def __post_init__(self):
        if not self.build_id:
            self.build_id = f"build_{datetime.now().strftime('%Y%m%d_%H%M%S_%f')}"

    def mark_processing(self):
        self.status = "processing"

    def mark_completed(self):
        self.status = "completed"

    def mark_failed(self, error_message: str = ""):
        """Mark as failed and keep the last error message."""
        self.status = "failed"
        self.error_message = error_message

    def is_completed(self) -> bool:
        return self.status == "completed"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "build_id": self.build_id,
            "status": self.status,
            "error_message": self.error_message,
            "ticket_count": self.ticket_count,
            "anomalies": self.anomalies,
            "documents": self.documents,
            "chapters": self.chapters,
            "unused_tickets": self.unused_tickets,
            "overused_tickets": self.overused_tickets,
            "output_dir": self.output_dir,
            "metadata": self.metadata.to_dict(),
        }

    def save_to_file(self, file_path: str):
        """Save state to file."""
        try:
            with open(file_path, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.error(f"Failed to save state file: {str(e)}")

    @classmethod
    def load_from_file(cls, file_path: str) -> Optional["BuildState"]:
        """Load state from file."""
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load state file: {str(e)}")
            return None

        metadata_data = data.get("metadata", {}) or {}
        metadata = BuildMetadata(
            **{key: metadata_data[key] for key in BuildMetadata.__dataclass_fields__ if key in metadata_data}
        )
        return cls(
            build_id=data.get("build_id", ""),
            status=data.get("status", "pending"),
            error_message=data.get("error_message", ""),
            ticket_count=data.get("ticket_count", 0),
            anomalies=data.get("anomalies", []),
            documents=data.get("documents", {}),
            chapters=data.get("chapters", {}),
            unused_tickets=data.get("unused_tickets", []),
            overused_tickets=data.get("overused_tickets", []),
            output_dir=data.get("output_dir", ""),
            metadata=metadata,
        )
