"""Generated file placement and manifest management.

A build is written into a staging directory next to the output directory. Only after
every file landed is the staging directory swapped into place, so a failed build leaves
the previous output untouched. Files are independent of each other and are written by
a bounded worker pool; `manifest.json` records what was written."""

from __future__ import annotations

import json
import shutil
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from loguru import logger

from ..errors import MaterializationError


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class PendingFile:
    """A file waiting to be written, with the facts recorded in the manifest."""

    relative_path: str
    text: str
    variant: Optional[str] = None
    role: str = "document"


@dataclass
class FileRecord:
    """Manifest entry of one written file."""

    relative_path: str
    variant: Optional[str]
    role: str
    size: int
    written_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> Dict[str, object]:
        return {
            "path": self.relative_path,
            "variant": self.variant,
            "role": self.role,
            "size": self.size,
            "writtenAt": self.written_at,
        }


class DocumentStorage:
    """Staged writer for one output directory.

    Responsible for:
        - Create a fresh staging directory and manifest for each build;
        - Write the generated files in parallel and record them in the manifest;
        - Replace the previous output with the staged one, or discard the stage on failure."""

    MANIFEST_NAME = "manifest.json"

    def __init__(self, output_dir: Union[str, Path], workers: int = 4):
        self.output_dir = Path(output_dir)
        self.workers = max(1, int(workers))
        self._manifests: Dict[str, Dict[str, object]] = {}

    # ======== Sessions and Lists ========

    def start_session(self, build_id: str, metadata: Dict[str, object]) -> Path:
        """Create the staging directory of a build and its initial manifest.

        Parameters:
            build_id: Build identifier, part of the staging directory name.
            metadata: Build metadata stored in the manifest.

        Return:
            Path: The staging directory."""
        self.output_dir.parent.mkdir(parents=True, exist_ok=True)
        stage_dir = self.output_dir.parent / f".{self.output_dir.name}.staging-{build_id}"
        if stage_dir.exists():
            shutil.rmtree(stage_dir)
        stage_dir.mkdir(parents=True)
        manifest = {
            "buildId": build_id,
            "createdAt": _utc_now(),
            "metadata": metadata,
            "files": [],
        }
        self._manifests[self._key(stage_dir)] = manifest
        self._write_manifest(stage_dir, manifest)
        return stage_dir

    def write_files(self, stage_dir: Path, files: Iterable[PendingFile]) -> List[FileRecord]:
        """Write files with a bounded worker pool and register them in the manifest."""
        pending = list(files)
        seen = set()
        for item in pending:
            self._target(stage_dir, item.relative_path)
            if item.relative_path in seen:
                raise MaterializationError(f"{item.relative_path} is scheduled twice")
            seen.add(item.relative_path)

        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="notes-writer") as executor:
            records = list(executor.map(lambda item: self._write_one(stage_dir, item), pending))

        self._append_records(stage_dir, records)
        return records

    def write_json(
        self,
        stage_dir: Path,
        relative_path: str,
        payload: object,
        role: str = "data",
    ) -> FileRecord:
        text = json.dumps(payload, ensure_ascii=False, indent=2)
        record = self._write_one(stage_dir, PendingFile(relative_path, text, role=role))
        self._append_records(stage_dir, [record])
        return record

    def commit(self, stage_dir: Path) -> Path:
        """Swap the staged build into the output directory."""
        manifest = self._manifests.pop(self._key(stage_dir), None) or self._read_manifest(stage_dir)
        manifest["committedAt"] = _utc_now()
        self._write_manifest(stage_dir, manifest)

        backup = self.output_dir.parent / f".{self.output_dir.name}.previous"
        if backup.exists():
            shutil.rmtree(backup)
        if self.output_dir.exists():
            self.output_dir.rename(backup)
        try:
            stage_dir.rename(self.output_dir)
        except OSError as e:
            logger.error(f"Failed to move the staged build into {self.output_dir}: {str(e)}")
            if backup.exists():
                backup.rename(self.output_dir)
            raise MaterializationError(f"Cannot replace {self.output_dir}: {e}") from e
        if backup.exists():
            shutil.rmtree(backup)
        logger.info(f"Generated files saved to {self.output_dir}")
        return self.output_dir

    def discard(self, stage_dir: Path):
        """Drop a staged build, leaving the current output untouched."""
        self._manifests.pop(self._key(stage_dir), None)
        if stage_dir.exists():
            shutil.rmtree(stage_dir)

    def load_manifest(self, run_dir: Optional[Path] = None) -> Dict[str, object]:
        return self._read_manifest(run_dir or self.output_dir)

    # ======== Internal Tools ========

    def _write_one(self, stage_dir: Path, item: PendingFile) -> FileRecord:
        target = self._target(stage_dir, item.relative_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(item.text, encoding="utf-8")
        logger.debug(f"Wrote {item.relative_path}")
        return FileRecord(
            relative_path=item.relative_path,
            variant=item.variant,
            role=item.role,
            size=len(item.text.encode("utf-8")),
        )

    def _target(self, stage_dir: Path, relative_path: str) -> Path:
        """Resolve a path inside the stage; names never climb out of it."""
        target = (stage_dir / relative_path).resolve()
        if stage_dir.resolve() not in target.parents:
            raise MaterializationError(f"Refusing to write outside the output directory: {relative_path}")
        return target

    def _key(self, run_dir: Path) -> str:
        return str(run_dir.resolve())

    def _manifest_path(self, run_dir: Path) -> Path:
        return run_dir / self.MANIFEST_NAME

    def _write_manifest(self, run_dir: Path, manifest: Dict[str, object]):
        self._manifest_path(run_dir).write_text(
            json.dumps(manifest, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )

    def _read_manifest(self, run_dir: Path) -> Dict[str, object]:
        manifest_path = self._manifest_path(run_dir)
        if manifest_path.exists():
            return json.loads(manifest_path.read_text(encoding="utf-8"))
        return {"buildId": None, "files": []}

    def _append_records(self, stage_dir: Path, records: List[FileRecord]):
        key = self._key(stage_dir)
        manifest = self._manifests.get(key) or self._read_manifest(stage_dir)
        entries: List[Dict[str, object]] = manifest.get("files", [])
        written = {record.relative_path for record in records}
        entries = [entry for entry in entries if entry.get("path") not in written]
        entries.extend(record.to_dict() for record in records)
        entries.sort(key=lambda entry: str(entry.get("path")))
        manifest["files"] = entries
        self._manifests[key] = manifest
        self._write_manifest(stage_dir, manifest)


__all__ = ["DocumentStorage", "FileRecord", "PendingFile"]
