"""Persistent manifest describing what was generated last and from which inputs."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..hashing import compute_section_hash
from ..logging import get_logger
from ..models import Plan
from ..spec_index import SpecIndex

MANIFEST_FILENAME = ".sdkgen-manifest.json"
MANIFEST_VERSION = 1

logger = get_logger("manifest")


@dataclass(frozen=True)
class SectionEntry:
    """Cache record for one planned file."""

    content_hash: str
    output_path: str
    type: str
    order: int
    generated_at: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "contentHash": self.content_hash,
            "outputPath": self.output_path,
            "type": self.type,
            "order": self.order,
            "generatedAt": self.generated_at,
        }


@dataclass
class Manifest:
    """Incremental-build ground truth, persisted beside generated output."""

    spec_hash: str
    instructions_hash: str
    sections: Dict[str, SectionEntry] = field(default_factory=dict)
    # Ids whose generation failed in the run that wrote this manifest.
    failed: List[str] = field(default_factory=list)
    version: int = MANIFEST_VERSION

    def is_valid_for(self, spec_hash: str, instructions_hash: str) -> bool:
        """Whole-manifest trust check; a manifest left by a partial run never passes."""
        if self.failed:
            return False
        return self.spec_hash == spec_hash and self.instructions_hash == instructions_hash

    def to_dict(self) -> Dict[str, object]:
        return {
            "version": self.version,
            "specHash": self.spec_hash,
            "instructionsHash": self.instructions_hash,
            "sections": {key: entry.to_dict() for key, entry in self.sections.items()},
            "failed": list(self.failed),
        }

    @classmethod
    def from_dict(cls, payload: object) -> Optional["Manifest"]:
        if not isinstance(payload, dict) or payload.get("version") != MANIFEST_VERSION:
            return None
        spec_hash = payload.get("specHash")
        instructions_hash = payload.get("instructionsHash")
        sections = payload.get("sections")
        if (
            not isinstance(spec_hash, str)
            or not isinstance(instructions_hash, str)
            or not isinstance(sections, dict)
        ):
            return None
        entries: Dict[str, SectionEntry] = {}
        for key, raw in sections.items():
            entry = _entry_from_dict(raw)
            if isinstance(key, str) and entry is not None:
                entries[key] = entry
        failed = payload.get("failed", [])
        if not isinstance(failed, list):
            failed = []
        return cls(
            spec_hash=spec_hash,
            instructions_hash=instructions_hash,
            sections=entries,
            failed=[item for item in failed if isinstance(item, str)],
        )


def manifest_path(output_dir: Path) -> Path:
    return Path(output_dir) / MANIFEST_FILENAME


def read_manifest(output_dir: Path) -> Optional[Manifest]:
    """Return the stored manifest, or ``None`` when absent or unusable."""
    path = manifest_path(output_dir)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable manifest at %s: %s", path, exc)
        return None
    manifest = Manifest.from_dict(data)
    if manifest is None:
        logger.warning("Ignoring malformed manifest at %s", path)
    return manifest


def write_manifest(output_dir: Path, manifest: Manifest) -> Path:
    """Persist ``manifest`` via write-then-rename."""
    path = manifest_path(output_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f"{path.name}.tmp")
    tmp_path.write_text(json.dumps(manifest.to_dict(), indent=2) + "\n", encoding="utf-8")
    os.replace(tmp_path, path)
    return path


def build_manifest(
    plan: Plan,
    index: SpecIndex,
    *,
    spec_hash: str,
    instructions_hash: str,
    previous: Optional[Manifest],
    generated_ids: Iterable[str],
    failed_ids: Iterable[str] = (),
    now: Optional[datetime] = None,
) -> Manifest:
    """Return the manifest describing ``plan`` after a run.

    Files generated this run are stamped ``now``. Cache hits keep their
    previous timestamp. Failed files keep whatever entry they had before, or
    get none, so the next run still sees them as stale.
    """
    timestamp = _format_timestamp(now or datetime.now(UTC))
    generated = set(generated_ids)
    failed = set(failed_ids)
    prior_sections = previous.sections if previous is not None else {}

    sections: Dict[str, SectionEntry] = {}
    for file in plan.files:
        prior = prior_sections.get(file.id)
        if file.id in failed:
            if prior is not None:
                sections[file.id] = prior
            continue
        content_hash = compute_section_hash(file, index)
        if file.id in generated or prior is None:
            generated_at = timestamp
        else:
            generated_at = prior.generated_at
        entry = SectionEntry(
            content_hash=content_hash,
            output_path=file.output_path,
            type=file.type,
            order=file.order,
            generated_at=generated_at,
        )
        sections[file.id] = entry

    return Manifest(
        spec_hash=spec_hash,
        instructions_hash=instructions_hash,
        sections=sections,
        failed=[file.id for file in plan.files if file.id in failed],
    )


def _entry_from_dict(payload: object) -> Optional[SectionEntry]:
    if not isinstance(payload, dict):
        return None
    content_hash = payload.get("contentHash")
    output_path = payload.get("outputPath")
    file_type = payload.get("type")
    order = payload.get("order")
    generated_at = payload.get("generatedAt")
    if (
        not isinstance(content_hash, str)
        or not isinstance(output_path, str)
        or not isinstance(file_type, str)
        or not isinstance(order, int)
        or isinstance(order, bool)
        or not isinstance(generated_at, str)
    ):
        return None
    return SectionEntry(
        content_hash=content_hash,
        output_path=output_path,
        type=file_type,
        order=order,
        generated_at=generated_at,
    )


def _format_timestamp(moment: datetime) -> str:
    return moment.isoformat().replace("+00:00", "Z")


__all__ = [
    "MANIFEST_FILENAME",
    "MANIFEST_VERSION",
    "Manifest",
    "SectionEntry",
    "build_manifest",
    "manifest_path",
    "read_manifest",
    "write_manifest",
]
