"""Cache-aware, level-ordered execution of a generation plan."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Protocol, Sequence, Union

from .hashing import compute_section_hash
from .logging import get_logger
from .models import ExistingFile, FileDescriptor, Plan, group_by_order
from .spec_index import SpecIndex
from .stores.manifest import Manifest

logger = get_logger("engine")

REASON_FORCED = "forced"
REASON_FIRST_RUN = "first-run"
REASON_INSTRUCTIONS = "instructions-changed"
REASON_INCREMENTAL = "incremental"


@dataclass(frozen=True)
class WriteRequest:
    """Everything the writing oracle receives for one file."""

    file: FileDescriptor
    plan: Plan
    # Read-only view of outputs from strictly earlier order levels.
    generated: Mapping[str, str]
    existing: Sequence[ExistingFile] = ()
    fix_errors: Optional[str] = None


class FileWriter(Protocol):
    """Produces the content of one planned file."""

    def write(self, request: WriteRequest) -> str:
        """Return the complete file content or raise on failure."""


@dataclass(frozen=True)
class WriteSuccess:
    file: FileDescriptor
    content: str


@dataclass(frozen=True)
class WriteFailure:
    file: FileDescriptor
    reason: str


WriteOutcome = Union[WriteSuccess, WriteFailure]


class GeneratedStore:
    """Append-only record of generated content keyed by output path.

    Only mutated between phases; concurrent writers see ``snapshot()``.
    """

    def __init__(self) -> None:
        self._files: Dict[str, str] = {}

    def record(self, output_path: str, content: str) -> None:
        self._files[output_path] = content

    def snapshot(self) -> Mapping[str, str]:
        return MappingProxyType(dict(self._files))

    def get(self, output_path: str) -> Optional[str]:
        return self._files.get(output_path)

    def __contains__(self, output_path: object) -> bool:
        return output_path in self._files

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)


@dataclass
class CacheDecision:
    """Which plan files need work, and why."""

    to_generate: List[FileDescriptor]
    cached: List[FileDescriptor]
    reason: str

    @property
    def nothing_to_do(self) -> bool:
        return not self.to_generate


@dataclass
class GenerationResult:
    succeeded: List[WriteSuccess] = field(default_factory=list)
    failed: List[WriteFailure] = field(default_factory=list)
    written: List[Path] = field(default_factory=list)

    @property
    def succeeded_ids(self) -> List[str]:
        return [item.file.id for item in self.succeeded]

    @property
    def failed_ids(self) -> List[str]:
        return [item.file.id for item in self.failed]


def select_files(
    plan: Plan,
    index: SpecIndex,
    previous: Optional[Manifest],
    instructions_hash: str,
    *,
    force: bool = False,
    output_dir: Optional[Path] = None,
) -> CacheDecision:
    """Decide which plan files must be regenerated.

    Forcing, a missing manifest, or changed instructions regenerate every
    file. Otherwise a file is regenerated when it has no cached entry, failed
    last run, moved to a new output path, or its section hash differs from
    the cached one. With ``output_dir`` given, a cached file whose output is
    missing on disk is regenerated too.
    """
    if force:
        return CacheDecision(list(plan.files), [], REASON_FORCED)
    if previous is None:
        return CacheDecision(list(plan.files), [], REASON_FIRST_RUN)
    if previous.instructions_hash != instructions_hash:
        return CacheDecision(list(plan.files), [], REASON_INSTRUCTIONS)

    to_generate: List[FileDescriptor] = []
    cached: List[FileDescriptor] = []
    for file in plan.files:
        stale = _stale_reason(file, index, previous, output_dir)
        if stale is None:
            logger.debug("[cached] %s", file.id)
            cached.append(file)
        else:
            logger.debug("[stale] %s: %s", file.id, stale)
            to_generate.append(file)
    return CacheDecision(to_generate, cached, REASON_INCREMENTAL)


def _stale_reason(
    file: FileDescriptor,
    index: SpecIndex,
    previous: Manifest,
    output_dir: Optional[Path],
) -> Optional[str]:
    entry = previous.sections.get(file.id)
    if entry is None:
        return "no cached entry"
    if file.id in previous.failed:
        return "failed last run"
    if entry.output_path != file.output_path:
        return f"moved from {entry.output_path}"
    if entry.content_hash != compute_section_hash(file, index):
        return "section changed"
    if output_dir is not None and not (Path(output_dir) / file.output_path).is_file():
        return "output missing"
    return None


def run_isolated(
    writer: FileWriter,
    requests: Sequence[WriteRequest],
    *,
    max_workers: Optional[int] = None,
) -> List[WriteOutcome]:
    """Invoke ``writer`` once per request concurrently and wait for all to settle.

    Each request succeeds or fails on its own; results keep request order.
    """
    if not requests:
        return []
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="sdkgen-writer") as pool:
        futures = [pool.submit(writer.write, request) for request in requests]
        outcomes: List[WriteOutcome] = []
        for request, future in zip(requests, futures):
            try:
                content = future.result()
            except Exception as exc:  # isolated per file
                _log_failure(request.file, exc)
                outcomes.append(WriteFailure(request.file, str(exc) or exc.__class__.__name__))
                continue
            if not isinstance(content, str):
                outcomes.append(
                    WriteFailure(request.file, f"writer returned {type(content).__name__}, expected str")
                )
                continue
            outcomes.append(WriteSuccess(request.file, content))
    return outcomes


def write_output(output_dir: Path, output_path: str, content: str) -> Path:
    """Write ``content`` under ``output_dir`` with exactly one trailing newline."""
    root = Path(output_dir).resolve()
    target = (root / output_path).resolve()
    if not target.is_relative_to(root):
        raise ValueError(f"Refusing to write outside the output directory: {output_path}")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content.rstrip("\n") + "\n", encoding="utf-8")
    return target


class GenerationEngine:
    """Runs the writing oracle over plan files, one order level at a time."""

    def __init__(self, writer: FileWriter, *, max_workers: Optional[int] = None) -> None:
        self.writer = writer
        self.max_workers = max_workers

    def generate(
        self,
        plan: Plan,
        files: Sequence[FileDescriptor],
        output_dir: Path,
        *,
        store: GeneratedStore,
        existing: Sequence[ExistingFile] = (),
    ) -> GenerationResult:
        result = GenerationResult()
        if not files:
            return result

        for order, group in group_by_order(list(files)):
            snapshot = store.snapshot()
            logger.debug("Order level %d: %d file(s)", order, len(group))
            for file in group:
                logger.info("Writing: %s...", file.id)
            requests = [
                WriteRequest(file=file, plan=plan, generated=snapshot, existing=existing)
                for file in group
            ]
            outcomes = run_isolated(self.writer, requests, max_workers=self.max_workers)

            # Level N+1 only starts once every call in level N has settled.
            for outcome in outcomes:
                if isinstance(outcome, WriteSuccess):
                    store.record(outcome.file.output_path, outcome.content)
                    result.succeeded.append(outcome)
                    logger.info("Done: %s", outcome.file.id)
                else:
                    result.failed.append(outcome)
                    logger.warning("Failed: %s: %s", outcome.file.id, outcome.reason)

        persisted: List[WriteSuccess] = []
        for success in result.succeeded:
            try:
                path = write_output(output_dir, success.file.output_path, success.content)
            except (OSError, ValueError) as exc:
                reason = f"could not write {success.file.output_path}: {exc}"
                result.failed.append(WriteFailure(success.file, reason))
                logger.warning("Failed: %s: %s", success.file.id, reason)
                continue
            persisted.append(success)
            result.written.append(path)
            logger.info("Wrote: %s", success.file.output_path)
        result.succeeded = persisted
        return result


def _log_failure(file: FileDescriptor, exc: Exception) -> None:
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Writer raised for %s", file.id, exc_info=exc)


__all__ = [
    "CacheDecision",
    "FileWriter",
    "GeneratedStore",
    "GenerationEngine",
    "GenerationResult",
    "WriteFailure",
    "WriteOutcome",
    "WriteRequest",
    "WriteSuccess",
    "run_isolated",
    "select_files",
    "write_output",
]
