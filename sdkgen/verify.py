"""Run language verifiers and repair the files they implicate."""

from __future__ import annotations

import enum
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from .engine import (
    FileWriter,
    GeneratedStore,
    WriteRequest,
    WriteSuccess,
    run_isolated,
    write_output,
)
from .languages.base import LanguageProfile
from .logging import get_logger
from .models import Plan, VerifyError

DEFAULT_MAX_ATTEMPTS = 2
UNSTRUCTURED_FILE = "."

logger = get_logger("verify")

Verifier = Callable[[Path], List[VerifyError]]


class VerifyStatus(str, enum.Enum):
    SKIPPED = "skipped"
    PASSED = "passed"
    PASSED_WITH_WARNINGS = "passed-with-warnings"


@dataclass
class VerifyReport:
    status: VerifyStatus
    attempts: int = 0
    errors: List[VerifyError] = field(default_factory=list)
    repaired: List[str] = field(default_factory=list)
    repair_failures: Dict[str, str] = field(default_factory=dict)


def normalize_error_path(raw: str, output_dir: Path) -> str:
    """Express a diagnostic path relative to the output root.

    Relative paths are resolved against the output root, absolute paths are
    taken as-is; both are then fully resolved. A result inside the root is
    returned as a POSIX relative path, anything else keeps its original
    spelling with forward slashes.
    """
    cleaned = raw.strip()
    if not cleaned:
        return UNSTRUCTURED_FILE
    root = Path(output_dir).resolve()
    candidate = Path(cleaned)
    if not candidate.is_absolute():
        candidate = root / candidate
    resolved = Path(os.path.normpath(candidate))
    try:
        resolved = resolved.resolve()
    except OSError:
        pass
    if resolved == root or resolved.is_relative_to(root):
        return resolved.relative_to(root).as_posix()
    return cleaned.replace("\\", "/")


def run_verifier(profile: LanguageProfile, output_dir: Path) -> List[VerifyError]:
    """Run the profile's checker over ``output_dir`` and return its errors.

    A profile without a verifier returns no errors; callers branch on
    ``profile.can_verify`` to tell that apart from a clean run.
    """
    spec = profile.verifier
    if spec is None:
        return []

    root = Path(output_dir).resolve()
    command = [*spec.command, str(root)]
    logger.debug("Running verifier: %s", " ".join(command))
    try:
        completed = subprocess.run(
            command,
            cwd=root,
            capture_output=True,
            text=True,
            timeout=spec.timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return [_unstructured(f"verifier timed out after {spec.timeout:g}s")]
    except FileNotFoundError:
        return [_unstructured(f"verifier executable '{spec.command[0]}' not found")]

    if completed.returncode == 0:
        return []

    output = completed.stdout or completed.stderr or ""
    errors = [
        VerifyError(
            file=normalize_error_path(error.file, root),
            line=error.line,
            message=error.message,
        )
        for error in spec.parse_errors(output)
    ]
    if errors:
        return errors
    summary = _first_line(output) or f"exit code {completed.returncode}"
    return [_unstructured(f"verifier failed: {summary}")]


def group_errors(errors: Iterable[VerifyError]) -> Dict[str, List[VerifyError]]:
    grouped: Dict[str, List[VerifyError]] = {}
    for error in errors:
        grouped.setdefault(error.file, []).append(error)
    return grouped


def format_error_context(errors: Iterable[VerifyError]) -> str:
    return "\n".join(f"Line {error.line}: {error.message}" for error in errors)


class VerifyRepairLoop:
    """Bounded verify → repair → verify cycle.

    Ends ``passed`` as soon as a verification pass reports nothing, or
    ``passed-with-warnings`` once ``max_attempts`` passes have run. Only files
    named by at least one error are sent back to the writer.
    """

    def __init__(
        self,
        writer: FileWriter,
        verifier: Optional[Verifier],
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        max_workers: Optional[int] = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.writer = writer
        self.verifier = verifier
        self.max_attempts = max_attempts
        self.max_workers = max_workers

    def run(self, plan: Plan, output_dir: Path, store: GeneratedStore) -> VerifyReport:
        if self.verifier is None:
            return VerifyReport(status=VerifyStatus.SKIPPED)

        report = VerifyReport(status=VerifyStatus.PASSED)
        for attempt in range(1, self.max_attempts + 1):
            logger.info("Verifying (attempt %d/%d)...", attempt, self.max_attempts)
            errors = self.verifier(Path(output_dir))
            report.attempts = attempt
            report.errors = list(errors)

            if not errors:
                logger.info("Verification passed.")
                report.status = VerifyStatus.PASSED
                return report

            logger.info("Verification found %d error(s).", len(errors))
            if attempt == self.max_attempts:
                logger.warning("Max verification attempts reached. Continuing with errors.")
                for error in errors:
                    logger.warning("  %s:%d: %s", error.file, error.line, error.message)
                report.status = VerifyStatus.PASSED_WITH_WARNINGS
                return report

            self._repair(plan, output_dir, store, group_errors(errors), report)

        return report  # pragma: no cover - loop always returns

    def _repair(
        self,
        plan: Plan,
        output_dir: Path,
        store: GeneratedStore,
        errors_by_file: Dict[str, List[VerifyError]],
        report: VerifyReport,
    ) -> None:
        files_to_fix = [file for file in plan.files if file.output_path in errors_by_file]
        if not files_to_fix:
            logger.info("No planned file matches the reported errors; nothing to repair.")
            return

        for file in files_to_fix:
            if file.output_path not in store:
                current = _read_current(output_dir, file.output_path)
                if current is not None:
                    store.record(file.output_path, current)

        snapshot = store.snapshot()
        requests = []
        for file in files_to_fix:
            file_errors = errors_by_file[file.output_path]
            logger.info("Fixing: %s (%d error(s))...", file.id, len(file_errors))
            requests.append(
                WriteRequest(
                    file=file,
                    plan=plan,
                    generated=snapshot,
                    fix_errors=format_error_context(file_errors),
                )
            )

        for outcome in run_isolated(self.writer, requests, max_workers=self.max_workers):
            if isinstance(outcome, WriteSuccess):
                try:
                    write_output(output_dir, outcome.file.output_path, outcome.content)
                except (OSError, ValueError) as exc:
                    reason = f"could not write {outcome.file.output_path}: {exc}"
                    report.repair_failures[outcome.file.id] = reason
                    logger.warning("Fix failed: %s: %s", outcome.file.id, reason)
                    continue
                store.record(outcome.file.output_path, outcome.content)
                report.repaired.append(outcome.file.id)
                report.repair_failures.pop(outcome.file.id, None)
                logger.info("Fixed: %s", outcome.file.id)
            else:
                report.repair_failures[outcome.file.id] = outcome.reason
                logger.warning("Fix failed: %s: %s", outcome.file.id, outcome.reason)


def _read_current(output_dir: Path, output_path: str) -> Optional[str]:
    try:
        return (Path(output_dir) / output_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def _unstructured(message: str) -> VerifyError:
    return VerifyError(file=UNSTRUCTURED_FILE, line=0, message=message)


def _first_line(output: str) -> str:
    for line in output.splitlines():
        if line.strip():
            return line.strip()
    return ""


__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "VerifyReport",
    "VerifyRepairLoop",
    "VerifyStatus",
    "format_error_context",
    "group_errors",
    "normalize_error_path",
    "run_verifier",
]
