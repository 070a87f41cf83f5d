"""Pipeline orchestration for the generate flow."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence

from .agents import PlanningOracle, WritingOracle
from .config import LLMConfig, SdkGenConfig
from .engine import (
    CacheDecision,
    FileWriter,
    GeneratedStore,
    GenerationEngine,
    WriteFailure,
    select_files,
)
from .hashing import compute_instructions_hash, compute_spec_hash
from .languages import get_language
from .languages.base import LanguageProfile
from .llm.runner import LLMRunner
from .logging import get_logger
from .models import ExistingFile, Plan
from .output_scanner import scan_existing
from .reconcile import reconcile_orphans
from .spec_index import SpecIndex, build_spec_index
from .stores.manifest import Manifest, build_manifest, read_manifest, write_manifest
from .verify import Verifier, VerifyRepairLoop, VerifyReport, VerifyStatus, run_verifier


class RunStatus(str, enum.Enum):
    SKIPPED = "skipped"
    UP_TO_DATE = "up-to-date"
    GENERATED = "generated"
    GENERATED_WITH_WARNINGS = "generated-with-warnings"
    PARTIAL = "partial"


class Planner(Protocol):
    def plan(self, index: SpecIndex, existing_paths: Sequence[str] = ()) -> Plan:
        ...


PlannerFactory = Callable[[LanguageProfile, SdkGenConfig], Planner]
WriterFactory = Callable[[LanguageProfile, SpecIndex, SdkGenConfig], FileWriter]
VerifierFactory = Callable[[LanguageProfile], Optional[Verifier]]
Scanner = Callable[[Path, Sequence[str]], List[ExistingFile]]


@dataclass
class GenerationReport:
    """Outcome of one ``run_generate`` call."""

    status: RunStatus
    output_dir: Path
    plan: Optional[Plan] = None
    decision: Optional[CacheDecision] = None
    generated: List[str] = field(default_factory=list)
    failed: List[WriteFailure] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    verify: Optional[VerifyReport] = None

    @property
    def failed_ids(self) -> List[str]:
        return [failure.file.id for failure in self.failed]


def build_llm_runner(llm: LLMConfig) -> LLMRunner:
    kwargs: dict[str, object] = {"model": llm.model, "base_url": llm.base_url}
    if llm.api_key is not None:
        kwargs["api_key"] = llm.api_key
    if llm.temperature is not None:
        kwargs["temperature"] = llm.temperature
    if llm.max_tokens is not None:
        kwargs["max_tokens"] = llm.max_tokens
    if llm.request_timeout is not None:
        kwargs["request_timeout"] = llm.request_timeout
    return LLMRunner(**kwargs)  # type: ignore[arg-type]


def _default_planner(profile: LanguageProfile, config: SdkGenConfig) -> Planner:
    return PlanningOracle(build_llm_runner(config.llm), profile, config.instructions)


def _default_writer(profile: LanguageProfile, index: SpecIndex, config: SdkGenConfig) -> FileWriter:
    return WritingOracle(build_llm_runner(config.llm), profile, index, config.instructions)


def _default_verifier(profile: LanguageProfile) -> Optional[Verifier]:
    if not profile.can_verify:
        return None
    return partial(run_verifier, profile)


class Orchestrator:
    """Coordinates spec indexing, planning, generation, verification and bookkeeping."""

    def __init__(
        self,
        planner_factory: PlannerFactory = _default_planner,
        writer_factory: WriterFactory = _default_writer,
        verifier_factory: VerifierFactory = _default_verifier,
        scanner: Scanner = scan_existing,
        *,
        max_workers: Optional[int] = None,
        verify_attempts: Optional[int] = None,
    ) -> None:
        self.planner_factory = planner_factory
        self.writer_factory = writer_factory
        self.verifier_factory = verifier_factory
        self.scanner = scanner
        self.max_workers = max_workers
        self.verify_attempts = verify_attempts
        self.logger = get_logger("orchestrator")

    def run_generate(self, config: SdkGenConfig) -> GenerationReport:
        """Run the full pipeline for ``config``.

        Spec, configuration and planning problems propagate; per-file writer
        failures are reported on the returned ``GenerationReport``.
        """
        spec_path = config.require_spec()
        profile = get_language(config.language)
        index = build_spec_index(spec_path)
        tags = ", ".join(index.tag_names()) or "(none)"
        self.logger.info("API: %s v%s", index.title, index.version)
        self.logger.info(
            "Tags: %s | Schemas: %d | Endpoints: %d",
            tags,
            len(index.schemas),
            index.endpoint_count,
        )
        self.logger.info("Language: %s", profile.name)

        output_dir = Path(config.output).resolve()
        output_dir.mkdir(parents=True, exist_ok=True)
        spec_hash = compute_spec_hash(index)
        instructions_hash = compute_instructions_hash(config.instructions)
        previous = read_manifest(output_dir)

        if not config.force and previous is not None and previous.is_valid_for(spec_hash, instructions_hash):
            self.logger.info("Spec and instructions unchanged. Nothing to regenerate.")
            return GenerationReport(status=RunStatus.SKIPPED, output_dir=output_dir)
        if previous is not None and previous.failed:
            self.logger.info("Retrying %d file(s) that failed last run", len(previous.failed))

        existing = self.scanner(output_dir, profile.extensions)
        if existing:
            self.logger.info("Found %d existing file(s) in output directory", len(existing))

        self.logger.info("Planning SDK structure...")
        planner = self.planner_factory(profile, config)
        try:
            plan = planner.plan(index, [item.relative_path for item in existing])
        except Exception as exc:
            self._log_exception("Planning failed", exc)
            raise
        self.logger.info("Planned %d file(s)", len(plan.files))

        decision = select_files(
            plan, index, previous, instructions_hash, force=config.force, output_dir=output_dir
        )
        self.logger.debug("Cache decision: %s", decision.reason)

        if decision.nothing_to_do:
            self.logger.info("All files up to date")
            removed = self._reconcile(output_dir, previous, plan)
            self._save_manifest(
                output_dir,
                plan,
                index,
                spec_hash=spec_hash,
                instructions_hash=instructions_hash,
                previous=previous,
                generated_ids=(),
                failed_ids=(),
            )
            return GenerationReport(
                status=RunStatus.UP_TO_DATE,
                output_dir=output_dir,
                plan=plan,
                decision=decision,
                removed=removed,
            )

        self.logger.info(
            "Generating %d file(s) (%d cached)...", len(decision.to_generate), len(decision.cached)
        )
        writer = self.writer_factory(profile, index, config)
        max_workers = self.max_workers or config.max_workers
        store = GeneratedStore()
        engine = GenerationEngine(writer, max_workers=max_workers)
        result = engine.generate(plan, decision.to_generate, output_dir, store=store, existing=existing)

        removed = self._reconcile(output_dir, previous, plan)

        verifier = self.verifier_factory(profile) if config.verify else None
        loop = VerifyRepairLoop(
            writer,
            verifier,
            max_attempts=self.verify_attempts or config.verify_attempts,
            max_workers=max_workers,
        )
        verify_report = loop.run(plan, output_dir, store)

        self._save_manifest(
            output_dir,
            plan,
            index,
            spec_hash=spec_hash,
            instructions_hash=instructions_hash,
            previous=previous,
            generated_ids=result.succeeded_ids,
            failed_ids=result.failed_ids,
        )

        if result.failed:
            status = RunStatus.PARTIAL
            self.logger.warning(
                "%d file(s) failed: %s", len(result.failed), ", ".join(result.failed_ids)
            )
        elif verify_report.status is VerifyStatus.PASSED_WITH_WARNINGS:
            status = RunStatus.GENERATED_WITH_WARNINGS
        else:
            status = RunStatus.GENERATED
        self.logger.info("SDK generated at %s", output_dir)

        return GenerationReport(
            status=status,
            output_dir=output_dir,
            plan=plan,
            decision=decision,
            generated=result.succeeded_ids,
            failed=list(result.failed),
            removed=removed,
            verify=verify_report,
        )

    def _reconcile(self, output_dir: Path, previous: Optional[Manifest], plan: Plan) -> List[str]:
        if previous is None:
            return []
        return reconcile_orphans(output_dir, previous, plan)

    def _save_manifest(
        self,
        output_dir: Path,
        plan: Plan,
        index: SpecIndex,
        *,
        spec_hash: str,
        instructions_hash: str,
        previous: Optional[Manifest],
        generated_ids: Sequence[str],
        failed_ids: Sequence[str],
    ) -> None:
        manifest = build_manifest(
            plan,
            index,
            spec_hash=spec_hash,
            instructions_hash=instructions_hash,
            previous=previous,
            generated_ids=generated_ids,
            failed_ids=failed_ids,
        )
        path = write_manifest(output_dir, manifest)
        self.logger.debug("Manifest written to %s", path)

    def _log_exception(self, message: str, exc: Exception) -> None:
        self.logger.error("%s: %s", message, exc)
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug("%s traceback", message, exc_info=exc)


__all__ = [
    "GenerationReport",
    "Orchestrator",
    "RunStatus",
    "build_llm_runner",
]
