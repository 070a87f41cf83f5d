"""Planning oracle: turns a spec index into a file plan."""

from __future__ import annotations

from typing import Optional, Sequence

from ..languages.base import LanguageProfile
from ..logging import get_logger
from ..models import Plan
from ..prompting.builder import PromptBuilder
from ..spec_index import SpecIndex
from .base import OracleError, PromptRunner, parse_oracle_json

logger = get_logger("agents.planner")


class PlanningOracle:
    """Asks the model for a plan and validates the reply."""

    def __init__(
        self,
        runner: PromptRunner,
        profile: LanguageProfile,
        instructions: Optional[str] = None,
    ) -> None:
        self.runner = runner
        self.profile = profile
        self.builder = PromptBuilder(profile, instructions)

    def plan(self, index: SpecIndex, existing_paths: Sequence[str] = ()) -> Plan:
        request = self.builder.planning_prompt(index, existing_paths)
        logger.debug("Planning prompt is %d characters", len(request.prompt))
        reply = self.runner.run(request.prompt, system=request.system)
        plan = parse_oracle_json(reply, Plan)
        if not plan.files:
            raise OracleError("Planner returned an empty plan")
        self._check_file_types(plan)
        return plan

    def _check_file_types(self, plan: Plan) -> None:
        allowed = self.profile.file_types
        if not allowed:
            return
        unsupported = sorted({file.type for file in plan.files if file.type not in allowed})
        if unsupported:
            raise OracleError(
                f"Planner used file type(s) not supported for {self.profile.name}: "
                + ", ".join(unsupported)
            )


__all__ = ["PlanningOracle"]
