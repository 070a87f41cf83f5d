"""Writing oracle: produces the content of one planned file."""

from __future__ import annotations

from typing import Optional

from ..engine import WriteRequest
from ..languages.base import LanguageProfile
from ..models import FileOutput
from ..prompting.builder import PromptBuilder
from ..spec_index import SpecIndex
from .base import OracleError, PromptRunner, parse_oracle_json


class WritingOracle:
    """Implements the engine's ``FileWriter`` protocol on top of a model runner.

    Safe to call from several threads at once as long as the runner is.
    """

    def __init__(
        self,
        runner: PromptRunner,
        profile: LanguageProfile,
        index: SpecIndex,
        instructions: Optional[str] = None,
    ) -> None:
        self.runner = runner
        self.index = index
        self.builder = PromptBuilder(profile, instructions)

    def write(self, request: WriteRequest) -> str:
        prompt = self.builder.writing_prompt(self.index, request)
        reply = self.runner.run(prompt.prompt, system=prompt.system)
        output = parse_oracle_json(reply, FileOutput)
        if not output.code.strip():
            raise OracleError(f"Writer returned empty code for {request.file.id}")
        return output.code


__all__ = ["WritingOracle"]
