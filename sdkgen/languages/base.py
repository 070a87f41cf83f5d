"""Language profile definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from ..models import VerifyError


@dataclass(frozen=True)
class VerifierSpec:
    """Checker command for a target language and the parser for its output."""

    command: Tuple[str, ...]
    parse_errors: Callable[[str], List[VerifyError]]
    timeout: float = 30.0


@dataclass(frozen=True)
class LanguageProfile:
    """Everything sdkgen needs to know about one target language."""

    name: str
    extensions: Tuple[str, ...]
    planner_instructions: str
    writer_instructions: str
    file_types: Tuple[str, ...] = field(default_factory=tuple)
    # ``None`` means the target has no checker; verification is skipped.
    verifier: Optional[VerifierSpec] = None

    @property
    def can_verify(self) -> bool:
        return self.verifier is not None
