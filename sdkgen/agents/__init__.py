"""Model-backed planning and writing oracles."""

from .base import OracleError, parse_oracle_json, strip_code_fences
from .planner import PlanningOracle
from .writer import WritingOracle

__all__ = [
    "OracleError",
    "PlanningOracle",
    "WritingOracle",
    "parse_oracle_json",
    "strip_code_fences",
]
