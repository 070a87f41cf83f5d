"""Shared helpers for the planning and writing oracles."""

from __future__ import annotations

import json
from typing import Protocol, Type, TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class OracleError(RuntimeError):
    """Raised when an oracle reply cannot be turned into the expected structure."""


class PromptRunner(Protocol):
    def run(self, prompt: str, *, system: str | None = None) -> str:
        ...


def strip_code_fences(text: str) -> str:
    """Remove a leading/trailing triple-backtick fence if the model added one."""
    stripped = (text or "").strip()
    if stripped.startswith("```"):
        parts = stripped.split("\n", 1)
        stripped = parts[1] if len(parts) > 1 else ""
    if stripped.endswith("```"):
        stripped = stripped[:-3].rstrip()
    return stripped


def parse_oracle_json(text: str, model: Type[ModelT]) -> ModelT:
    """Parse the outermost JSON object in ``text`` and validate it as ``model``."""
    body = strip_code_fences(text)
    start = body.find("{")
    end = body.rfind("}")
    if start == -1 or end < start:
        raise OracleError(f"Expected a JSON object in the {model.__name__} response")
    try:
        payload = json.loads(body[start : end + 1])
    except json.JSONDecodeError as exc:
        raise OracleError(f"Invalid JSON in the {model.__name__} response: {exc.msg}") from exc
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise OracleError(f"Response does not match {model.__name__}: {exc}") from exc


__all__ = ["OracleError", "PromptRunner", "parse_oracle_json", "strip_code_fences"]
