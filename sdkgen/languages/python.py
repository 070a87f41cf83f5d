"""Python target profile (no verifier configured)."""

from __future__ import annotations

from .base import LanguageProfile

PLANNER_INSTRUCTIONS = """You are planning a Python SDK.

File structure:
- pyproject.toml at root (type "package-config", order 0)
- {package}/types.py with dataclasses for every schema (type "types", order 1)
- {package}/client_base.py with the base HTTP client (type "client-base", order 2)
- {package}/clients/{tag_slug}.py for each tag (type "client", order 3)
- {package}/__init__.py re-exporting the public API (type "index", order 4)
- README.md at root (type "readme", order 5)

Use snake_case module and method names and PascalCase classes."""

WRITER_INSTRUCTIONS = """You are writing Python SDK code.

- Target Python 3.10+, fully type-annotated.
- Use only the standard library (urllib.request for HTTP).
- Raise ApiError (defined in types.py) for non-2xx responses.
- One method per operation; method names derived from operationId."""

python = LanguageProfile(
    name="python",
    extensions=(".py", ".toml", ".md"),
    planner_instructions=PLANNER_INSTRUCTIONS,
    writer_instructions=WRITER_INSTRUCTIONS,
    file_types=("package-config", "types", "client-base", "client", "index", "readme", "examples"),
)

__all__ = ["python"]
