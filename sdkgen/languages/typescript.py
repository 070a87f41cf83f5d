"""TypeScript target profile."""

from __future__ import annotations

import re
from typing import List

from ..models import VerifyError
from .base import LanguageProfile, VerifierSpec

_TSC_ERROR = re.compile(r"^(?P<file>.+?)\((?P<line>\d+),\d+\): error TS\d+: (?P<message>.+)$", re.MULTILINE)


def parse_tsc_errors(output: str) -> List[VerifyError]:
    """Parse ``tsc`` diagnostics of the form ``path(line,col): error TSnnnn: msg``."""
    errors: List[VerifyError] = []
    for match in _TSC_ERROR.finditer(output):
        errors.append(
            VerifyError(
                file=match.group("file").strip(),
                line=int(match.group("line")),
                message=match.group("message").strip(),
            )
        )
    return errors


PLANNER_INSTRUCTIONS = """You are planning a TypeScript SDK.

File structure (include all of these):
- package.json at root (type "package-config", id "package-json", order 0)
- tsconfig.json at root (type "package-config", id "tsconfig-json", order 0)
- src/types.ts with every interface and type (type "types", order 1)
- src/client-base.ts with the base HTTP client class (type "client-base", order 2)
- src/clients/{tag-slug}.ts for each tag (type "client", order 3)
- src/index.ts re-exporting everything (type "index", order 4)
- README.md at root (type "readme", id "readme", order 5)

Naming: PascalCase types, camelCase methods, kebab-case file names,
client classes named {Tag}Client, method names from operationId.
package.json uses "type": "module" with TypeScript as a devDependency and a
"build" script running tsc. tsconfig.json targets ES2022 with ESNext modules,
"moduleResolution": "bundler", strict mode, declarations, outDir ./dist and
rootDir ./src."""

WRITER_INSTRUCTIONS = """You are writing TypeScript SDK code.

- Every relative import uses the .js extension (ESM).
- Strict TypeScript with explicit types; no any, no enum, no namespace,
  no default exports.
- src/client-base.ts defines ClientConfig { baseUrl?: string; apiKey: string;
  headers?: Record<string, string> }, uses native fetch, serialises query
  parameters and JSON bodies, and raises ApiError (defined in src/types.ts).
- Client files extend the base client with one method per operation; path
  parameters go through encodeURIComponent.
- src/types.ts generates interfaces for every schema, readonly for responses,
  optional fields marked with ?.
- README.md documents installation, a quickstart and each client, based on
  the generated sources provided as context."""

typescript = LanguageProfile(
    name="typescript",
    extensions=(".ts", ".json", ".md"),
    planner_instructions=PLANNER_INSTRUCTIONS,
    writer_instructions=WRITER_INSTRUCTIONS,
    file_types=("package-config", "types", "client-base", "client", "index", "readme", "examples"),
    verifier=VerifierSpec(
        command=("npx", "tsc", "--noEmit", "--project"),
        parse_errors=parse_tsc_errors,
    ),
)

__all__ = ["parse_tsc_errors", "typescript"]
