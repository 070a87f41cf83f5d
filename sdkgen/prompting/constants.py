"""Shared prompt text for the planning and writing oracles."""

from __future__ import annotations

PLANNER_SYSTEM_PROMPT = (
    "You are an SDK architect. You receive a summary of an OpenAPI description and plan the file "
    "structure of a client library for it. Reply with a single JSON object and nothing else."
)

PLANNER_RULES = """General rules:
- Each file has a unique "id" and a unique relative "outputPath".
- "type" is one of: package-config, types, client-base, client, index, readme, examples.
- "order" controls generation order (0 first). Files with the same order are generated in
  parallel and must not depend on each other; a file may only depend on files with a lower order.
- For "client" files set "relatedTags" to the tag names they cover and "relatedSchemas" to the
  schemas referenced by those endpoints.
- Every schema is represented in the types file and every tag has a client file.
- Use lowercase kebab-case file names unless the language conventions say otherwise."""

PLAN_RESPONSE_FORMAT = """Respond with JSON of this shape:
{"files": [{"id": "...", "outputPath": "...", "type": "...", "description": "...",
 "relatedTags": ["..."], "relatedSchemas": ["..."], "order": 0}]}"""

WRITER_SYSTEM_PROMPT = (
    "You are an SDK code writer. Write clean, complete, production-quality code for exactly one "
    "file. Reply with a single JSON object and nothing else."
)

WRITER_RULES = """General rules:
- Use the spec section below for endpoint details, schemas and authentication.
- Files from earlier generation stages are included; import from them using paths that are
  correct relative to this file's location in the plan.
- Match the style of existing files in the output directory where provided.
- Generate complete code: no placeholders, no TODOs, no Markdown fences inside "code"."""

WRITE_RESPONSE_FORMAT = 'Respond with JSON of this shape: {"code": "<complete file content>"}'

MAX_CONTEXT_FILE_CHARS = 20_000


__all__ = [
    "MAX_CONTEXT_FILE_CHARS",
    "PLANNER_RULES",
    "PLANNER_SYSTEM_PROMPT",
    "PLAN_RESPONSE_FORMAT",
    "WRITER_RULES",
    "WRITER_SYSTEM_PROMPT",
    "WRITE_RESPONSE_FORMAT",
]
