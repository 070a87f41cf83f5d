"""Builds oracle prompts from the spec index, plan and generation context."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..engine import WriteRequest
from ..hashing import section_payload, to_plain
from ..languages.base import LanguageProfile
from ..spec_index import SpecIndex
from .constants import (
    MAX_CONTEXT_FILE_CHARS,
    PLAN_RESPONSE_FORMAT,
    PLANNER_RULES,
    PLANNER_SYSTEM_PROMPT,
    WRITE_RESPONSE_FORMAT,
    WRITER_RULES,
    WRITER_SYSTEM_PROMPT,
)


@dataclass
class PromptRequest:
    """A system prompt plus user prompt for one oracle call."""

    system: str
    prompt: str
    metadata: Dict[str, object] = field(default_factory=dict)


class PromptBuilder:
    """Assembles planning and writing prompts for one language profile."""

    def __init__(self, profile: LanguageProfile, instructions: Optional[str] = None) -> None:
        self.profile = profile
        self.instructions = (instructions or "").strip() or None

    def planning_prompt(self, index: SpecIndex, existing_paths: Sequence[str] = ()) -> PromptRequest:
        blocks = [
            self.profile.planner_instructions,
            PLANNER_RULES,
            "API summary:\n" + _dump(summarize_index(index)),
        ]
        if existing_paths:
            listing = "\n".join(f"- {path}" for path in existing_paths)
            blocks.append(
                "Existing SDK files in output directory (preserve this structure if possible):\n"
                + listing
            )
        blocks.extend(self._user_instructions())
        blocks.append(PLAN_RESPONSE_FORMAT)
        return PromptRequest(system=PLANNER_SYSTEM_PROMPT, prompt="\n\n".join(blocks))

    def writing_prompt(self, index: SpecIndex, request: WriteRequest) -> PromptRequest:
        file = request.file
        blocks = [
            self.profile.writer_instructions,
            WRITER_RULES,
            "File to write:\n" + _dump(file.model_dump(by_alias=True, exclude_none=True)),
            "Full SDK plan:\n"
            + _dump([item.model_dump(by_alias=True, exclude_none=True) for item in request.plan.files]),
            "Spec section for this file:\n" + _dump(section_payload(file, index)),
        ]

        earlier = {
            path: content
            for path, content in request.generated.items()
            if path != file.output_path
        }
        if earlier:
            blocks.append("Files generated in earlier stages:\n" + _render_files(earlier))
        if request.existing:
            existing = {item.relative_path: item.content for item in request.existing}
            blocks.append("Existing files in the output directory:\n" + _render_files(existing))

        if request.fix_errors:
            current = request.generated.get(file.output_path)
            if current is not None:
                blocks.append(f"Current content of {file.output_path}:\n{_clip(current)}")
            blocks.append(
                "The verifier reported these errors in this file. Return the corrected file:\n"
                + request.fix_errors
            )

        blocks.extend(self._user_instructions())
        blocks.append(WRITE_RESPONSE_FORMAT)
        return PromptRequest(
            system=WRITER_SYSTEM_PROMPT,
            prompt="\n\n".join(blocks),
            metadata={"file": file.id, "repair": bool(request.fix_errors)},
        )

    def _user_instructions(self) -> List[str]:
        if not self.instructions:
            return []
        return [f"User instructions:\n{self.instructions}"]


def summarize_index(index: SpecIndex) -> Dict[str, Any]:
    """Compact overview of the API used for planning."""
    tag_descriptions = {
        str(tag.get("name")): str(tag.get("description", "")) for tag in index.tags if tag.get("name")
    }
    tags = []
    for name in index.tag_names():
        endpoints = [
            {
                "method": endpoint.method.upper(),
                "path": endpoint.path,
                "operationId": endpoint.operation.get("operationId"),
                "summary": endpoint.operation.get("summary"),
            }
            for endpoint in index.endpoints_for(name)
        ]
        tags.append(
            {
                "name": name,
                "description": tag_descriptions.get(name, ""),
                "endpoints": endpoints,
            }
        )
    return to_plain(
        {
            "info": index.info,
            "servers": index.servers,
            "tags": tags,
            "schemas": sorted(index.schemas),
            "securitySchemes": {
                name: scheme.get("type") for name, scheme in sorted(index.security.items())
            },
        }
    )


def _render_files(files: Mapping[str, str]) -> str:
    parts = []
    for path in sorted(files):
        parts.append(f"--- {path} ---\n{_clip(files[path])}")
    return "\n\n".join(parts)


def _clip(content: str) -> str:
    if len(content) <= MAX_CONTEXT_FILE_CHARS:
        return content
    return content[:MAX_CONTEXT_FILE_CHARS] + "\n... (truncated)"


def _dump(value: Any) -> str:
    return json.dumps(to_plain(value), indent=2, ensure_ascii=False)


__all__ = ["PromptBuilder", "PromptRequest", "summarize_index"]
