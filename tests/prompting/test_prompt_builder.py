"""Tests for planning and writing prompt construction."""

from __future__ import annotations

from sdkgen.engine import WriteRequest
from sdkgen.languages import get_language
from sdkgen.prompting.builder import PromptBuilder, summarize_index
from sdkgen.prompting.constants import MAX_CONTEXT_FILE_CHARS, PLAN_RESPONSE_FORMAT
from sdkgen.spec_index import SpecIndex
from tests._fixtures.oracles import petstore_plan


def test_summary_lists_tags_endpoints_and_schemas(petstore_index: SpecIndex) -> None:
    summary = summarize_index(petstore_index)

    assert summary["info"]["title"] == "Petstore API"
    assert [tag["name"] for tag in summary["tags"]] == ["pets", "store", "untagged"]
    pets = summary["tags"][0]
    assert pets["description"] == "Pet operations"
    assert {"method": "GET", "path": "/pets/{petId}", "operationId": "getPet", "summary": "Get a pet by id"} in pets["endpoints"]
    assert summary["schemas"] == ["CreatePetRequest", "Pet"]
    assert summary["securitySchemes"] == {"apiKey": "apiKey"}


def test_planning_prompt_omits_empty_sections(petstore_index: SpecIndex) -> None:
    request = PromptBuilder(get_language("python"), "   ").planning_prompt(petstore_index)

    assert "Existing SDK files" not in request.prompt
    assert "User instructions" not in request.prompt
    assert request.prompt.endswith(PLAN_RESPONSE_FORMAT)
    assert '"files"' in request.prompt


def test_large_context_files_are_truncated(petstore_index: SpecIndex) -> None:
    plan = petstore_plan()
    big = "x" * (MAX_CONTEXT_FILE_CHARS + 50)
    request = WriteRequest(file=plan.get("index"), plan=plan, generated={"src/types.ts": big})

    prompt = PromptBuilder(get_language("typescript")).writing_prompt(petstore_index, request).prompt

    assert "... (truncated)" in prompt
    assert big not in prompt


def test_writing_prompt_metadata_marks_repairs(petstore_index: SpecIndex) -> None:
    plan = petstore_plan()
    builder = PromptBuilder(get_language("typescript"))
    normal = builder.writing_prompt(
        petstore_index, WriteRequest(file=plan.get("types"), plan=plan, generated={})
    )
    repair = builder.writing_prompt(
        petstore_index,
        WriteRequest(file=plan.get("types"), plan=plan, generated={}, fix_errors="Line 1: x"),
    )
    assert normal.metadata == {"file": "types", "repair": False}
    assert repair.metadata == {"file": "types", "repair": True}
