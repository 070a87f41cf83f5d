"""Tests for the target language registry."""

from __future__ import annotations

import pytest

from sdkgen.config import ConfigError
from sdkgen.languages import get_language, list_languages


def test_registry_lists_languages() -> None:
    assert list_languages() == ["python", "typescript"]


def test_lookup_is_case_insensitive() -> None:
    assert get_language(" TypeScript ").name == "typescript"


def test_typescript_can_verify() -> None:
    profile = get_language("typescript")
    assert profile.can_verify
    assert profile.verifier is not None
    assert profile.verifier.command[:2] == ("npx", "tsc")
    assert ".ts" in profile.extensions


def test_python_has_no_verifier() -> None:
    profile = get_language("python")
    assert not profile.can_verify
    assert profile.extensions == (".py", ".toml", ".md")


def test_unknown_language_lists_alternatives() -> None:
    with pytest.raises(ConfigError, match="Available languages: python, typescript"):
        get_language("cobol")
