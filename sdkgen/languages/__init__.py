"""Target language registry."""

from __future__ import annotations

from typing import Dict, List

from ..config import ConfigError
from .base import LanguageProfile, VerifierSpec
from .python import python
from .typescript import parse_tsc_errors, typescript

_LANGUAGES: Dict[str, LanguageProfile] = {
    typescript.name: typescript,
    python.name: python,
}


def get_language(name: str) -> LanguageProfile:
    profile = _LANGUAGES.get(name.strip().lower())
    if profile is None:
        available = ", ".join(list_languages())
        raise ConfigError(f'Unknown language: "{name}". Available languages: {available}')
    return profile


def list_languages() -> List[str]:
    return sorted(_LANGUAGES)


__all__ = [
    "LanguageProfile",
    "VerifierSpec",
    "get_language",
    "list_languages",
    "parse_tsc_errors",
]
