"""Configuration loading for sdkgen (.sdkgen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_FILENAME = ".sdkgen.yml"
DEFAULT_LANGUAGE = "typescript"
DEFAULT_OUTPUT = "./sdk"
DEFAULT_VERIFY_ATTEMPTS = 2


class ConfigError(RuntimeError):
    """Raised when the configuration is missing required values or cannot be parsed."""


@dataclass
class LLMConfig:
    """Model runtime settings from .sdkgen.yml."""

    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    request_timeout: Optional[float] = None


@dataclass
class SdkGenConfig:
    """Effective settings for one generation run."""

    root: Path
    spec: Optional[Path] = None
    language: str = DEFAULT_LANGUAGE
    output: Path = Path(DEFAULT_OUTPUT)
    instructions: Optional[str] = None
    force: bool = False
    verify: bool = True
    max_workers: Optional[int] = None
    verify_attempts: int = DEFAULT_VERIFY_ATTEMPTS
    llm: LLMConfig = field(default_factory=LLMConfig)

    def require_spec(self) -> Path:
        if self.spec is None:
            raise ConfigError(
                f"No spec file provided. Use --spec or set 'spec' in {CONFIG_FILENAME}"
            )
        return self.spec


def load_config(config_path: Path) -> SdkGenConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return SdkGenConfig(root=root, output=(root / DEFAULT_OUTPUT).resolve())

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    spec = _as_str(data.get("spec"))
    output = _as_str(data.get("output")) or DEFAULT_OUTPUT
    llm_data = _as_dict(data.get("llm"))
    llm = LLMConfig(
        model=_as_str(llm_data.get("model")) or _as_str(data.get("model")),
        base_url=_as_str(llm_data.get("base_url")),
        api_key=_as_str(llm_data.get("api_key")),
        temperature=_as_float(llm_data.get("temperature")),
        max_tokens=_as_int(llm_data.get("max_tokens")),
        request_timeout=_as_float(llm_data.get("request_timeout")),
    )

    verify_attempts = _as_int(data.get("verify_attempts"))
    if verify_attempts is not None and verify_attempts < 1:
        raise ConfigError("verify_attempts must be at least 1")

    max_workers = _as_int(data.get("max_workers"))
    if max_workers is not None and max_workers < 1:
        raise ConfigError("max_workers must be at least 1")

    return SdkGenConfig(
        root=root,
        spec=(root / spec).resolve() if spec else None,
        language=_as_str(data.get("language")) or DEFAULT_LANGUAGE,
        output=(root / output).resolve(),
        instructions=_as_str(data.get("instructions")),
        force=_as_bool(data.get("force")) or False,
        verify=_as_bool(data.get("verify")) is not False,
        max_workers=max_workers,
        verify_attempts=verify_attempts or DEFAULT_VERIFY_ATTEMPTS,
        llm=llm,
    )


def merge_options(config: SdkGenConfig, **overrides: Any) -> SdkGenConfig:
    """Apply CLI or service overrides; ``None`` values leave the config untouched."""
    updates: Dict[str, Any] = {}
    for key, value in overrides.items():
        if value is None:
            continue
        if key in {"spec", "output"}:
            updates[key] = Path(value).expanduser().resolve()
        elif key == "model":
            updates["llm"] = replace(config.llm, model=str(value))
        elif hasattr(config, key):
            updates[key] = value
        else:
            raise ConfigError(f"Unknown configuration option: {key}")
    return replace(config, **updates)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "LLMConfig",
    "SdkGenConfig",
    "load_config",
    "merge_options",
]
