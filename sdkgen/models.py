"""Core data models shared across sdkgen components."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

FileType = Literal[
    "package-config",
    "types",
    "client-base",
    "client",
    "index",
    "readme",
    "examples",
]

class FileDescriptor(BaseModel):
    """A single planned output file and the spec sections it depends on."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(min_length=1)
    output_path: str = Field(alias="outputPath", min_length=1)
    type: FileType
    description: str = ""
    related_tags: Optional[List[str]] = Field(default=None, alias="relatedTags")
    related_schemas: Optional[List[str]] = Field(default=None, alias="relatedSchemas")
    order: int = Field(ge=0)

    @field_validator("output_path")
    @classmethod
    def _check_relative(cls, value: str) -> str:
        cleaned = value.replace("\\", "/").strip()
        if cleaned.startswith("./"):
            cleaned = cleaned[2:]
        path = PurePosixPath(cleaned)
        if path.is_absolute() or ".." in path.parts or not path.parts:
            raise ValueError(f"outputPath must be relative to the output root: {value!r}")
        return path.as_posix()


class Plan(BaseModel):
    """Ordered set of file descriptors produced by the planning oracle."""

    files: List[FileDescriptor]

    @model_validator(mode="after")
    def _check_unique(self) -> "Plan":
        seen_ids: set[str] = set()
        seen_paths: set[str] = set()
        for file in self.files:
            if file.id in seen_ids:
                raise ValueError(f"duplicate file id in plan: {file.id}")
            if file.output_path in seen_paths:
                raise ValueError(f"duplicate outputPath in plan: {file.output_path}")
            seen_ids.add(file.id)
            seen_paths.add(file.output_path)
        return self

    def get(self, file_id: str) -> Optional[FileDescriptor]:
        for file in self.files:
            if file.id == file_id:
                return file
        return None

    def output_paths(self) -> set[str]:
        return {file.output_path for file in self.files}


class FileOutput(BaseModel):
    """Response shape expected from the writing oracle."""

    code: str


def group_by_order(files: List[FileDescriptor]) -> List[Tuple[int, List[FileDescriptor]]]:
    groups: Dict[int, List[FileDescriptor]] = {}
    for file in files:
        groups.setdefault(file.order, []).append(file)
    return [(order, groups[order]) for order in sorted(groups)]


@dataclass(frozen=True)
class VerifyError:
    """A single diagnostic reported by a language verifier."""

    file: str
    line: int
    message: str


@dataclass(frozen=True)
class ExistingFile:
    """A file already present in the output directory."""

    relative_path: str
    content: str
