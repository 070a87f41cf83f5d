"""Deterministic content hashing for spec sections and planned files."""

from __future__ import annotations

import hashlib
import json
from datetime import date, datetime
from typing import Any, Dict, List

from pydantic import BaseModel

from .models import FileDescriptor
from .spec_index import EndpointInfo, SpecIndex

_WHOLE_SPEC_TYPES = {"readme", "examples"}


def sha256(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def to_plain(value: Any) -> Any:
    """Return an acyclic, JSON-safe copy of ``value``.

    Dereferenced specs may contain back edges (self-referencing schemas). A
    back edge is emitted as ``{"$cycle": n}`` where ``n`` counts how many
    containers up the current path the edge points.
    """
    return _plain(value, [])


def _plain(value: Any, stack: List[int]) -> Any:
    if isinstance(value, SpecIndex):
        value = value.to_dict()
    elif isinstance(value, EndpointInfo):
        value = value.to_dict()
    elif isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True, exclude_none=True)

    if isinstance(value, dict):
        marker = id(value)
        if marker in stack:
            return {"$cycle": len(stack) - stack.index(marker)}
        stack.append(marker)
        try:
            return {str(key): _plain(item, stack) for key, item in value.items()}
        finally:
            stack.pop()

    if isinstance(value, (list, tuple)):
        marker = id(value)
        if marker in stack:
            return {"$cycle": len(stack) - stack.index(marker)}
        stack.append(marker)
        try:
            return [_plain(item, stack) for item in value]
        finally:
            stack.pop()

    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def canonical_json(value: Any) -> str:
    """Serialise ``value`` so equal content always yields equal text."""
    return json.dumps(
        to_plain(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def _sorted_schema_entries(index: SpecIndex) -> List[List[Any]]:
    return [[name, index.schemas[name]] for name in sorted(index.schemas)]


def compute_section_hash(file: FileDescriptor, index: SpecIndex) -> str:
    """Hash the subset of ``index`` that determines ``file``'s content.

    The file type leads the payload so two types never share a hash.
    """
    parts: List[Any] = [file.type]

    if file.type == "package-config":
        parts.append(index.info)
    elif file.type == "types":
        parts.append(_sorted_schema_entries(index))
    elif file.type == "client-base":
        parts.append(index.security)
        parts.append(index.servers)
    elif file.type == "client":
        for tag in sorted(file.related_tags or []):
            parts.append({"tag": tag, "endpoints": index.endpoints_for(tag)})
        for name in sorted(file.related_schemas or []):
            parts.append({"schema": name, "definition": index.schemas.get(name)})
    elif file.type == "index":
        parts.append(index.tag_names())
    elif file.type in _WHOLE_SPEC_TYPES:
        parts.append(index.info)
        parts.append(index.servers)
        parts.append(index.tag_names())
        parts.append(_sorted_schema_entries(index))
        parts.append(index.security)

    return sha256(canonical_json(parts))


def compute_spec_hash(index: SpecIndex) -> str:
    return sha256(canonical_json(index))


def compute_instructions_hash(instructions: str | None) -> str:
    return sha256(instructions or "")


def section_payload(file: FileDescriptor, index: SpecIndex) -> Dict[str, Any]:
    """Return the spec section a file depends on, as plain JSON-safe data."""
    payload: Dict[str, Any] = {}
    if file.type == "package-config":
        payload["info"] = index.info
    elif file.type == "types":
        payload["schemas"] = dict(_sorted_schema_entries(index))
    elif file.type == "client-base":
        payload["security"] = index.security
        payload["servers"] = index.servers
    elif file.type == "client":
        payload["endpoints"] = {
            tag: index.endpoints_for(tag) for tag in sorted(file.related_tags or [])
        }
        payload["schemas"] = {
            name: index.schemas.get(name) for name in sorted(file.related_schemas or [])
        }
    elif file.type == "index":
        payload["tags"] = index.tag_names()
    else:
        payload["info"] = index.info
        payload["servers"] = index.servers
        payload["tags"] = index.tags
        payload["endpoints"] = {tag: index.endpoints_for(tag) for tag in index.tag_names()}
        payload["schemas"] = dict(_sorted_schema_entries(index))
        payload["security"] = index.security
    return to_plain(payload)


__all__ = [
    "canonical_json",
    "compute_instructions_hash",
    "compute_section_hash",
    "compute_spec_hash",
    "section_payload",
    "sha256",
    "to_plain",
]
