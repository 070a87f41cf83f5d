"""Parse OpenAPI 3.x descriptions into a normalized, reference-resolved index."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple
from urllib.parse import unquote

import yaml

from .logging import get_logger

HTTP_METHODS: Tuple[str, ...] = ("get", "post", "put", "delete", "patch", "options", "head")
UNTAGGED = "untagged"

logger = get_logger("spec_index")


class SpecIndexError(RuntimeError):
    """Raised when an API description cannot be turned into a SpecIndex."""


@dataclass(frozen=True)
class EndpointInfo:
    """One HTTP operation on one path."""

    path: str
    method: str
    operation: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "method": self.method, "operation": self.operation}


@dataclass(frozen=True)
class SpecIndex:
    """Reference-resolved view of an API description.

    Built once per run and treated as read-only by every downstream
    component. ``paths_by_tag`` always files operations without tags under
    ``"untagged"``.
    """

    info: Dict[str, Any]
    servers: List[Dict[str, Any]] = field(default_factory=list)
    tags: List[Dict[str, Any]] = field(default_factory=list)
    security: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    paths_by_tag: Dict[str, List[EndpointInfo]] = field(default_factory=dict)
    schemas: Dict[str, Any] = field(default_factory=dict)

    @property
    def title(self) -> str:
        return str(self.info.get("title", ""))

    @property
    def version(self) -> str:
        return str(self.info.get("version", ""))

    @property
    def endpoint_count(self) -> int:
        return sum(len(endpoints) for endpoints in self.paths_by_tag.values())

    def tag_names(self) -> List[str]:
        return sorted(self.paths_by_tag)

    def endpoints_for(self, tag: str) -> List[EndpointInfo]:
        return list(self.paths_by_tag.get(tag, []))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "info": self.info,
            "servers": self.servers,
            "tags": self.tags,
            "security": self.security,
            "pathsByTag": {
                tag: [endpoint.to_dict() for endpoint in endpoints]
                for tag, endpoints in self.paths_by_tag.items()
            },
            "schemas": self.schemas,
        }


def build_spec_index(spec_path: str | Path) -> SpecIndex:
    """Load, validate and dereference an OpenAPI 3.x document."""
    path = Path(spec_path).expanduser().resolve()
    document = _load_document(path)
    _check_version(document, path)

    resolved = dereference(document, path)

    info = _as_mapping(resolved.get("info"))
    servers = [server for server in _as_list(resolved.get("servers")) if isinstance(server, dict)]
    tags = [tag for tag in _as_list(resolved.get("tags")) if isinstance(tag, dict)]

    components = _as_mapping(resolved.get("components"))
    security: Dict[str, Dict[str, Any]] = {}
    for name, scheme in _as_mapping(components.get("securitySchemes")).items():
        if isinstance(scheme, dict):
            security[str(name)] = scheme

    paths_by_tag: Dict[str, List[EndpointInfo]] = {}
    for route, path_item in _as_mapping(resolved.get("paths")).items():
        if not isinstance(path_item, dict):
            continue
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue
            endpoint = EndpointInfo(path=str(route), method=method, operation=operation)
            operation_tags = [str(tag) for tag in _as_list(operation.get("tags"))]
            for tag in operation_tags or [UNTAGGED]:
                paths_by_tag.setdefault(tag, []).append(endpoint)

    schemas: Dict[str, Any] = {}
    for name, schema in _as_mapping(components.get("schemas")).items():
        schemas[str(name)] = schema

    index = SpecIndex(
        info=info,
        servers=servers,
        tags=tags,
        security=security,
        paths_by_tag=paths_by_tag,
        schemas=schemas,
    )
    logger.debug(
        "Indexed %s: %d tags, %d endpoints, %d schemas",
        path.name,
        len(paths_by_tag),
        index.endpoint_count,
        len(schemas),
    )
    return index


def dereference(document: Mapping[str, Any], base_path: Path) -> Dict[str, Any]:
    """Return a copy of ``document`` with every ``$ref`` replaced by its target.

    Each target is materialised once and shared between all references to
    it, so a self-referencing schema becomes a finite graph with back edges
    instead of an unbounded expansion.
    """
    resolver = _RefResolver(document, base_path)
    result = resolver.resolve_document()
    if not isinstance(result, dict):  # pragma: no cover - guarded by _load_document
        raise SpecIndexError("API description root must be a mapping")
    return result


class _RefResolver:
    def __init__(self, document: Mapping[str, Any], base_path: Path) -> None:
        self._root_key = str(base_path)
        self._documents: Dict[str, Any] = {self._root_key: document}
        self._resolved: Dict[Tuple[str, str], Any] = {}
        self._following: Set[Tuple[str, str]] = set()

    def resolve_document(self) -> Any:
        return self._walk(self._documents[self._root_key], self._root_key, "")

    def _walk(self, node: Any, doc_key: str, pointer: str) -> Any:
        location = (doc_key, pointer)
        if location in self._resolved:
            return self._resolved[location]

        if isinstance(node, dict):
            ref = node.get("$ref")
            if isinstance(ref, str):
                value = self._follow(ref, doc_key)
                siblings = {key: item for key, item in node.items() if key != "$ref"}
                if siblings and isinstance(value, dict):
                    merged = dict(value)
                    for key, item in siblings.items():
                        merged[str(key)] = self._walk(item, doc_key, f"{pointer}/{_escape(str(key))}")
                    value = merged
                self._resolved[location] = value
                return value

            result: Dict[str, Any] = {}
            self._resolved[location] = result
            for key, item in node.items():
                name = str(key)
                result[name] = self._walk(item, doc_key, f"{pointer}/{_escape(name)}")
            return result

        if isinstance(node, list):
            items: List[Any] = []
            self._resolved[location] = items
            for position, item in enumerate(node):
                items.append(self._walk(item, doc_key, f"{pointer}/{position}"))
            return items

        return node

    def _follow(self, ref: str, doc_key: str) -> Any:
        target_doc, target_pointer = self._split_ref(ref, doc_key)
        target = (target_doc, target_pointer)
        if target in self._resolved:
            return self._resolved[target]
        if target in self._following:
            raise SpecIndexError(
                f"Circular $ref chain through '{ref}' cannot be dereferenced"
            )
        raw = self._lookup(target_doc, target_pointer, ref)
        self._following.add(target)
        try:
            return self._walk(raw, target_doc, target_pointer)
        finally:
            self._following.discard(target)

    def _split_ref(self, ref: str, doc_key: str) -> Tuple[str, str]:
        location, _, fragment = ref.partition("#")
        if location.startswith(("http://", "https://")):
            raise SpecIndexError(f"Remote $ref '{ref}' is not supported")
        if location:
            target_path = (Path(doc_key).parent / location).resolve()
            target_key = str(target_path)
            if target_key not in self._documents:
                self._documents[target_key] = _load_document(target_path)
        else:
            target_key = doc_key
        pointer = unquote(fragment)
        if pointer and not pointer.startswith("/"):
            raise SpecIndexError(f"Unsupported $ref fragment in '{ref}'")
        return target_key, pointer.rstrip("/")

    def _lookup(self, doc_key: str, pointer: str, ref: str) -> Any:
        node: Any = self._documents[doc_key]
        if not pointer:
            return node
        for raw_part in pointer.lstrip("/").split("/"):
            part = _unescape(raw_part)
            if isinstance(node, dict):
                if part in node:
                    node = node[part]
                    continue
                # YAML may load numeric keys such as response codes as ints.
                matched = [value for key, value in node.items() if str(key) == part]
                if not matched:
                    raise SpecIndexError(f"Cannot resolve $ref '{ref}': '{part}' not found")
                node = matched[0]
            elif isinstance(node, list):
                try:
                    node = node[int(part)]
                except (ValueError, IndexError) as exc:
                    raise SpecIndexError(f"Cannot resolve $ref '{ref}': bad index '{part}'") from exc
            else:
                raise SpecIndexError(f"Cannot resolve $ref '{ref}': '{part}' is not a container")
        return node


def _load_document(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise SpecIndexError(f"API description not found: {path}")
    if not path.is_file():
        raise SpecIndexError(f"API description is not a file: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SpecIndexError(f"Unable to read API description {path}: {exc}") from exc
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SpecIndexError(f"Failed to parse {path.name}: {exc}") from exc
    if not isinstance(loaded, dict):
        raise SpecIndexError(f"{path.name} must contain a mapping at the root")
    return loaded


def _check_version(document: Mapping[str, Any], path: Path) -> None:
    if "swagger" in document and "openapi" not in document:
        raise SpecIndexError(
            "Only OpenAPI 3.0/3.1 specs are supported. Swagger 2.0 is not supported."
        )
    version = document.get("openapi")
    if version is None:
        raise SpecIndexError(f"{path.name} is not an OpenAPI document (missing 'openapi' field)")
    if not str(version).startswith("3."):
        raise SpecIndexError(
            f"Only OpenAPI 3.0/3.1 specs are supported; {path.name} declares openapi {version}"
        )


def _escape(part: str) -> str:
    return part.replace("~", "~0").replace("/", "~1")


def _unescape(part: str) -> str:
    return part.replace("~1", "/").replace("~0", "~")


def _as_mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def find_endpoint(index: SpecIndex, path: str, method: str) -> Optional[EndpointInfo]:
    """Return the first endpoint matching ``path`` and ``method`` in any tag."""
    for endpoints in index.paths_by_tag.values():
        for endpoint in endpoints:
            if endpoint.path == path and endpoint.method == method:
                return endpoint
    return None


__all__ = [
    "EndpointInfo",
    "HTTP_METHODS",
    "SpecIndex",
    "SpecIndexError",
    "UNTAGGED",
    "build_spec_index",
    "dereference",
    "find_endpoint",
]
