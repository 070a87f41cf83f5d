"""Persistent stores used by sdkgen."""

from .manifest import (
    MANIFEST_FILENAME,
    Manifest,
    SectionEntry,
    build_manifest,
    read_manifest,
    write_manifest,
)

__all__ = [
    "MANIFEST_FILENAME",
    "Manifest",
    "SectionEntry",
    "build_manifest",
    "read_manifest",
    "write_manifest",
]
