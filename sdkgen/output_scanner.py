"""Scan an output directory for hand-written or previously generated files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator, List

from .logging import get_logger
from .models import ExistingFile
from .stores.manifest import MANIFEST_FILENAME

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    "dist",
    "build",
}

logger = get_logger("output_scanner")


def _iter_files(root: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
        current_dir = Path(dirpath)
        for filename in filenames:
            if filename == MANIFEST_FILENAME:
                continue
            yield current_dir / filename


def scan_existing(output_dir: Path, extensions: Iterable[str]) -> List[ExistingFile]:
    """Return files under ``output_dir`` whose suffix is in ``extensions``.

    Results are sorted by POSIX relative path. A missing directory yields an
    empty list.
    """
    root = Path(output_dir).expanduser().resolve()
    if not root.is_dir():
        return []

    suffixes = {ext.lower() for ext in extensions}
    files: List[ExistingFile] = []
    for path in _iter_files(root):
        if path.suffix.lower() not in suffixes:
            continue
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Skipping unreadable file %s: %s", path, exc)
            continue
        files.append(
            ExistingFile(relative_path=path.relative_to(root).as_posix(), content=content)
        )

    files.sort(key=lambda item: item.relative_path)
    return files


__all__ = ["scan_existing"]
