"""Remove outputs whose plan entries disappeared since the previous run."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

from .logging import get_logger
from .models import Plan
from .stores.manifest import Manifest

logger = get_logger("reconcile")


def find_orphans(previous: Optional[Manifest], plan: Plan) -> List[Tuple[str, str]]:
    """Return ``(id, output_path)`` for cached files the plan no longer declares."""
    if previous is None:
        return []
    current_paths = plan.output_paths()
    return [
        (file_id, entry.output_path)
        for file_id, entry in previous.sections.items()
        if entry.output_path not in current_paths
    ]


def reconcile_orphans(output_dir: Path, previous: Optional[Manifest], plan: Plan) -> List[str]:
    """Delete orphaned outputs and return the paths actually removed.

    Missing files and filesystem errors are ignored.
    """
    root = Path(output_dir).resolve()
    removed: List[str] = []
    for file_id, output_path in find_orphans(previous, plan):
        target = (root / output_path).resolve()
        if not target.is_relative_to(root) or target == root:
            logger.warning("Skipping orphan outside the output directory: %s", output_path)
            continue
        try:
            target.unlink()
        except OSError as exc:
            logger.debug("Could not remove orphan %s: %s", output_path, exc)
            continue
        removed.append(output_path)
        logger.info('Removed orphan: %s (file "%s" no longer in plan)', output_path, file_id)
    return removed


__all__ = ["find_orphans", "reconcile_orphans"]
