"""Tests for orphan reconciliation."""

from __future__ import annotations

from pathlib import Path

from sdkgen.reconcile import find_orphans, reconcile_orphans
from sdkgen.stores.manifest import Manifest, SectionEntry
from tests._fixtures.oracles import petstore_plan


def _manifest(**paths: str) -> Manifest:
    return Manifest(
        spec_hash="s",
        instructions_hash="i",
        sections={
            file_id: SectionEntry(
                content_hash="h", output_path=path, type="client", order=2, generated_at="t"
            )
            for file_id, path in paths.items()
        },
    )


def test_no_previous_manifest_means_no_orphans() -> None:
    assert find_orphans(None, petstore_plan()) == []


def test_orphan_is_removed(output_dir: Path) -> None:
    target = output_dir / "src/clients/legacy.ts"
    target.parent.mkdir(parents=True)
    target.write_text("// legacy\n", encoding="utf-8")
    previous = _manifest(**{"legacy-client": "src/clients/legacy.ts", "types": "src/types.ts"})

    removed = reconcile_orphans(output_dir, previous, petstore_plan())

    assert removed == ["src/clients/legacy.ts"]
    assert not target.exists()


def test_renamed_output_path_counts_as_orphan(output_dir: Path) -> None:
    old = output_dir / "src/model.ts"
    old.parent.mkdir(parents=True)
    old.write_text("x", encoding="utf-8")
    previous = _manifest(types="src/model.ts")

    assert find_orphans(previous, petstore_plan()) == [("types", "src/model.ts")]
    assert reconcile_orphans(output_dir, previous, petstore_plan()) == ["src/model.ts"]


def test_missing_orphan_file_is_ignored(output_dir: Path) -> None:
    previous = _manifest(gone="src/gone.ts")
    assert reconcile_orphans(output_dir, previous, petstore_plan()) == []


def test_paths_outside_output_are_never_removed(tmp_path: Path, output_dir: Path) -> None:
    outside = tmp_path / "keep.ts"
    outside.write_text("keep", encoding="utf-8")
    previous = _manifest(evil="../keep.ts")

    assert reconcile_orphans(output_dir, previous, petstore_plan()) == []
    assert outside.exists()


def test_files_still_planned_are_kept(output_dir: Path) -> None:
    kept = output_dir / "src/types.ts"
    kept.parent.mkdir(parents=True)
    kept.write_text("x", encoding="utf-8")
    previous = _manifest(types="src/types.ts")

    assert reconcile_orphans(output_dir, previous, petstore_plan()) == []
    assert kept.exists()
