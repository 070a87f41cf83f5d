from __future__ import annotations

from pathlib import Path

import pytest

from sdkgen.spec_index import SpecIndex, build_spec_index
from tests._fixtures.spec_builder import SpecBuilder


@pytest.fixture
def spec_builder(tmp_path: Path) -> SpecBuilder:
    """Provide a spec builder rooted at the pytest tmp_path."""
    return SpecBuilder(tmp_path)


@pytest.fixture
def petstore_index(spec_builder: SpecBuilder) -> SpecIndex:
    return build_spec_index(spec_builder.petstore())


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    path = tmp_path / "sdk"
    path.mkdir()
    return path
