"""Tests for the FastAPI service mode."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from sdkgen.engine import WriteFailure
from sdkgen.models import VerifyError
from sdkgen.orchestrator import GenerationReport, RunStatus
from sdkgen.service import create_app
from sdkgen.spec_index import SpecIndexError
from sdkgen.verify import VerifyReport, VerifyStatus
from tests._fixtures.oracles import make_file


class _StubOrchestrator:
    def __init__(self) -> None:
        self.configs: list = []
        self.report: GenerationReport | None = None
        self.error: Exception | None = None

    def run_generate(self, config) -> GenerationReport:
        self.configs.append(config)
        if self.error is not None:
            raise self.error
        assert self.report is not None
        return self.report


@pytest.fixture
def orchestrator() -> _StubOrchestrator:
    return _StubOrchestrator()


@pytest.fixture
def client(orchestrator: _StubOrchestrator) -> TestClient:
    return TestClient(create_app(lambda: orchestrator))


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_languages_endpoint(client: TestClient) -> None:
    response = client.get("/languages")
    assert response.json() == {"languages": ["python", "typescript"]}


def test_generate_endpoint_returns_report(
    client: TestClient, orchestrator: _StubOrchestrator, tmp_path: Path
) -> None:
    failed = WriteFailure(make_file(id="store-client", outputPath="src/clients/store.ts"), "timeout")
    orchestrator.report = GenerationReport(
        status=RunStatus.PARTIAL,
        output_dir=tmp_path / "sdk",
        generated=["types", "index"],
        failed=[failed],
        removed=["src/old.ts"],
        verify=VerifyReport(
            status=VerifyStatus.PASSED_WITH_WARNINGS,
            attempts=2,
            errors=[VerifyError("src/index.ts", 4, "bad export")],
        ),
    )

    response = client.post(
        "/generate",
        json={
            "config_path": str(tmp_path),
            "spec": str(tmp_path / "api.yaml"),
            "language": "python",
            "force": True,
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "partial"
    assert data["generated"] == ["types", "index"]
    assert data["failed"] == [
        {"id": "store-client", "output_path": "src/clients/store.ts", "reason": "timeout"}
    ]
    assert data["removed"] == ["src/old.ts"]
    assert data["verify"] == {
        "status": "passed-with-warnings",
        "attempts": 2,
        "errors": ["src/index.ts:4: bad export"],
    }
    config = orchestrator.configs[0]
    assert config.language == "python"
    assert config.force is True
    assert config.spec == (tmp_path / "api.yaml").resolve()


def test_generate_fatal_errors_map_to_400(
    client: TestClient, orchestrator: _StubOrchestrator, tmp_path: Path
) -> None:
    orchestrator.error = SpecIndexError("Only OpenAPI 3.0/3.1 specs are supported.")

    response = client.post("/generate", json={"config_path": str(tmp_path), "spec": "x.yaml"})

    assert response.status_code == 400
    assert "OpenAPI 3.0/3.1" in response.json()["detail"]


def test_generate_config_errors_map_to_400(client: TestClient, tmp_path: Path) -> None:
    (tmp_path / ".sdkgen.yml").write_text("- not a mapping\n", encoding="utf-8")

    response = client.post("/generate", json={"config_path": str(tmp_path)})

    assert response.status_code == 400
