"""FastAPI application entrypoint for sdkgen service mode."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import ConfigError, load_config, merge_options
from ..languages import list_languages
from ..orchestrator import GenerationReport, Orchestrator
from ..spec_index import SpecIndexError


class GenerateRequest(BaseModel):
    config_path: str = "."
    spec: Optional[str] = None
    language: Optional[str] = None
    output: Optional[str] = None
    instructions: Optional[str] = None
    model: Optional[str] = None
    force: Optional[bool] = None
    verify: Optional[bool] = None


class FailedFile(BaseModel):
    id: str
    output_path: str
    reason: str


class VerifySummary(BaseModel):
    status: str
    attempts: int
    errors: List[str]


class GenerateResponse(BaseModel):
    status: str
    output_dir: str
    generated: List[str] = []
    failed: List[FailedFile] = []
    removed: List[str] = []
    verify: Optional[VerifySummary] = None


class HealthResponse(BaseModel):
    status: str


class LanguagesResponse(BaseModel):
    languages: List[str]


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def _to_response(report: GenerationReport) -> GenerateResponse:
    verify = None
    if report.verify is not None:
        verify = VerifySummary(
            status=report.verify.status.value,
            attempts=report.verify.attempts,
            errors=[f"{e.file}:{e.line}: {e.message}" for e in report.verify.errors],
        )
    return GenerateResponse(
        status=report.status.value,
        output_dir=str(report.output_dir),
        generated=list(report.generated),
        failed=[
            FailedFile(id=f.file.id, output_path=f.file.output_path, reason=f.reason)
            for f in report.failed
        ],
        removed=list(report.removed),
        verify=verify,
    )


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing sdkgen operations."""
    app = FastAPI(title="SDKGen Service", version="1.0.0")

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/languages", response_model=LanguagesResponse)
    async def languages() -> LanguagesResponse:
        return LanguagesResponse(languages=list_languages())

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(
        payload: GenerateRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> GenerateResponse:
        def _run_generate() -> GenerationReport:
            config = merge_options(
                load_config(Path(payload.config_path)),
                spec=payload.spec,
                language=payload.language,
                output=payload.output,
                instructions=payload.instructions,
                model=payload.model,
                force=payload.force,
                verify=payload.verify,
            )
            return orchestrator.run_generate(config)

        loop = asyncio.get_running_loop()
        report = await loop.run_in_executor(None, _run_generate)
        return _to_response(report)

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(SpecIndexError)
    async def spec_error_handler(_: Any, exc: SpecIndexError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(_: Any, exc: RuntimeError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["create_app", "run_service"]
