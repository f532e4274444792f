"""FastAPI application entrypoint for quickwiki service mode."""

from __future__ import annotations

from typing import Any, Callable, List, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from ..errors import QuickWikiError, ScanFailure
from ..index import compose
from ..orchestrator import Orchestrator
from ..schemas import DocStructure


class GenerateRequest(BaseModel):
    path: str
    output_dir: Optional[str] = None


class PageFailureModel(BaseModel):
    page_id: str
    title: str
    reason: str


class GenerateResponse(BaseModel):
    output_dir: str
    index_path: Optional[str] = None
    pages: int
    succeeded: int
    failed: List[PageFailureModel]


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing quickwiki operations."""

    app = FastAPI(title="quickwiki", version="0.1.0")

    async def get_orchestrator() -> Orchestrator:
        # A fresh orchestrator per request keeps runs independent.
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(
        payload: GenerateRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> GenerateResponse:
        outcome = await orchestrator.run(payload.path, payload.output_dir)
        report = outcome.report
        return GenerateResponse(
            output_dir=str(outcome.output_dir),
            index_path=str(report.index_path) if report.index_path else None,
            pages=len(outcome.structure.pages),
            succeeded=report.succeeded,
            failed=[
                PageFailureModel(page_id=item.page_id, title=item.title, reason=item.reason)
                for item in report.failed
            ],
        )

    @app.post("/index", response_class=PlainTextResponse)
    async def index(structure: DocStructure) -> str:
        return compose(structure)

    @app.exception_handler(ScanFailure)
    async def scan_failure_handler(_: Any, exc: ScanFailure) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(FileNotFoundError)
    async def not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(QuickWikiError)
    async def pipeline_error_handler(_: Any, exc: QuickWikiError) -> JSONResponse:
        return JSONResponse(
            status_code=502,
            content={"detail": str(exc), "stage": exc.stage},
        )

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    uvicorn.run(create_app(), host=host, port=port)
