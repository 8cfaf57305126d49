"""
FastAPI entrypoint for repository ingestion.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from .dependencies import require_api_key, telemetry_enabled
from .telemetry import Telemetry
from ..errors import InvalidURLError
from ..ingestion import resolve_project_name
from ..logger import get_logger
from ..services import RepositoryIngestionService, ServiceResponse
from ..settings import settings
from ..version import __version__

log = get_logger(__name__)

app = FastAPI(title="Repository Knowledge Base", version=__version__)
service = RepositoryIngestionService()
telemetry = Telemetry()


def _envelope(response: ServiceResponse) -> JSONResponse:
    return JSONResponse(status_code=int(response.code), content=response.model_dump())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    log.warning("http_error", path=request.url.path, status=exc.status_code, detail=exc.detail)
    return _envelope(ServiceResponse(code=str(exc.status_code), info=str(exc.detail)))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    log.warning("request_invalid", path=request.url.path, errors=problems)
    return _envelope(ServiceResponse(code="400", info=f"Invalid request: {problems}"))


class AnalyzeRequest(BaseModel):
    repo_url: Optional[str] = None
    token: Optional[str] = None


class TelemetryResponse(BaseModel):
    ingest: Dict[str, Any]
    recent_events: List[Dict[str, Any]]


@app.get("/healthz")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post(
    "/rag/analyze-repository",
    response_model=ServiceResponse,
    dependencies=[Depends(require_api_key)],
)
def analyze_repository(request: AnalyzeRequest) -> JSONResponse:
    start_time = time.time()
    response = service.analyze(request.repo_url, request.token)
    log.info("analyze_repository_responded", code=response.code)
    _record_ingest_telemetry(start_time, response, request.repo_url)
    return _envelope(response)


@app.get(
    "/rag/tags",
    response_model=ServiceResponse,
    dependencies=[Depends(require_api_key)],
)
def list_tags() -> JSONResponse:
    return _envelope(service.list_tags())


@app.get(
    "/telemetry",
    response_model=TelemetryResponse,
    dependencies=[Depends(require_api_key)],
)
def telemetry_snapshot(enabled: bool = Depends(telemetry_enabled)) -> TelemetryResponse:
    if not enabled:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Telemetry disabled"
        )
    return TelemetryResponse(**telemetry.snapshot())


def _project_label(repo_url: Optional[str]) -> Optional[str]:
    try:
        return resolve_project_name(repo_url or "")
    except InvalidURLError:
        return None


def _record_ingest_telemetry(
    start_time: float, response: ServiceResponse, repo_url: Optional[str]
) -> None:
    if not settings.telemetry_enabled:
        return
    metadata: Dict[str, Any] = {"project": _project_label(repo_url)}
    if not response.ok:
        metadata["error"] = response.info
    telemetry.record_ingest(
        duration_ms=(time.time() - start_time) * 1000.0,
        code=response.code,
        metadata=metadata,
    )


def run() -> None:
    """CLI entrypoint to run the FastAPI server."""
    uvicorn.run(
        "repokb.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )
