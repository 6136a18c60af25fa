"""FastAPI application exposing the clone detector over HTTP."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import DetectorConfig, load_config
from ..ingest import CloneDetector, IngestResult
from ..stores import StorageFailure

NO_CLONE_DATA = "No clone data found."


class FileUpload(BaseModel):
    name: str = Field(min_length=1)
    contents: str


class FileUploadResponse(BaseModel):
    name: str
    status: str
    reason: Optional[str] = None
    clones: int = 0


class TargetModel(BaseModel):
    name: str
    start_line: int
    end_line: int


class CloneModel(BaseModel):
    source_name: str
    source_start: int
    source_end: int
    targets: List[TargetModel]
    original_code: str = ""


class ClonesResponse(BaseModel):
    clones: List[CloneModel]
    message: Optional[str] = None


class StatsResponse(BaseModel):
    files: int
    clones: int
    summary: str
    last_file: Optional[str] = None
    last_timers: Dict[str, float] = Field(default_factory=dict)


class TimersResponse(BaseModel):
    samples: List[Dict[str, Any]]
    averages: Dict[str, float]


class FilesResponse(BaseModel):
    files: List[str]


class HealthResponse(BaseModel):
    status: str


def _default_detector() -> CloneDetector:
    return CloneDetector.from_config(load_config(Path.cwd()))


def create_app(
    detector_factory: Callable[[], CloneDetector] = _default_detector,
    *,
    monitor_interval: float | None = None,
) -> FastAPI:
    """Create the FastAPI application around one shared detector instance."""

    detector = detector_factory()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if monitor_interval:
            detector.monitor.start(monitor_interval)
        try:
            yield
        finally:
            detector.monitor.stop()

    app = FastAPI(title="clonestream", version="1.0.0", lifespan=lifespan)
    app.state.detector = detector

    async def get_detector() -> CloneDetector:
        return detector

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/files", response_model=FileUploadResponse)
    async def upload_file(
        payload: FileUpload,
        detector: CloneDetector = Depends(get_detector),
    ) -> FileUploadResponse:
        def _run_ingest() -> IngestResult:
            return detector.ingest(payload.name, payload.contents)

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, _run_ingest)
        return FileUploadResponse(
            name=result.name,
            status=result.status,
            reason=result.reason,
            clones=result.clones,
        )

    @app.get("/files", response_model=FilesResponse)
    async def list_files(detector: CloneDetector = Depends(get_detector)) -> FilesResponse:
        return FilesResponse(files=detector.file_store.filenames)

    @app.get("/clones", response_model=ClonesResponse)
    async def list_clones(detector: CloneDetector = Depends(get_detector)) -> ClonesResponse:
        clones = [CloneModel(**clone.to_dict()) for clone in detector.clone_store.clones]
        if not clones:
            return ClonesResponse(clones=[], message=NO_CLONE_DATA)
        return ClonesResponse(clones=clones)

    @app.get("/stats", response_model=StatsResponse)
    async def stats(detector: CloneDetector = Depends(get_detector)) -> StatsResponse:
        return StatsResponse(
            files=detector.file_store.number_of_files,
            clones=detector.clone_store.number_of_clones,
            summary=detector.statistics(),
            last_file=detector.last_file,
            last_timers=detector.last_timers(),
        )

    @app.get("/timers", response_model=TimersResponse)
    async def timers(detector: CloneDetector = Depends(get_detector)) -> TimersResponse:
        return TimersResponse(
            samples=[asdict(sample) for sample in detector.stats.samples()],
            averages=detector.stats.averages(),
        )

    @app.get("/monitor/samples")
    async def monitor_samples(
        detector: CloneDetector = Depends(get_detector),
    ) -> List[Dict[str, Any]]:
        return detector.monitor.samples()

    @app.exception_handler(StorageFailure)
    async def storage_failure_handler(
        _: Any, exc: StorageFailure
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    return app


def run_service(config: DetectorConfig) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(
        lambda: CloneDetector.from_config(config),
        monitor_interval=config.service.monitor_interval,
    )
    uvicorn.run(app, host=config.service.host, port=config.service.port)
