import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from config import get_settings, setup_logging
from database import create_remote_store
from errors import SubscriberLimitError
from evidence import parse_evidence, parse_resident_metadata
from schemas import (
    DeleteResponse,
    ReportCreate,
    ReportDetailsResponse,
    ReportPatch,
    ReportResponse,
    ReportsResponse,
    SeedResponse,
)
from service import ReportService
from stream import open_event_stream

logger = logging.getLogger(__name__)

STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
}


# ---------- Models for requests ----------

class ReportStatusUpdate(BaseModel):
    status: str
    note: Optional[str] = None


# ---------- Service wiring ----------

@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "service", None) is None:
        settings = get_settings()
        app.state.service = ReportService(create_remote_store(settings), settings)
    logger.info("Report service ready")
    yield
    app.state.service.close()
    logger.info("Report service stopped")


def get_service(request: Request) -> ReportService:
    return request.app.state.service


def create_app(service: Optional[ReportService] = None) -> FastAPI:
    settings = service.settings if service else get_settings()
    setup_logging(settings)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------- Basic routes ----------
    @app.get("/")
    def root():
        return {"message": f"{settings.app_name} running"}

    @app.get("/test")
    async def test_database(service: ReportService = Depends(get_service)):
        return await service.describe_backend()

    # ---------- Report endpoints ----------
    @app.get("/api/reports", response_model=ReportsResponse)
    async def list_reports(reporterId: Optional[str] = None, service: ReportService = Depends(get_service)):
        try:
            result = await service.load_reports(reporter_id=reporterId)
        except Exception:
            logger.exception("Failed to load reports")
            failed = ReportsResponse(reports=[], source="memory", error="Failed to load reports")
            return JSONResponse(status_code=500, content=failed.model_dump())
        return ReportsResponse(reports=result.reports, source=result.source, error=result.error)

    # registered before /api/reports/{report_id} so "stream" is not taken for an id
    @app.get("/api/reports/stream")
    async def stream_reports(service: ReportService = Depends(get_service)):
        try:
            frames = await open_event_stream(service)
        except SubscriberLimitError as e:
            raise HTTPException(status_code=503, detail=e.safe_message)
        return StreamingResponse(frames, media_type="text/event-stream", headers=STREAM_HEADERS)

    @app.get("/api/reports/{report_id}", response_model=ReportDetailsResponse)
    async def get_report(report_id: str, service: ReportService = Depends(get_service)):
        report = await service.get_report(report_id)
        if report is None:
            raise HTTPException(status_code=404, detail="Report not found")
        return ReportDetailsResponse(
            report=report,
            evidence=parse_evidence(report.evidence),
            metadata=parse_resident_metadata(report.notes),
        )

    @app.post("/api/reports", status_code=201, response_model=ReportResponse)
    async def create_report(
        payload: Optional[ReportCreate] = Body(None),
        service: ReportService = Depends(get_service),
    ):
        report = await service.create_report(payload or ReportCreate())
        return ReportResponse(report=report)

    @app.put("/api/reports/{report_id}", response_model=ReportResponse)
    async def update_report(report_id: str, body: ReportPatch, service: ReportService = Depends(get_service)):
        partial = body.model_dump(exclude_unset=True)
        update_note = partial.pop("updateNote", None)
        report = await service.update_report(report_id, partial, update_note)
        if report is None:
            raise HTTPException(status_code=404, detail="Report not found")
        return ReportResponse(report=report)

    @app.patch("/api/reports/{report_id}/status", response_model=ReportResponse)
    async def update_report_status(
        report_id: str,
        body: ReportStatusUpdate,
        service: ReportService = Depends(get_service),
    ):
        report = await service.update_status(report_id, body.status, body.note)
        if report is None:
            raise HTTPException(status_code=404, detail="Report not found")
        return ReportResponse(report=report)

    @app.delete("/api/reports/{report_id}", response_model=DeleteResponse)
    async def delete_report(report_id: str, service: ReportService = Depends(get_service)):
        if not await service.delete_report(report_id):
            raise HTTPException(status_code=404, detail="Report not found")
        return DeleteResponse(id=report_id)

    # ---------- Seeding ----------
    @app.post("/api/seed", response_model=SeedResponse)
    async def seed_database(service: ReportService = Depends(get_service)):
        result = await service.seed_remote()
        return SeedResponse(
            success=result.failed == 0,
            message=f"Seeded {result.inserted} reports ({result.failed} failed).",
            reportsInserted=result.inserted,
            reportsFailed=result.failed,
            profilesSynced=result.profiles_synced,
            reporterUserId=result.reporter_id,
        )

    return app


app = create_app()
