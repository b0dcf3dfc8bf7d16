"""API routes for analyst reports."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import FileResponse

from venture_analytica.dependencies import get_report_service
from venture_analytica.models.report_models import (
    AddSourceRequest,
    AgentCompletionRequest,
    AgentTriggerResponse,
    CreateReportRequest,
    CuratedContentRequest,
    ExportFormat,
    FounderAgent,
    IngestionJobResponse,
    MemoPreferences,
    NavigateRequest,
    OperationResponse,
    RenameSourceRequest,
    Report,
    ResearchRequest,
    ResearchResult,
    SelectAllRequest,
    Stage,
)
from venture_analytica.services.ingestion import IngestionJob
from venture_analytica.services.report_service import ReportService


router = APIRouter()


def _job_response(job: IngestionJob) -> IngestionJobResponse:
    return IngestionJobResponse(
        source_id=job.source_id,
        report_id=job.report_id,
        status=job.status,
        attempts=job.attempts,
        summary=job.summary,
        failure_reason=job.failure_reason,
    )


@router.post("/reports", response_model=Report, status_code=201)
def create_report(
    payload: CreateReportRequest,
    service: ReportService = Depends(get_report_service),
) -> Report:
    return service.create_report(
        payload.company_name,
        description=payload.description,
        founder_email=payload.founder_email,
        founder_phone=payload.founder_phone,
    )


@router.get("/reports", response_model=List[Report])
def list_reports(
    search: Optional[str] = Query(default=None),
    service: ReportService = Depends(get_report_service),
) -> List[Report]:
    return service.list_reports(search)


@router.get("/submissions", response_model=List[Report])
def list_submissions(
    search: Optional[str] = Query(default=None),
    service: ReportService = Depends(get_report_service),
) -> List[Report]:
    return service.list_submissions(search)


@router.post("/submissions/{submission_id}/reports", response_model=Report, status_code=201)
def create_from_submission(
    submission_id: str,
    service: ReportService = Depends(get_report_service),
) -> Report:
    return service.create_from_submission(submission_id)


@router.get("/reports/{report_id}", response_model=Report)
def get_report(
    report_id: str,
    service: ReportService = Depends(get_report_service),
) -> Report:
    return service.get_report(report_id)


@router.delete("/reports/{report_id}", response_model=OperationResponse)
def delete_report(
    report_id: str,
    service: ReportService = Depends(get_report_service),
) -> OperationResponse:
    service.delete_report(report_id)
    return OperationResponse(message="Report deleted successfully")


@router.post("/reports/{report_id}/sources", response_model=Report, status_code=201)
def add_source(
    report_id: str,
    payload: AddSourceRequest,
    background_tasks: BackgroundTasks,
    service: ReportService = Depends(get_report_service),
) -> Report:
    report, job = service.add_source(report_id, payload.type, payload.content, payload.filename)
    background_tasks.add_task(service.ingest_source, report_id, job.source_id)
    return report


@router.post("/reports/{report_id}/sources/select_all", response_model=Report)
def select_all_sources(
    report_id: str,
    payload: SelectAllRequest,
    service: ReportService = Depends(get_report_service),
) -> Report:
    return service.select_all_sources(report_id, payload.is_selected)


@router.get("/reports/{report_id}/sources/{source_id}/ingestion", response_model=IngestionJobResponse)
def get_ingestion_job(
    report_id: str,
    source_id: str,
    service: ReportService = Depends(get_report_service),
) -> IngestionJobResponse:
    return _job_response(service.get_ingestion_job(report_id, source_id))


@router.post("/reports/{report_id}/sources/{source_id}/toggle", response_model=Report)
def toggle_source(
    report_id: str,
    source_id: str,
    service: ReportService = Depends(get_report_service),
) -> Report:
    return service.toggle_source(report_id, source_id)


@router.patch("/reports/{report_id}/sources/{source_id}", response_model=Report)
def rename_source(
    report_id: str,
    source_id: str,
    payload: RenameSourceRequest,
    service: ReportService = Depends(get_report_service),
) -> Report:
    return service.rename_source(report_id, source_id, payload.name)


@router.delete("/reports/{report_id}/sources/{source_id}", response_model=Report)
def delete_source(
    report_id: str,
    source_id: str,
    service: ReportService = Depends(get_report_service),
) -> Report:
    return service.delete_source(report_id, source_id)


@router.post("/reports/{report_id}/navigate", response_model=Report)
def navigate(
    report_id: str,
    payload: NavigateRequest,
    service: ReportService = Depends(get_report_service),
) -> Report:
    return service.navigate(report_id, payload.stage)


@router.post("/reports/{report_id}/advance", response_model=Report)
def advance_stage(
    report_id: str,
    service: ReportService = Depends(get_report_service),
) -> Report:
    return service.advance_stage(report_id)


@router.post("/reports/{report_id}/memos/{stage}/generate", response_model=Report)
def request_generation(
    report_id: str,
    stage: Stage,
    service: ReportService = Depends(get_report_service),
) -> Report:
    return service.request_generation(report_id, stage)


@router.put("/reports/{report_id}/memos/{stage}/preferences", response_model=Report)
def update_preferences(
    report_id: str,
    stage: Stage,
    payload: MemoPreferences,
    service: ReportService = Depends(get_report_service),
) -> Report:
    return service.update_preferences(report_id, stage, payload)


@router.delete("/reports/{report_id}/memos/{stage}/error", response_model=Report)
def dismiss_error(
    report_id: str,
    stage: Stage,
    service: ReportService = Depends(get_report_service),
) -> Report:
    return service.dismiss_error(report_id, stage)


@router.put("/reports/{report_id}/curated_memo/content", response_model=Report)
def edit_curated_content(
    report_id: str,
    payload: CuratedContentRequest,
    service: ReportService = Depends(get_report_service),
) -> Report:
    return service.edit_curated_content(report_id, payload.content)


@router.post("/reports/{report_id}/agents/{agent}", response_model=AgentTriggerResponse)
def trigger_agent(
    report_id: str,
    agent: FounderAgent,
    background_tasks: BackgroundTasks,
    service: ReportService = Depends(get_report_service),
) -> AgentTriggerResponse:
    message, report = service.trigger_agent(report_id, agent)
    background_tasks.add_task(service.simulate_agent_completion, report_id, agent)
    return AgentTriggerResponse(message=message, report=report)


@router.post("/reports/{report_id}/agents/{agent}/complete", response_model=Report)
def complete_agent(
    report_id: str,
    agent: FounderAgent,
    payload: AgentCompletionRequest,
    service: ReportService = Depends(get_report_service),
) -> Report:
    return service.complete_agent(report_id, agent, payload.content)


@router.get("/reports/{report_id}/research/suggestions", response_model=List[str])
def suggested_queries(
    report_id: str,
    service: ReportService = Depends(get_report_service),
) -> List[str]:
    return service.suggested_queries(report_id)


@router.post("/reports/{report_id}/research", response_model=ResearchResult)
def run_research(
    report_id: str,
    payload: ResearchRequest,
    service: ReportService = Depends(get_report_service),
) -> ResearchResult:
    return service.run_research(report_id, payload.query)


@router.post("/reports/{report_id}/research/sources", response_model=Report, status_code=201)
def add_research_source(
    report_id: str,
    payload: ResearchResult,
    service: ReportService = Depends(get_report_service),
) -> Report:
    return service.add_research_source(report_id, payload)


@router.get("/reports/{report_id}/export")
def export_report(
    report_id: str,
    format: Optional[ExportFormat] = Query(default=None),
    service: ReportService = Depends(get_report_service),
) -> FileResponse:
    exported = service.export_report(report_id, format)
    return FileResponse(exported.path, media_type=exported.media_type, filename=exported.filename)
