"""High level orchestration for report workflows."""
from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, List, Optional, Tuple

from fastapi import HTTPException

from venture_analytica.models.report_models import (
    AgentStatus,
    AgentTask,
    ExportFormat,
    FounderAgent,
    FounderContact,
    MemoPreferences,
    MemoStage,
    OutputFormat,
    Report,
    ReportOrigin,
    ResearchResult,
    SourceType,
    Stage,
    new_id,
)
from venture_analytica.services import data_sources as sources_ops
from venture_analytica.services import stage_machine
from venture_analytica.services.data_sources import SourceNotFound
from venture_analytica.services.doc_builder import DocxBuilder, ExportedFile
from venture_analytica.services.founder_registration import RegistrationState, submission_sources
from venture_analytica.services.genai_client import CollaboratorError, GenerativeClient
from venture_analytica.services.ingestion import IngestionJob, IngestionPipeline
from venture_analytica.services.memo_generator import (
    NO_INVESTMENT_MEMO_PLACEHOLDER,
    NO_SOURCES_PLACEHOLDER,
    MemoGenerator,
)
from venture_analytica.services.pptx_builder import PptxBuilder
from venture_analytica.services.report_store import ReportNotFound, ReportStore
from venture_analytica.services.stage_machine import StageTransitionError


logger = logging.getLogger(__name__)

AGENT_LABELS = {
    FounderAgent.FOUNDER_VOICE: "Founder Voice interview",
    FounderAgent.BEHAVIOUR_TEST: "Founder Behaviour Test",
}
AGENT_FIELDS = {
    FounderAgent.FOUNDER_VOICE: "founder_voice",
    FounderAgent.BEHAVIOUR_TEST: "founder_behaviour_test",
}
AGENT_SOURCE_TYPES = {
    FounderAgent.FOUNDER_VOICE: SourceType.TRANSCRIPT,
    FounderAgent.BEHAVIOUR_TEST: SourceType.ASSESSMENT,
}
AGENT_SOURCE_NAMES = {
    FounderAgent.FOUNDER_VOICE: "Founder Voice Call Transcript",
    FounderAgent.BEHAVIOUR_TEST: "Founder Psychometric Assessment Results",
}

EXPORT_FORMATS = {
    OutputFormat.MARKDOWN: ExportFormat.MARKDOWN,
    OutputFormat.DOCX: ExportFormat.DOCX,
    OutputFormat.PDF: ExportFormat.PDF,
}


def _fresh_memos() -> dict:
    return {"investment_memo": MemoStage(), "curated_memo": MemoStage()}


@contextmanager
def _http_errors() -> Iterator[None]:
    """Translate domain exceptions raised by pure modules into HTTP errors."""

    try:
        yield
    except (ReportNotFound, SourceNotFound) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except StageTransitionError as exc:
        raise HTTPException(status_code=409, detail=exc.reason) from exc


class ReportService:
    def __init__(
        self,
        store: ReportStore,
        ingestion: IngestionPipeline,
        memo_generator: MemoGenerator,
        client: GenerativeClient,
        doc_builder: DocxBuilder,
        pptx_builder: PptxBuilder,
        *,
        founder_voice_delay: float = 8.0,
        behaviour_test_delay: float = 10.0,
    ) -> None:
        self.store = store
        self.ingestion = ingestion
        self.memo_generator = memo_generator
        self.client = client
        self.doc_builder = doc_builder
        self.pptx_builder = pptx_builder
        self.agent_delays = {
            FounderAgent.FOUNDER_VOICE: founder_voice_delay,
            FounderAgent.BEHAVIOUR_TEST: behaviour_test_delay,
        }

    # Reports

    def create_report(
        self,
        company_name: str,
        description: str = "",
        founder_email: str = "",
        founder_phone: str = "",
    ) -> Report:
        company_name = company_name.strip()
        if not company_name:
            raise HTTPException(status_code=422, detail={"company_name": "Company Name is required."})
        report = Report(
            title=f"{company_name} - Initial Analysis",
            company_name=company_name,
            description=description.strip(),
            founder=FounderContact(email=founder_email.strip(), phone=founder_phone.strip()),
        )
        if report.description:
            report, _ = sources_ops.add_completed_source(
                report, SourceType.TEXT, report.description, filename="Company Description"
            )
        self.store.save(report)
        logger.info("Report created", extra={"report_id": report.id, "company": company_name})
        return report

    def list_reports(self, search: Optional[str] = None) -> List[Report]:
        term = (search or "").strip().lower()
        return [
            report
            for report in self.store.list(ReportOrigin.ANALYST)
            if not term or term in report.title.lower() or term in report.company_name.lower()
        ]

    def list_submissions(self, search: Optional[str] = None) -> List[Report]:
        term = (search or "").strip().lower()
        return [
            report
            for report in self.store.list(ReportOrigin.FOUNDER_SUBMISSION)
            if not term or term in report.company_name.lower()
        ]

    def get_report(self, report_id: str) -> Report:
        report = self.store.get(report_id)
        if report is None:
            raise HTTPException(status_code=404, detail="Report not found")
        return report

    def delete_report(self, report_id: str) -> None:
        self.get_report(report_id)
        self.store.delete(report_id)
        self.ingestion.discard_report(report_id)
        logger.info("Report deleted", extra={"report_id": report_id})

    def create_from_submission(self, submission_id: str) -> Report:
        source = self.get_report(submission_id)
        if source.origin != ReportOrigin.FOUNDER_SUBMISSION:
            raise HTTPException(status_code=409, detail="Report is not a founder submission")
        copy = Report.model_validate(source.model_dump())
        report = copy.model_copy(
            update={
                "id": new_id("rep"),
                "title": f"{source.company_name} - Analyst Report",
                "created_at": datetime.utcnow(),
                "origin": ReportOrigin.ANALYST,
                "current_stage": Stage.DATA_COLLECTION,
                **_fresh_memos(),
            }
        )
        self.store.save(report)
        logger.info(
            "Analyst report created from submission",
            extra={"report_id": report.id, "submission_id": submission_id},
        )
        return report

    def submit_registration(self, state: RegistrationState) -> Report:
        report = Report(
            title=f"{state.company_name} - Founder Submission",
            company_name=state.company_name,
            description=state.description,
            founder=FounderContact(name="Founder", email=state.founder_email, phone=state.founder_phone),
            origin=ReportOrigin.FOUNDER_SUBMISSION,
            data_sources=submission_sources(state),
            founder_voice=AgentTask(
                status=AgentStatus.COMPLETED if state.transcript is not None else AgentStatus.IDLE
            ),
            founder_behaviour_test=AgentTask(status=AgentStatus.COMPLETED),
        )
        self.store.save(report)
        logger.info(
            "Founder submission received",
            extra={"report_id": report.id, "registration_id": state.id, "sources": len(report.data_sources)},
        )
        return report

    # Data sources

    def _mutate(self, report_id: str, mutator: Callable[[Report], Report]) -> Report:
        with _http_errors():
            try:
                return self.store.mutate(report_id, mutator)
            except ValueError as exc:
                raise HTTPException(status_code=422, detail=str(exc)) from exc

    def add_source(
        self, report_id: str, source_type: SourceType, content: str, filename: Optional[str] = None
    ) -> Tuple[Report, IngestionJob]:
        added: dict = {}

        def apply(report: Report) -> Report:
            updated, source = sources_ops.add_pending_source(report, source_type, content, filename)
            added["source"] = source
            return updated

        report = self._mutate(report_id, apply)
        job = self.ingestion.submit(report_id, added["source"].id)
        return report, job

    async def ingest_source(self, report_id: str, source_id: str) -> IngestionJob:
        return await self.ingestion.run(report_id, source_id)

    def get_ingestion_job(self, report_id: str, source_id: str) -> IngestionJob:
        job = self.ingestion.get_job(source_id, report_id)
        if job is None:
            raise HTTPException(status_code=404, detail="Ingestion job not found")
        return job

    def delete_source(self, report_id: str, source_id: str) -> Report:
        report = self._mutate(report_id, lambda report: sources_ops.delete_source(report, source_id))
        self.ingestion.discard(source_id)
        return report

    def toggle_source(self, report_id: str, source_id: str) -> Report:
        return self._mutate(report_id, lambda report: sources_ops.toggle_select(report, source_id))

    def select_all_sources(self, report_id: str, is_selected: bool) -> Report:
        return self._mutate(report_id, lambda report: sources_ops.select_all(report, is_selected))

    def rename_source(self, report_id: str, source_id: str, name: str) -> Report:
        return self._mutate(report_id, lambda report: sources_ops.rename_source(report, source_id, name))

    # Stages and memos

    def navigate(self, report_id: str, stage: Stage) -> Report:
        navigation: dict = {}

        def apply(report: Report) -> Report:
            result = stage_machine.navigate_to(report, stage)
            navigation["effect"] = result.effect
            return result.report

        report = self._mutate(report_id, apply)
        logger.info("Stage changed", extra={"report_id": report_id, "stage": int(report.current_stage)})
        if navigation["effect"] is not None:
            report = self.request_generation(report_id, navigation["effect"])
        return report

    def advance_stage(self, report_id: str) -> Report:
        report = self.get_report(report_id)
        if report.current_stage == Stage.CURATED_MEMO:
            raise HTTPException(status_code=409, detail="Report is already at the final stage.")
        return self.navigate(report_id, Stage(report.current_stage + 1))

    def request_generation(self, report_id: str, stage: Stage) -> Report:
        """Draft the memo for ``stage``; failures are parked on the stage record."""

        if stage == Stage.DATA_COLLECTION:
            raise HTTPException(status_code=422, detail="Data collection has no memo to generate")

        prompt: dict = {}

        def start(report: Report) -> Report:
            memo = report.memo_for(stage)
            if memo.status == AgentStatus.PENDING:
                raise HTTPException(status_code=409, detail="Generation already in progress")
            placeholder = self._placeholder(report, stage)
            if placeholder is not None:
                return report.with_memo(
                    stage,
                    memo.model_copy(update={"status": AgentStatus.IDLE, "content": placeholder, "error": None}),
                )
            prompt["text"] = self._build_prompt(report, stage)
            return report.with_memo(stage, memo.model_copy(update={"status": AgentStatus.PENDING, "error": None}))

        report = self._mutate(report_id, start)
        if "text" not in prompt:
            logger.info("Generation skipped, preconditions unmet", extra={"report_id": report_id, "stage": int(stage)})
            return report

        logger.info("Generation started", extra={"report_id": report_id, "stage": int(stage)})
        try:
            content, generated_at = self.memo_generator.generate(prompt["text"])
        except CollaboratorError as exc:
            logger.warning("Generation failed", extra={"report_id": report_id, "stage": int(stage)})
            update = {"status": AgentStatus.IDLE, "error": f"Failed to generate memo. {exc}"}
        except Exception:
            logger.exception("Generation raised unexpectedly", extra={"report_id": report_id, "stage": int(stage)})
            update = {"status": AgentStatus.IDLE, "error": "Failed to generate memo. Please try again."}
        else:
            logger.info("Generation completed", extra={"report_id": report_id, "stage": int(stage)})
            update = {
                "status": AgentStatus.COMPLETED,
                "content": content,
                "generated_at": generated_at,
                "error": None,
            }

        def finish(report: Report) -> Report:
            memo = report.memo_for(stage)
            return report.with_memo(stage, memo.model_copy(update=update))

        return self._mutate(report_id, finish)

    def _placeholder(self, report: Report, stage: Stage) -> Optional[str]:
        if stage == Stage.INVESTMENT_MEMO and not sources_ops.can_proceed(report):
            return NO_SOURCES_PLACEHOLDER
        if stage == Stage.CURATED_MEMO and not report.investment_memo.is_completed:
            return NO_INVESTMENT_MEMO_PLACEHOLDER
        return None

    def _build_prompt(self, report: Report, stage: Stage) -> str:
        if stage == Stage.INVESTMENT_MEMO:
            return self.memo_generator.build_investment_prompt(
                report, sources_ops.eligible_sources(report)
            )
        return self.memo_generator.build_curated_prompt(report, report.investment_memo.content)

    def update_preferences(self, report_id: str, stage: Stage, preferences: MemoPreferences) -> Report:
        if stage == Stage.DATA_COLLECTION:
            raise HTTPException(status_code=422, detail="Data collection has no memo preferences")

        def apply(report: Report) -> Report:
            return report.with_memo(
                stage,
                report.memo_for(stage).model_copy(
                    update={
                        "preferences": preferences,
                        "content": "",
                        "status": AgentStatus.IDLE,
                        "error": None,
                        "generated_at": None,
                    }
                ),
            )

        report = self._mutate(report_id, apply)
        logger.info("Memo preferences updated", extra={"report_id": report_id, "stage": int(stage)})
        if report.current_stage == stage:
            report = self.request_generation(report_id, stage)
        return report

    def dismiss_error(self, report_id: str, stage: Stage) -> Report:
        if stage == Stage.DATA_COLLECTION:
            raise HTTPException(status_code=422, detail="Data collection has no memo")
        return self._mutate(
            report_id,
            lambda report: report.with_memo(stage, report.memo_for(stage).model_copy(update={"error": None})),
        )

    def edit_curated_content(self, report_id: str, content: str) -> Report:
        def apply(report: Report) -> Report:
            memo = report.curated_memo
            if not memo.is_completed:
                raise HTTPException(status_code=409, detail="Curated memo has not been generated yet")
            if not content.strip():
                raise HTTPException(status_code=422, detail="Curated memo content cannot be empty")
            return report.with_memo(Stage.CURATED_MEMO, memo.model_copy(update={"content": content}))

        return self._mutate(report_id, apply)

    # Founder agents

    def trigger_agent(self, report_id: str, agent: FounderAgent) -> Tuple[str, Report]:
        field = AGENT_FIELDS[agent]

        def apply(report: Report) -> Report:
            task: AgentTask = getattr(report, field)
            if not report.founder.email:
                raise HTTPException(status_code=409, detail="Founder email is required to trigger this agent")
            if task.status != AgentStatus.IDLE:
                raise HTTPException(status_code=409, detail=f"Agent is already {task.status.value}")
            if sources_ops.has_source_type(report, AGENT_SOURCE_TYPES[agent]):
                raise HTTPException(status_code=409, detail="Report already has results for this agent")
            triggered = AgentTask(status=AgentStatus.PENDING, last_triggered=datetime.utcnow())
            return report.model_copy(update={field: triggered})

        report = self._mutate(report_id, apply)
        logger.info("Founder agent triggered", extra={"report_id": report_id, "agent": agent.value})
        message = f"Email sent to {report.founder.email} prompting them to complete the {AGENT_LABELS[agent]}."
        return message, report

    async def simulate_agent_completion(
        self, report_id: str, agent: FounderAgent, delay: Optional[float] = None
    ) -> None:
        await asyncio.sleep(self.agent_delays[agent] if delay is None else delay)
        try:
            await asyncio.to_thread(self.complete_agent, report_id, agent)
        except HTTPException as exc:
            logger.info(
                "Simulated agent completion dropped",
                extra={"report_id": report_id, "agent": agent.value, "reason": exc.detail},
            )

    def complete_agent(self, report_id: str, agent: FounderAgent, content: Optional[str] = None) -> Report:
        field = AGENT_FIELDS[agent]
        name = AGENT_SOURCE_NAMES[agent]
        completed: dict = {}

        def apply(report: Report) -> Report:
            task: AgentTask = getattr(report, field)
            if task.status != AgentStatus.PENDING:
                return report
            completed["done"] = True
            updated = report.model_copy(update={field: task.model_copy(update={"status": AgentStatus.COMPLETED})})
            updated, _ = sources_ops.add_completed_source(
                updated, AGENT_SOURCE_TYPES[agent], content or f"{name} (Completed)", filename=name
            )
            return updated

        report = self._mutate(report_id, apply)
        if completed:
            logger.info("Founder agent completed", extra={"report_id": report_id, "agent": agent.value})
        return report

    # Deep research

    def suggested_queries(self, report_id: str) -> List[str]:
        report = self.get_report(report_id)
        description = report.description or report.company_name
        parts = description.split(" for ")
        sector = parts[1] if len(parts) > 1 and parts[1] else "sector"
        return [
            f"What is the market size (TAM, SAM, SOM) for {description}?",
            f"Who are the main competitors for {report.company_name}?",
            f"Recent news and funding rounds related to {report.company_name}.",
            f"Key technology trends in the {sector}.",
        ]

    def run_research(self, report_id: str, query: str) -> ResearchResult:
        self.get_report(report_id)
        query = query.strip()
        if not query:
            raise HTTPException(status_code=422, detail={"query": "Query is required."})
        try:
            result = self.client.generate_text(query, use_search=True)
        except CollaboratorError as exc:
            logger.warning("Research failed", extra={"report_id": report_id})
            raise HTTPException(status_code=502, detail=f"Failed to perform research. {exc}") from exc
        return ResearchResult(query=query, text=result.text, sources=result.sources)

    def add_research_source(self, report_id: str, result: ResearchResult) -> Report:
        query = result.query.strip()
        if not query or not result.text.strip():
            raise HTTPException(status_code=422, detail="Research result must include a query and text")

        def apply(report: Report) -> Report:
            updated, _ = sources_ops.add_completed_source(
                report,
                SourceType.RESEARCH,
                f"Query: {query}\n\nResult:\n{result.text}",
                filename=f"Research: {query[:40]}...",
            )
            return updated

        return self._mutate(report_id, apply)

    # Export

    def export_report(self, report_id: str, fmt: Optional[ExportFormat] = None) -> ExportedFile:
        report = self.get_report(report_id)
        content = report.curated_memo.content if report.curated_memo.is_completed else ""
        if not content and report.investment_memo.is_completed:
            content = report.investment_memo.content
        if not content:
            raise HTTPException(status_code=409, detail="No generated memo to export")

        fmt = fmt or EXPORT_FORMATS[report.curated_memo.preferences.format]
        logger.info("Exporting memo", extra={"report_id": report_id, "format": fmt.value})
        if fmt == ExportFormat.MARKDOWN:
            return self.doc_builder.build_markdown(report.id, report.company_name, content)
        if fmt == ExportFormat.DOCX:
            return self.doc_builder.build_docx(report.id, report.company_name, content)
        if fmt == ExportFormat.PDF:
            return self.doc_builder.build_pdf(report.id, report.company_name, content)
        return self.pptx_builder.build(report.id, report.company_name, content)
