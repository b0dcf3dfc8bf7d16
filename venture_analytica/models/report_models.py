"""Pydantic models representing the Report document and its API payloads."""
from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum, IntEnum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class SourceType(str, Enum):
    URL = "url"
    FILE = "file"
    TEXT = "text"
    YOUTUBE = "youtube"
    IMAGE = "image"
    TRANSCRIPT = "transcript"
    ASSESSMENT = "assessment"
    RESEARCH = "research"


class SourceStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    FAILED = "Failed"


# Allowed forward moves; anything else is a regression.
SOURCE_TRANSITIONS: Dict[SourceStatus, tuple] = {
    SourceStatus.PENDING: (SourceStatus.PROCESSING, SourceStatus.FAILED),
    SourceStatus.PROCESSING: (SourceStatus.COMPLETED, SourceStatus.FAILED),
    SourceStatus.COMPLETED: (),
    SourceStatus.FAILED: (),
}


class InvalidSourceTransition(ValueError):
    """Raised when a DataSource status would move backwards or skip a step."""


class AgentStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMPLETED = "completed"


class FounderAgent(str, Enum):
    FOUNDER_VOICE = "founder_voice"
    BEHAVIOUR_TEST = "behaviour_test"


class ExportFormat(str, Enum):
    MARKDOWN = "markdown"
    DOCX = "docx"
    PDF = "pdf"
    PPTX = "pptx"


class Stage(IntEnum):
    DATA_COLLECTION = 0
    INVESTMENT_MEMO = 1
    CURATED_MEMO = 2


class ReportOrigin(str, Enum):
    ANALYST = "analyst"
    FOUNDER_SUBMISSION = "founder_submission"


class Tone(str, Enum):
    FORMAL = "Formal"
    BALANCED = "Balanced"
    BULLISH = "Bullish"


class MemoLength(str, Enum):
    CONCISE = "Concise"
    STANDARD = "Standard"
    DETAILED = "Detailed"


class Audience(str, Enum):
    INTERNAL = "Internal"
    LP = "LP"
    EXTERNAL = "External"


class OutputFormat(str, Enum):
    MARKDOWN = "Markdown"
    PDF = "PDF"
    DOCX = "DOCX"


class DataSource(BaseModel):
    """One piece of ingested evidence attached to a report."""

    id: str = Field(default_factory=lambda: new_id("ds"))
    type: SourceType
    content: str
    filename: Optional[str] = None
    summary: Optional[str] = None
    status: SourceStatus = SourceStatus.PENDING
    is_selected: bool = True
    failure_reason: Optional[str] = None
    attempts: int = 0

    @property
    def display_name(self) -> str:
        return self.filename or self.content

    @property
    def is_eligible(self) -> bool:
        return self.is_selected and self.status == SourceStatus.COMPLETED

    def advance_status(
        self,
        status: SourceStatus,
        *,
        summary: Optional[str] = None,
        failure_reason: Optional[str] = None,
    ) -> "DataSource":
        """Return a copy moved to ``status``; regressions raise."""

        if status not in SOURCE_TRANSITIONS[self.status]:
            raise InvalidSourceTransition(
                f"Cannot move source {self.id} from {self.status.value} to {status.value}"
            )
        update: Dict[str, object] = {"status": status}
        if summary is not None:
            update["summary"] = summary
        if failure_reason is not None:
            update["failure_reason"] = failure_reason
        return self.model_copy(update=update)


class FounderContact(BaseModel):
    name: str = "Founder Name"
    email: str = ""
    phone: str = ""


class AgentTask(BaseModel):
    """An email-triggered founder action that completes asynchronously."""

    status: AgentStatus = AgentStatus.IDLE
    last_triggered: Optional[datetime] = None


class MemoSection(BaseModel):
    name: str
    weight: int = Field(default=15, ge=0, le=25)
    enabled: bool = True


DEFAULT_MEMO_SECTIONS: List[tuple] = [
    ("Executive Summary", 25, True),
    ("Objective of the Memo", 15, True),
    ("Problem Statement", 20, True),
    ("Solution Description", 20, True),
    ("Business Overview (Model, Plan, Product-Market Fit)", 18, True),
    ("Market Analysis (TAM, SAM, SOM, Trends)", 22, True),
    ("Competitive Landscape (Competitors, SWOT, Differentiation)", 20, True),
    ("Product Development Status (Roadmap, Milestones)", 15, True),
    ("Sales & Distribution (GTM Strategy, CAC, LTV)", 15, True),
    ("Key Metrics & Financials (Growth, Projections, Burn Rate)", 18, True),
    ("Management Team (Founders, Executives, Advisors)", 22, True),
    ("Investment Thesis", 25, True),
    ("Strategic Fit", 12, True),
    ("Risks and Mitigation", 16, True),
    ("Valuation and Deal Structure", 10, True),
    ("Exit Strategies", 10, True),
    ("Screening Report (Red Flags, Green Flags, AI Confidence)", 25, True),
    # Summary field, not generated as prose.
    ("Investment Score", 0, False),
]


def default_sections() -> List[MemoSection]:
    return [MemoSection(name=name, weight=weight, enabled=enabled) for name, weight, enabled in DEFAULT_MEMO_SECTIONS]


class MemoPreferences(BaseModel):
    """Tone, length and section weighting applied when drafting a memo."""

    tone: Tone = Tone.BALANCED
    length: MemoLength = MemoLength.STANDARD
    custom_instructions: str = ""
    sections: List[MemoSection] = Field(default_factory=default_sections)
    audience: Audience = Audience.INTERNAL
    format: OutputFormat = OutputFormat.MARKDOWN

    @field_validator("sections")
    @classmethod
    def _unique_section_names(cls, sections: List[MemoSection]) -> List[MemoSection]:
        names = [section.name for section in sections]
        if len(names) != len(set(names)):
            raise ValueError("section names must be unique")
        return sections

    @property
    def enabled_sections(self) -> List[MemoSection]:
        return [section for section in self.sections if section.enabled]


class MemoStage(BaseModel):
    status: AgentStatus = AgentStatus.IDLE
    content: str = ""
    preferences: MemoPreferences = Field(default_factory=MemoPreferences)
    error: Optional[str] = None
    generated_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.status == AgentStatus.COMPLETED and bool(self.content)


class Report(BaseModel):
    id: str = Field(default_factory=lambda: new_id("rep"))
    title: str
    company_name: str
    description: str = ""
    founder: FounderContact = Field(default_factory=FounderContact)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    origin: ReportOrigin = ReportOrigin.ANALYST
    current_stage: Stage = Stage.DATA_COLLECTION
    data_sources: List[DataSource] = Field(default_factory=list)
    founder_voice: AgentTask = Field(default_factory=AgentTask)
    founder_behaviour_test: AgentTask = Field(default_factory=AgentTask)
    investment_memo: MemoStage = Field(default_factory=MemoStage)
    curated_memo: MemoStage = Field(default_factory=MemoStage)

    def memo_for(self, stage: Stage) -> MemoStage:
        if stage == Stage.INVESTMENT_MEMO:
            return self.investment_memo
        if stage == Stage.CURATED_MEMO:
            return self.curated_memo
        raise ValueError(f"Stage {stage!r} has no memo")

    def with_memo(self, stage: Stage, memo: MemoStage) -> "Report":
        field = "investment_memo" if stage == Stage.INVESTMENT_MEMO else "curated_memo"
        if stage == Stage.DATA_COLLECTION:
            raise ValueError("Data collection has no memo")
        return self.model_copy(update={field: memo})

    def find_source(self, source_id: str) -> Optional[DataSource]:
        for source in self.data_sources:
            if source.id == source_id:
                return source
        return None


class CreateReportRequest(BaseModel):
    company_name: str = Field(min_length=1)
    description: str = ""
    founder_email: str = ""
    founder_phone: str = ""


class AddSourceRequest(BaseModel):
    """Manual source added by the analyst; enters the ingestion pipeline."""

    type: SourceType
    content: str = Field(min_length=1)
    filename: Optional[str] = None


class RenameSourceRequest(BaseModel):
    name: str


class SelectAllRequest(BaseModel):
    is_selected: bool


class NavigateRequest(BaseModel):
    stage: Stage


class CuratedContentRequest(BaseModel):
    content: str


class ResearchRequest(BaseModel):
    query: str


class ResearchCitation(BaseModel):
    title: Optional[str] = None
    uri: Optional[str] = None


class ResearchResult(BaseModel):
    query: str
    text: str
    sources: List[ResearchCitation] = Field(default_factory=list)


class AgentCompletionRequest(BaseModel):
    content: Optional[str] = None


class AgentTriggerResponse(BaseModel):
    message: str
    report: Report


class IngestionJobResponse(BaseModel):
    source_id: str
    report_id: str
    status: SourceStatus
    attempts: int = 0
    summary: Optional[str] = None
    failure_reason: Optional[str] = None


class OperationResponse(BaseModel):
    message: str
