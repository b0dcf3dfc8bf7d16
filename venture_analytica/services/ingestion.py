"""Background ingestion of data sources: Pending -> Processing -> Completed | Failed."""
from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

from venture_analytica.models.report_models import (
    DataSource,
    InvalidSourceTransition,
    SourceStatus,
    SourceType,
)
from venture_analytica.services.data_sources import SourceNotFound, replace_source
from venture_analytica.services.report_store import ReportNotFound, ReportStore


logger = logging.getLogger(__name__)

SOURCE_REMOVED = "Source was removed before ingestion finished"


@dataclass(frozen=True)
class IngestionResult:
    ok: bool
    summary: Optional[str] = None
    failure_reason: Optional[str] = None

    @classmethod
    def success(cls, summary: str) -> "IngestionResult":
        return cls(ok=True, summary=summary)

    @classmethod
    def failure(cls, reason: str) -> "IngestionResult":
        return cls(ok=False, failure_reason=reason)


class Summarizer(Protocol):
    def summarize(self, source: DataSource) -> IngestionResult:
        ...


class SourceSummarizer:
    """Derive a short summary for a source without calling any external service."""

    def summarize(self, source: DataSource) -> IngestionResult:
        if not source.content.strip():
            return IngestionResult.failure("Source has no content")
        if source.type == SourceType.FILE and source.content.startswith("data:"):
            header, _, payload = source.content.partition(",")
            if ";base64" in header:
                try:
                    base64.b64decode(payload, validate=True)
                except (binascii.Error, ValueError):
                    return IngestionResult.failure("File content is not valid base64")
        label = source.filename or source.content[:30]
        return IngestionResult.success(f"Summary for {label}...")


@dataclass
class IngestionJob:
    report_id: str
    source_id: str
    status: SourceStatus = SourceStatus.PENDING
    attempts: int = 0
    summary: Optional[str] = None
    failure_reason: Optional[str] = None

    @property
    def done(self) -> bool:
        return self.status in (SourceStatus.COMPLETED, SourceStatus.FAILED)


class IngestionPipeline:
    """Advance each submitted source through ingestion on fixed delays.

    Each source is handled by a single coroutine, so its transitions are strictly
    sequential. Jobs are kept in memory for polling.
    """

    def __init__(
        self,
        store: ReportStore,
        summarizer: Optional[Summarizer] = None,
        *,
        processing_delay: float = 1.0,
        completion_delay: float = 3.0,
        max_attempts: int = 2,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self.summarizer = summarizer or SourceSummarizer()
        self.processing_delay = processing_delay
        self.completion_delay = completion_delay
        self.max_attempts = max_attempts
        self._jobs: Dict[str, IngestionJob] = {}

    def submit(self, report_id: str, source_id: str) -> IngestionJob:
        job = IngestionJob(report_id=report_id, source_id=source_id)
        self._jobs[source_id] = job
        logger.info("Ingestion submitted", extra={"report_id": report_id, "source_id": source_id})
        return job

    def get_job(self, source_id: str, report_id: Optional[str] = None) -> Optional[IngestionJob]:
        """Look up a job for polling; a finished job is handed out once, then dropped."""

        job = self._jobs.get(source_id)
        if job is None or (report_id is not None and job.report_id != report_id):
            return None
        if job.done:
            del self._jobs[source_id]
        return job

    def discard(self, source_id: str) -> None:
        self._jobs.pop(source_id, None)

    def discard_report(self, report_id: str) -> None:
        for source_id in [key for key, job in self._jobs.items() if job.report_id == report_id]:
            del self._jobs[source_id]

    async def run(self, report_id: str, source_id: str) -> IngestionJob:
        job = self._jobs.get(source_id) or self.submit(report_id, source_id)

        await asyncio.sleep(self.processing_delay)
        source = await self._commit(job, SourceStatus.PROCESSING)
        if source is None:
            return job

        await asyncio.sleep(self.completion_delay)
        result = await asyncio.to_thread(self._summarize, job, source)
        if result.ok:
            await self._commit(job, SourceStatus.COMPLETED, summary=result.summary)
        else:
            await self._commit(job, SourceStatus.FAILED, failure_reason=result.failure_reason)
        return job

    def _summarize(self, job: IngestionJob, source: DataSource) -> IngestionResult:
        result = IngestionResult.failure("Ingestion was not attempted")
        while job.attempts < self.max_attempts:
            job.attempts += 1
            try:
                result = self.summarizer.summarize(source)
            except Exception as exc:
                logger.warning(
                    "Summariser raised",
                    exc_info=True,
                    extra={"source_id": job.source_id, "attempt": job.attempts},
                )
                result = IngestionResult.failure(f"Summariser error: {exc}")
            if result.ok:
                break
        return result

    async def _commit(
        self,
        job: IngestionJob,
        status: SourceStatus,
        *,
        summary: Optional[str] = None,
        failure_reason: Optional[str] = None,
    ) -> Optional[DataSource]:
        committed: Dict[str, DataSource] = {}

        def apply(report):
            source = report.find_source(job.source_id)
            if source is None:
                raise SourceNotFound(job.source_id)
            moved = source.advance_status(status, summary=summary, failure_reason=failure_reason)
            moved = moved.model_copy(update={"attempts": job.attempts})
            committed["source"] = moved
            return replace_source(report, moved)

        try:
            await asyncio.to_thread(self.store.mutate, job.report_id, apply)
        except (ReportNotFound, SourceNotFound):
            job.status = SourceStatus.FAILED
            job.failure_reason = SOURCE_REMOVED
            logger.info("Ingestion abandoned", extra={"source_id": job.source_id})
            return None
        except InvalidSourceTransition as exc:
            job.status = SourceStatus.FAILED
            job.failure_reason = str(exc)
            logger.warning("Ingestion out of order", extra={"source_id": job.source_id})
            return None

        job.status = status
        job.summary = summary
        job.failure_reason = failure_reason
        logger.info(
            "Source %s", status.value,
            extra={"report_id": job.report_id, "source_id": job.source_id, "attempts": job.attempts},
        )
        return committed["source"]
