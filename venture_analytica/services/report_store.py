"""Typed access to stored reports on top of :class:`DocumentRepository`."""
from __future__ import annotations

import threading
from typing import Callable, List, Optional

from venture_analytica.models.report_models import Report, ReportOrigin
from venture_analytica.services.firestore_repository import DocumentRepository


class ReportNotFound(LookupError):
    def __init__(self, report_id: str) -> None:
        super().__init__(f"Report {report_id} not found")
        self.report_id = report_id


class ReportStore:
    """Load, save and atomically update :class:`Report` documents.

    Route handlers run in the thread pool while ingestion and agent timers run on
    the event loop, so read-modify-write cycles go through :meth:`mutate`, which
    holds a lock for the whole cycle. Mutators must not block.
    """

    def __init__(self, repository: DocumentRepository) -> None:
        self.repository = repository
        self._lock = threading.RLock()

    def get(self, report_id: str) -> Optional[Report]:
        data = self.repository.get(report_id)
        return Report.model_validate(data) if data else None

    def require(self, report_id: str) -> Report:
        report = self.get(report_id)
        if report is None:
            raise ReportNotFound(report_id)
        return report

    def list(self, origin: Optional[ReportOrigin] = None) -> List[Report]:
        documents = self.repository.list() if origin is None else self.repository.find("origin", origin.value)
        reports = [Report.model_validate(data) for data in documents if data]
        return sorted(reports, key=lambda report: report.created_at)

    def save(self, report: Report) -> Report:
        with self._lock:
            self.repository.upsert(report.id, report.model_dump(mode="json"))
        return report

    def delete(self, report_id: str) -> None:
        with self._lock:
            self.repository.delete(report_id)

    def mutate(self, report_id: str, mutator: Callable[[Report], Report]) -> Report:
        with self._lock:
            updated = mutator(self.require(report_id))
            self.repository.upsert(report_id, updated.model_dump(mode="json"))
            return updated
