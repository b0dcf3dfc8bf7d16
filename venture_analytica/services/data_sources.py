"""Pure operations over a report's DataSource collection.

Every function takes a :class:`Report` and returns an updated copy; the caller
decides when to persist it.
"""
from __future__ import annotations

from typing import List, Optional

from venture_analytica.models.report_models import (
    DataSource,
    Report,
    SourceStatus,
    SourceType,
)

SUMMARY_PREVIEW_CHARS = 100


class SourceNotFound(LookupError):
    def __init__(self, source_id: str) -> None:
        super().__init__(f"Data source {source_id} not found")
        self.source_id = source_id


def _with_sources(report: Report, sources: List[DataSource]) -> Report:
    return report.model_copy(update={"data_sources": sources})


def preview_summary(content: str) -> str:
    if not content:
        return ""
    return content[:SUMMARY_PREVIEW_CHARS] + "..."


def add_pending_source(
    report: Report, source_type: SourceType, content: str, filename: Optional[str] = None
) -> tuple[Report, DataSource]:
    source = DataSource(type=source_type, content=content, filename=filename)
    return _with_sources(report, [*report.data_sources, source]), source


def add_completed_source(
    report: Report,
    source_type: SourceType,
    content: str,
    filename: Optional[str] = None,
    summary: Optional[str] = None,
) -> tuple[Report, DataSource]:
    source = DataSource(
        type=source_type,
        content=content,
        filename=filename,
        summary=summary or preview_summary(content),
        status=SourceStatus.COMPLETED,
    )
    return _with_sources(report, [*report.data_sources, source]), source


def replace_source(report: Report, source: DataSource) -> Report:
    if report.find_source(source.id) is None:
        raise SourceNotFound(source.id)
    return _with_sources(
        report, [source if existing.id == source.id else existing for existing in report.data_sources]
    )


def delete_source(report: Report, source_id: str) -> Report:
    if report.find_source(source_id) is None:
        raise SourceNotFound(source_id)
    return _with_sources(report, [source for source in report.data_sources if source.id != source_id])


def toggle_select(report: Report, source_id: str) -> Report:
    source = report.find_source(source_id)
    if source is None:
        raise SourceNotFound(source_id)
    return replace_source(report, source.model_copy(update={"is_selected": not source.is_selected}))


def select_all(report: Report, is_selected: bool) -> Report:
    return _with_sources(
        report,
        [source.model_copy(update={"is_selected": is_selected}) for source in report.data_sources],
    )


def rename_source(report: Report, source_id: str, name: str) -> Report:
    source = report.find_source(source_id)
    if source is None:
        raise SourceNotFound(source_id)
    cleaned = name.strip()
    if not cleaned:
        raise ValueError("Source name cannot be blank")
    return replace_source(report, source.model_copy(update={"filename": cleaned}))


def eligible_sources(report: Report) -> List[DataSource]:
    """Sources that feed memo generation: selected and fully ingested."""

    return [source for source in report.data_sources if source.is_eligible]


def can_proceed(report: Report) -> bool:
    return any(source.is_eligible for source in report.data_sources)


def has_source_type(report: Report, source_type: SourceType) -> bool:
    return any(source.type == source_type for source in report.data_sources)
