import pytest

from venture_analytica.models.report_models import (
    DataSource,
    InvalidSourceTransition,
    Report,
    SourceStatus,
    SourceType,
)
from venture_analytica.services import data_sources

from conftest import completed_source


def make_report(*sources):
    return Report(title="Acme - Initial Analysis", company_name="Acme", data_sources=list(sources))


class TestStatusProgression:
    """DataSource status only moves forward."""

    def test_pending_to_processing_to_completed(self):
        source = DataSource(type=SourceType.URL, content="https://acme.example")
        processing = source.advance_status(SourceStatus.PROCESSING)
        completed = processing.advance_status(SourceStatus.COMPLETED, summary="Summary for acme...")
        assert completed.status == SourceStatus.COMPLETED
        assert completed.summary == "Summary for acme..."
        assert source.status == SourceStatus.PENDING

    @pytest.mark.parametrize("start", [SourceStatus.PENDING, SourceStatus.PROCESSING])
    def test_failure_allowed_before_completion(self, start):
        source = DataSource(type=SourceType.TEXT, content="x", status=start)
        failed = source.advance_status(SourceStatus.FAILED, failure_reason="unreadable")
        assert failed.status == SourceStatus.FAILED
        assert failed.failure_reason == "unreadable"

    @pytest.mark.parametrize(
        "start,target",
        [
            (SourceStatus.COMPLETED, SourceStatus.PROCESSING),
            (SourceStatus.COMPLETED, SourceStatus.FAILED),
            (SourceStatus.FAILED, SourceStatus.COMPLETED),
            (SourceStatus.PROCESSING, SourceStatus.PENDING),
            (SourceStatus.PENDING, SourceStatus.COMPLETED),
        ],
    )
    def test_regressions_and_skips_rejected(self, start, target):
        source = DataSource(type=SourceType.TEXT, content="x", status=start)
        with pytest.raises(InvalidSourceTransition):
            source.advance_status(target)


class TestSelection:
    """Selection and deletion mutate only what they name."""

    def test_select_all_true_and_false(self):
        report = make_report(
            completed_source(filename="a", is_selected=False),
            completed_source(filename="b"),
            DataSource(type=SourceType.URL, content="https://b.example", is_selected=False),
        )
        selected = data_sources.select_all(report, True)
        assert all(source.is_selected for source in selected.data_sources)
        cleared = data_sources.select_all(selected, False)
        assert not any(source.is_selected for source in cleared.data_sources)

    def test_toggle_flips_one_source(self):
        first, second = completed_source(filename="a"), completed_source(filename="b")
        report = data_sources.toggle_select(make_report(first, second), first.id)
        assert report.find_source(first.id).is_selected is False
        assert report.find_source(second.id).is_selected is True

    def test_toggle_unknown_source(self):
        with pytest.raises(data_sources.SourceNotFound):
            data_sources.toggle_select(make_report(), "ds-missing")

    def test_delete_keeps_order_of_others(self):
        sources = [completed_source(filename=name) for name in ("a", "b", "c", "d")]
        report = data_sources.delete_source(make_report(*sources), sources[1].id)
        assert [source.id for source in report.data_sources] == [sources[0].id, sources[2].id, sources[3].id]

    def test_rename_sets_filename_only(self):
        source = completed_source(content="original body", filename="old.txt")
        report = data_sources.rename_source(make_report(source), source.id, "  Board deck  ")
        renamed = report.find_source(source.id)
        assert renamed.filename == "Board deck"
        assert renamed.content == "original body"

    def test_rename_rejects_blank(self):
        source = completed_source()
        with pytest.raises(ValueError):
            data_sources.rename_source(make_report(source), source.id, "   ")


class TestEligibility:
    """Only selected, completed sources feed generation."""

    def test_can_proceed_with_pending_and_completed(self):
        report = make_report(
            DataSource(type=SourceType.URL, content="https://acme.example"),
            completed_source(),
        )
        assert data_sources.can_proceed(report)
        assert len(data_sources.eligible_sources(report)) == 1

    def test_cannot_proceed_when_completed_source_deselected(self):
        report = make_report(completed_source(is_selected=False))
        assert not data_sources.can_proceed(report)

    def test_completed_source_gets_preview_summary(self):
        long_text = "x" * 150
        report, source = data_sources.add_completed_source(make_report(), SourceType.RESEARCH, long_text)
        assert source.summary == "x" * 100 + "..."
        assert source.status == SourceStatus.COMPLETED
        assert report.data_sources == [source]

    def test_pending_source_added_last(self):
        existing = completed_source()
        report, source = data_sources.add_pending_source(make_report(existing), SourceType.URL, "https://x.io")
        assert [s.id for s in report.data_sources] == [existing.id, source.id]
        assert source.status == SourceStatus.PENDING
        assert source.is_selected
