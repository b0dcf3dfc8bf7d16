import asyncio
import threading

from venture_analytica.models.report_models import DataSource, Report, SourceStatus, SourceType
from venture_analytica.services import data_sources
from venture_analytica.services.ingestion import (
    SOURCE_REMOVED,
    IngestionPipeline,
    IngestionResult,
    SourceSummarizer,
)


def seed(store, source_type=SourceType.TEXT, content="Board meeting notes", filename="notes.txt"):
    report = Report(title="Acme - Initial Analysis", company_name="Acme")
    report, source = data_sources.add_pending_source(report, source_type, content, filename)
    store.save(report)
    return report, source


class TestSourceSummarizer:
    """Default summariser derives a summary locally."""

    def test_uses_filename(self):
        result = SourceSummarizer().summarize(
            DataSource(type=SourceType.FILE, content="abc", filename="deck.pdf")
        )
        assert result.ok
        assert result.summary == "Summary for deck.pdf..."

    def test_falls_back_to_content_prefix(self):
        content = "https://acme.example/about-us/our-team/leadership"
        result = SourceSummarizer().summarize(DataSource(type=SourceType.URL, content=content))
        assert result.summary == f"Summary for {content[:30]}..."

    def test_rejects_bad_base64(self):
        source = DataSource(
            type=SourceType.FILE, content="data:application/pdf;base64,@@@not-base64@@@", filename="deck.pdf"
        )
        result = SourceSummarizer().summarize(source)
        assert not result.ok
        assert "base64" in result.failure_reason


class TestIngestionPipeline:
    """Sources advance Pending -> Processing -> Completed | Failed."""

    def test_completes_with_summary(self, store, pipeline):
        report, source = seed(store)
        pipeline.submit(report.id, source.id)
        job = asyncio.run(pipeline.run(report.id, source.id))

        stored = store.require(report.id).find_source(source.id)
        assert stored.status == SourceStatus.COMPLETED
        assert stored.summary == "Summary for notes.txt..."
        assert stored.attempts == 1
        assert job.done and job.status == SourceStatus.COMPLETED

    def test_summariser_sees_processing_state(self, store):
        seen = []

        class RecordingSummarizer:
            def summarize(self, source):
                seen.append(source.status)
                return IngestionResult.success("ok")

        report, source = seed(store)
        pipeline = IngestionPipeline(store, RecordingSummarizer(), processing_delay=0, completion_delay=0)
        asyncio.run(pipeline.run(report.id, source.id))
        assert seen == [SourceStatus.PROCESSING]

    def test_fails_after_max_attempts(self, store, pipeline):
        report, source = seed(
            store, SourceType.FILE, "data:application/pdf;base64,%%%", filename="deck.pdf"
        )
        job = asyncio.run(pipeline.run(report.id, source.id))

        stored = store.require(report.id).find_source(source.id)
        assert stored.status == SourceStatus.FAILED
        assert stored.failure_reason == "File content is not valid base64"
        assert stored.attempts == 2
        assert job.failure_reason == "File content is not valid base64"

    def test_retries_transient_errors(self, store):
        class FlakySummarizer:
            calls = 0

            def summarize(self, source):
                self.calls += 1
                if self.calls == 1:
                    raise ConnectionError("temporarily unavailable")
                return IngestionResult.success("Recovered summary")

        report, source = seed(store)
        pipeline = IngestionPipeline(store, FlakySummarizer(), processing_delay=0, completion_delay=0)
        job = asyncio.run(pipeline.run(report.id, source.id))
        assert job.status == SourceStatus.COMPLETED
        assert job.attempts == 2
        assert store.require(report.id).find_source(source.id).summary == "Recovered summary"

    def test_deleted_source_ends_job_quietly(self, store, pipeline):
        report, source = seed(store)
        job = pipeline.submit(report.id, source.id)
        store.mutate(report.id, lambda current: data_sources.delete_source(current, source.id))

        asyncio.run(pipeline.run(report.id, source.id))
        assert job.status == SourceStatus.FAILED
        assert job.failure_reason == SOURCE_REMOVED
        assert pipeline.get_job(source.id) is job

    def test_other_sources_untouched(self, store, pipeline):
        report, first = seed(store)
        report, second = data_sources.add_pending_source(report, SourceType.URL, "https://acme.example")
        store.save(report)

        asyncio.run(pipeline.run(report.id, first.id))
        stored = store.require(report.id)
        assert stored.find_source(first.id).status == SourceStatus.COMPLETED
        assert stored.find_source(second.id).status == SourceStatus.PENDING

    def test_finished_job_dropped_after_poll(self, store, pipeline):
        report, source = seed(store)
        pipeline.submit(report.id, source.id)
        assert pipeline.get_job(source.id) is not None

        job = asyncio.run(pipeline.run(report.id, source.id))
        assert pipeline.get_job(source.id) is job
        assert pipeline.get_job(source.id) is None

    def test_poll_for_other_report_keeps_job(self, store, pipeline):
        report, source = seed(store)
        job = pipeline.submit(report.id, source.id)
        asyncio.run(pipeline.run(report.id, source.id))

        assert pipeline.get_job(source.id, "rep-other") is None
        assert pipeline.get_job(source.id, report.id) is job

    def test_discard_report_drops_its_jobs(self, store, pipeline):
        report, source = seed(store)
        pipeline.submit(report.id, source.id)
        pipeline.submit("rep-other", "ds-other")

        pipeline.discard_report(report.id)
        assert pipeline.get_job(source.id) is None
        assert pipeline.get_job("ds-other") is not None

    def test_store_writes_run_off_the_event_loop(self, store, pipeline, monkeypatch):
        report, source = seed(store)
        threads = []
        mutate = store.mutate

        def recording_mutate(report_id, mutator):
            threads.append(threading.get_ident())
            return mutate(report_id, mutator)

        monkeypatch.setattr(store, "mutate", recording_mutate)

        async def run_and_note_loop_thread():
            await pipeline.run(report.id, source.id)
            return threading.get_ident()

        loop_thread = asyncio.run(run_and_note_loop_thread())
        assert len(threads) == 2
        assert loop_thread not in threads
