from unittest.mock import MagicMock

import pytest

from venture_analytica.models.report_models import Report, ReportOrigin
from venture_analytica.services.firestore_repository import DocumentRepository
from venture_analytica.services.report_store import ReportNotFound, ReportStore


class TestDocumentRepository:
    """In-memory fallback behaves like a document store."""

    def test_reads_are_copies(self):
        repository = DocumentRepository()
        repository.upsert("rep-1", {"title": "Acme", "tags": ["a"]})
        fetched = repository.get("rep-1")
        fetched["tags"].append("b")
        assert repository.get("rep-1") == {"title": "Acme", "tags": ["a"]}

    def test_find_by_field(self):
        repository = DocumentRepository()
        repository.upsert("rep-1", {"origin": "analyst"})
        repository.upsert("rep-2", {"origin": "founder_submission"})
        assert repository.find("origin", "founder_submission") == [{"origin": "founder_submission"}]

    def test_delete_missing_is_noop(self):
        repository = DocumentRepository()
        repository.delete("rep-missing")
        assert repository.list() == []

    def test_firestore_client_used_when_present(self):
        client = MagicMock()
        snapshot = client.collection.return_value.document.return_value.get.return_value
        snapshot.exists = True
        snapshot.to_dict.return_value = {"title": "Acme"}
        repository = DocumentRepository(client=client, collection="reports")

        repository.upsert("rep-1", {"title": "Acme"})
        assert repository.get("rep-1") == {"title": "Acme"}

        client.collection.assert_called_with("reports")
        client.collection.return_value.document.return_value.set.assert_called_once_with({"title": "Acme"})


class TestReportStore:
    """Typed access and atomic updates."""

    def test_require_missing(self):
        with pytest.raises(ReportNotFound):
            ReportStore(DocumentRepository()).require("rep-missing")

    def test_mutate_persists(self):
        store = ReportStore(DocumentRepository())
        report = store.save(Report(title="Acme - Initial Analysis", company_name="Acme"))
        store.mutate(report.id, lambda current: current.model_copy(update={"description": "Robots"}))
        assert store.require(report.id).description == "Robots"

    def test_failed_mutation_leaves_report_untouched(self):
        store = ReportStore(DocumentRepository())
        report = store.save(Report(title="Acme - Initial Analysis", company_name="Acme"))

        def explode(current):
            raise ValueError("boom")

        with pytest.raises(ValueError):
            store.mutate(report.id, explode)
        assert store.require(report.id) == report

    def test_list_filters_by_origin(self):
        store = ReportStore(DocumentRepository())
        analyst = store.save(Report(title="A", company_name="A"))
        store.save(Report(title="B", company_name="B", origin=ReportOrigin.FOUNDER_SUBMISSION))
        assert [r.id for r in store.list(ReportOrigin.ANALYST)] == [analyst.id]
        assert len(store.list()) == 2
