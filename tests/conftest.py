from unittest.mock import MagicMock

import pytest

from venture_analytica.models.report_models import DataSource, SourceStatus, SourceType
from venture_analytica.services.doc_builder import DocxBuilder
from venture_analytica.services.firestore_repository import DocumentRepository
from venture_analytica.services.genai_client import GenerationResult, GenerativeClient
from venture_analytica.services.ingestion import IngestionPipeline
from venture_analytica.services.memo_generator import MemoGenerator
from venture_analytica.services.pptx_builder import PptxBuilder
from venture_analytica.services.registration_service import RegistrationService
from venture_analytica.services.report_service import ReportService
from venture_analytica.services.report_store import ReportStore
from venture_analytica.services.voice_interview import VoiceInterviewManager


MEMO_TEXT = "# Acme Robotics\n\n## Executive Summary\n- Strong team\n\n## Market Analysis\nLarge market."


def completed_source(content="Quarterly revenue notes", filename="notes.txt", **overrides):
    fields = dict(
        type=SourceType.TEXT,
        content=content,
        filename=filename,
        summary=f"Summary for {filename}...",
        status=SourceStatus.COMPLETED,
    )
    fields.update(overrides)
    return DataSource(**fields)


@pytest.fixture
def genai_client():
    client = MagicMock(spec=GenerativeClient)
    client.generate_text.return_value = GenerationResult(text=MEMO_TEXT)
    return client


@pytest.fixture
def store():
    return ReportStore(DocumentRepository())


@pytest.fixture
def pipeline(store):
    return IngestionPipeline(store, processing_delay=0, completion_delay=0, max_attempts=2)


@pytest.fixture
def report_service(store, pipeline, genai_client, tmp_path):
    return ReportService(
        store=store,
        ingestion=pipeline,
        memo_generator=MemoGenerator(genai_client),
        client=genai_client,
        doc_builder=DocxBuilder(base_dir=tmp_path),
        pptx_builder=PptxBuilder(genai_client, base_dir=tmp_path),
        founder_voice_delay=0,
        behaviour_test_delay=0,
    )


@pytest.fixture
def registration_service(report_service, genai_client):
    return RegistrationService(
        repository=DocumentRepository(collection="registrations"),
        report_service=report_service,
        voice_sessions=VoiceInterviewManager(genai_client),
    )
