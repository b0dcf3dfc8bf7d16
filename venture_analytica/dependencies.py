"""Dependency wiring for FastAPI routes."""
from __future__ import annotations

import importlib
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from venture_analytica.services.doc_builder import DocxBuilder
from venture_analytica.services.firestore_repository import DocumentRepository
from venture_analytica.services.genai_client import GenerativeClient
from venture_analytica.services.ingestion import IngestionPipeline
from venture_analytica.services.memo_generator import MemoGenerator
from venture_analytica.services.pptx_builder import PptxBuilder
from venture_analytica.services.registration_service import RegistrationService
from venture_analytica.services.report_service import ReportService
from venture_analytica.services.report_store import ReportStore
from venture_analytica.services.voice_interview import VoiceInterviewManager


logger = logging.getLogger(__name__)


def _float_env(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


@lru_cache(maxsize=1)
def get_firestore_client() -> Optional[Any]:
    firestore_module: Optional[object] = None
    try:
        firestore_module = importlib.import_module("google.cloud.firestore")
    except ModuleNotFoundError:
        firestore_module = None
    if firestore_module is None:
        return None
    try:
        return firestore_module.Client()
    except Exception:
        logger.info("Firestore unavailable, using in-memory storage")
        return None


@lru_cache(maxsize=1)
def get_repository() -> DocumentRepository:
    collection = os.getenv("FIRESTORE_COLLECTION", "reports")
    return DocumentRepository(client=get_firestore_client(), collection=collection)


@lru_cache(maxsize=1)
def get_registration_repository() -> DocumentRepository:
    collection = os.getenv("FIRESTORE_REGISTRATION_COLLECTION", "registrations")
    return DocumentRepository(client=get_firestore_client(), collection=collection)


@lru_cache(maxsize=1)
def get_report_store() -> ReportStore:
    return ReportStore(get_repository())


@lru_cache(maxsize=1)
def get_generative_client() -> GenerativeClient:
    return GenerativeClient(
        api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"),
        text_model=os.getenv("GEMINI_TEXT_MODEL", "gemini-2.5-flash"),
        structured_model=os.getenv("GEMINI_STRUCTURED_MODEL", "gemini-2.5-pro"),
        chat_model=os.getenv("GEMINI_CHAT_MODEL", "gemini-2.5-pro"),
        tts_model=os.getenv("GEMINI_TTS_MODEL", "gemini-2.5-flash-preview-tts"),
        tts_voice=os.getenv("GEMINI_TTS_VOICE", "Zephyr"),
    )


@lru_cache(maxsize=1)
def get_ingestion_pipeline() -> IngestionPipeline:
    return IngestionPipeline(
        get_report_store(),
        processing_delay=_float_env("INGESTION_PROCESSING_DELAY_SECONDS", 1.0),
        completion_delay=_float_env("INGESTION_COMPLETION_DELAY_SECONDS", 3.0),
        max_attempts=int(os.getenv("INGESTION_MAX_ATTEMPTS", "2")),
    )


@lru_cache(maxsize=1)
def get_memo_generator() -> MemoGenerator:
    return MemoGenerator(get_generative_client())


def _export_dir() -> Path:
    return Path(os.getenv("EXPORT_DIR", ".exports"))


@lru_cache(maxsize=1)
def get_doc_builder() -> DocxBuilder:
    return DocxBuilder(base_dir=_export_dir())


@lru_cache(maxsize=1)
def get_pptx_builder() -> PptxBuilder:
    return PptxBuilder(get_generative_client(), base_dir=_export_dir())


@lru_cache(maxsize=1)
def get_report_service() -> ReportService:
    return ReportService(
        store=get_report_store(),
        ingestion=get_ingestion_pipeline(),
        memo_generator=get_memo_generator(),
        client=get_generative_client(),
        doc_builder=get_doc_builder(),
        pptx_builder=get_pptx_builder(),
        founder_voice_delay=_float_env("FOUNDER_VOICE_DELAY_SECONDS", 8.0),
        behaviour_test_delay=_float_env("BEHAVIOUR_TEST_DELAY_SECONDS", 10.0),
    )


@lru_cache(maxsize=1)
def get_voice_sessions() -> VoiceInterviewManager:
    return VoiceInterviewManager(get_generative_client())


@lru_cache(maxsize=1)
def get_registration_service() -> RegistrationService:
    return RegistrationService(
        repository=get_registration_repository(),
        report_service=get_report_service(),
        voice_sessions=get_voice_sessions(),
    )
