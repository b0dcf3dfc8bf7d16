"""Request and response payloads for the founder registration API."""
from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel

from venture_analytica.services.founder_registration import RegistrationStep


class StepBackRequest(BaseModel):
    step: RegistrationStep


class StartInterviewRequest(BaseModel):
    speech_supported: bool = True


class VoiceMessageRequest(BaseModel):
    text: str


class RecognitionErrorRequest(BaseModel):
    code: str


class AssessmentRequest(BaseModel):
    answers: Dict[int, str]


class AssessmentQuestionView(BaseModel):
    index: int
    question: str
    options: List[str]
    trait: str
