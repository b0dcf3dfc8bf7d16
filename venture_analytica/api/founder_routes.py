"""API routes for founder self-registration and the voice interview."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from venture_analytica.dependencies import get_registration_service
from venture_analytica.models.registration_models import (
    AssessmentQuestionView,
    AssessmentRequest,
    RecognitionErrorRequest,
    StartInterviewRequest,
    StepBackRequest,
    VoiceMessageRequest,
)
from venture_analytica.services.assessment import QUESTIONS
from venture_analytica.services.founder_registration import CompanyInfoForm, RegistrationState
from venture_analytica.services.registration_service import RegistrationService
from venture_analytica.services.voice_interview import VoiceTurn


router = APIRouter(prefix="/registrations")


@router.get("/assessment/questions", response_model=List[AssessmentQuestionView])
def assessment_questions() -> List[AssessmentQuestionView]:
    return [
        AssessmentQuestionView(
            index=index, question=question.question, options=list(question.options), trait=question.trait
        )
        for index, question in enumerate(QUESTIONS)
    ]


@router.post("", response_model=RegistrationState, status_code=201)
def start_registration(
    service: RegistrationService = Depends(get_registration_service),
) -> RegistrationState:
    return service.start_registration()


@router.get("/{registration_id}", response_model=RegistrationState)
def get_registration(
    registration_id: str,
    service: RegistrationService = Depends(get_registration_service),
) -> RegistrationState:
    return service.get_registration(registration_id)


@router.post("/{registration_id}/company_info", response_model=RegistrationState)
def submit_company_info(
    registration_id: str,
    payload: CompanyInfoForm,
    service: RegistrationService = Depends(get_registration_service),
) -> RegistrationState:
    return service.submit_company_info(registration_id, payload)


@router.post("/{registration_id}/back", response_model=RegistrationState)
def step_back(
    registration_id: str,
    payload: StepBackRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> RegistrationState:
    return service.step_back(registration_id, payload.step)


@router.post("/{registration_id}/interview/start", response_model=VoiceTurn)
def start_interview(
    registration_id: str,
    payload: StartInterviewRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> VoiceTurn:
    return service.start_interview(registration_id, speech_supported=payload.speech_supported)


@router.get("/{registration_id}/interview", response_model=VoiceTurn)
def interview_status(
    registration_id: str,
    service: RegistrationService = Depends(get_registration_service),
) -> VoiceTurn:
    return service.interview_status(registration_id)


@router.post("/{registration_id}/interview/messages", response_model=VoiceTurn)
def send_message(
    registration_id: str,
    payload: VoiceMessageRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> VoiceTurn:
    return service.send_message(registration_id, payload.text)


@router.post("/{registration_id}/interview/playback_finished", response_model=VoiceTurn)
def playback_finished(
    registration_id: str,
    service: RegistrationService = Depends(get_registration_service),
) -> VoiceTurn:
    return service.playback_finished(registration_id)


@router.post("/{registration_id}/interview/interrupt", response_model=VoiceTurn)
def interrupt(
    registration_id: str,
    service: RegistrationService = Depends(get_registration_service),
) -> VoiceTurn:
    return service.interrupt(registration_id)


@router.post("/{registration_id}/interview/listen", response_model=VoiceTurn)
def start_listening(
    registration_id: str,
    service: RegistrationService = Depends(get_registration_service),
) -> VoiceTurn:
    return service.start_listening(registration_id)


@router.post("/{registration_id}/interview/stop_listening", response_model=VoiceTurn)
def stop_listening(
    registration_id: str,
    service: RegistrationService = Depends(get_registration_service),
) -> VoiceTurn:
    return service.stop_listening(registration_id)


@router.post("/{registration_id}/interview/recognition_error", response_model=VoiceTurn)
def recognition_error(
    registration_id: str,
    payload: RecognitionErrorRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> VoiceTurn:
    return service.recognition_error(registration_id, payload.code)


@router.delete("/{registration_id}/interview/error", response_model=VoiceTurn)
def dismiss_voice_error(
    registration_id: str,
    service: RegistrationService = Depends(get_registration_service),
) -> VoiceTurn:
    return service.dismiss_voice_error(registration_id)


@router.post("/{registration_id}/interview/complete", response_model=RegistrationState)
def complete_interview(
    registration_id: str,
    service: RegistrationService = Depends(get_registration_service),
) -> RegistrationState:
    return service.complete_interview(registration_id)


@router.post("/{registration_id}/interview/skip", response_model=RegistrationState)
def skip_interview(
    registration_id: str,
    service: RegistrationService = Depends(get_registration_service),
) -> RegistrationState:
    return service.skip_interview(registration_id)


@router.post("/{registration_id}/assessment", response_model=RegistrationState)
def submit_assessment(
    registration_id: str,
    payload: AssessmentRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> RegistrationState:
    return service.submit_assessment(registration_id, payload.answers)
