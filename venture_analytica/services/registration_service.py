"""Founder self-registration: persisted wizard state plus the live voice interview."""
from __future__ import annotations

import logging
from typing import Callable, Dict

from fastapi import HTTPException

from venture_analytica.services.firestore_repository import DocumentRepository
from venture_analytica.services.founder_registration import (
    AssessmentCompleted,
    CompanyInfoForm,
    CompanyInfoSubmitted,
    InterviewCompleted,
    RegistrationEvent,
    RegistrationFlowError,
    RegistrationState,
    RegistrationStep,
    RegistrationValidationError,
    StepBack,
    reduce,
)
from venture_analytica.services.report_service import ReportService
from venture_analytica.services.voice_interview import (
    VoiceInterviewManager,
    VoiceInterviewSession,
    VoiceSessionError,
    VoiceTurn,
)


logger = logging.getLogger(__name__)


class RegistrationService:
    def __init__(
        self,
        repository: DocumentRepository,
        report_service: ReportService,
        voice_sessions: VoiceInterviewManager,
    ) -> None:
        self.repository = repository
        self.report_service = report_service
        self.voice_sessions = voice_sessions

    def start_registration(self) -> RegistrationState:
        state = RegistrationState()
        self.repository.upsert(state.id, state.model_dump(mode="json"))
        logger.info("Registration started", extra={"registration_id": state.id})
        return state

    def get_registration(self, registration_id: str) -> RegistrationState:
        data = self.repository.get(registration_id)
        if not data:
            raise HTTPException(status_code=404, detail="Registration not found")
        return RegistrationState.model_validate(data)

    def submit_company_info(self, registration_id: str, form: CompanyInfoForm) -> RegistrationState:
        return self._apply(registration_id, CompanyInfoSubmitted(form=form))

    def step_back(self, registration_id: str, step: RegistrationStep) -> RegistrationState:
        state = self._apply(registration_id, StepBack(step=step))
        if state.step < RegistrationStep.VOICE_INTERVIEW:
            self.voice_sessions.close(registration_id)
        return state

    def submit_assessment(self, registration_id: str, answers: Dict[int, str]) -> RegistrationState:
        state = self._reduce(self.get_registration(registration_id), AssessmentCompleted(answers=answers))
        report = self.report_service.submit_registration(state)
        state = state.model_copy(update={"report_id": report.id})
        self._save(state)
        logger.info(
            "Registration submitted",
            extra={"registration_id": registration_id, "report_id": report.id},
        )
        return state

    # Voice interview

    def start_interview(self, registration_id: str, *, speech_supported: bool = True) -> VoiceTurn:
        state = self.get_registration(registration_id)
        if state.step != RegistrationStep.VOICE_INTERVIEW:
            raise HTTPException(status_code=409, detail="Registration is not on the voice interview step")
        session = self.voice_sessions.open(registration_id, speech_supported=speech_supported)
        logger.info(
            "Voice interview opened",
            extra={"registration_id": registration_id, "session_id": session.id, "voice_mode": speech_supported},
        )
        return self._voice(registration_id, lambda session: session.start())

    def send_message(self, registration_id: str, text: str) -> VoiceTurn:
        return self._voice(registration_id, lambda session: session.user_message(text))

    def playback_finished(self, registration_id: str) -> VoiceTurn:
        return self._voice(registration_id, lambda session: session.playback_finished())

    def interrupt(self, registration_id: str) -> VoiceTurn:
        return self._voice(registration_id, lambda session: session.interrupt())

    def start_listening(self, registration_id: str) -> VoiceTurn:
        return self._voice(registration_id, lambda session: session.start_listening())

    def stop_listening(self, registration_id: str) -> VoiceTurn:
        return self._voice(registration_id, lambda session: session.stop_listening())

    def recognition_error(self, registration_id: str, code: str) -> VoiceTurn:
        return self._voice(registration_id, lambda session: session.recognition_error(code))

    def dismiss_voice_error(self, registration_id: str) -> VoiceTurn:
        return self._voice(registration_id, lambda session: session.dismiss_error())

    def interview_status(self, registration_id: str) -> VoiceTurn:
        return self._voice(registration_id, lambda session: session.snapshot())

    def complete_interview(self, registration_id: str) -> RegistrationState:
        session = self._session(registration_id)
        state = self._apply(registration_id, InterviewCompleted(transcript=session.to_transcript_source()))
        self.voice_sessions.close(registration_id)
        return state

    def skip_interview(self, registration_id: str) -> RegistrationState:
        state = self._apply(registration_id, InterviewCompleted(transcript=None))
        self.voice_sessions.close(registration_id)
        return state

    def _session(self, registration_id: str) -> VoiceInterviewSession:
        self.get_registration(registration_id)
        session = self.voice_sessions.get(registration_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Voice interview not started")
        return session

    def _voice(self, registration_id: str, action: Callable[[VoiceInterviewSession], VoiceTurn]) -> VoiceTurn:
        session = self._session(registration_id)
        try:
            return action(session)
        except VoiceSessionError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc

    def _reduce(self, state: RegistrationState, event: RegistrationEvent) -> RegistrationState:
        try:
            return reduce(state, event)
        except RegistrationValidationError as exc:
            raise HTTPException(status_code=422, detail=exc.errors) from exc
        except RegistrationFlowError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc

    def _apply(self, registration_id: str, event: RegistrationEvent) -> RegistrationState:
        updated = self._reduce(self.get_registration(registration_id), event)
        self._save(updated)
        return updated

    def _save(self, state: RegistrationState) -> None:
        self.repository.upsert(state.id, state.model_dump(mode="json"))
        logger.info(
            "Registration step changed",
            extra={"registration_id": state.id, "step": state.step.name},
        )
