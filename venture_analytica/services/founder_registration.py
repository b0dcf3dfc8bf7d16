"""Founder self-registration: company info -> voice interview -> behavioural test.

The flow is a linear state machine driven by :func:`reduce`. It stays
independent of any report until the final step, when its accumulated data
sources are handed to :meth:`ReportService.submit_registration`.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

from venture_analytica.models.report_models import (
    DataSource,
    SourceStatus,
    SourceType,
    new_id,
)
from venture_analytica.services.assessment import summarize_answers, validate_answers
from venture_analytica.services.data_sources import preview_summary

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")


class RegistrationStep(IntEnum):
    COMPANY_INFO = 0
    VOICE_INTERVIEW = 1
    BEHAVIOURAL_TEST = 2
    SUBMITTED = 3


class RegistrationValidationError(ValueError):
    def __init__(self, errors: Dict[str, str]) -> None:
        super().__init__("; ".join(f"{field}: {message}" for field, message in errors.items()))
        self.errors = errors


class RegistrationFlowError(Exception):
    """An event arrived for a step the registration is not on."""


class UploadedFile(BaseModel):
    filename: str = Field(min_length=1)
    content: str = ""


class CompanyInfoForm(BaseModel):
    company_name: str = ""
    description: str = ""
    country_code: str = "+1"
    phone: str = ""
    founder_email: str = ""
    files: List[UploadedFile] = Field(default_factory=list)
    keep_file_ids: Optional[List[str]] = None

    def validate_fields(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        if not self.company_name.strip():
            errors["company_name"] = "Company Name is required."
        if not self.phone.strip():
            errors["founder_phone"] = "Founder Phone is required."
        if not self.founder_email.strip():
            errors["founder_email"] = "Founder Email is required."
        elif not EMAIL_PATTERN.search(self.founder_email):
            errors["founder_email"] = "Email is invalid."
        return errors


class RegistrationState(BaseModel):
    id: str = Field(default_factory=lambda: new_id("reg"))
    step: RegistrationStep = RegistrationStep.COMPANY_INFO
    company_name: str = ""
    description: str = ""
    founder_phone: str = ""
    founder_email: str = ""
    files: List[DataSource] = Field(default_factory=list)
    transcript: Optional[DataSource] = None
    interview_skipped: bool = False
    assessment: Optional[DataSource] = None
    report_id: Optional[str] = None


@dataclass(frozen=True)
class CompanyInfoSubmitted:
    form: CompanyInfoForm


@dataclass(frozen=True)
class InterviewCompleted:
    transcript: Optional[DataSource]


@dataclass(frozen=True)
class AssessmentCompleted:
    answers: Dict[int, str]


@dataclass(frozen=True)
class StepBack:
    step: RegistrationStep


RegistrationEvent = Union[CompanyInfoSubmitted, InterviewCompleted, AssessmentCompleted, StepBack]


def _expect_step(state: RegistrationState, step: RegistrationStep) -> None:
    if state.step != step:
        raise RegistrationFlowError(
            f"Registration is on step {state.step.name}, expected {step.name}"
        )


def _file_source(upload: UploadedFile) -> DataSource:
    content = upload.content or f"(Simulated content for {upload.filename})"
    return DataSource(
        type=SourceType.FILE,
        content=content,
        filename=upload.filename,
        summary=f"Uploaded document: {upload.filename}",
        status=SourceStatus.COMPLETED,
    )


def reduce(state: RegistrationState, event: RegistrationEvent) -> RegistrationState:
    if isinstance(event, CompanyInfoSubmitted):
        _expect_step(state, RegistrationStep.COMPANY_INFO)
        form = event.form
        errors = form.validate_fields()
        if errors:
            raise RegistrationValidationError(errors)
        kept = state.files
        if form.keep_file_ids is not None:
            keep = set(form.keep_file_ids)
            kept = [source for source in state.files if source.id in keep]
        return state.model_copy(
            update={
                "step": RegistrationStep.VOICE_INTERVIEW,
                "company_name": form.company_name.strip(),
                "description": form.description.strip(),
                "founder_phone": f"{form.country_code}{form.phone.strip()}",
                "founder_email": form.founder_email.strip(),
                "files": [*kept, *(_file_source(upload) for upload in form.files)],
            }
        )

    if isinstance(event, InterviewCompleted):
        _expect_step(state, RegistrationStep.VOICE_INTERVIEW)
        transcript = event.transcript
        if transcript is not None and transcript.type != SourceType.TRANSCRIPT:
            raise RegistrationValidationError({"transcript": "Expected a transcript source."})
        return state.model_copy(
            update={
                "step": RegistrationStep.BEHAVIOURAL_TEST,
                "transcript": transcript,
                "interview_skipped": transcript is None,
            }
        )

    if isinstance(event, AssessmentCompleted):
        _expect_step(state, RegistrationStep.BEHAVIOURAL_TEST)
        errors = validate_answers(event.answers)
        if errors:
            raise RegistrationValidationError(errors)
        summary = summarize_answers(event.answers)
        assessment = DataSource(
            type=SourceType.ASSESSMENT,
            content=summary,
            filename="Founder Psychometric Assessment",
            summary=preview_summary(summary),
            status=SourceStatus.COMPLETED,
        )
        return state.model_copy(
            update={"step": RegistrationStep.SUBMITTED, "assessment": assessment}
        )

    if isinstance(event, StepBack):
        if state.step == RegistrationStep.SUBMITTED:
            raise RegistrationFlowError("Registration has already been submitted")
        if event.step >= state.step:
            raise RegistrationFlowError("Can only return to an earlier step")
        return state.model_copy(update={"step": event.step})

    raise TypeError(f"Unsupported registration event: {event!r}")


def submission_sources(state: RegistrationState) -> List[DataSource]:
    """Data sources a submitted registration contributes, description first."""

    sources: List[DataSource] = []
    if state.description:
        sources.append(
            DataSource(
                type=SourceType.TEXT,
                content=state.description,
                filename="Company Description",
                summary=preview_summary(state.description),
                status=SourceStatus.COMPLETED,
            )
        )
    sources.extend(state.files)
    if state.transcript is not None:
        sources.append(state.transcript)
    if state.assessment is not None:
        sources.append(state.assessment)
    return sources
