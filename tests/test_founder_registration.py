import pytest

from venture_analytica.models.report_models import DataSource, SourceStatus, SourceType
from venture_analytica.services.assessment import QUESTIONS, summarize_answers, validate_answers
from venture_analytica.services.founder_registration import (
    AssessmentCompleted,
    CompanyInfoForm,
    CompanyInfoSubmitted,
    InterviewCompleted,
    RegistrationFlowError,
    RegistrationState,
    RegistrationStep,
    RegistrationValidationError,
    StepBack,
    UploadedFile,
    reduce,
    submission_sources,
)


def valid_form(**overrides):
    fields = dict(
        company_name="Initech",
        description="Payroll software for small teams",
        phone="5550100",
        founder_email="peter@initech.io",
        files=[UploadedFile(filename="deck.pdf", content="data:application/pdf;base64,JVBERi0=")],
    )
    fields.update(overrides)
    return CompanyInfoForm(**fields)


def full_answers():
    return {index: question.options[0] for index, question in enumerate(QUESTIONS)}


def transcript():
    return DataSource(
        type=SourceType.TRANSCRIPT,
        content="# Founder Voice Interview Transcript",
        filename="Founder Voice Interview Transcript",
        status=SourceStatus.COMPLETED,
    )


class TestCompanyInfo:
    """Step one validates required fields inline."""

    def test_missing_fields_reported_per_field(self):
        with pytest.raises(RegistrationValidationError) as excinfo:
            reduce(RegistrationState(), CompanyInfoSubmitted(CompanyInfoForm()))
        assert excinfo.value.errors == {
            "company_name": "Company Name is required.",
            "founder_phone": "Founder Phone is required.",
            "founder_email": "Founder Email is required.",
        }

    def test_invalid_email(self):
        with pytest.raises(RegistrationValidationError) as excinfo:
            reduce(RegistrationState(), CompanyInfoSubmitted(valid_form(founder_email="not-an-email")))
        assert excinfo.value.errors == {"founder_email": "Email is invalid."}

    def test_valid_info_moves_to_interview(self):
        state = reduce(RegistrationState(), CompanyInfoSubmitted(valid_form()))
        assert state.step == RegistrationStep.VOICE_INTERVIEW
        assert state.founder_phone == "+15550100"
        (upload,) = state.files
        assert upload.type == SourceType.FILE
        assert upload.status == SourceStatus.COMPLETED
        assert upload.is_selected
        assert upload.content.startswith("data:application/pdf")

    def test_resubmission_keeps_selected_files(self):
        state = reduce(RegistrationState(), CompanyInfoSubmitted(valid_form()))
        kept_id = state.files[0].id
        state = reduce(state, StepBack(RegistrationStep.COMPANY_INFO))

        state = reduce(
            state,
            CompanyInfoSubmitted(valid_form(files=[UploadedFile(filename="financials.xlsx")], keep_file_ids=[kept_id])),
        )
        assert [source.filename for source in state.files] == ["deck.pdf", "financials.xlsx"]
        assert state.files[0].id == kept_id

    def test_resubmission_can_drop_files(self):
        state = reduce(RegistrationState(), CompanyInfoSubmitted(valid_form()))
        state = reduce(state, StepBack(RegistrationStep.COMPANY_INFO))
        state = reduce(state, CompanyInfoSubmitted(valid_form(files=[], keep_file_ids=[])))
        assert state.files == []


class TestFlow:
    """The wizard is linear and only steps back."""

    def test_full_flow_produces_sources_in_order(self):
        state = reduce(RegistrationState(), CompanyInfoSubmitted(valid_form()))
        state = reduce(state, InterviewCompleted(transcript()))
        state = reduce(state, AssessmentCompleted(full_answers()))

        assert state.step == RegistrationStep.SUBMITTED
        sources = submission_sources(state)
        assert [source.type for source in sources] == [
            SourceType.TEXT,
            SourceType.FILE,
            SourceType.TRANSCRIPT,
            SourceType.ASSESSMENT,
        ]
        assert sources[0].filename == "Company Description"
        assert all(source.status == SourceStatus.COMPLETED for source in sources)

    def test_skipped_interview(self):
        state = reduce(RegistrationState(), CompanyInfoSubmitted(valid_form(description="")))
        state = reduce(state, InterviewCompleted(None))
        assert state.interview_skipped
        state = reduce(state, AssessmentCompleted(full_answers()))
        assert [source.type for source in submission_sources(state)] == [SourceType.FILE, SourceType.ASSESSMENT]

    def test_events_out_of_order_rejected(self):
        with pytest.raises(RegistrationFlowError):
            reduce(RegistrationState(), AssessmentCompleted(full_answers()))

    def test_cannot_step_forward(self):
        state = reduce(RegistrationState(), CompanyInfoSubmitted(valid_form()))
        with pytest.raises(RegistrationFlowError):
            reduce(state, StepBack(RegistrationStep.BEHAVIOURAL_TEST))

    def test_wrong_source_type_for_transcript(self):
        state = reduce(RegistrationState(), CompanyInfoSubmitted(valid_form()))
        bogus = transcript().model_copy(update={"type": SourceType.TEXT})
        with pytest.raises(RegistrationValidationError):
            reduce(state, InterviewCompleted(bogus))


class TestAssessment:
    """The behavioural questionnaire must be fully answered."""

    def test_twenty_questions(self):
        assert len(QUESTIONS) == 20

    def test_missing_and_invalid_answers(self):
        answers = full_answers()
        del answers[3]
        answers[5] = "Something else entirely"
        errors = validate_answers(answers)
        assert set(errors) == {"3", "5"}

    def test_summary_is_deterministic(self):
        answers = full_answers()
        first = summarize_answers(answers)
        assert first == summarize_answers(answers)
        assert "proactive and analytical" in first
        assert QUESTIONS[0].trait in first

    def test_incomplete_assessment_rejected_by_reducer(self):
        state = reduce(RegistrationState(), CompanyInfoSubmitted(valid_form()))
        state = reduce(state, InterviewCompleted(None))
        with pytest.raises(RegistrationValidationError):
            reduce(state, AssessmentCompleted({0: QUESTIONS[0].options[0]}))
