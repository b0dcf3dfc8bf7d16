import base64
from unittest.mock import MagicMock

import pytest

from venture_analytica.models.report_models import SourceStatus, SourceType
from venture_analytica.services.genai_client import ChatSession, CollaboratorError, GenerativeClient
from venture_analytica.services.voice_interview import (
    OPENING_MESSAGE,
    Speaker,
    VoiceInterviewManager,
    VoiceInterviewSession,
    VoiceSessionError,
    VoiceStatus,
)


@pytest.fixture
def chat():
    chat = MagicMock(spec=ChatSession)
    chat.send.return_value = "Hello, I am the AI Assistant for Investor Evaluation."
    return chat


@pytest.fixture
def client(chat):
    client = MagicMock(spec=GenerativeClient)
    client.start_chat.return_value = chat
    client.synthesize_speech.return_value = b"\x00\x01pcm"
    return client


def started(client, speech_supported=True):
    session = VoiceInterviewSession(client, speech_supported=speech_supported)
    session.start()
    return session


class TestTurnTaking:
    """initializing -> processing -> speaking -> listening -> ..."""

    def test_start_speaks_introduction(self, client, chat):
        session = VoiceInterviewSession(client)
        turn = session.start()

        chat.send.assert_called_once_with(OPENING_MESSAGE)
        assert turn.status == VoiceStatus.SPEAKING
        assert base64.b64decode(turn.audio_base64) == b"\x00\x01pcm"
        assert [item.speaker for item in turn.transcript] == [Speaker.SYSTEM, Speaker.AI]

    def test_cannot_start_twice(self, client):
        session = started(client)
        with pytest.raises(VoiceSessionError):
            session.start()

    def test_playback_finished_resumes_listening(self, client):
        session = started(client)
        assert session.playback_finished().status == VoiceStatus.LISTENING

    def test_user_message_round_trip(self, client, chat):
        session = started(client)
        session.playback_finished()
        chat.send.return_value = "Thank you. What inspired you to become a founder?"

        turn = session.user_message("I'm Jane, CEO of Acme.")

        assert turn.status == VoiceStatus.SPEAKING
        assert turn.reply == "Thank you. What inspired you to become a founder?"
        assert turn.transcript[-2].speaker == Speaker.USER
        assert turn.transcript[-2].text == "I'm Jane, CEO of Acme."

    def test_blank_message_returns_to_listening(self, client, chat):
        session = started(client)
        session.playback_finished()
        turn = session.user_message("   ")
        assert turn.status == VoiceStatus.LISTENING
        assert chat.send.call_count == 1

    def test_message_rejected_while_speaking(self, client):
        session = started(client)
        with pytest.raises(VoiceSessionError):
            session.user_message("hello")

    def test_interrupt_from_speaking(self, client):
        session = started(client)
        assert session.interrupt().status == VoiceStatus.LISTENING
        with pytest.raises(VoiceSessionError):
            session.interrupt()

    def test_stop_and_restart_listening(self, client):
        session = started(client)
        session.playback_finished()
        assert session.stop_listening().status == VoiceStatus.IDLE
        assert session.start_listening().status == VoiceStatus.LISTENING


class TestDegradation:
    """Failures are scoped to the turn and never end the session."""

    def test_text_mode_without_speech_recognition(self, client):
        session = started(client, speech_supported=False)
        assert session.error == "Voice input is not supported. Please use text input."
        assert session.playback_finished().status == VoiceStatus.IDLE

    def test_chat_failure_returns_to_idle(self, client, chat):
        session = started(client)
        session.playback_finished()
        chat.send.side_effect = CollaboratorError("quota")

        turn = session.user_message("Our traction is 40 customers.")

        assert turn.status == VoiceStatus.IDLE
        assert turn.error == "Failed to get AI response."

    def test_initialisation_failure(self, client):
        client.start_chat.side_effect = CollaboratorError("bad key")
        turn = VoiceInterviewSession(client).start()
        assert turn.status == VoiceStatus.IDLE
        assert turn.error == "Failed to initialize the AI agent."

    def test_speech_synthesis_failure_keeps_listening(self, client):
        client.synthesize_speech.side_effect = CollaboratorError("tts down")
        session = VoiceInterviewSession(client)
        turn = session.start()
        assert turn.error == "Could not generate AI speech."
        assert turn.status == VoiceStatus.LISTENING
        assert turn.audio_base64 is None

    @pytest.mark.parametrize("code", ["no-speech", "aborted"])
    def test_silent_recognition_errors(self, client, code):
        session = started(client)
        session.playback_finished()
        turn = session.recognition_error(code)
        assert turn.status == VoiceStatus.IDLE
        assert turn.error is None

    def test_recognition_error_reported(self, client):
        session = started(client)
        session.playback_finished()
        turn = session.recognition_error("network")
        assert turn.error == "Voice recognition error. Please try again or use text input."
        assert session.dismiss_error().error is None


class TestTranscript:
    """Finished interviews become transcript sources."""

    def test_finished_on_closing_phrase(self, client, chat):
        session = started(client)
        session.playback_finished()
        assert not session.finished
        chat.send.return_value = "Thank you for your time. Have a great day!"
        assert session.user_message("That's all.").finished

    def test_transcript_source(self, client):
        session = started(client)
        session.playback_finished()
        session.user_message("We sell robots.")
        source = session.to_transcript_source()

        assert source.type == SourceType.TRANSCRIPT
        assert source.status == SourceStatus.COMPLETED
        assert source.content.startswith("# Founder Voice Interview Transcript")
        assert "USER: We sell robots." in source.content

    def test_manager_tracks_sessions(self, client):
        manager = VoiceInterviewManager(client)
        session = manager.open("reg-1", speech_supported=False)
        assert manager.get("reg-1") is session
        manager.close("reg-1")
        assert manager.get("reg-1") is None
