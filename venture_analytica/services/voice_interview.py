"""Turn-taking voice interview between a founder and the AI interviewer.

Speech recognition and audio playback happen in the browser. The session
tracks whose turn it is and relays text to the chat model and replies to the
speech synthesiser:

    initializing -> processing -> speaking -> listening -> processing -> ...

Playback completion (reported by the client) hands the turn back to the founder.
"""
from __future__ import annotations

import base64
import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from venture_analytica.models.report_models import (
    DataSource,
    SourceStatus,
    SourceType,
    new_id,
)
from venture_analytica.services.data_sources import preview_summary
from venture_analytica.services.genai_client import ChatSession, CollaboratorError, GenerativeClient


logger = logging.getLogger(__name__)

INTERVIEW_SYSTEM_INSTRUCTION = """You are an AI Assistant for Investor Evaluation. Your tone is polite, professional, and supportive. Your process is very structured. Follow these steps precisely.

**Step 1: Introduction & Consent**
- Greet the user politely and introduce yourself as "AI Assistant for Investor Evaluation".
- Ask for consent: "Is this a good time to answer a few questions about you and your startup?"
- If consent is given, proceed to Step 2. If not, politely end the call.

**Step 2: Verification**
- Ask for identity verification: "To start, could you please confirm your full name and your role in the company?"
- Wait for the response.

**Step 3: Questioning Flow (CRITICAL)**
- You will ask the following questions ONE BY ONE. DO NOT ask the next question until you have received a relevant answer for the current one.
- **Questioning Process for EACH question:**
    1. Ask the question clearly.
    2. Listen for the user's response.
    3. Evaluate the response. Is it a reasonable, on-topic answer to the question asked?
    4. **If the answer is relevant:** Say "Thank you." or "I see, thanks for sharing." and then immediately ask the VERY NEXT question from the list.
    5. **If the answer is vague, off-topic, or the user says "I don't know":** You must politely probe for more information. DO NOT move to the next question.
    6. **If the user's response is unintelligible, nonsensical, or seems to be background noise,** you must politely repeat your last question.

**Question List:**
1. Could you tell me about yourself and your professional journey so far?
2. What inspired you to become a founder?
3. What problem is your startup solving?
4. Why do you believe your solution is unique?
5. Who are your target customers?
6. Can you share your current traction (customers, revenue, or adoption numbers)?
7. Tell me about your founding team and their strengths.
8. Where do you see your startup in the next 3-5 years?
9. Is there anything else you'd like investors to know about you or your company?

**Step 4: Closing**
- After the final question is answered, thank the founder, summarize that their details will be shared with the investment analysts, and end the call by saying goodbye.

Begin now with Step 1."""

OPENING_MESSAGE = "Please introduce yourself and start the interview."
CLOSING_PHRASES = ("thank you for your time", "have a great day")
SILENT_RECOGNITION_ERRORS = {"no-speech", "aborted"}


class VoiceStatus(str, Enum):
    INITIALIZING = "initializing"
    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"
    SPEAKING = "speaking"


class Speaker(str, Enum):
    AI = "ai"
    USER = "user"
    SYSTEM = "system"


class TranscriptItem(BaseModel):
    speaker: Speaker
    text: str


class VoiceTurn(BaseModel):
    """Snapshot returned to the client after every interaction."""

    session_id: str
    status: VoiceStatus
    voice_mode: bool
    reply: Optional[str] = None
    audio_base64: Optional[str] = None
    error: Optional[str] = None
    finished: bool = False
    transcript: List[TranscriptItem] = Field(default_factory=list)


class VoiceSessionError(Exception):
    """An action arrived in a state that does not accept it."""


class VoiceInterviewSession:
    def __init__(
        self,
        client: GenerativeClient,
        *,
        speech_supported: bool = True,
        session_id: Optional[str] = None,
    ) -> None:
        self.id = session_id or new_id("voice")
        self.client = client
        self.voice_mode = speech_supported
        self.status = VoiceStatus.INITIALIZING
        self.transcript: List[TranscriptItem] = []
        self.error: Optional[str] = None
        self._chat: Optional[ChatSession] = None

    @property
    def finished(self) -> bool:
        return any(
            item.speaker == Speaker.AI and any(phrase in item.text.lower() for phrase in CLOSING_PHRASES)
            for item in self.transcript
        )

    def start(self) -> VoiceTurn:
        if self.status != VoiceStatus.INITIALIZING:
            raise VoiceSessionError("Interview already started")
        self._add(Speaker.SYSTEM, "Initializing AI Assistant...")
        if not self.voice_mode:
            self.error = "Voice input is not supported. Please use text input."
        self.status = VoiceStatus.PROCESSING
        try:
            self._chat = self.client.start_chat(INTERVIEW_SYSTEM_INSTRUCTION)
            reply = self._chat.send(OPENING_MESSAGE)
        except CollaboratorError:
            logger.warning("Interview initialisation failed", extra={"session_id": self.id})
            self.error = "Failed to initialize the AI agent."
            self.status = VoiceStatus.IDLE
            return self.snapshot()
        return self._respond(reply)

    def user_message(self, text: str) -> VoiceTurn:
        if self.status not in (VoiceStatus.IDLE, VoiceStatus.LISTENING):
            raise VoiceSessionError(f"Cannot accept a message while {self.status.value}")
        if self._chat is None:
            raise VoiceSessionError("Interview has not been initialised")
        if not text.strip():
            self._resume_listening()
            return self.snapshot()

        self.status = VoiceStatus.PROCESSING
        self._add(Speaker.USER, text.strip())
        try:
            reply = self._chat.send(text.strip())
        except CollaboratorError:
            self.error = "Failed to get AI response."
            self.status = VoiceStatus.IDLE
            return self.snapshot()
        return self._respond(reply)

    def playback_finished(self) -> VoiceTurn:
        if self.status == VoiceStatus.SPEAKING:
            self._resume_listening()
        return self.snapshot()

    def interrupt(self) -> VoiceTurn:
        """Founder starts talking over the AI: drop its speech and listen."""

        if self.status != VoiceStatus.SPEAKING:
            raise VoiceSessionError("Nothing to interrupt")
        self._resume_listening()
        return self.snapshot()

    def start_listening(self) -> VoiceTurn:
        if self.status != VoiceStatus.IDLE:
            raise VoiceSessionError(f"Cannot start listening while {self.status.value}")
        self._resume_listening()
        return self.snapshot()

    def stop_listening(self) -> VoiceTurn:
        if self.status == VoiceStatus.LISTENING:
            self.status = VoiceStatus.IDLE
        return self.snapshot()

    def recognition_error(self, code: str) -> VoiceTurn:
        if code not in SILENT_RECOGNITION_ERRORS:
            self.error = "Voice recognition error. Please try again or use text input."
        self.status = VoiceStatus.IDLE
        return self.snapshot()

    def dismiss_error(self) -> VoiceTurn:
        self.error = None
        return self.snapshot()

    def to_transcript_source(self) -> DataSource:
        body = "\n\n".join(f"{item.speaker.value.upper()}: {item.text}" for item in self.transcript)
        content = (
            "# Founder Voice Interview Transcript\n"
            "**Call Metadata:**\n"
            f"- **Date/Time:** {datetime.utcnow().isoformat()}Z\n"
            "- **Outcome:** Success\n"
            "---\n"
            "**Transcript:**\n"
            f"{body}"
        )
        return DataSource(
            type=SourceType.TRANSCRIPT,
            content=content,
            filename="Founder Voice Interview Transcript",
            summary=preview_summary(body),
            status=SourceStatus.COMPLETED,
        )

    def snapshot(self, *, reply: Optional[str] = None, audio: Optional[bytes] = None) -> VoiceTurn:
        return VoiceTurn(
            session_id=self.id,
            status=self.status,
            voice_mode=self.voice_mode,
            reply=reply,
            audio_base64=base64.b64encode(audio).decode("ascii") if audio else None,
            error=self.error,
            finished=self.finished,
            transcript=list(self.transcript),
        )

    def _respond(self, reply: str) -> VoiceTurn:
        self._add(Speaker.AI, reply)
        self.status = VoiceStatus.SPEAKING
        try:
            audio = self.client.synthesize_speech(reply)
        except CollaboratorError:
            self.error = "Could not generate AI speech."
            audio = b""
        if not audio:
            self._resume_listening()
        return self.snapshot(reply=reply, audio=audio)

    def _resume_listening(self) -> None:
        self.status = VoiceStatus.LISTENING if self.voice_mode else VoiceStatus.IDLE

    def _add(self, speaker: Speaker, text: str) -> None:
        self.transcript.append(TranscriptItem(speaker=speaker, text=text))


class VoiceInterviewManager:
    """In-process registry of live interview sessions keyed by registration id.

    Chat sessions hold provider-side conversation state and are not persisted.
    """

    def __init__(self, client: GenerativeClient) -> None:
        self.client = client
        self._sessions: Dict[str, VoiceInterviewSession] = {}
        self._lock = threading.Lock()

    def open(self, registration_id: str, *, speech_supported: bool = True) -> VoiceInterviewSession:
        session = VoiceInterviewSession(self.client, speech_supported=speech_supported)
        with self._lock:
            self._sessions[registration_id] = session
        return session

    def get(self, registration_id: str) -> Optional[VoiceInterviewSession]:
        with self._lock:
            return self._sessions.get(registration_id)

    def close(self, registration_id: str) -> None:
        with self._lock:
            self._sessions.pop(registration_id, None)
