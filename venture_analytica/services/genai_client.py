"""Thin wrapper around the Gemini API (google-genai) used for all generative calls."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Type, TypeVar

from google import genai
from google.genai import types
from pydantic import BaseModel

from venture_analytica.models.report_models import ResearchCitation


logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class CollaboratorError(RuntimeError):
    """The generative service failed (network, auth, quota or malformed output)."""


@dataclass
class GenerationResult:
    text: str
    sources: List[ResearchCitation] = field(default_factory=list)


class ChatSession:
    """Stateful multi-turn conversation backed by a Gemini chat."""

    def __init__(self, chat: Any) -> None:
        self._chat = chat

    def send(self, message: str) -> str:
        try:
            response = self._chat.send_message(message)
        except Exception as exc:
            logger.warning("Chat turn failed", exc_info=True)
            raise CollaboratorError(f"Chat request failed: {exc}") from exc
        return response.text or ""


class GenerativeClient:
    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        text_model: str = "gemini-2.5-flash",
        structured_model: str = "gemini-2.5-pro",
        chat_model: str = "gemini-2.5-pro",
        tts_model: str = "gemini-2.5-flash-preview-tts",
        tts_voice: str = "Zephyr",
        client: Optional[genai.Client] = None,
    ) -> None:
        self.api_key = api_key
        self.text_model = text_model
        self.structured_model = structured_model
        self.chat_model = chat_model
        self.tts_model = tts_model
        self.tts_voice = tts_voice
        self._client = client

    @property
    def client(self) -> genai.Client:
        # Created lazily so the API can boot without credentials; calls then fail per-operation.
        if self._client is None:
            try:
                self._client = genai.Client(api_key=self.api_key)
            except Exception as exc:
                raise CollaboratorError(f"Gemini client unavailable: {exc}") from exc
        return self._client

    def generate_text(
        self,
        prompt: str,
        *,
        system_instruction: Optional[str] = None,
        use_search: bool = False,
    ) -> GenerationResult:
        config_kwargs: dict = {}
        if system_instruction:
            config_kwargs["system_instruction"] = system_instruction
        if use_search:
            config_kwargs["tools"] = [types.Tool(google_search=types.GoogleSearch())]
        config = types.GenerateContentConfig(**config_kwargs) if config_kwargs else None

        try:
            response = self.client.models.generate_content(
                model=self.text_model, contents=prompt, config=config
            )
        except CollaboratorError:
            raise
        except Exception as exc:
            logger.warning("Text generation failed", exc_info=True, extra={"model": self.text_model})
            raise CollaboratorError(f"Text generation failed: {exc}") from exc

        text = response.text
        if not text:
            raise CollaboratorError("Generative service returned an empty response")
        return GenerationResult(text=text, sources=self._citations(response))

    def generate_json(self, prompt: str, schema: Type[SchemaT]) -> SchemaT:
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=schema,
        )
        try:
            response = self.client.models.generate_content(
                model=self.structured_model, contents=prompt, config=config
            )
            return schema.model_validate_json((response.text or "").strip())
        except CollaboratorError:
            raise
        except Exception as exc:
            logger.warning(
                "Structured generation failed", exc_info=True, extra={"model": self.structured_model}
            )
            raise CollaboratorError(f"Structured generation failed: {exc}") from exc

    def start_chat(self, system_instruction: str) -> ChatSession:
        try:
            chat = self.client.chats.create(
                model=self.chat_model,
                config=types.GenerateContentConfig(system_instruction=system_instruction),
            )
        except CollaboratorError:
            raise
        except Exception as exc:
            raise CollaboratorError(f"Could not open chat session: {exc}") from exc
        return ChatSession(chat)

    def synthesize_speech(self, text: str) -> bytes:
        """Return raw 24kHz mono PCM audio for ``text``; empty bytes when no audio came back."""

        config = types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=self.tts_voice)
                )
            ),
        )
        prompt = f"Speak this naturally and conversationally, without awkward pauses: {text}"
        try:
            response = self.client.models.generate_content(
                model=self.tts_model, contents=prompt, config=config
            )
        except CollaboratorError:
            raise
        except Exception as exc:
            logger.warning("Speech synthesis failed", exc_info=True)
            raise CollaboratorError(f"Speech synthesis failed: {exc}") from exc

        candidates = response.candidates or []
        if not candidates or candidates[0].content is None:
            return b""
        for part in candidates[0].content.parts or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                return inline.data
        return b""

    def _citations(self, response: Any) -> List[ResearchCitation]:
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return []
        metadata = getattr(candidates[0], "grounding_metadata", None)
        chunks = getattr(metadata, "grounding_chunks", None) or []
        citations: List[ResearchCitation] = []
        for chunk in chunks:
            web = getattr(chunk, "web", None)
            if web is None:
                continue
            citations.append(ResearchCitation(title=web.title, uri=web.uri))
        return citations
