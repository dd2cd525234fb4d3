"""
OpenAI-backed speech and language engines for the audio pipeline.

Each engine wraps one OpenAI REST endpoint:
- OpenAITranscriber: /audio/transcriptions (Whisper)
- OpenAIReplyGenerator: /chat/completions
- OpenAISynthesizer: /audio/speech

The blocking ``requests`` calls run in a worker thread via ``asyncio.to_thread``
so the event loop keeps serving other connections while a turn is processed.
Failures are raised as EngineError and mapped to pipeline failures by the adapter.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

import requests

from meeting_agent.bot.pipeline import (
    AudioPipelineAdapter,
    ReplyGenerator,
    SpeechSynthesizer,
    Transcriber,
)
from meeting_agent.config import settings
from meeting_agent.config.constants import (
    AGENT_ROLE_PREAMBLE,
    AUDIO_UPLOAD_FILENAME,
    AUDIO_UPLOAD_MIME_TYPE,
    LOGGER_NAME,
)
from meeting_agent.errors import EngineError
from meeting_agent.models.session import HistoryEntry, Speaker, VoiceSettings

logger = logging.getLogger(LOGGER_NAME)

# Voices accepted by the OpenAI speech endpoint
OPENAI_VOICES = {"alloy", "ash", "ballad", "coral", "echo", "fable", "nova", "onyx", "sage", "shimmer"}


class OpenAIEngine:
    """Shared request plumbing for the OpenAI engines."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_base: str = None,
        request_timeout: float = None,
    ):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.api_base = (api_base or settings.OPENAI_API_BASE).rstrip("/")
        self.request_timeout = request_timeout or settings.ENGINE_HTTP_TIMEOUT_SECONDS

    async def warm_up(self) -> bool:
        if not self.api_key:
            logger.error("OPENAI_API_KEY environment variable not set")
            return False
        return True

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise EngineError("OPENAI_API_KEY environment variable not set")
        return {"Authorization": f"Bearer {self.api_key}"}

    async def _post(self, path: str, **kwargs) -> requests.Response:
        endpoint = f"{self.api_base}{path}"
        try:
            response = await asyncio.to_thread(
                requests.post,
                endpoint,
                headers=self._headers(),
                timeout=self.request_timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            raise EngineError(f"Request to {path} failed: {e}")

        if response.status_code != 200:
            raise EngineError(f"{path} returned {response.status_code}: {response.text[:200]}")
        return response


class OpenAITranscriber(OpenAIEngine, Transcriber):
    def __init__(self, model: str = None, **kwargs):
        super().__init__(**kwargs)
        self.model = model or settings.OPENAI_TRANSCRIPTION_MODEL

    async def transcribe(self, audio: bytes) -> str:
        response = await self._post(
            "/audio/transcriptions",
            files={"file": (AUDIO_UPLOAD_FILENAME, audio, AUDIO_UPLOAD_MIME_TYPE)},
            data={"model": self.model},
        )
        text = response.json().get("text", "")
        logger.debug(f"Transcribed {len(audio)} bytes into {len(text)} characters")
        return text


class OpenAIReplyGenerator(OpenAIEngine, ReplyGenerator):
    def __init__(self, model: str = None, max_tokens: int = None, **kwargs):
        super().__init__(**kwargs)
        self.model = model or settings.OPENAI_CHAT_MODEL
        self.max_tokens = max_tokens or settings.MAX_REPLY_TOKENS

    @staticmethod
    def build_messages(history: Sequence[HistoryEntry], personality: str, text: str) -> List[Dict[str, str]]:
        """Build the chat transcript: persona, prior human/agent turns, then the new utterance."""
        messages = [{"role": "system", "content": f"{AGENT_ROLE_PREAMBLE} {personality}"}]
        for entry in history:
            if entry.speaker == Speaker.HUMAN:
                messages.append({"role": "user", "content": entry.text})
            elif entry.speaker == Speaker.AGENT:
                messages.append({"role": "assistant", "content": entry.text})
        messages.append({"role": "user", "content": text})
        return messages

    async def generate_reply(self, history: Sequence[HistoryEntry], personality: str, text: str) -> str:
        payload = {
            "model": self.model,
            "messages": self.build_messages(history, personality, text),
            "max_tokens": self.max_tokens,
        }
        response = await self._post("/chat/completions", json=payload)
        try:
            return response.json()["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise EngineError(f"Unexpected chat completion payload: {e}")


class OpenAISynthesizer(OpenAIEngine, SpeechSynthesizer):
    def __init__(self, model: str = None, fallback_voice: str = None, **kwargs):
        super().__init__(**kwargs)
        self.model = model or settings.OPENAI_TTS_MODEL
        self.fallback_voice = fallback_voice or settings.OPENAI_TTS_VOICE

    def resolve_voice(self, voice: str) -> str:
        if voice in OPENAI_VOICES:
            return voice
        logger.debug(f"Voice {voice} not available, using {self.fallback_voice}")
        return self.fallback_voice

    async def synthesize(self, text: str, voice_settings: VoiceSettings) -> Optional[bytes]:
        if not text.strip():
            return None
        # The speech endpoint has no pitch control; pitch is ignored here
        payload = {
            "model": self.model,
            "input": text,
            "voice": self.resolve_voice(voice_settings.voice),
            "speed": voice_settings.speed,
            "response_format": "mp3",
        }
        response = await self._post("/audio/speech", json=payload)
        return response.content or None


def build_openai_adapter(api_key: Optional[str] = None) -> AudioPipelineAdapter:
    """Create the default pipeline adapter backed by the OpenAI engines."""
    return AudioPipelineAdapter(
        transcriber=OpenAITranscriber(api_key=api_key),
        generator=OpenAIReplyGenerator(api_key=api_key),
        synthesizer=OpenAISynthesizer(api_key=api_key),
    )
