"""
Audio pipeline adapter between the session protocol and the speech engines.

The adapter composes three external collaborators into one request:

    transcribe(audio) -> text
    generate_reply(history, personality, text) -> text
    synthesize(text, voice_settings) -> audio

and turns the outcome into an AudioPipelineResult. Whatever goes wrong inside the
engines (errors, timeouts, unexpected exceptions), the caller always receives a
structured result and never an exception.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict

from meeting_agent.config.constants import (
    ERROR_GENERATION_FAILED,
    ERROR_SYNTHESIS_FAILED,
    ERROR_TIMEOUT,
    ERROR_TRANSCRIPTION_FAILED,
    LOGGER_NAME,
)
from meeting_agent.config.settings import PIPELINE_TIMEOUT_SECONDS, PIPELINE_WARMUP_TIMEOUT_SECONDS
from meeting_agent.models.session import HistoryEntry, SessionContext, VoiceSettings

logger = logging.getLogger(LOGGER_NAME)


class FailureReason(str, Enum):
    TRANSCRIPTION_FAILED = "TranscriptionFailed"
    GENERATION_FAILED = "GenerationFailed"
    SYNTHESIS_FAILED = "SynthesisFailed"
    TIMEOUT = "Timeout"

    @property
    def error_code(self) -> str:
        return _ERROR_CODES[self]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_ERROR_CODES = {
    FailureReason.TRANSCRIPTION_FAILED: ERROR_TRANSCRIPTION_FAILED,
    FailureReason.GENERATION_FAILED: ERROR_GENERATION_FAILED,
    FailureReason.SYNTHESIS_FAILED: ERROR_SYNTHESIS_FAILED,
    FailureReason.TIMEOUT: ERROR_TIMEOUT,
}

_DESCRIPTIONS = {
    FailureReason.TRANSCRIPTION_FAILED: "Could not transcribe audio",
    FailureReason.GENERATION_FAILED: "Could not generate a reply",
    FailureReason.SYNTHESIS_FAILED: "Could not synthesize the reply",
    FailureReason.TIMEOUT: "Audio processing timed out",
}


class PipelineOk(BaseModel):
    model_config = ConfigDict(frozen=True)

    transcript: str
    reply: str
    synthesized_audio: Optional[bytes] = None

    @property
    def ok(self) -> bool:
        return True


class PipelineFailed(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: FailureReason
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return False


class Transcriber:
    """Speech-to-text engine interface."""

    async def transcribe(self, audio: bytes) -> str:
        raise NotImplementedError

    async def warm_up(self) -> bool:
        return True


class ReplyGenerator:
    """Language-response engine interface."""

    async def generate_reply(self, history: Sequence[HistoryEntry], personality: str, text: str) -> str:
        raise NotImplementedError

    async def warm_up(self) -> bool:
        return True


class SpeechSynthesizer:
    """Text-to-speech engine interface. May return None when there is nothing to speak."""

    async def synthesize(self, text: str, voice_settings: VoiceSettings) -> Optional[bytes]:
        raise NotImplementedError

    async def warm_up(self) -> bool:
        return True


class _StageFailed(Exception):
    def __init__(self, reason: FailureReason, detail: str):
        super().__init__(detail)
        self.reason = reason
        self.detail = detail


class AudioPipelineAdapter:
    """
    Composes transcription, reply generation and synthesis into one bounded call.

    The adapter never mutates session state. It works from the SessionContext
    snapshot it is given and leaves applying the result to the Dispatcher.
    """

    def __init__(
        self,
        transcriber: Transcriber,
        generator: ReplyGenerator,
        synthesizer: SpeechSynthesizer,
        default_timeout: float = PIPELINE_TIMEOUT_SECONDS,
    ):
        self.transcriber = transcriber
        self.generator = generator
        self.synthesizer = synthesizer
        self.default_timeout = default_timeout

    async def warm_up(self, timeout: float = PIPELINE_WARMUP_TIMEOUT_SECONDS) -> bool:
        """
        Check that every engine is ready to serve requests.

        Returns:
            True if all engines acknowledged readiness within ``timeout``
        """
        try:
            results = await asyncio.wait_for(
                asyncio.gather(
                    self.transcriber.warm_up(),
                    self.generator.warm_up(),
                    self.synthesizer.warm_up(),
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Pipeline warm-up timed out after {timeout}s")
            return False
        except Exception as e:
            logger.error(f"Pipeline warm-up failed: {e}", exc_info=True)
            return False
        return all(results)

    async def process(self, audio: bytes, context: SessionContext, timeout: Optional[float] = None):
        """
        Run one audio turn through the pipeline.

        Args:
            audio: Raw recorded audio bytes
            context: Snapshot of the session (personality, history, voice settings)
            timeout: Deadline in seconds for the whole turn; defaults to the adapter's

        Returns:
            PipelineOk with transcript, reply and optional audio, or PipelineFailed
        """
        deadline = self.default_timeout if timeout is None else timeout
        start_time = time.time()
        # stages reached so far; the last one is blamed for unexpected errors
        reached = []
        try:
            result = await asyncio.wait_for(self._run(audio, context, reached), timeout=deadline)
        except asyncio.TimeoutError:
            logger.warning(f"Pipeline timed out after {deadline}s for session: {context.session_id}")
            return PipelineFailed(reason=FailureReason.TIMEOUT, detail=f"no result within {deadline}s")
        except _StageFailed as e:
            logger.warning(f"Pipeline failed ({e.reason.value}) for session {context.session_id}: {e.detail}")
            return PipelineFailed(reason=e.reason, detail=e.detail)
        except Exception as e:
            reason = reached[-1] if reached else FailureReason.TRANSCRIPTION_FAILED
            logger.error(
                f"Unexpected pipeline error ({reason.value}) for session {context.session_id}: {e}",
                exc_info=True,
            )
            return PipelineFailed(reason=reason, detail=f"{type(e).__name__}: {e}")

        logger.info(
            f"Pipeline completed in {(time.time() - start_time) * 1000:.0f}ms for session: {context.session_id}"
        )
        return result

    async def _run(self, audio: bytes, context: SessionContext, reached: list) -> PipelineOk:
        reached.append(FailureReason.TRANSCRIPTION_FAILED)
        transcript = await self._stage(
            FailureReason.TRANSCRIPTION_FAILED, self.transcriber.transcribe(audio), _require_text
        )

        reached.append(FailureReason.GENERATION_FAILED)
        reply = await self._stage(
            FailureReason.GENERATION_FAILED,
            self.generator.generate_reply(context.history, context.personality, transcript),
            _require_text,
        )

        reached.append(FailureReason.SYNTHESIS_FAILED)
        synthesized = await self._stage(
            FailureReason.SYNTHESIS_FAILED,
            self.synthesizer.synthesize(reply, context.voice_settings),
            _optional_audio,
        )
        return PipelineOk(transcript=transcript, reply=reply, synthesized_audio=synthesized)

    @staticmethod
    async def _stage(reason: FailureReason, call, check):
        try:
            return check(await call)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise _StageFailed(reason, str(e) or type(e).__name__)


def _require_text(value) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected text, engine returned {type(value).__name__}")
    if not value.strip():
        raise ValueError("empty result")
    return value


def _optional_audio(value) -> Optional[bytes]:
    if value is None:
        return None
    if not isinstance(value, (bytes, bytearray)):
        raise TypeError(f"expected audio bytes, engine returned {type(value).__name__}")
    return bytes(value) or None
