import asyncio

import pytest

from meeting_agent.bot.pipeline import FailureReason, PipelineFailed, PipelineOk
from meeting_agent.errors import EngineError
from meeting_agent.models.session import Session, VoiceSettings

from fakes import FakeReplyGenerator, FakeSynthesizer, FakeTranscriber, make_adapter


def active_context(**kwargs):
    session = Session(session_id="123", **kwargs)
    session.begin()
    session.activate()
    return session.context()


@pytest.mark.asyncio
class TestAudioPipelineAdapter:

    async def test_successful_turn(self):
        synthesizer = FakeSynthesizer(audio=b"mp3-bytes")
        adapter = make_adapter(synthesizer=synthesizer)

        result = await adapter.process(b"hi", active_context())

        assert isinstance(result, PipelineOk)
        assert result.ok
        assert result.transcript == "hi"
        assert result.reply == "reply to hi"
        assert result.synthesized_audio == b"mp3-bytes"
        assert synthesizer.calls[0][0] == "reply to hi"

    async def test_context_is_passed_to_generator(self):
        generator = FakeReplyGenerator(reply="hello")
        adapter = make_adapter(generator=generator)

        await adapter.process(b"hi", active_context(personality="Terse"))

        history, personality, text = generator.calls[0]
        assert personality == "Terse"
        assert text == "hi"
        assert len(history) == 1

    async def test_voice_settings_are_passed_to_synthesizer(self):
        synthesizer = FakeSynthesizer()
        adapter = make_adapter(synthesizer=synthesizer)
        settings = VoiceSettings(voice="nova", speed=1.5)

        await adapter.process(b"hi", active_context(voice_settings=settings))

        assert synthesizer.calls[0][1] == settings

    async def test_no_synthesized_audio_is_still_ok(self):
        adapter = make_adapter(synthesizer=FakeSynthesizer(audio=None))

        result = await adapter.process(b"hi", active_context())

        assert result.ok
        assert result.synthesized_audio is None

    @pytest.mark.parametrize(
        "overrides,reason",
        [
            ({"transcriber": FakeTranscriber(error=EngineError("asr down"))}, FailureReason.TRANSCRIPTION_FAILED),
            ({"generator": FakeReplyGenerator(error=EngineError("llm down"))}, FailureReason.GENERATION_FAILED),
            ({"synthesizer": FakeSynthesizer(error=RuntimeError("tts down"))}, FailureReason.SYNTHESIS_FAILED),
        ],
    )
    async def test_stage_failures(self, overrides, reason):
        adapter = make_adapter(**overrides)

        result = await adapter.process(b"hi", active_context())

        assert isinstance(result, PipelineFailed)
        assert not result.ok
        assert result.reason == reason
        assert result.detail

    async def test_empty_transcript_is_transcription_failure(self):
        adapter = make_adapter()

        result = await adapter.process(b"   ", active_context())

        assert result.reason == FailureReason.TRANSCRIPTION_FAILED

    async def test_empty_reply_is_generation_failure(self):
        adapter = make_adapter(generator=FakeReplyGenerator(reply=""))

        result = await adapter.process(b"hi", active_context())

        assert result.reason == FailureReason.GENERATION_FAILED

    async def test_non_text_transcript_is_transcription_failure(self):
        class NumberTranscriber(FakeTranscriber):
            async def transcribe(self, audio):
                return 42

        adapter = make_adapter(transcriber=NumberTranscriber())

        result = await adapter.process(b"hi", active_context(), timeout=1)

        assert isinstance(result, PipelineFailed)
        assert result.reason == FailureReason.TRANSCRIPTION_FAILED
        assert "int" in result.detail

    async def test_non_text_reply_is_generation_failure(self):
        adapter = make_adapter(generator=FakeReplyGenerator(reply=["not", "text"]))

        result = await adapter.process(b"hi", active_context())

        assert result.reason == FailureReason.GENERATION_FAILED

    async def test_non_bytes_audio_is_synthesis_failure(self):
        adapter = make_adapter(synthesizer=FakeSynthesizer(audio="not bytes"))

        result = await adapter.process(b"hi", active_context())

        assert result.reason == FailureReason.SYNTHESIS_FAILED

    async def test_error_outside_engine_call_blames_stage_reached(self):
        class BrokenGenerator(FakeReplyGenerator):
            def generate_reply(self, history, personality, text):
                raise RuntimeError("not even a coroutine")

        adapter = make_adapter(generator=BrokenGenerator())

        result = await adapter.process(b"hi", active_context())

        assert isinstance(result, PipelineFailed)
        assert result.reason == FailureReason.GENERATION_FAILED
        assert "RuntimeError" in result.detail

    async def test_deadline_exceeded(self):
        adapter = make_adapter(transcriber=FakeTranscriber(delay=1.0))

        result = await adapter.process(b"hi", active_context(), timeout=0.05)

        assert result.reason == FailureReason.TIMEOUT
        assert result.reason.error_code == "timeout"

    async def test_default_timeout_used(self):
        adapter = make_adapter(timeout=0.05, generator=FakeReplyGenerator(delay=1.0))

        result = await adapter.process(b"hi", active_context())

        assert result.reason == FailureReason.TIMEOUT

    async def test_warm_up(self):
        assert await make_adapter().warm_up(timeout=1)

    async def test_warm_up_not_ready(self):
        adapter = make_adapter(transcriber=FakeTranscriber(ready=False))

        assert not await adapter.warm_up(timeout=1)

    async def test_warm_up_timeout(self):
        class SlowTranscriber(FakeTranscriber):
            async def warm_up(self):
                await asyncio.sleep(1)
                return True

        adapter = make_adapter(transcriber=SlowTranscriber())

        assert not await adapter.warm_up(timeout=0.05)


def test_failure_reasons_map_to_error_codes():
    assert FailureReason.TRANSCRIPTION_FAILED.error_code == "transcription_failed"
    assert FailureReason.GENERATION_FAILED.error_code == "generation_failed"
    assert FailureReason.SYNTHESIS_FAILED.error_code == "synthesis_failed"
    for reason in FailureReason:
        assert reason.description
