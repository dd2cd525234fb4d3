"""
Bot module for the audio pipeline behind a meeting session.

Key components:
- AudioPipelineAdapter: Composes transcription, reply generation and speech
  synthesis into one call bounded by a deadline, returning either PipelineOk or
  PipelineFailed and never raising.
- Transcriber, ReplyGenerator, SpeechSynthesizer: The engine interfaces the
  adapter composes. Any implementation can be plugged in.
- OpenAI engines: Implementations backed by the OpenAI audio and chat endpoints.

Usage examples:
```python
from meeting_agent.bot import build_openai_adapter

adapter = build_openai_adapter()

async def one_turn(audio_bytes, session):
    if not await adapter.warm_up():
        return None
    result = await adapter.process(audio_bytes, session.context(), timeout=10)
    if result.ok:
        print(result.transcript, "->", result.reply)
    else:
        print("failed:", result.reason)
```
"""

from meeting_agent.bot.pipeline import (
    AudioPipelineAdapter,
    FailureReason,
    PipelineFailed,
    PipelineOk,
    ReplyGenerator,
    SpeechSynthesizer,
    Transcriber,
)
from meeting_agent.bot.openai_engines import build_openai_adapter

__all__ = [
    "AudioPipelineAdapter",
    "FailureReason",
    "PipelineFailed",
    "PipelineOk",
    "ReplyGenerator",
    "SpeechSynthesizer",
    "Transcriber",
    "build_openai_adapter",
]
