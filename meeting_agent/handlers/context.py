"""
Per-connection context shared by the message handlers.
"""

from dataclasses import dataclass

from meeting_agent.bot.pipeline import AudioPipelineAdapter
from meeting_agent.config.settings import PIPELINE_TIMEOUT_SECONDS, PIPELINE_WARMUP_TIMEOUT_SECONDS
from meeting_agent.models.session import Session
from meeting_agent.models.session_registry import SessionRegistry


@dataclass
class HandlerContext:
    connection_id: str
    registry: SessionRegistry
    adapter: AudioPipelineAdapter
    pipeline_timeout: float = PIPELINE_TIMEOUT_SECONDS
    warmup_timeout: float = PIPELINE_WARMUP_TIMEOUT_SECONDS

    @property
    def session(self) -> Session:
        return self.registry.get_or_create(self.connection_id)
