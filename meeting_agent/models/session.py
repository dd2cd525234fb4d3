"""
Session state for one meeting voice agent conversation.

A Session owns the identity, lifecycle state, voice parameters and ordered
conversation history of a single logical conversation. All mutations are
synchronous; the only asynchronous piece is the per-session turn lock that
serializes audio turns so history entries are appended in arrival order.
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from meeting_agent.config.constants import (
    DEFAULT_PERSONALITY,
    DEFAULT_PITCH,
    DEFAULT_SPEED,
    DEFAULT_VOICE,
    ERROR_SESSION_INITIALIZING,
    HISTORY_SESSION_INITIALIZED,
    HISTORY_SESSION_STOPPED,
    LOGGER_NAME,
    MAX_PITCH,
    MAX_SPEED,
    MIN_PITCH,
    MIN_SPEED,
)
from meeting_agent.errors import SessionStateError, VoiceSettingsError

logger = logging.getLogger(LOGGER_NAME)


class SessionState(str, Enum):
    IDLE = "Idle"
    INITIALIZING = "Initializing"
    ACTIVE = "Active"
    STOPPED = "Stopped"


class Speaker(str, Enum):
    HUMAN = "Human"
    AGENT = "Agent"
    SYSTEM = "System"


class VoiceSettings(BaseModel):
    """Voice parameters used for speech synthesis."""

    model_config = ConfigDict(frozen=True)

    voice: str = Field(DEFAULT_VOICE, min_length=1)
    speed: float = Field(DEFAULT_SPEED, ge=MIN_SPEED, le=MAX_SPEED)
    pitch: float = Field(DEFAULT_PITCH, ge=MIN_PITCH, le=MAX_PITCH)

    def merged(self, changes: dict) -> "VoiceSettings":
        """
        Return new settings with ``changes`` applied on top of these.

        Raises:
            VoiceSettingsError: If any resulting value is out of range
        """
        try:
            return VoiceSettings(**{**self.model_dump(), **changes})
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise VoiceSettingsError(f"Invalid voice settings: {details}")


class HistoryEntry(BaseModel):
    """One immutable line of conversation history."""

    model_config = ConfigDict(frozen=True)

    speaker: Speaker
    text: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SessionContext(BaseModel):
    """Read-only snapshot of a session handed to the audio pipeline."""

    model_config = ConfigDict(frozen=True)

    session_id: Optional[str]
    personality: str
    history: Tuple[HistoryEntry, ...]
    voice_settings: VoiceSettings


class Session:
    """
    State of a single meeting voice agent conversation.

    The lifecycle is Idle -> Initializing -> Active -> Stopped. A stopped session
    is never reused; re-initializing a connection creates a new Session.
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        personality: Optional[str] = None,
        voice_settings: Optional[VoiceSettings] = None,
    ):
        self.session_id = session_id
        self.personality = personality or DEFAULT_PERSONALITY
        self.voice_settings = voice_settings or VoiceSettings()
        self.state = SessionState.IDLE
        self._history: List[HistoryEntry] = []
        self.turn_lock = asyncio.Lock()

    def __repr__(self):
        return f"Session(id={self.session_id!r}, state={self.state.value}, history={len(self._history)})"

    @property
    def history(self) -> Tuple[HistoryEntry, ...]:
        return tuple(self._history)

    @property
    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE

    @property
    def is_live(self) -> bool:
        """True while the session accepts voice updates and stop requests."""
        return self.state in (SessionState.INITIALIZING, SessionState.ACTIVE)

    def _append(self, speaker: Speaker, text: str) -> HistoryEntry:
        entry = HistoryEntry(speaker=speaker, text=text)
        self._history.append(entry)
        return entry

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            if self.state == SessionState.INITIALIZING:
                raise SessionStateError("session is still initializing", code=ERROR_SESSION_INITIALIZING)
            raise SessionStateError("no active session")

    def require_active(self) -> None:
        """Raise SessionStateError unless the session accepts audio."""
        self._require(SessionState.ACTIVE)

    def begin(self) -> None:
        """Move from Idle to Initializing and record the initialization."""
        if self.state != SessionState.IDLE:
            raise SessionStateError(f"cannot initialize a session in state {self.state.value}")
        self.state = SessionState.INITIALIZING
        self._append(Speaker.SYSTEM, HISTORY_SESSION_INITIALIZED)
        logger.info(f"Session {self.session_id} initializing")

    def activate(self) -> None:
        """Acknowledge that the pipeline is ready and start accepting audio."""
        if self.state != SessionState.INITIALIZING:
            raise SessionStateError(f"cannot activate a session in state {self.state.value}")
        self.state = SessionState.ACTIVE
        logger.info(f"Session {self.session_id} active")

    def record_turn(self, transcript: str, reply: str) -> Tuple[HistoryEntry, HistoryEntry]:
        """Append the human utterance and the agent reply of one audio turn."""
        self._require(SessionState.ACTIVE)
        return self._append(Speaker.HUMAN, transcript), self._append(Speaker.AGENT, reply)

    def update_voice(self, changes: dict) -> VoiceSettings:
        """
        Merge voice setting changes into the session.

        Args:
            changes: Fields to change; absent fields keep their prior value

        Returns:
            The resulting voice settings

        Raises:
            SessionStateError: If the session is neither Initializing nor Active
            VoiceSettingsError: If a value is out of range (no mutation happens)
        """
        if not self.is_live:
            raise SessionStateError("no active session")
        self.voice_settings = self.voice_settings.merged(changes)
        return self.voice_settings

    def stop(self) -> None:
        """Explicit stop requested by the client."""
        if not self.is_live:
            raise SessionStateError("no active session")
        self.state = SessionState.STOPPED
        self._append(Speaker.SYSTEM, HISTORY_SESSION_STOPPED)
        logger.info(f"Session {self.session_id} stopped")

    def finalize(self) -> None:
        """Implicit teardown on replacement or disconnect; records nothing."""
        if self.state != SessionState.STOPPED:
            logger.info(f"Session {self.session_id} finalized from state {self.state.value}")
            self.state = SessionState.STOPPED

    def context(self) -> SessionContext:
        return SessionContext(
            session_id=self.session_id,
            personality=self.personality,
            history=self.history,
            voice_settings=self.voice_settings,
        )
