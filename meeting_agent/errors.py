"""
Exception types for the meeting voice agent.

Every exception that can be reported back to a client carries a ``code`` that is
copied into the ``error.code`` field of the outbound error message, so the
Dispatcher can turn any of them into a wire message without inspecting its type.
"""

from meeting_agent.config.constants import (
    ERROR_INVALID_MESSAGE,
    ERROR_INVALID_VOICE_SETTINGS,
    ERROR_NO_ACTIVE_SESSION,
    ERROR_TOO_MANY_TURNS,
)


class MeetingAgentError(Exception):
    """Base class for errors reported to the client as an error message."""

    code = ERROR_INVALID_MESSAGE

    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ProtocolError(MeetingAgentError):
    """A message that is malformed or unexpected in the current session state."""


class DecodeError(ProtocolError):
    """A raw frame that is not well-formed JSON, has an unknown tag, or fails validation."""


class SessionStateError(ProtocolError):
    """A session operation attempted from a state that does not allow it."""

    code = ERROR_NO_ACTIVE_SESSION


class BacklogFullError(MeetingAgentError):
    """An audio turn arriving while the connection already has too many queued."""

    code = ERROR_TOO_MANY_TURNS


class VoiceSettingsError(MeetingAgentError):
    """Voice settings outside their allowed ranges."""

    code = ERROR_INVALID_VOICE_SETTINGS


class EngineError(Exception):
    """Raised by a speech or language engine. Never escapes the pipeline adapter."""
