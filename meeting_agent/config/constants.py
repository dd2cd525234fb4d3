"""
Constants and configuration values used throughout the application.

This module defines constants that are used across different parts of the application,
providing a centralized location for protocol tags, session defaults and error codes,
and making it easier to maintain consistent naming throughout the codebase.
"""

# Logger name used throughout the application
LOGGER_NAME = "meeting_agent"

# Client -> server message types
MESSAGE_TYPE_INIT_MEETING = "init_meeting"
MESSAGE_TYPE_AUDIO_DATA = "audio_data"
MESSAGE_TYPE_UPDATE_VOICE = "update_voice"
MESSAGE_TYPE_STOP_AGENT = "stop_agent"

# Server -> client message types
MESSAGE_TYPE_MEETING_INITIALIZED = "meeting_initialized"
MESSAGE_TYPE_AI_RESPONSE = "ai_response"
MESSAGE_TYPE_VOICE_UPDATED = "voice_updated"
MESSAGE_TYPE_AGENT_STOPPED = "agent_stopped"
MESSAGE_TYPE_ERROR = "error"

# Session defaults
DEFAULT_PERSONALITY = (
    "You are professional, helpful, and engage naturally in conversation. "
    "Keep responses concise and meeting-appropriate."
)
AGENT_ROLE_PREAMBLE = "You are an AI assistant representing a human in a meeting."
DEFAULT_VOICE = "en-US-Neural2-F"
DEFAULT_SPEED = 1.0
DEFAULT_PITCH = 0.0

# Voice settings bounds (inclusive)
MIN_SPEED = 0.5
MAX_SPEED = 2.0
MIN_PITCH = -20.0
MAX_PITCH = 20.0

# History texts for system entries
HISTORY_SESSION_INITIALIZED = "AI Agent initialized for meeting"
HISTORY_SESSION_STOPPED = "AI Agent stopped"

# Error codes carried in error.code
ERROR_INVALID_MESSAGE = "invalid_message"
ERROR_NO_ACTIVE_SESSION = "no_active_session"
ERROR_SESSION_INITIALIZING = "session_initializing"
ERROR_INVALID_VOICE_SETTINGS = "invalid_voice_settings"
ERROR_PIPELINE_NOT_READY = "pipeline_not_ready"
ERROR_TRANSCRIPTION_FAILED = "transcription_failed"
ERROR_GENERATION_FAILED = "generation_failed"
ERROR_SYNTHESIS_FAILED = "synthesis_failed"
ERROR_TIMEOUT = "timeout"
ERROR_REQUEST_DISCARDED = "request_discarded"
ERROR_TOO_MANY_TURNS = "too_many_turns"

# Audio turns a single connection may have queued or in flight at once
MAX_PENDING_AUDIO_TURNS = 4

# Connection id used by the HTTP companion surface
REST_CONNECTION_ID = "rest-api"

# Format the browser records in (MediaRecorder default)
AUDIO_UPLOAD_FILENAME = "audio.webm"
AUDIO_UPLOAD_MIME_TYPE = "audio/webm"
