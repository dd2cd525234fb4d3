"""
Pydantic models for the meeting voice agent WebSocket protocol.

This module defines structured data models for all incoming and outgoing messages
exchanged with the browser client, plus the codec functions that turn raw frames
into typed messages and back. Every frame is a single JSON object tagged by its
``type`` field.
"""

import base64
import binascii
import json
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from meeting_agent.errors import DecodeError


class BaseMessage(BaseModel):
    """Base model for all WebSocket messages."""

    type: str = Field(..., description="Message type identifier")


class VoiceSettingsPatch(BaseModel):
    """Partial voice settings; unset fields keep their previous value."""

    model_config = ConfigDict(extra="ignore")

    voice: Optional[str] = Field(None, description="Voice identifier for synthesis")
    speed: Optional[float] = Field(None, description="Speaking rate multiplier")
    pitch: Optional[float] = Field(None, description="Pitch shift in semitones")

    @field_validator("voice")
    def validate_voice(cls, v):
        """Validate that the voice identifier is not blank."""
        if v is not None and not v.strip():
            raise ValueError("Voice cannot be empty")
        return v

    def changes(self) -> dict:
        """Return only the fields the client actually set."""
        return self.model_dump(exclude_none=True)


# Client -> server
class InitMeetingMessage(BaseMessage):
    """Model for init_meeting message from the client."""

    type: Literal["init_meeting"]
    meetingId: str = Field(..., description="Client supplied session identifier")
    personality: Optional[str] = Field(None, description="Instruction shaping the agent's replies")
    voiceSettings: Optional[VoiceSettingsPatch] = Field(
        None, description="Initial voice settings for the session"
    )

    @field_validator("meetingId")
    def validate_meeting_id(cls, v):
        """Validate that the meeting ID is not empty."""
        if not v.strip():
            raise ValueError("Meeting ID cannot be empty")
        return v


class AudioDataMessage(BaseMessage):
    """Model for audio_data message from the client."""

    type: Literal["audio_data"]
    audio: str = Field(..., description="Base64-encoded recorded audio")

    @field_validator("audio")
    def validate_audio(cls, v):
        """Validate that audio is non-empty, valid base64."""
        if not v:
            raise ValueError("Audio cannot be empty")
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("Invalid base64 encoded audio data")
        return v

    @property
    def audio_bytes(self) -> bytes:
        return base64.b64decode(self.audio)


class UpdateVoiceMessage(BaseMessage):
    """Model for update_voice message from the client."""

    type: Literal["update_voice"]
    settings: VoiceSettingsPatch = Field(..., description="Voice settings to merge")


class StopAgentMessage(BaseMessage):
    """Model for stop_agent message from the client."""

    type: Literal["stop_agent"]


# Server -> client
class MeetingInitializedResponse(BaseMessage):
    """Model for meeting_initialized response to the client."""

    type: Literal["meeting_initialized"] = "meeting_initialized"
    success: bool = True
    meetingId: str


class AIResponseMessage(BaseMessage):
    """Model for ai_response message to the client."""

    type: Literal["ai_response"] = "ai_response"
    transcription: str
    response: str
    audio: Optional[str] = Field(None, description="Base64-encoded synthesized speech")

    @classmethod
    def from_turn(cls, transcript: str, reply: str, audio: Optional[bytes]) -> "AIResponseMessage":
        encoded = base64.b64encode(audio).decode("utf-8") if audio else None
        return cls(transcription=transcript, response=reply, audio=encoded)


class VoiceUpdatedResponse(BaseMessage):
    """Model for voice_updated response to the client."""

    type: Literal["voice_updated"] = "voice_updated"
    success: bool = True


class AgentStoppedResponse(BaseMessage):
    """Model for agent_stopped response to the client."""

    type: Literal["agent_stopped"] = "agent_stopped"
    success: bool = True


class ErrorMessage(BaseMessage):
    """Model for error message to the client."""

    type: Literal["error"] = "error"
    message: str
    code: Optional[str] = Field(None, description="Machine readable error code")


# Union type for all possible incoming messages
IncomingMessage = Annotated[
    Union[InitMeetingMessage, AudioDataMessage, UpdateVoiceMessage, StopAgentMessage],
    Field(discriminator="type"),
]

# Union type for all possible outgoing messages
OutgoingMessage = Annotated[
    Union[
        MeetingInitializedResponse,
        AIResponseMessage,
        VoiceUpdatedResponse,
        AgentStoppedResponse,
        ErrorMessage,
    ],
    Field(discriminator="type"),
]

_incoming_adapter = TypeAdapter(IncomingMessage)
_outgoing_adapter = TypeAdapter(OutgoingMessage)


def _describe(error: ValidationError, tag: Optional[str] = None) -> str:
    first = error.errors()[0]
    loc = list(first.get("loc", ()))
    # tagged unions prefix the location with the tag
    if tag is not None and loc and loc[0] == tag:
        loc = loc[1:]
    location = ".".join(str(part) for part in loc)
    return f"{location}: {first.get('msg')}" if location else first.get("msg", "invalid message")


def _load(raw_frame: Union[str, bytes]) -> dict:
    if isinstance(raw_frame, (bytes, bytearray)):
        try:
            raw_frame = raw_frame.decode("utf-8")
        except UnicodeDecodeError:
            raise DecodeError("Frame is not valid UTF-8")
    try:
        data = json.loads(raw_frame)
    except json.JSONDecodeError:
        raise DecodeError("Frame is not valid JSON")
    if not isinstance(data, dict):
        raise DecodeError("Frame must be a JSON object")
    return data


def decode(raw_frame: Union[str, bytes]):
    """
    Decode a raw client frame into a typed incoming message.

    Args:
        raw_frame: Text (or UTF-8 bytes) holding one JSON object

    Returns:
        One of the IncomingMessage models

    Raises:
        DecodeError: If the frame is not a JSON object, the tag is unknown,
            or the payload fails validation
    """
    data = _load(raw_frame)
    message_type = data.get("type")
    if not isinstance(message_type, str):
        raise DecodeError("Message has no type")
    try:
        return _incoming_adapter.validate_python(data)
    except ValidationError as e:
        if e.errors()[0].get("type") == "union_tag_invalid":
            raise DecodeError(f"Unknown message type: {message_type}")
        raise DecodeError(f"Invalid {message_type} message: {_describe(e, message_type)}")


def decode_outgoing(raw_frame: Union[str, bytes]):
    """Decode a server frame; used by the client side of the protocol."""
    data = _load(raw_frame)
    try:
        return _outgoing_adapter.validate_python(data)
    except ValidationError as e:
        raise DecodeError(f"Invalid server message: {_describe(e, data.get('type'))}")


def encode(message: BaseMessage) -> str:
    """Serialize a message to its wire frame, omitting unset optional fields."""
    if isinstance(message, AIResponseMessage):
        # audio is part of the contract even when null
        return message.model_dump_json()
    return message.model_dump_json(exclude_none=True)
