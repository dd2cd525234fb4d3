"""
Models module for data structures and state management in the meeting voice agent.

Key components:
- message_schemas: Pydantic models for every message of the WebSocket protocol,
  plus the decode/encode codec used on both sides of the connection.
- session: The Session model (state, voice settings, append-only history).
- session_registry: The SessionRegistry mapping connections to sessions and
  handing out generation numbers.

Usage examples:
```python
from meeting_agent.models.message_schemas import decode, encode, ErrorMessage
from meeting_agent.models.session_registry import SessionRegistry

message = decode('{"type": "init_meeting", "meetingId": "123"}')

registry = SessionRegistry()
session = registry.get_or_create("connection-1")

await websocket.send_text(encode(ErrorMessage(message="no active session")))
```
"""

from meeting_agent.models.message_schemas import (
    AgentStoppedResponse,
    AIResponseMessage,
    AudioDataMessage,
    BaseMessage,
    ErrorMessage,
    IncomingMessage,
    InitMeetingMessage,
    MeetingInitializedResponse,
    OutgoingMessage,
    StopAgentMessage,
    UpdateVoiceMessage,
    VoiceSettingsPatch,
    VoiceUpdatedResponse,
    decode,
    encode,
)
from meeting_agent.models.session import (
    HistoryEntry,
    Session,
    SessionContext,
    SessionState,
    Speaker,
    VoiceSettings,
)
from meeting_agent.models.session_registry import SessionRegistry
