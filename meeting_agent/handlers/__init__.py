"""
Handlers module for the meeting voice agent WebSocket protocol.

This module provides the handlers that apply client messages to a connection's
session, and the Dispatcher that decides which of them a message may reach.

Key components:
- dispatcher: The per-connection protocol state machine. It decodes frames, checks
  them against the session state, runs the handler and emits the response.
- session_handlers: init_meeting (create or replace the session) and stop_agent.
- stream_handlers: audio_data admission and the serialized pipeline turn.
- voice_handlers: update_voice.

Usage examples:
```python
from meeting_agent.handlers.dispatcher import Dispatcher
from meeting_agent.models.message_schemas import encode

dispatcher = Dispatcher(connection_id, registry, adapter, send=send_frame)

async for frame in websocket.iter_text():
    await dispatcher.dispatch(frame)

await dispatcher.close()
```
"""
