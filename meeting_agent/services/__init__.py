"""
Services module for clients of the meeting voice agent.

Key components:
- websocket_client: MeetingAgentClient, the client side of the WebSocket protocol,
  with a reconnect loop driven by ReconnectPolicy (exponential backoff, cap and
  jitter). A reconnect never resumes the old session.

Usage examples:
```python
import asyncio
from meeting_agent.services.websocket_client import MeetingAgentClient, ReconnectPolicy

async def main():
    async def on_connect(client):
        await client.init_meeting("weekly-sync", personality="Brief and friendly")

    async def on_message(message):
        print(message.type, message.model_dump())

    client = MeetingAgentClient(
        "ws://localhost:8000/ws",
        on_message=on_message,
        on_connect=on_connect,
        policy=ReconnectPolicy(base_delay=0.5, max_delay=10),
    )
    runner = asyncio.create_task(client.run())
    await client.connected.wait()
    await client.send_audio(open("question.webm", "rb").read())
    await asyncio.sleep(10)
    await client.close()
    await runner

asyncio.run(main())
```
"""
