"""
Meeting Voice Agent - real-time voice sessions between a browser and a conversational agent

This application lets a browser client hold a spoken conversation with an AI agent
that represents a human in a meeting. The client streams recorded audio over a
WebSocket; the server transcribes it, generates a reply and streams back
synthesized speech, while keeping one coherent session per connection.

Architecture Overview:
- FastAPI server exposing the /ws WebSocket endpoint plus an HTTP companion API
- A per-connection protocol state machine (Idle -> Initializing -> Active -> Stopped)
- A failure-aware audio pipeline adapter in front of the speech and language engines
- A reconnecting WebSocket client with exponential backoff

Key Components:
- bot: The audio pipeline adapter and the OpenAI-backed speech and language engines
- config: Application-wide constants, environment settings and logging setup
- handlers: Message handlers and the Dispatcher state machine
- models: Wire message schemas, the Session model and the SessionRegistry
- services: Client implementation of the WebSocket protocol
- websocket_manager: Server-side handling of WebSocket connections

Getting Started:
1. Set up environment variables:
   - OPENAI_API_KEY: Your OpenAI API key
   - PORT: Port to run the server on (default 8000)
   - HOST: Host to bind the server to (default 0.0.0.0)
   - LOG_LEVEL: Logging level (default INFO)
   - PIPELINE_TIMEOUT_SECONDS: Deadline for one audio turn (default 15)

2. Start the server:
   ```bash
   python run.py
   ```

3. Point the browser client at ws://your-server:8000/ws and send init_meeting.
"""
