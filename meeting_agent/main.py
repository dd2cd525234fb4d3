"""
FastAPI server for the meeting voice agent.

This module initializes and configures the FastAPI application that browser
clients talk to. It exposes:
- /ws: the WebSocket session protocol (init_meeting, audio_data, update_voice, stop_agent)
- /api/*: a request/response companion surface with the same semantics, driving
  one dedicated session
- /health: a liveness endpoint for load balancers and monitoring tools

Every WebSocket connection owns its own Session in the shared SessionRegistry;
the audio pipeline adapter is shared by all of them.
"""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import dotenv

# Load environment variables from .env file if it exists
env_path = Path(".") / ".env"
if env_path.exists():
    dotenv.load_dotenv(env_path)

from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from meeting_agent.bot.openai_engines import build_openai_adapter
from meeting_agent.config import settings
from meeting_agent.config.constants import (
    ERROR_INVALID_MESSAGE,
    ERROR_INVALID_VOICE_SETTINGS,
    ERROR_NO_ACTIVE_SESSION,
    ERROR_PIPELINE_NOT_READY,
    ERROR_REQUEST_DISCARDED,
    ERROR_SESSION_INITIALIZING,
    ERROR_TOO_MANY_TURNS,
    REST_CONNECTION_ID,
)
from meeting_agent.config.logging_config import configure_logging
from meeting_agent.models.message_schemas import (
    AIResponseMessage,
    ErrorMessage,
    InitMeetingMessage,
    VoiceSettingsPatch,
)
from meeting_agent.models.session_registry import SessionRegistry
from meeting_agent.websocket_manager import WebSocketManager

# Configure logging
logger = configure_logging()

# Create FastAPI application
app = FastAPI(
    title="Meeting Voice Agent",
    description="Real-time voice agent sessions for browser meeting clients",
    version="1.0.0",
)

# Add CORS middleware so the browser client can call the HTTP routes
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Shared session registry and pipeline
registry = SessionRegistry()
websocket_manager = WebSocketManager(registry, build_openai_adapter())
rest_dispatcher = websocket_manager.create_dispatcher(REST_CONNECTION_ID)

# HTTP status for error codes returned by the companion API
ERROR_STATUS = {
    ERROR_INVALID_MESSAGE: 400,
    ERROR_INVALID_VOICE_SETTINGS: 400,
    ERROR_NO_ACTIVE_SESSION: 409,
    ERROR_SESSION_INITIALIZING: 409,
    ERROR_PIPELINE_NOT_READY: 503,
    ERROR_REQUEST_DISCARDED: 409,
    ERROR_TOO_MANY_TURNS: 429,
}


class InitializeAgentRequest(BaseModel):
    meetingId: str = Field(..., description="Meeting identifier")
    personality: Optional[str] = None
    voiceSettings: Optional[VoiceSettingsPatch] = None


def _error_response(error: ErrorMessage, default_status: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=ERROR_STATUS.get(error.code, default_status),
        content={"success": False, "message": error.message, "code": error.code},
    )


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for real-time communication with the browser client.

    This endpoint handles the complete WebSocket lifecycle of a meeting session:
    - Session initialization and replacement (init_meeting)
    - Audio turns (audio_data -> ai_response)
    - Voice settings updates (update_voice)
    - Session termination (stop_agent, or the connection closing)
    """
    await websocket_manager.handle_websocket(websocket)


@app.post("/api/initialize-agent")
async def initialize_agent(request: InitializeAgentRequest):
    """Initialize (or re-initialize) the companion API's agent session.

    Returns:
        dict: success flag, message and the meeting ID
    """
    try:
        message = InitMeetingMessage(
            type="init_meeting",
            meetingId=request.meetingId,
            personality=request.personality,
            voiceSettings=request.voiceSettings,
        )
    except ValueError as e:
        return JSONResponse(status_code=400, content={"success": False, "message": str(e)})

    response = await rest_dispatcher.handle(message)
    if isinstance(response, ErrorMessage):
        return _error_response(response, default_status=500)
    return {
        "success": True,
        "message": "AI Agent initialized successfully",
        "meetingId": request.meetingId,
    }


@app.post("/api/process-audio")
async def process_audio(request: Request):
    """Run one audio turn for the companion API's session.

    The request body is the raw recorded audio.

    Returns:
        dict: transcription, response and base64 audio, or success=False with a message
    """
    audio = await request.body()
    if not audio:
        return JSONResponse(status_code=400, content={"success": False, "message": "No audio provided"})

    response = await rest_dispatcher.submit_audio(audio)
    if isinstance(response, AIResponseMessage):
        return {
            "success": True,
            "transcription": response.transcription,
            "response": response.response,
            "audio": response.audio,
        }
    return _error_response(response)


@app.get("/api/agent-status")
async def agent_status():
    """Report the state of the companion API's session.

    Returns:
        dict: whether the agent is active, its meeting ID and voice settings
    """
    session = rest_dispatcher.session
    return {
        "isActive": session.is_active,
        "meetingId": session.session_id,
        "voiceSettings": session.voice_settings.model_dump(),
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring system status.

    Returns:
        dict: Status information indicating the server is operational

    This endpoint can be used by load balancers or monitoring tools
    to verify the service is running and responsive.
    """
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "active_connections": websocket_manager.connection_count,
        "active_sessions": registry.active_count(),
        "openai_api_key_configured": bool(os.getenv("OPENAI_API_KEY")),
    }


@app.get("/")
async def root():
    """Root endpoint to display basic information about the API.

    Returns:
        dict: Basic information about the API and its purpose.
    """
    return {
        "name": "Meeting Voice Agent",
        "description": "Real-time voice agent sessions for browser meeting clients",
        "version": "1.0.0",
        "endpoints": {
            "/ws": "WebSocket session protocol",
            "/api/initialize-agent": "Initialize the agent session (HTTP)",
            "/api/process-audio": "Process one audio turn (HTTP)",
            "/api/agent-status": "Current agent session status (HTTP)",
            "/health": "Health check endpoint",
        },
    }


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting server on http://{settings.HOST}:{settings.PORT}")
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        ws_ping_interval=5,  # Frequent pings detect dead browser tabs quickly
        ws_ping_timeout=20,
        ws_max_size=16777216,  # 16MB - large enough for a recorded utterance
        http="h11"
    )
