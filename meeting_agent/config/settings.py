"""
Environment-driven settings for the meeting voice agent.

Values are read once at import time. The FastAPI entry point loads a ``.env``
file before this module is imported, so anything defined there is picked up too.
"""

import os

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))

# OpenAI engines
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_API_BASE = os.getenv("OPENAI_API_BASE", "https://api.openai.com/v1")
OPENAI_TRANSCRIPTION_MODEL = os.getenv("OPENAI_TRANSCRIPTION_MODEL", "whisper-1")
OPENAI_CHAT_MODEL = os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini")
OPENAI_TTS_MODEL = os.getenv("OPENAI_TTS_MODEL", "tts-1")
OPENAI_TTS_VOICE = os.getenv("OPENAI_TTS_VOICE", "alloy")
MAX_REPLY_TOKENS = int(os.getenv("MAX_REPLY_TOKENS", "150"))

# Per-request HTTP timeout for a single engine call; the pipeline deadline below bounds the whole turn
ENGINE_HTTP_TIMEOUT_SECONDS = float(os.getenv("ENGINE_HTTP_TIMEOUT_SECONDS", "30"))

# Pipeline deadlines
PIPELINE_TIMEOUT_SECONDS = float(os.getenv("PIPELINE_TIMEOUT_SECONDS", "15"))
PIPELINE_WARMUP_TIMEOUT_SECONDS = float(os.getenv("PIPELINE_WARMUP_TIMEOUT_SECONDS", "5"))

# Browser origins allowed to call the HTTP routes, comma separated
CORS_ALLOWED_ORIGINS = [
    origin.strip() for origin in os.getenv("CORS_ALLOWED_ORIGINS", "*").split(",") if origin.strip()
]
