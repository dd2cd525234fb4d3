"""
Start the Meeting Voice Agent server.

Usage:
    python run.py [--host HOST] [--port PORT] [--log-level LEVEL] [--reload]

Defaults come from the environment (or a .env file): HOST, PORT, LOG_LEVEL.
"""

import argparse
import os
import sys

import uvicorn
from dotenv import load_dotenv

load_dotenv()

from meeting_agent.config import settings
from meeting_agent.config.logging_config import configure_logging

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Large enough for one recorded utterance sent as base64 JSON
WEBSOCKET_MAX_SIZE = 16 * 1024 * 1024


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Start the Meeting Voice Agent server")
    parser.add_argument("--host", default=settings.HOST, help=f"Bind address (default: {settings.HOST})")
    parser.add_argument("--port", type=int, default=settings.PORT, help=f"Port (default: {settings.PORT})")
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO").upper(),
        choices=LOG_LEVELS,
        help="Logging level (default: LOG_LEVEL env var or INFO)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        default=os.getenv("ENV", "production").lower() == "development",
        help="Reload on code changes (default: on when ENV=development)",
    )
    return parser.parse_args(argv)


def main():
    args = parse_args()
    logger = configure_logging(args.log_level)

    if not settings.OPENAI_API_KEY:
        # sessions can never become active without the engines
        logger.error("OPENAI_API_KEY environment variable not set")
        print("Error: OPENAI_API_KEY is required. Set it in the environment or in a .env file.")
        sys.exit(1)

    logger.info(f"Starting Meeting Voice Agent on http://{args.host}:{args.port}")
    logger.info(f"WebSocket endpoint: ws://{args.host}:{args.port}/ws")
    logger.info(
        f"Pipeline deadline {settings.PIPELINE_TIMEOUT_SECONDS}s, "
        f"warm-up deadline {settings.PIPELINE_WARMUP_TIMEOUT_SECONDS}s"
    )

    uvicorn.run(
        "meeting_agent.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        http="h11",
        access_log=False,
        reload=args.reload,
        ws_max_size=WEBSOCKET_MAX_SIZE,
        ws_ping_interval=5,
        ws_ping_timeout=20,
    )


if __name__ == "__main__":
    main()
