"""
Command-line demo client for the Meeting Voice Agent.

Opens a session, sends one or more recorded audio files as turns, prints every
server message and stops the agent.

Usage:
    python client.py question.webm [more.webm ...] [--url ws://localhost:8000/ws]
"""

import argparse
import asyncio
import base64
import logging
import uuid
from pathlib import Path

from meeting_agent.services.websocket_client import MeetingAgentClient, ReconnectPolicy

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("meeting_client")


def parse_args():
    parser = argparse.ArgumentParser(description="Talk to the Meeting Voice Agent")
    parser.add_argument("audio_files", nargs="+", type=Path, help="Recorded audio files to send")
    parser.add_argument("--url", default="ws://localhost:8000/ws", help="Agent WebSocket URL")
    parser.add_argument("--meeting-id", default=None, help="Meeting id (default: random)")
    parser.add_argument("--personality", default=None, help="Personality for the agent")
    parser.add_argument("--voice", default=None, help="Voice name")
    parser.add_argument("--save-audio", type=Path, default=None, help="Directory for reply audio")
    parser.add_argument("--timeout", type=float, default=30.0, help="Seconds to wait per reply")
    return parser.parse_args()


async def run_demo(args):
    meeting_id = args.meeting_id or str(uuid.uuid4())
    initialized = asyncio.Event()
    replies = asyncio.Queue()

    async def on_message(message):
        logger.info(f"Received {message.type}")
        if message.type == "meeting_initialized":
            initialized.set()
        elif message.type in ("ai_response", "error"):
            await replies.put(message)

    async def on_connect(client):
        voice_settings = {"voice": args.voice} if args.voice else None
        await client.init_meeting(meeting_id, personality=args.personality, voice_settings=voice_settings)

    client = MeetingAgentClient(
        args.url,
        on_message=on_message,
        on_connect=on_connect,
        policy=ReconnectPolicy(max_attempts=3),
    )
    runner = asyncio.create_task(client.run())

    try:
        await asyncio.wait_for(initialized.wait(), timeout=args.timeout)
        logger.info(f"Meeting {meeting_id} initialized")

        for index, path in enumerate(args.audio_files):
            logger.info(f"Sending {path}")
            await client.send_audio(path.read_bytes())
            reply = await asyncio.wait_for(replies.get(), timeout=args.timeout)

            if reply.type == "error":
                print(f"[error] {reply.message}")
                continue

            print(f"You:   {reply.transcription}")
            print(f"Agent: {reply.response}")
            if reply.audio and args.save_audio:
                args.save_audio.mkdir(parents=True, exist_ok=True)
                out = args.save_audio / f"reply_{index + 1}.mp3"
                out.write_bytes(base64.b64decode(reply.audio))
                logger.info(f"Saved reply audio to {out}")

        await client.stop_agent()
        await asyncio.sleep(0.5)
    except asyncio.TimeoutError:
        logger.error("Timed out waiting for the agent")
    finally:
        await client.close()
        await runner


def main():
    asyncio.run(run_demo(parse_args()))


if __name__ == "__main__":
    main()
