"""
WebSocket client for the meeting voice agent protocol.

This module provides the client side of the session protocol: message helpers for
init_meeting, audio_data, update_voice and stop_agent, and a connection loop that
reconnects with exponential backoff, a cap and full jitter. A reconnect never
resumes the previous session. The server tears it down the moment the transport
closes, so callers re-send init_meeting from their ``on_connect`` callback.
"""

import asyncio
import base64
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import websockets
from websockets.exceptions import ConnectionClosed

from meeting_agent.config.constants import LOGGER_NAME
from meeting_agent.errors import DecodeError
from meeting_agent.models.message_schemas import (
    AudioDataMessage,
    InitMeetingMessage,
    StopAgentMessage,
    UpdateVoiceMessage,
    VoiceSettingsPatch,
    decode_outgoing,
    encode,
)

logger = logging.getLogger(LOGGER_NAME)

MessageHandler = Callable[[Any], Awaitable[None]]
ConnectHandler = Callable[["MeetingAgentClient"], Awaitable[None]]


@dataclass
class ReconnectPolicy:
    """
    Exponential backoff with a cap and full jitter.

    The n-th retry (0-based) waits a random time in [0, min(cap, base * 2**n)].
    """

    base_delay: float = 0.5
    max_delay: float = 30.0
    max_attempts: Optional[int] = None
    jitter: bool = True

    def ceiling(self, attempt: int) -> float:
        return min(self.max_delay, self.base_delay * (2 ** attempt))

    def delay(self, attempt: int) -> float:
        ceiling = self.ceiling(attempt)
        return random.uniform(0, ceiling) if self.jitter else ceiling

    def should_retry(self, attempt: int) -> bool:
        return self.max_attempts is None or attempt < self.max_attempts


class MeetingAgentClient:
    """
    Client for the meeting voice agent WebSocket protocol.

    ``run()`` keeps a connection open until ``close()`` is called, reconnecting
    according to the ReconnectPolicy whenever the connection drops or cannot be
    established. Every decoded server message is passed to ``on_message``.
    """

    def __init__(
        self,
        url: str,
        on_message: Optional[MessageHandler] = None,
        on_connect: Optional[ConnectHandler] = None,
        policy: Optional[ReconnectPolicy] = None,
    ):
        """
        Initialize the meeting agent client.

        Args:
            url: WebSocket URL of the agent server (e.g. ws://localhost:8000/ws)
            on_message: Async callback receiving each decoded server message
            on_connect: Async callback invoked after every (re)connection
            policy: Reconnect policy; defaults to ReconnectPolicy()
        """
        self.url = url
        self.on_message = on_message
        self.on_connect = on_connect
        self.policy = policy or ReconnectPolicy()
        self.websocket = None
        self.meeting_id: Optional[str] = None
        self.connected = asyncio.Event()
        self._closing = False
        self._closed = asyncio.Event()
        self._attempt = 0

    @property
    def is_closing(self) -> bool:
        return self._closing

    async def connect(self) -> bool:
        """
        Establish one connection to the agent server.

        Returns:
            True if connection was successful, False otherwise
        """
        try:
            self.websocket = await websockets.connect(self.url)
        except Exception as e:
            logger.error(f"Failed to connect to agent server at {self.url}: {e}")
            self.websocket = None
            return False
        logger.info(f"Connected to agent server at {self.url}")
        # a new transport never carries the old session
        self.meeting_id = None
        self._attempt = 0
        self.connected.set()
        return True

    async def run(self) -> None:
        """Connect, listen, and reconnect with backoff until closed or out of attempts."""
        while not self._closing:
            if await self.connect():
                if self.on_connect:
                    await self.on_connect(self)
                await self.listen()
                if self._closing:
                    break

            if not self.policy.should_retry(self._attempt):
                logger.error(f"Giving up after {self._attempt} reconnection attempts")
                break
            delay = self.policy.delay(self._attempt)
            self._attempt += 1
            logger.info(f"Reconnecting in {delay:.2f}s (attempt {self._attempt})")
            try:
                # close() cuts the wait short
                await asyncio.wait_for(self._closed.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

    async def listen(self) -> None:
        """Receive server messages until the connection closes."""
        if not self.websocket:
            logger.error("Cannot listen: Not connected")
            return
        try:
            async for raw in self.websocket:
                try:
                    message = decode_outgoing(raw)
                except DecodeError as e:
                    logger.warning(f"Ignoring invalid server frame: {e.message}")
                    continue
                if message.type == "meeting_initialized":
                    self.meeting_id = message.meetingId
                elif message.type == "agent_stopped":
                    self.meeting_id = None
                if self.on_message:
                    await self.on_message(message)
        except ConnectionClosed as e:
            logger.info(f"Connection to agent server closed: {e}")
        finally:
            self.websocket = None
            self.meeting_id = None
            self.connected.clear()

    async def _send(self, message) -> bool:
        if not self.websocket:
            logger.error(f"Cannot send {message.type}: Not connected")
            return False
        try:
            await self.websocket.send(encode(message))
        except ConnectionClosed as e:
            logger.warning(f"Could not send {message.type}: {e}")
            return False
        return True

    async def init_meeting(
        self,
        meeting_id: str,
        personality: Optional[str] = None,
        voice_settings: Optional[Dict[str, Any]] = None,
    ) -> bool:
        message = InitMeetingMessage(
            type="init_meeting",
            meetingId=meeting_id,
            personality=personality,
            voiceSettings=VoiceSettingsPatch(**voice_settings) if voice_settings else None,
        )
        return await self._send(message)

    async def send_audio(self, audio: bytes) -> bool:
        encoded = base64.b64encode(audio).decode("utf-8")
        return await self._send(AudioDataMessage(type="audio_data", audio=encoded))

    async def update_voice(self, **settings) -> bool:
        return await self._send(UpdateVoiceMessage(type="update_voice", settings=VoiceSettingsPatch(**settings)))

    async def stop_agent(self) -> bool:
        return await self._send(StopAgentMessage(type="stop_agent"))

    async def close(self) -> None:
        """
        Close the connection and stop reconnecting.
        """
        self._closing = True
        self._closed.set()
        if self.websocket:
            await self.websocket.close()
            logger.info("Closed WebSocket connection")
        self.websocket = None
        self.meeting_id = None
        self.connected.clear()
