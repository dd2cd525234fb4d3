"""
WebSocket connection manager for the meeting voice agent.

This module implements the server side of the browser WebSocket protocol,
providing the infrastructure to:
- Accept and manage WebSocket connections
- Give every connection its own Dispatcher and Session
- Serialize outbound messages onto the socket
- Tear the session down as soon as the transport closes

The WebSocketManager class is the central component that orchestrates all WebSocket
communications between browser clients and the voice agent pipeline.
"""

import asyncio
import logging
import socket
import uuid
from typing import Dict

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from meeting_agent.bot.pipeline import AudioPipelineAdapter
from meeting_agent.config.constants import LOGGER_NAME
from meeting_agent.handlers.dispatcher import Dispatcher
from meeting_agent.models.message_schemas import encode
from meeting_agent.models.session_registry import SessionRegistry

logger = logging.getLogger(LOGGER_NAME)


class WebSocketManager:
    """Manages WebSocket connections and hands their frames to per-connection dispatchers.

    Each accepted connection gets a unique connection id, an idle Session in the
    shared SessionRegistry and a Dispatcher that applies the protocol state machine.
    An abrupt close is treated as an implicit stop: nothing is sent, the session is
    released and any audio still being processed for it is cancelled.
    """

    def __init__(self, registry: SessionRegistry, adapter: AudioPipelineAdapter, **timeouts):
        self.registry = registry
        self.adapter = adapter
        self.timeouts = timeouts
        self.dispatchers: Dict[str, Dispatcher] = {}

    @property
    def connection_count(self) -> int:
        return len(self.dispatchers)

    def create_dispatcher(self, connection_id: str, send=None) -> Dispatcher:
        return Dispatcher(connection_id, self.registry, self.adapter, send=send, **self.timeouts)

    async def _optimize_socket(self, websocket: WebSocket) -> None:
        """
        Optimize the WebSocket's underlying TCP socket for low-latency transmission.

        Args:
            websocket: The FastAPI WebSocket connection
        """
        try:
            client = websocket.client
            if hasattr(client, "sock") and client.sock is not None:
                # Disable Nagle's algorithm to send packets immediately
                client.sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
                logger.info("Optimized socket: TCP_NODELAY enabled for low latency")
        except Exception as e:
            logger.warning(f"Could not optimize socket: {e}")

    @staticmethod
    def _make_sender(websocket: WebSocket):
        send_lock = asyncio.Lock()

        async def send(message) -> None:
            # Audio turns finish on background tasks; one frame at a time on the wire
            async with send_lock:
                await websocket.send_text(encode(message))
            logger.debug(f"Sent {message.type}")

        return send

    async def handle_websocket(self, websocket: WebSocket):
        """Handle a WebSocket connection throughout its lifecycle.

        Args:
            websocket (WebSocket): The FastAPI WebSocket connection object

        This method:
        1. Accepts the WebSocket connection
        2. Creates a Dispatcher (and idle Session) for it
        3. Feeds every text or binary frame to the Dispatcher in arrival order
        4. On disconnect or error, tears the session down without replying
        """
        await websocket.accept()
        await self._optimize_socket(websocket)

        connection_id = uuid.uuid4().hex
        dispatcher = self.create_dispatcher(connection_id, send=self._make_sender(websocket))
        self.dispatchers[connection_id] = dispatcher
        logger.info(f"WebSocket connection established: {connection_id}")

        disconnected = False
        try:
            while True:
                frame = await websocket.receive()
                if frame["type"] == "websocket.disconnect":
                    disconnected = True
                    logger.info(f"Client disconnected: {connection_id} (code {frame.get('code')})")
                    break

                data = frame.get("text")
                if data is None:
                    data = frame.get("bytes")
                if data is None:
                    continue
                await dispatcher.dispatch(data)

        except WebSocketDisconnect as e:
            disconnected = True
            logger.info(f"Client disconnected: {connection_id} (code {e.code})")
        except Exception as e:
            logger.error(f"Error in WebSocket connection {connection_id}: {e}", exc_info=True)
        finally:
            self.dispatchers.pop(connection_id, None)
            await dispatcher.close()
            if not disconnected and websocket.client_state != WebSocketState.DISCONNECTED:
                try:
                    await websocket.close()
                except RuntimeError as e:
                    logger.debug(f"WebSocket already closed: {e}")
            logger.info(f"WebSocket connection closed: {connection_id}")
