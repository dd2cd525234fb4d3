"""
Protocol state machine for one client connection.

The Dispatcher decodes inbound frames, checks each message against the state of
the connection's session, applies it through the matching handler and emits the
resulting message through the connection's send function.

Accepted messages per session state:

    Idle          init_meeting
    Initializing  init_meeting, update_voice, stop_agent
    Active        init_meeting, audio_data, update_voice, stop_agent
    Stopped       init_meeting

Anything else is answered with an error message and leaves the state unchanged.
Audio turns run as background tasks so the connection keeps reading frames while
the pipeline works; the per-session turn lock keeps them in arrival order. A
connection may have at most max_pending_turns audio turns queued; any more are
answered with a too_many_turns error.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from meeting_agent.config.constants import (
    ERROR_INVALID_MESSAGE,
    ERROR_SESSION_INITIALIZING,
    LOGGER_NAME,
    MAX_PENDING_AUDIO_TURNS,
    MESSAGE_TYPE_AUDIO_DATA,
    MESSAGE_TYPE_INIT_MEETING,
    MESSAGE_TYPE_STOP_AGENT,
    MESSAGE_TYPE_UPDATE_VOICE,
)
from meeting_agent.errors import BacklogFullError, DecodeError, MeetingAgentError, SessionStateError
from meeting_agent.handlers.context import HandlerContext
from meeting_agent.handlers.session_handlers import handle_init_meeting, handle_stop_agent
from meeting_agent.handlers.stream_handlers import AudioTurn, admit_audio, process_audio_turn
from meeting_agent.handlers.voice_handlers import handle_update_voice
from meeting_agent.models.message_schemas import AudioDataMessage, ErrorMessage, decode
from meeting_agent.models.session import Session, SessionState

logger = logging.getLogger(LOGGER_NAME)

# Type hints for handler and send functions
HandlerFunc = Callable[[Any, HandlerContext], Awaitable[Any]]
SendFunc = Callable[[Any], Awaitable[None]]

ACCEPTING_STATES = {
    MESSAGE_TYPE_INIT_MEETING: frozenset(SessionState),
    MESSAGE_TYPE_AUDIO_DATA: frozenset({SessionState.ACTIVE}),
    MESSAGE_TYPE_UPDATE_VOICE: frozenset({SessionState.INITIALIZING, SessionState.ACTIVE}),
    MESSAGE_TYPE_STOP_AGENT: frozenset({SessionState.INITIALIZING, SessionState.ACTIVE}),
}


class Dispatcher:
    """Routes one connection's messages to handlers according to its session state."""

    def __init__(
        self,
        connection_id: str,
        registry,
        adapter,
        send: Optional[SendFunc] = None,
        max_pending_turns: int = MAX_PENDING_AUDIO_TURNS,
        **timeouts,
    ):
        self.context = HandlerContext(connection_id, registry, adapter, **timeouts)
        self.send = send
        self.max_pending_turns = max_pending_turns
        self.handlers: Dict[str, HandlerFunc] = {
            MESSAGE_TYPE_INIT_MEETING: handle_init_meeting,
            MESSAGE_TYPE_UPDATE_VOICE: handle_update_voice,
            MESSAGE_TYPE_STOP_AGENT: handle_stop_agent,
        }
        self._pending: Set[asyncio.Task] = set()
        # Turns submitted through submit_audio and not yet answered
        self._inline_turns = 0
        self._closed = False
        # Create the connection's idle session up front
        registry.get_or_create(connection_id)

    @property
    def connection_id(self) -> str:
        return self.context.connection_id

    @property
    def session(self) -> Session:
        return self.context.session

    @property
    def pending_turns(self) -> int:
        return len(self._pending) + self._inline_turns

    def check_state(self, message_type: str) -> None:
        """
        Reject a message the current session state does not accept.

        Raises:
            SessionStateError: If the message is not allowed in the current state
        """
        state = self.session.state
        if state in ACCEPTING_STATES[message_type]:
            return
        if state == SessionState.INITIALIZING:
            raise SessionStateError("session is still initializing", code=ERROR_SESSION_INITIALIZING)
        raise SessionStateError("no active session")

    async def dispatch(self, raw_frame) -> None:
        """
        Decode one inbound frame, apply it and emit the response.

        Never raises: malformed frames and rejected messages are answered with an
        error message on the same connection.

        Args:
            raw_frame: The text or binary frame received from the client
        """
        if self._closed:
            logger.debug(f"Ignoring frame for closed connection: {self.connection_id}")
            return

        try:
            message = decode(raw_frame)
        except DecodeError as e:
            logger.warning(f"Invalid frame on connection {self.connection_id}: {e.message}")
            await self._emit(ErrorMessage(message=e.message, code=e.code))
            return

        if message.type != MESSAGE_TYPE_AUDIO_DATA:
            logger.info(f"Received message type: {message.type} on connection: {self.connection_id}")

        if isinstance(message, AudioDataMessage):
            # Admission is decided on arrival; processing happens in order in the background
            try:
                turn = self._admit(message.audio_bytes)
            except MeetingAgentError as e:
                await self._emit(self._reject(message.type, e))
                return
            self._spawn(self._run_turn(turn))
            return

        response = await self.handle(message)
        await self._emit(response)

    async def handle(self, message):
        """
        Apply one decoded message and return the response message.

        Audio is processed inline (waiting for earlier turns of the session), which
        is what the request/response HTTP surface needs.
        """
        if isinstance(message, AudioDataMessage):
            return await self.submit_audio(message.audio_bytes)

        handler = self.handlers.get(message.type)
        if handler is None:
            logger.warning(f"Unhandled message type received: {message.type}")
            return ErrorMessage(message=f"Unsupported message type: {message.type}", code=ERROR_INVALID_MESSAGE)

        try:
            self.check_state(message.type)
            return await handler(message, self.context)
        except MeetingAgentError as e:
            return self._reject(message.type, e)
        except Exception as e:
            logger.error(f"Error handling {message.type}: {e}", exc_info=True)
            return ErrorMessage(message=f"Internal error while handling {message.type}")

    async def submit_audio(self, audio: bytes):
        """Admit audio and wait for its turn's response."""
        try:
            turn = self._admit(audio)
        except MeetingAgentError as e:
            return self._reject(MESSAGE_TYPE_AUDIO_DATA, e)
        self._inline_turns += 1
        try:
            async with turn.session.turn_lock:
                return await self._process(turn)
        finally:
            self._inline_turns -= 1

    async def _process(self, turn: AudioTurn):
        try:
            return await process_audio_turn(turn, self.context)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error processing audio turn: {e}", exc_info=True)
            return ErrorMessage(message="Internal error while processing audio")

    def _admit(self, audio: bytes) -> AudioTurn:
        self.check_state(MESSAGE_TYPE_AUDIO_DATA)
        if self.pending_turns >= self.max_pending_turns:
            raise BacklogFullError(f"Too many audio turns in progress (limit {self.max_pending_turns})")
        return admit_audio(audio, self.context)

    def _reject(self, message_type: str, error: MeetingAgentError) -> ErrorMessage:
        logger.warning(f"Rejected {message_type} on connection {self.connection_id}: {error.message}")
        return ErrorMessage(message=error.message, code=error.code)

    async def _run_turn(self, turn: AudioTurn) -> None:
        # Holding the lock through the send keeps responses in submission order
        async with turn.session.turn_lock:
            response = await self._process(turn)
            await self._emit(response)

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _emit(self, message) -> None:
        if message is None or self.send is None or self._closed:
            return
        try:
            await self.send(message)
        except Exception as e:
            logger.warning(f"Could not send {message.type} on connection {self.connection_id}: {e}")

    async def drain(self) -> None:
        """Wait until every queued audio turn has been processed and emitted."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        """
        Tear the connection down: release its session and cancel pending turns.

        Nothing is sent to the client; the transport is assumed to be gone.
        """
        if self._closed:
            return
        self._closed = True
        session = self.context.registry.remove(self.connection_id)
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info(
            f"Connection {self.connection_id} closed"
            + (f", session {session.session_id} torn down" if session and session.session_id else "")
        )
