"""
Handles recorded audio sent by the client.

Audio handling is split in two steps. ``admit_audio`` runs synchronously when the
frame arrives: it checks that the session is Active and pins the turn to the
session's current generation. ``process_audio_turn`` runs later, one turn at a
time per session, and hands the audio to the pipeline adapter. A turn whose
generation is no longer current (the session was stopped, replaced or torn down
in the meantime) never touches the session and is answered with an error.
"""

import logging
import time
from dataclasses import dataclass, field

from meeting_agent.config.constants import ERROR_REQUEST_DISCARDED, LOGGER_NAME
from meeting_agent.handlers.context import HandlerContext
from meeting_agent.models.message_schemas import AIResponseMessage, ErrorMessage
from meeting_agent.models.session import Session

logger = logging.getLogger(LOGGER_NAME)


@dataclass(frozen=True)
class AudioTurn:
    session: Session
    generation: int
    audio: bytes
    received_at: float = field(default_factory=time.time)


def admit_audio(audio: bytes, context: HandlerContext) -> AudioTurn:
    """
    Accept recorded audio for the connection's session.

    Args:
        audio: Raw recorded audio bytes
        context: The connection's handler context

    Returns:
        An AudioTurn bound to the session and its current generation

    Raises:
        SessionStateError: If the session is not Active
    """
    session = context.session
    session.require_active()
    return AudioTurn(
        session=session,
        generation=context.registry.generation(context.connection_id),
        audio=audio,
    )


def _discarded(turn: AudioTurn) -> ErrorMessage:
    logger.info(
        f"Discarding audio turn for superseded session {turn.session.session_id} "
        f"(generation {turn.generation})"
    )
    return ErrorMessage(
        message="Audio request discarded: the session was stopped or replaced",
        code=ERROR_REQUEST_DISCARDED,
    )


async def process_audio_turn(turn: AudioTurn, context: HandlerContext):
    """
    Run an admitted audio turn through the pipeline and apply the result.

    Callers must hold ``turn.session.turn_lock`` so turns of one session are
    processed, applied and emitted strictly one after another.

    Args:
        turn: The admitted audio turn
        context: The connection's handler context

    Returns:
        An ai_response message, or an error for pipeline failures and
        discarded turns
    """
    registry = context.registry
    if not registry.is_current(context.connection_id, turn.generation):
        return _discarded(turn)

    queued_ms = (time.time() - turn.received_at) * 1000
    if queued_ms > 10:
        logger.debug(f"Audio turn waited {queued_ms:.0f}ms for session: {turn.session.session_id}")

    result = await context.adapter.process(
        turn.audio, turn.session.context(), timeout=context.pipeline_timeout
    )

    if not registry.is_current(context.connection_id, turn.generation):
        return _discarded(turn)

    if not result.ok:
        return ErrorMessage(message=result.reason.description, code=result.reason.error_code)

    turn.session.record_turn(result.transcript, result.reply)
    logger.info(f"Agent responded in meeting {turn.session.session_id}")
    return AIResponseMessage.from_turn(result.transcript, result.reply, result.synthesized_audio)
