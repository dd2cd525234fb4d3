"""
Manages the meeting session lifecycle for a client connection.

This module handles session establishment and termination messages from the
browser client. It processes init_meeting and stop_agent messages, creating,
replacing and finalizing sessions through the SessionRegistry.
"""

import logging

from meeting_agent.config.constants import (
    ERROR_PIPELINE_NOT_READY,
    ERROR_REQUEST_DISCARDED,
    LOGGER_NAME,
)
from meeting_agent.errors import MeetingAgentError
from meeting_agent.handlers.context import HandlerContext
from meeting_agent.models.message_schemas import (
    AgentStoppedResponse,
    ErrorMessage,
    InitMeetingMessage,
    MeetingInitializedResponse,
    StopAgentMessage,
)
from meeting_agent.models.session import Session, VoiceSettings

logger = logging.getLogger(LOGGER_NAME)


async def handle_init_meeting(message: InitMeetingMessage, context: HandlerContext):
    """
    Handle the init_meeting message from the client.

    The connection's previous session, if any, is replaced: it is finalized, and
    any pipeline result still in flight for it will be discarded. The new session
    records its initialization, waits for the pipeline to acknowledge readiness
    and becomes Active.

    Voice settings supplied with the message are validated before anything is
    replaced, so an invalid value leaves the current session untouched.

    Args:
        message: The init_meeting message with the meeting details
        context: The connection's handler context

    Returns:
        A meeting_initialized response, or an error if the voice settings are
        invalid or the pipeline does not become ready
    """
    voice_settings = VoiceSettings()
    if message.voiceSettings is not None:
        try:
            voice_settings = voice_settings.merged(message.voiceSettings.changes())
        except MeetingAgentError as e:
            logger.warning(f"Rejecting init_meeting for {message.meetingId}: {e.message}")
            return ErrorMessage(message=e.message, code=e.code)

    session = Session(
        session_id=message.meetingId,
        personality=message.personality,
        voice_settings=voice_settings,
    )
    context.registry.replace(context.connection_id, session)
    session.begin()

    ready = await context.adapter.warm_up(timeout=context.warmup_timeout)
    if context.registry.get(context.connection_id) is not session:
        # torn down while warming up
        logger.info(f"Session {message.meetingId} superseded during warm-up")
        return ErrorMessage(
            message=f"Meeting {message.meetingId} was superseded before it became active",
            code=ERROR_REQUEST_DISCARDED,
        )
    if not ready:
        logger.error(f"Audio pipeline not ready for meeting: {message.meetingId}")
        return ErrorMessage(message="Audio pipeline is not ready", code=ERROR_PIPELINE_NOT_READY)

    session.activate()
    logger.info(f"AI Agent initialized for meeting: {message.meetingId}")
    return MeetingInitializedResponse(meetingId=message.meetingId)


async def handle_stop_agent(message: StopAgentMessage, context: HandlerContext):
    """
    Handle the stop_agent message from the client.

    The session is stopped and the connection's generation advanced, so an audio
    turn still in flight is discarded when its result arrives.

    Args:
        message: The stop_agent message
        context: The connection's handler context

    Returns:
        An agent_stopped response
    """
    session = context.session
    session.stop()
    context.registry.advance(context.connection_id)
    logger.info(f"AI Agent stopped for meeting: {session.session_id}")
    return AgentStoppedResponse()
