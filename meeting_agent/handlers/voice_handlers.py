"""
Handles voice settings updates from the client.
"""

import logging

from meeting_agent.config.constants import LOGGER_NAME
from meeting_agent.handlers.context import HandlerContext
from meeting_agent.models.message_schemas import UpdateVoiceMessage, VoiceUpdatedResponse

logger = logging.getLogger(LOGGER_NAME)


async def handle_update_voice(message: UpdateVoiceMessage, context: HandlerContext) -> VoiceUpdatedResponse:
    """
    Merge the requested voice settings into the session.

    Unset fields keep their prior value. Out-of-range values raise
    VoiceSettingsError before anything is changed. History is not touched, so
    repeating the same update is harmless.

    Args:
        message: The update_voice message
        context: The connection's handler context

    Returns:
        A voice_updated response
    """
    session = context.session
    settings = session.update_voice(message.settings.changes())
    logger.info(
        f"Voice updated for meeting {session.session_id}: "
        f"voice={settings.voice} speed={settings.speed} pitch={settings.pitch}"
    )
    return VoiceUpdatedResponse()
