from unittest.mock import AsyncMock, MagicMock

import pytest

from meeting_agent.bot.pipeline import AudioPipelineAdapter
from meeting_agent.errors import SessionStateError
from meeting_agent.handlers.context import HandlerContext
from meeting_agent.handlers.session_handlers import handle_init_meeting, handle_stop_agent
from meeting_agent.handlers.voice_handlers import handle_update_voice
from meeting_agent.models.message_schemas import (
    AgentStoppedResponse,
    ErrorMessage,
    InitMeetingMessage,
    MeetingInitializedResponse,
    StopAgentMessage,
    UpdateVoiceMessage,
    VoiceSettingsPatch,
    VoiceUpdatedResponse,
)
from meeting_agent.models.session import SessionState
from meeting_agent.models.session_registry import SessionRegistry


def make_context(ready=True):
    adapter = MagicMock(spec=AudioPipelineAdapter)
    adapter.warm_up = AsyncMock(return_value=ready)
    return HandlerContext("conn-1", SessionRegistry(), adapter, warmup_timeout=1)


@pytest.mark.asyncio
class TestSessionHandlers:

    async def test_handle_init_meeting(self):
        # Setup
        context = make_context()
        message = InitMeetingMessage(type="init_meeting", meetingId="123", personality="Friendly")

        # Execute
        response = await handle_init_meeting(message, context)

        # Assert
        assert response == MeetingInitializedResponse(meetingId="123")
        session = context.registry.get("conn-1")
        assert session.session_id == "123"
        assert session.personality == "Friendly"
        assert session.state == SessionState.ACTIVE
        context.adapter.warm_up.assert_awaited_once_with(timeout=1)

    async def test_handle_init_meeting_pipeline_not_ready(self):
        context = make_context(ready=False)
        message = InitMeetingMessage(type="init_meeting", meetingId="123")

        response = await handle_init_meeting(message, context)

        assert isinstance(response, ErrorMessage)
        assert response.code == "pipeline_not_ready"
        assert context.registry.get("conn-1").state == SessionState.INITIALIZING

    async def test_handle_init_meeting_superseded_during_warm_up(self):
        context = make_context()

        async def teardown_then_ready(timeout):
            context.registry.remove("conn-1")
            return True

        context.adapter.warm_up = AsyncMock(side_effect=teardown_then_ready)
        message = InitMeetingMessage(type="init_meeting", meetingId="123")

        response = await handle_init_meeting(message, context)

        assert response.code == "request_discarded"

    async def test_handle_init_meeting_invalid_voice_settings(self):
        context = make_context()
        message = InitMeetingMessage(
            type="init_meeting",
            meetingId="123",
            voiceSettings=VoiceSettingsPatch(speed=0.1),
        )

        response = await handle_init_meeting(message, context)

        assert response.code == "invalid_voice_settings"
        assert context.registry.get("conn-1") is None
        context.adapter.warm_up.assert_not_called()

    async def test_handle_stop_agent_advances_generation(self):
        context = make_context()
        await handle_init_meeting(InitMeetingMessage(type="init_meeting", meetingId="123"), context)
        generation = context.registry.generation("conn-1")

        response = await handle_stop_agent(StopAgentMessage(type="stop_agent"), context)

        assert response == AgentStoppedResponse()
        assert context.session.state == SessionState.STOPPED
        assert not context.registry.is_current("conn-1", generation)

    async def test_handle_stop_agent_without_session(self):
        context = make_context()

        with pytest.raises(SessionStateError):
            await handle_stop_agent(StopAgentMessage(type="stop_agent"), context)

    async def test_handle_update_voice(self):
        context = make_context()
        await handle_init_meeting(InitMeetingMessage(type="init_meeting", meetingId="123"), context)
        message = UpdateVoiceMessage(type="update_voice", settings=VoiceSettingsPatch(pitch=4))

        response = await handle_update_voice(message, context)

        assert response == VoiceUpdatedResponse()
        assert context.session.voice_settings.pitch == 4.0
