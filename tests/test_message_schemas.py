import base64
import json

import pytest

from meeting_agent.errors import DecodeError
from meeting_agent.models.message_schemas import (
    AgentStoppedResponse,
    AIResponseMessage,
    AudioDataMessage,
    ErrorMessage,
    InitMeetingMessage,
    MeetingInitializedResponse,
    StopAgentMessage,
    UpdateVoiceMessage,
    VoiceUpdatedResponse,
    decode,
    decode_outgoing,
    encode,
)


class TestDecode:
    def test_init_meeting(self):
        message = decode('{"type": "init_meeting", "meetingId": "123", "personality": "Calm"}')

        assert isinstance(message, InitMeetingMessage)
        assert message.meetingId == "123"
        assert message.personality == "Calm"
        assert message.voiceSettings is None

    def test_init_meeting_with_voice_settings(self):
        message = decode(
            json.dumps(
                {"type": "init_meeting", "meetingId": "m", "voiceSettings": {"voice": "nova", "speed": 1.2}}
            )
        )

        assert message.voiceSettings.changes() == {"voice": "nova", "speed": 1.2}

    def test_audio_data(self):
        encoded = base64.b64encode(b"\x00\x01recorded").decode("utf-8")
        message = decode(json.dumps({"type": "audio_data", "audio": encoded}))

        assert isinstance(message, AudioDataMessage)
        assert message.audio_bytes == b"\x00\x01recorded"

    def test_update_voice_keeps_only_set_fields(self):
        message = decode('{"type": "update_voice", "settings": {"pitch": -2}}')

        assert isinstance(message, UpdateVoiceMessage)
        assert message.settings.changes() == {"pitch": -2.0}

    def test_stop_agent(self):
        assert isinstance(decode('{"type": "stop_agent"}'), StopAgentMessage)

    def test_bytes_frame(self):
        assert isinstance(decode(b'{"type": "stop_agent"}'), StopAgentMessage)

    @pytest.mark.parametrize(
        "frame,expected",
        [
            ("not json", "Frame is not valid JSON"),
            ("[1, 2]", "Frame must be a JSON object"),
            ('{"meetingId": "123"}', "Message has no type"),
            ('{"type": "dance"}', "Unknown message type: dance"),
            (b"\xff\xfe", "Frame is not valid UTF-8"),
        ],
    )
    def test_malformed_frames(self, frame, expected):
        with pytest.raises(DecodeError) as exc_info:
            decode(frame)

        assert exc_info.value.message == expected
        assert exc_info.value.code == "invalid_message"

    def test_missing_required_field(self):
        with pytest.raises(DecodeError) as exc_info:
            decode('{"type": "init_meeting"}')

        assert exc_info.value.message.startswith("Invalid init_meeting message: meetingId")

    def test_empty_meeting_id_rejected(self):
        with pytest.raises(DecodeError):
            decode('{"type": "init_meeting", "meetingId": "  "}')

    def test_invalid_base64_rejected(self):
        with pytest.raises(DecodeError) as exc_info:
            decode('{"type": "audio_data", "audio": "not base64!!"}')

        assert "Invalid audio_data message" in exc_info.value.message

    def test_empty_audio_rejected(self):
        with pytest.raises(DecodeError):
            decode('{"type": "audio_data", "audio": ""}')


class TestEncode:
    def test_meeting_initialized(self):
        frame = json.loads(encode(MeetingInitializedResponse(meetingId="123")))

        assert frame == {"type": "meeting_initialized", "success": True, "meetingId": "123"}

    def test_ai_response_keeps_null_audio(self):
        frame = json.loads(encode(AIResponseMessage.from_turn("hi", "hello", None)))

        assert frame == {"type": "ai_response", "transcription": "hi", "response": "hello", "audio": None}

    def test_ai_response_encodes_audio(self):
        frame = json.loads(encode(AIResponseMessage.from_turn("hi", "hello", b"mp3")))

        assert base64.b64decode(frame["audio"]) == b"mp3"

    def test_error_without_code_omits_code(self):
        frame = json.loads(encode(ErrorMessage(message="no active session")))

        assert frame == {"type": "error", "message": "no active session"}

    def test_acknowledgements(self):
        assert json.loads(encode(VoiceUpdatedResponse())) == {"type": "voice_updated", "success": True}
        assert json.loads(encode(AgentStoppedResponse())) == {"type": "agent_stopped", "success": True}

    def test_decode_outgoing(self):
        message = decode_outgoing(encode(ErrorMessage(message="boom", code="timeout")))

        assert isinstance(message, ErrorMessage)
        assert message.code == "timeout"

    def test_decode_outgoing_rejects_client_messages(self):
        with pytest.raises(DecodeError):
            decode_outgoing('{"type": "stop_agent"}')
