import unittest

from meeting_agent.config.constants import (
    DEFAULT_PERSONALITY,
    DEFAULT_VOICE,
    HISTORY_SESSION_INITIALIZED,
    HISTORY_SESSION_STOPPED,
)
from meeting_agent.errors import SessionStateError, VoiceSettingsError
from meeting_agent.models.session import Session, SessionState, Speaker, VoiceSettings


class TestVoiceSettings(unittest.TestCase):
    def test_defaults(self):
        settings = VoiceSettings()
        self.assertEqual(settings.voice, DEFAULT_VOICE)
        self.assertEqual(settings.speed, 1.0)
        self.assertEqual(settings.pitch, 0.0)

    def test_merged_keeps_unset_fields(self):
        settings = VoiceSettings().merged({"speed": 1.5})
        self.assertEqual(settings.speed, 1.5)
        self.assertEqual(settings.voice, DEFAULT_VOICE)
        self.assertEqual(settings.pitch, 0.0)

    def test_bounds_are_inclusive(self):
        settings = VoiceSettings().merged({"speed": 2.0, "pitch": -20})
        self.assertEqual(settings.speed, 2.0)
        self.assertEqual(settings.pitch, -20.0)

    def test_out_of_range_rejected(self):
        with self.assertRaises(VoiceSettingsError) as ctx:
            VoiceSettings().merged({"speed": 3.0})
        self.assertIn("speed", ctx.exception.message)
        self.assertEqual(ctx.exception.code, "invalid_voice_settings")

        with self.assertRaises(VoiceSettingsError):
            VoiceSettings().merged({"pitch": 20.5})


class TestSessionLifecycle(unittest.TestCase):
    def setUp(self):
        self.session = Session(session_id="123")

    def activate(self):
        self.session.begin()
        self.session.activate()

    def test_new_session_is_idle(self):
        self.assertEqual(self.session.state, SessionState.IDLE)
        self.assertEqual(self.session.personality, DEFAULT_PERSONALITY)
        self.assertEqual(self.session.history, ())

    def test_begin_records_initialization(self):
        self.session.begin()
        self.assertEqual(self.session.state, SessionState.INITIALIZING)
        self.assertEqual(len(self.session.history), 1)
        entry = self.session.history[0]
        self.assertEqual(entry.speaker, Speaker.SYSTEM)
        self.assertEqual(entry.text, HISTORY_SESSION_INITIALIZED)

    def test_begin_twice_rejected(self):
        self.session.begin()
        with self.assertRaises(SessionStateError):
            self.session.begin()

    def test_activate_requires_initializing(self):
        with self.assertRaises(SessionStateError):
            self.session.activate()

    def test_record_turn_appends_human_then_agent(self):
        self.activate()
        self.session.record_turn("hi", "hello")

        speakers = [entry.speaker for entry in self.session.history]
        self.assertEqual(speakers, [Speaker.SYSTEM, Speaker.HUMAN, Speaker.AGENT])
        self.assertEqual(self.session.history[1].text, "hi")
        self.assertEqual(self.session.history[2].text, "hello")

    def test_record_turn_requires_active(self):
        self.session.begin()
        with self.assertRaises(SessionStateError) as ctx:
            self.session.record_turn("hi", "hello")
        self.assertEqual(ctx.exception.code, "session_initializing")

    def test_require_active_when_idle(self):
        with self.assertRaises(SessionStateError) as ctx:
            self.session.require_active()
        self.assertEqual(ctx.exception.message, "no active session")
        self.assertEqual(ctx.exception.code, "no_active_session")

    def test_history_is_a_snapshot(self):
        self.activate()
        snapshot = self.session.history
        self.session.record_turn("hi", "hello")
        self.assertEqual(len(snapshot), 1)
        self.assertEqual(len(self.session.history), 3)

    def test_update_voice_does_not_touch_history(self):
        self.activate()
        self.session.update_voice({"voice": "nova"})
        self.session.update_voice({"voice": "nova"})
        self.assertEqual(self.session.voice_settings.voice, "nova")
        self.assertEqual(len(self.session.history), 1)

    def test_update_voice_allowed_while_initializing(self):
        self.session.begin()
        self.session.update_voice({"pitch": 3})
        self.assertEqual(self.session.voice_settings.pitch, 3.0)

    def test_rejected_update_leaves_settings_unchanged(self):
        self.activate()
        with self.assertRaises(VoiceSettingsError):
            self.session.update_voice({"voice": "nova", "speed": 0.1})
        self.assertEqual(self.session.voice_settings, VoiceSettings())

    def test_update_voice_when_idle_rejected(self):
        with self.assertRaises(SessionStateError):
            self.session.update_voice({"voice": "nova"})

    def test_stop_records_entry(self):
        self.activate()
        self.session.stop()
        self.assertEqual(self.session.state, SessionState.STOPPED)
        self.assertEqual(self.session.history[-1].text, HISTORY_SESSION_STOPPED)
        self.assertEqual(self.session.history[-1].speaker, Speaker.SYSTEM)

    def test_stopped_session_rejects_everything(self):
        self.activate()
        self.session.stop()
        with self.assertRaises(SessionStateError):
            self.session.stop()
        with self.assertRaises(SessionStateError):
            self.session.begin()
        with self.assertRaises(SessionStateError):
            self.session.require_active()

    def test_finalize_records_nothing(self):
        self.activate()
        self.session.finalize()
        self.assertEqual(self.session.state, SessionState.STOPPED)
        self.assertEqual(len(self.session.history), 1)

    def test_context_snapshot(self):
        session = Session(session_id="abc", personality="Terse")
        session.begin()
        session.activate()
        context = session.context()
        self.assertEqual(context.session_id, "abc")
        self.assertEqual(context.personality, "Terse")
        self.assertEqual(len(context.history), 1)
        self.assertEqual(context.voice_settings, session.voice_settings)


if __name__ == "__main__":
    unittest.main()
