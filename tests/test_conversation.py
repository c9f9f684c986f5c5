"""
tests/test_conversation.py
===========================
Conversation log, saved history and client settings.

Test categories:
    1. ConversationSession append/dedupe/close
    2. ConversationHistoryStore capacity and ordering
    3. ClientSettings validation and persistence
"""

import tempfile
import unittest
from datetime import datetime, timedelta
from pathlib import Path

import support  # noqa: F401
from pydantic import ValidationError

from translatemd.client.conversation import (
    ConversationEntry,
    ConversationSession,
    PatientIdentification,
    SavedConversation,
    Speaker,
)
from translatemd.client.history import MAX_SAVED_CONVERSATIONS, ConversationHistoryStore
from translatemd.client.languages import language_by_id, server_only_languages
from translatemd.client.settings import ClientSettings
from translatemd.core.security import DataEncryption

BASE_TIME = datetime(2024, 3, 1, 9, 0, 0)


def make_entry(text: str, speaker: Speaker = Speaker.DOCTOR) -> ConversationEntry:
    return ConversationEntry(
        speaker=speaker,
        original_text=text,
        translated_text=f"[{text}]",
        original_language="English (US)",
        target_language="Spanish (Spain)",
        confidence=0.9,
    )


def make_saved(index: int) -> SavedConversation:
    return SavedConversation(
        timestamp=BASE_TIME + timedelta(minutes=index),
        doctor_language="English (US)",
        patient_language="Spanish (Spain)",
        entries=[make_entry(f"Utterance number {index}")],
    )


class RecordingStore:
    def __init__(self):
        self.saved = []

    def save(self, conversation):
        self.saved.append(conversation)


# ===================================================================
# 1. ConversationSession
# ===================================================================


class TestConversationSession(unittest.TestCase):

    def setUp(self):
        self.session = ConversationSession(language_by_id("en-US"), language_by_id("es-ES"))

    def test_entries_keep_order(self):
        first = make_entry("Where does it hurt?")
        second = make_entry("Aqui, en el pecho", Speaker.PATIENT)
        self.assertTrue(self.session.record(first))
        self.assertTrue(self.session.record(second))
        self.assertEqual(self.session.entries, (first, second))

    def test_blank_entries_are_dropped(self):
        self.assertFalse(self.session.record(make_entry("   ")))
        self.assertEqual(self.session.entries, ())

    def test_consecutive_duplicates_are_dropped(self):
        self.session.record(make_entry("Take a deep breath"))
        self.assertFalse(self.session.record(make_entry("Take a deep breath")))
        # Same words from the other party are a new utterance
        self.assertTrue(self.session.record(make_entry("Take a deep breath", Speaker.PATIENT)))
        self.assertEqual(len(self.session.entries), 2)

    def test_close_saves_meaningful_entries_once(self):
        store = RecordingStore()
        self.session.record(make_entry("ok"))
        self.session.record(make_entry("Any allergies?"))

        saved = self.session.close(store)
        self.assertEqual([entry.original_text for entry in saved.entries], ["Any allergies?"])
        self.assertEqual(saved.doctor_language, "English (US)")
        self.assertEqual(saved.patient_language, "Spanish (Spain)")
        self.assertEqual(store.saved, [saved])

        self.assertIsNone(self.session.close(store))
        self.assertEqual(len(store.saved), 1)

    def test_close_without_meaningful_entries(self):
        store = RecordingStore()
        self.session.record(make_entry("no"))
        self.assertIsNone(self.session.close(store))
        self.assertEqual(store.saved, [])
        self.assertTrue(self.session.closed)

    def test_record_after_close(self):
        self.session.close()
        with self.assertRaises(RuntimeError):
            self.session.record(make_entry("Too late"))

    def test_patient_identification(self):
        self.assertEqual(PatientIdentification().display_string, "Anonymous Patient")
        self.assertFalse(PatientIdentification().has_any_identification)
        identification = PatientIdentification(full_name="Ana Ruiz", mrn="12345")
        self.assertTrue(identification.has_any_identification)
        self.assertEqual(identification.display_string, "Name: Ana Ruiz • MRN: 12345")


# ===================================================================
# 2. ConversationHistoryStore
# ===================================================================


class TestConversationHistoryStore(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "history.json"

    def tearDown(self):
        self.tmp.cleanup()

    def test_empty_store(self):
        self.assertEqual(ConversationHistoryStore(self.path).load(), [])

    def test_newest_first(self):
        store = ConversationHistoryStore(self.path)
        for index in (2, 0, 1):
            store.save(make_saved(index))
        timestamps = [conversation.timestamp for conversation in store.load()]
        self.assertEqual(timestamps, sorted(timestamps, reverse=True))

    def test_capacity_evicts_oldest(self):
        store = ConversationHistoryStore(self.path)
        for index in range(MAX_SAVED_CONVERSATIONS + 5):
            store.save(make_saved(index))

        conversations = store.load()
        self.assertEqual(len(conversations), MAX_SAVED_CONVERSATIONS)
        self.assertEqual(conversations[0].timestamp, BASE_TIME + timedelta(minutes=MAX_SAVED_CONVERSATIONS + 4))
        self.assertEqual(conversations[-1].timestamp, BASE_TIME + timedelta(minutes=5))

    def test_backdated_conversation_is_evicted_first(self):
        store = ConversationHistoryStore(self.path)
        for index in range(1, MAX_SAVED_CONVERSATIONS + 1):
            store.save(make_saved(index))
        backdated = make_saved(0)
        store.save(backdated)

        conversations = store.load()
        self.assertEqual(len(conversations), MAX_SAVED_CONVERSATIONS)
        self.assertNotIn(backdated.id, [conversation.id for conversation in conversations])
        self.assertEqual(conversations[0].timestamp, BASE_TIME + timedelta(minutes=MAX_SAVED_CONVERSATIONS))
        self.assertEqual(conversations[-1].timestamp, BASE_TIME + timedelta(minutes=1))

    def test_session_close_round_trip(self):
        store = ConversationHistoryStore(self.path)
        session = ConversationSession(
            language_by_id("en-US"),
            language_by_id("es-MX"),
            PatientIdentification(mrn="A-1"),
        )
        session.record(make_entry("Do you have a fever?"))
        saved = session.close(store)

        loaded = store.load()
        self.assertEqual(len(loaded), 1)
        self.assertEqual(loaded[0].id, saved.id)
        self.assertEqual(loaded[0].patient_identification.mrn, "A-1")
        self.assertEqual(loaded[0].entries[0].speaker, Speaker.DOCTOR)

    def test_encrypted_at_rest(self):
        encryption = DataEncryption(DataEncryption.generate_key())
        store = ConversationHistoryStore(self.path, encryption=encryption)
        store.save(make_saved(0))

        self.assertNotIn(b"Utterance number 0", self.path.read_bytes())
        self.assertEqual(store.load()[0].entries[0].original_text, "Utterance number 0")

    def test_clear(self):
        store = ConversationHistoryStore(self.path)
        store.save(make_saved(0))
        store.clear()
        self.assertFalse(self.path.exists())
        self.assertEqual(store.load(), [])


# ===================================================================
# 3. ClientSettings
# ===================================================================


class TestClientSettings(unittest.TestCase):

    def test_defaults(self):
        settings = ClientSettings()
        self.assertEqual(settings.doctor_language.translation_code, "en")
        self.assertEqual(settings.patient_language.translation_code, "es")
        self.assertEqual(settings.auto_turn_off_delay, 30.0)
        self.assertTrue(settings.save_history)

    def test_delay_is_clamped(self):
        cases = {0: 30.0, 5: 15.0, 15: 15.0, 45: 45.0, 120: 120.0, 500: 120.0}
        for given, expected in cases.items():
            with self.subTest(given=given):
                self.assertEqual(ClientSettings(auto_turn_off_delay=given).auto_turn_off_delay, expected)

    def test_delay_is_clamped_on_assignment(self):
        settings = ClientSettings()
        settings.auto_turn_off_delay = 1
        self.assertEqual(settings.auto_turn_off_delay, 15.0)

    def test_unknown_language_rejected(self):
        with self.assertRaises(ValidationError):
            ClientSettings(patient_language_id="xx-XX")

    def test_auto_detect_is_not_a_conversation_language(self):
        with self.assertRaises(ValidationError):
            ClientSettings(patient_language_id="auto")
        with self.assertRaises(ValidationError):
            ClientSettings(doctor_language_id="auto")

        settings = ClientSettings()
        with self.assertRaises(ValidationError):
            settings.patient_language_id = "auto"
        self.assertEqual(settings.patient_language_id, "es-ES")

    def test_server_only_languages_can_be_conversation_languages(self):
        self.assertEqual(ClientSettings(patient_language_id="ur-PK").patient_language.translation_code, "ur")

    def test_server_only_languages(self):
        ids = {language.id for language in server_only_languages()}
        self.assertIn("auto", ids)
        self.assertIn("ur-PK", ids)
        self.assertNotIn("en-US", ids)
        self.assertTrue(language_by_id("auto").is_auto)

    def test_load_and_save(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            self.assertEqual(ClientSettings.load(path), ClientSettings())

            ClientSettings(patient_language_id="fr-FR", auto_turn_off_delay=60, save_history=False).save(path)
            loaded = ClientSettings.load(path)
            self.assertEqual(loaded.patient_language.display_name, "French")
            self.assertEqual(loaded.auto_turn_off_delay, 60.0)
            self.assertFalse(loaded.save_history)


if __name__ == "__main__":
    unittest.main()
