"""
Conversation log kept by the client during one doctor/patient session

Entries are append-only while the session is open. On teardown the
meaningful entries are persisted once as a SavedConversation.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from translatemd.client.languages import Language
from translatemd.core.logging import get_logger

logger = get_logger(__name__)

# Entries shorter than this (after trimming) are not persisted
MIN_ENTRY_CHARS = 3


class Speaker(str, Enum):
    DOCTOR = "doctor"
    PATIENT = "patient"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class ConversationEntry(BaseModel):
    """One utterance and its translation"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    speaker: Speaker
    original_text: str
    translated_text: str
    original_language: str
    target_language: str
    confidence: float = Field(ge=0.0, le=1.0)
    is_server_transcription: bool = False

    @property
    def is_meaningful(self) -> bool:
        return len(self.original_text.strip()) >= MIN_ENTRY_CHARS


class PatientIdentification(BaseModel):
    full_name: Optional[str] = None
    mrn: Optional[str] = None
    encounter_id: Optional[str] = None
    date_of_birth: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    @property
    def has_any_identification(self) -> bool:
        return any([self.full_name, self.mrn, self.encounter_id, self.date_of_birth])

    @property
    def display_string(self) -> str:
        components = []
        if self.full_name:
            components.append(f"Name: {self.full_name}")
        if self.mrn:
            components.append(f"MRN: {self.mrn}")
        if self.encounter_id:
            components.append(f"Encounter: {self.encounter_id}")
        if self.date_of_birth:
            components.append(f"DOB: {self.date_of_birth}")
        return " • ".join(components) if components else "Anonymous Patient"


class SavedConversation(BaseModel):
    """Persisted record of a finished session"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    doctor_language: str
    patient_language: str
    patient_identification: Optional[PatientIdentification] = None
    entries: List[ConversationEntry]


class ConversationSession:
    """Ordered, append-only log of one conversation"""

    def __init__(
        self,
        doctor_language: Language,
        patient_language: Language,
        patient_identification: Optional[PatientIdentification] = None,
    ):
        self.doctor_language = doctor_language
        self.patient_language = patient_language
        self.patient_identification = patient_identification
        self._entries: List[ConversationEntry] = []
        self._closed = False

    @property
    def entries(self) -> Tuple[ConversationEntry, ...]:
        return tuple(self._entries)

    @property
    def closed(self) -> bool:
        return self._closed

    def record(self, entry: ConversationEntry) -> bool:
        """
        Appends an entry. Blank utterances and repeats of the previous entry
        by the same speaker are dropped. Returns True when appended.
        """
        if self._closed:
            raise RuntimeError("Conversation session is closed")
        if not entry.original_text.strip():
            return False

        last = self._entries[-1] if self._entries else None
        if last is not None and last.speaker == entry.speaker and last.original_text == entry.original_text:
            return False

        self._entries.append(entry)
        return True

    def close(self, store=None) -> Optional[SavedConversation]:
        """
        Ends the session. Returns the SavedConversation (also written to
        `store` when given) or None when nothing meaningful was said or the
        session was already closed.
        """
        if self._closed:
            return None
        self._closed = True

        meaningful = [entry for entry in self._entries if entry.is_meaningful]
        if not meaningful:
            logger.info("Conversation ended without meaningful entries, nothing saved")
            return None

        saved = SavedConversation(
            doctor_language=self.doctor_language.display_name,
            patient_language=self.patient_language.display_name,
            patient_identification=self.patient_identification,
            entries=meaningful,
        )
        if store is not None:
            store.save(saved)
        logger.info(f"Saved conversation with {len(meaningful)} entries")
        return saved
