"""
Translates utterances for the other party of the conversation

Failures never propagate to the caller: they degrade to the visible
"Translation failed" placeholder.
"""

from typing import Optional

import httpx
from pydantic import BaseModel

from translatemd.client.confidence import estimate_translation_confidence
from translatemd.client.conversation import ConversationEntry, ConversationSession, Speaker
from translatemd.client.proxy_client import ProxyClient, ProxyClientError
from translatemd.client.settings import ClientSettings
from translatemd.core.logging import get_logger

logger = get_logger(__name__)

TRANSLATION_FAILED = "Translation failed"


class TranslationOutcome(BaseModel):
    text: str
    confidence: float
    detected_source_language: Optional[str] = None
    failed: bool = False


class ConversationTranslator:

    def __init__(self, client: ProxyClient, settings: ClientSettings, session: Optional[ConversationSession] = None):
        self.client = client
        self.settings = settings
        self.session = session

    async def translate(self, text: str, source_language: Optional[str], target_language: str) -> TranslationOutcome:
        try:
            result = await self.client.translate(text, source_language, target_language)
        except (ProxyClientError, httpx.HTTPError) as e:
            logger.warning(f"Translation error: {e}")
            return TranslationOutcome(text=TRANSLATION_FAILED, confidence=0.0, failed=True)

        return TranslationOutcome(
            text=result.translated_text,
            confidence=estimate_translation_confidence(text, result.translated_text),
            detected_source_language=result.detected_source_language,
        )

    async def translate_utterance(
        self,
        text: str,
        speaker: Speaker,
        transcription_confidence: float,
        detected_language: Optional[str] = None,
        is_server_transcription: bool = False,
    ) -> ConversationEntry:
        """
        Translates what `speaker` said into the other party's language and
        records the entry in the session when history is enabled.
        `detected_language` (from server transcription) overrides the
        speaker's configured source language.
        """
        if speaker == Speaker.DOCTOR:
            source, target = self.settings.doctor_language, self.settings.patient_language
        else:
            source, target = self.settings.patient_language, self.settings.doctor_language

        source_code = detected_language if detected_language and detected_language != "unknown" else source.translation_code
        outcome = await self.translate(text, source_code, target.translation_code)

        entry = ConversationEntry(
            speaker=speaker,
            original_text=text,
            translated_text=outcome.text,
            original_language=source.display_name,
            target_language=target.display_name,
            confidence=transcription_confidence,
            is_server_transcription=is_server_transcription,
        )
        if self.session is not None and self.settings.save_history and not self.session.closed:
            self.session.record(entry)
        return entry
