"""
LLM Service for translation and language detection
"""

from typing import Dict, List, Optional

from translatemd.config import settings
from translatemd.core.errors import MissingFieldsError
from translatemd.core.logging import get_logger
from translatemd.models.responses import LanguageDetectionResult, TranslationResult
from translatemd.services.upstream import UpstreamClient

logger = get_logger(__name__)

AUTO_DETECT = "auto"

DETECTION_SYSTEM_PROMPT = (
    "Identify the language (ISO 639-1/BCP-47) of the given text. "
    "Only return the language code, nothing else."
)

TRANSLATION_SYSTEM_PROMPT = (
    "You are a professional medical translator working in a clinical setting "
    "between a doctor and a patient. Provide accurate, literal translations "
    "between languages. Respond only with the translation, no explanations "
    "or additional commentary."
)


class LLMService:
    """Translation and language detection through chat completions."""

    def __init__(self, upstream: UpstreamClient):
        self.upstream = upstream

    async def detect_language(self, text: Optional[str], request_id: Optional[str] = None) -> LanguageDetectionResult:
        """Classifies the language of `text`. The returned code is passed through unvalidated."""
        self.upstream.require_api_key()
        if not text:
            raise MissingFieldsError("text")

        language = await self._detect(text, request_id)
        return LanguageDetectionResult(language=language)

    async def translate(
        self,
        text: Optional[str],
        source_language: Optional[str],
        target_language: Optional[str],
        request_id: Optional[str] = None,
    ) -> TranslationResult:
        """
        Translates `text` into `target_language`. A missing or "auto" source
        is detected first; a detection failure aborts with the detection
        call's status, an empty detection falls back to English.
        """
        self.upstream.require_api_key()
        if not text or not target_language:
            raise MissingFieldsError("text", "to")

        if not source_language or source_language == AUTO_DETECT:
            detected = await self._detect(text, request_id)
            if not detected:
                logger.warning(f"[{request_id}] Language detection returned nothing, assuming '{settings.fallback_source_language}'")
            source_language = detected or settings.fallback_source_language
            logger.info(f"[{request_id}] Detected source language: {source_language}")

        translation = await self.upstream.chat_completion(
            service="translation",
            model=settings.translation_model,
            messages=self._build_translation_messages(text, source_language, target_language),
            temperature=settings.translation_temperature,
            max_tokens=settings.translation_max_tokens,
            request_id=request_id,
        )
        logger.info(f"[{request_id}] Translated {source_language} -> {target_language}")
        return TranslationResult(translated_text=translation, detected_source_language=source_language)

    async def _detect(self, text: str, request_id: Optional[str]) -> str:
        return await self.upstream.chat_completion(
            service="language_detection",
            model=settings.detection_model,
            messages=[
                {"role": "system", "content": DETECTION_SYSTEM_PROMPT},
                {"role": "user", "content": f'Identify the language of: "{text}"'},
            ],
            temperature=settings.detection_temperature,
            max_tokens=settings.detection_max_tokens,
            request_id=request_id,
        )

    def _build_translation_messages(self, text: str, source_language: str, target_language: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": TRANSLATION_SYSTEM_PROMPT},
            {"role": "user", "content": f"Translate from {source_language} to {target_language}: {text}"},
        ]
