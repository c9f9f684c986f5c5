"""
Speech-to-Text Service
Forwards one audio chunk to the upstream transcription endpoint and
normalizes the verbose response.
"""

import math
import time
from typing import Any, Iterable, Optional

from translatemd.config import settings
from translatemd.core.logging import get_logger, audit_logger
from translatemd.models.responses import TranscriptionResult
from translatemd.services.audio_processor import AudioProcessor
from translatemd.services.upstream import UpstreamClient

logger = get_logger(__name__)

DEFAULT_CONFIDENCE = 0.8
MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0
# Shorter transcripts are treated as noise from near-silent clips
MIN_TRANSCRIPT_CHARS = 2
UNKNOWN_LANGUAGE = "unknown"


def _field(item: Any, name: str, default: Any = None) -> Any:
    # Segments arrive as SDK objects or as plain dicts depending on the SDK version
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def confidence_from_segments(segments: Optional[Iterable[Any]]) -> float:
    """
    Maps the mean segment log-probability to a [0.1, 1.0] plausibility score.
    Without segments the score defaults to 0.8. A heuristic, not a
    calibrated probability.
    """
    logprobs = [float(_field(segment, "avg_logprob") or 0.0) for segment in (segments or [])]
    if not logprobs:
        return DEFAULT_CONFIDENCE
    mean_logprob = sum(logprobs) / len(logprobs)
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, math.exp(mean_logprob)))


def normalize_transcription(raw: Any) -> TranscriptionResult:
    """Converts the upstream verbose transcription into a TranscriptionResult."""
    text = (_field(raw, "text") or "").strip()
    language = _field(raw, "language") or UNKNOWN_LANGUAGE

    if len(text) < MIN_TRANSCRIPT_CHARS:
        return TranscriptionResult(text="", language=language, confidence=0.0)

    confidence = confidence_from_segments(_field(raw, "segments"))
    return TranscriptionResult(text=text, language=language, confidence=round(confidence, 2))


class STTService:
    """Service for Speech-to-Text transcription through the upstream API."""

    def __init__(self, upstream: UpstreamClient, audio_processor: Optional[AudioProcessor] = None):
        self.upstream = upstream
        self.audio_processor = audio_processor or AudioProcessor()
        self.model = settings.transcription_model

    async def transcribe(
        self,
        audio_data: Optional[bytes],
        content_type: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> TranscriptionResult:
        self.upstream.require_api_key()
        audio_data = self.audio_processor.validate(audio_data)

        logger.info(f"[{request_id}] Received audio data: {len(audio_data)} bytes")
        started = time.time()

        raw = await self.upstream.transcribe_audio(
            self.audio_processor.prepare_upload(audio_data, content_type),
            model=self.model,
            request_id=request_id,
        )
        result = normalize_transcription(raw)

        audit_logger.log_audio_processing(
            request_id=request_id,
            audio_size_bytes=len(audio_data),
            language=result.language,
            model_used=self.model,
            processing_time_ms=int((time.time() - started) * 1000),
            empty=not result.text,
        )
        return result
