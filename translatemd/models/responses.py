"""
Pydantic Models for API Responses

The same models decode responses on the client side, so the wire names are
declared as aliases and the Python names stay snake_case.
"""

from typing import Optional, Any
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class TranscriptionResult(BaseModel):
    """Result of one transcribed audio chunk"""
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(alias="transcription", description="Trimmed transcript, empty for near-silent clips")
    language: str = Field(default="unknown", description="Language reported by the STT service")
    confidence: float = Field(ge=0.0, le=1.0, description="Heuristic plausibility score (0.0-1.0)")


class TranslationResult(BaseModel):
    """Result of a translation"""
    model_config = ConfigDict(populate_by_name=True)

    translated_text: str = Field(alias="translation", description="Translated text")
    detected_source_language: Optional[str] = Field(
        default=None,
        alias="detectedLanguage",
        description="Source language used for the translation"
    )


class LanguageDetectionResult(BaseModel):
    """Result of a language detection"""
    language: str = Field(description="Language code as returned upstream (trimmed)")


class ClientSecret(BaseModel):
    value: str
    expires_at: Optional[int] = None


class SessionCredential(BaseModel):
    """Client-side view of the realtime session payload. The proxy itself
    forwards the upstream payload untouched."""
    model_config = ConfigDict(extra="allow")

    client_secret: ClientSecret
    id: Optional[str] = None
    model: Optional[str] = None

    @property
    def token(self) -> str:
        return self.client_secret.value


class HealthCheckResponse(BaseModel):
    """Health Check Response"""
    status: str = Field(description="Service status")
    timestamp: datetime = Field(description="Check time")
    version: str = Field(description="Service version")
    uptime_seconds: int = Field(description="Uptime in seconds")


class ErrorResponse(BaseModel):
    """Standard error body"""
    error: Any = Field(description="Error message or upstream error payload")


class RateLimitResponse(BaseModel):
    """Rate Limit Exceeded Response"""
    error: str = Field(default="rate_limit_exceeded")
    message: str = Field(description="Rate limit message")
    retry_after: int = Field(description="Seconds until the next attempt")
    limit: int = Field(description="Request limit")
    window: int = Field(description="Window in seconds")
    timestamp: datetime = Field(description="Error time")
