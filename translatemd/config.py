"""
Central configuration for the TranslateMD proxy
"""

from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import AliasChoices, Field
from enum import Enum


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class ChatModel(str, Enum):
    GPT_4O_MINI = "gpt-4o-mini"
    GPT_4O = "gpt-4o"


class STTModel(str, Enum):
    WHISPER_1 = "whisper-1"
    GPT_4O_MINI_TRANSCRIBE = "gpt-4o-mini-transcribe"


class RealtimeModel(str, Enum):
    GPT_4O_REALTIME_PREVIEW = "gpt-4o-realtime-preview"
    GPT_4O_MINI_REALTIME_PREVIEW = "gpt-4o-mini-realtime-preview"


class Settings(BaseSettings):
    # Environment
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # API Configuration
    api_title: str = Field(default="TranslateMD Proxy")
    api_description: str = Field(default="Credential broker and translation proxy for clinical conversations")
    api_version: str = Field(default="1.0.0")
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=3030, validation_alias=AliasChoices("port", "api_port"))

    # Upstream API. The key is optional at start-up; every proxy route
    # reports its absence with a 500.
    openai_api_key: Optional[str] = Field(default=None)
    openai_base_url: str = Field(default="https://api.openai.com/v1")
    upstream_timeout: float = Field(default=60.0)  # seconds

    # Realtime sessions
    realtime_model: str = Field(default=RealtimeModel.GPT_4O_REALTIME_PREVIEW.value)
    realtime_voice: str = Field(default="verse")

    # Transcription
    transcription_model: str = Field(default=STTModel.WHISPER_1.value)
    max_audio_bytes: int = Field(default=10 * 1024 * 1024)

    # Translation and detection
    translation_model: str = Field(default=ChatModel.GPT_4O_MINI.value)
    translation_temperature: float = Field(default=0.3)
    translation_max_tokens: int = Field(default=150)
    detection_model: str = Field(default=ChatModel.GPT_4O_MINI.value)
    detection_temperature: float = Field(default=0.1)
    detection_max_tokens: int = Field(default=10)
    fallback_source_language: str = Field(default="en")

    # Rate Limiting
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_requests: int = Field(default=120)
    rate_limit_window: int = Field(default=60)  # seconds

    # CORS Configuration (the mobile client connects from anywhere)
    cors_origins: List[str] = Field(default=["*"])
    cors_allow_credentials: bool = Field(default=False)
    cors_allow_methods: List[str] = Field(default=["GET", "POST"])
    cors_allow_headers: List[str] = Field(default=["*"])

    # Monitoring
    enable_metrics: bool = Field(default=True)
    metrics_path: str = Field(default="/metrics")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
