"""
Client settings

An explicit settings object handed to the client components instead of
ambient global state. Can be stored as a small JSON file.
"""

from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from translatemd.client.languages import (
    AUTO_LANGUAGE_ID, DEFAULT_DOCTOR_LANGUAGE_ID, DEFAULT_PATIENT_LANGUAGE_ID, Language, language_by_id
)
from translatemd.client.proxy_client import DEFAULT_BASE_URL
from translatemd.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_AUTO_TURN_OFF_DELAY = 30.0
MIN_AUTO_TURN_OFF_DELAY = 15.0
MAX_AUTO_TURN_OFF_DELAY = 120.0


class ClientSettings(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    proxy_base_url: str = Field(default=DEFAULT_BASE_URL)
    doctor_language_id: str = Field(default=DEFAULT_DOCTOR_LANGUAGE_ID)
    patient_language_id: str = Field(default=DEFAULT_PATIENT_LANGUAGE_ID)
    auto_turn_off_delay: float = Field(default=DEFAULT_AUTO_TURN_OFF_DELAY, description="Inactivity delay in seconds")
    save_history: bool = Field(default=True)

    @field_validator("auto_turn_off_delay", mode="before")
    @classmethod
    def clamp_delay(cls, value):
        # An unset (0) delay means the default
        if not value:
            return DEFAULT_AUTO_TURN_OFF_DELAY
        return max(MIN_AUTO_TURN_OFF_DELAY, min(MAX_AUTO_TURN_OFF_DELAY, float(value)))

    @field_validator("doctor_language_id", "patient_language_id")
    @classmethod
    def known_language(cls, value: str) -> str:
        if language_by_id(value) is None:
            raise ValueError(f"Unsupported language '{value}'")
        # Both languages are translation targets, which cannot be auto-detected
        if value == AUTO_LANGUAGE_ID:
            raise ValueError("Auto-detect cannot be used as a conversation language")
        return value

    @property
    def doctor_language(self) -> Language:
        return language_by_id(self.doctor_language_id)

    @property
    def patient_language(self) -> Language:
        return language_by_id(self.patient_language_id)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ClientSettings":
        path = Path(path)
        if not path.exists():
            return cls()
        return cls.model_validate_json(path.read_text(encoding="utf-8"))

    def save(self, path: Union[str, Path]) -> None:
        Path(path).write_text(self.model_dump_json(indent=2), encoding="utf-8")
        logger.info(f"Saved client settings to {path}")
