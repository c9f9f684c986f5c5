"""
Pydantic Models for API Requests

Fields are optional at the schema level so that absent values surface as
400 MissingFields from the services instead of FastAPI's 422.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class TranslationRequest(BaseModel):
    """Request Model for /translate"""
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = Field(default=None, description="Text to translate")
    source_language: Optional[str] = Field(
        default=None,
        alias="from",
        description="Source language tag, 'auto' or absent to detect it"
    )
    target_language: Optional[str] = Field(default=None, alias="to", description="Target language tag")


class LanguageDetectionRequest(BaseModel):
    """Request Model for /detect-language"""
    text: Optional[str] = Field(default=None, description="Text whose language is identified")
