"""
Typed async client for the TranslateMD proxy

Used by the mobile front-end (and the tests) to reach every proxy route.
Non-2xx responses and bodies that do not decode into the expected result
model raise ProxyClientError.
"""

from typing import Any, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from translatemd.core.logging import get_logger
from translatemd.models.responses import (
    HealthCheckResponse, LanguageDetectionResult, SessionCredential,
    TranscriptionResult, TranslationResult
)

logger = get_logger(__name__)

DEFAULT_BASE_URL = "http://localhost:3030"

ResultT = TypeVar("ResultT", bound=BaseModel)


class ProxyClientError(Exception):
    """A proxy call failed or returned an unexpected payload."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ProxyClient:
    """Issues proxy requests and decodes responses into typed results"""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, http_client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self):
        await self.http_client.aclose()

    async def __aenter__(self) -> "ProxyClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def get_session_credential(self) -> SessionCredential:
        """Asks the broker for a short-lived realtime credential."""
        response = await self.http_client.post(f"{self.base_url}/session", headers={"Content-Type": "application/json"})
        return self._decode(response, SessionCredential)

    async def transcribe(self, audio_data: bytes, content_type: str = "audio/wav") -> TranscriptionResult:
        response = await self.http_client.post(
            f"{self.base_url}/transcribe",
            content=audio_data,
            headers={"Content-Type": content_type},
        )
        return self._decode(response, TranscriptionResult)

    async def translate(self, text: str, source_language: Optional[str], target_language: str) -> TranslationResult:
        body = {"text": text, "to": target_language}
        if source_language:
            body["from"] = source_language
        response = await self.http_client.post(f"{self.base_url}/translate", json=body)
        return self._decode(response, TranslationResult)

    async def detect_language(self, text: str) -> LanguageDetectionResult:
        response = await self.http_client.post(f"{self.base_url}/detect-language", json={"text": text})
        return self._decode(response, LanguageDetectionResult)

    async def health(self) -> HealthCheckResponse:
        response = await self.http_client.get(f"{self.base_url}/health")
        return self._decode(response, HealthCheckResponse)

    def _decode(self, response: httpx.Response, model: Type[ResultT]) -> ResultT:
        path = response.request.url.path
        try:
            body = response.json()
        except ValueError:
            body = response.text

        if response.is_error:
            logger.warning(f"Proxy call {path} failed with status {response.status_code}")
            raise ProxyClientError(f"{path} returned {response.status_code}", response.status_code, body)

        try:
            return model.model_validate(body)
        except ValidationError as e:
            logger.error(f"Could not decode {path} response: {e}")
            raise ProxyClientError(f"Unexpected payload from {path}", response.status_code, body) from e
