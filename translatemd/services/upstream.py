"""
Upstream API client

The only component that holds the long-lived secret. Realtime sessions are
minted with a plain httpx call, chat completions and transcriptions go
through the OpenAI SDK sharing the same httpx client. Nothing is retried:
upstream failures surface as UpstreamError with the upstream status and body.
"""

import time
from typing import Any, Dict, List, Optional, Tuple

import httpx
from openai import AsyncOpenAI, APIStatusError, APIConnectionError
from prometheus_client import Counter, Histogram

from translatemd.config import Settings
from translatemd.core.errors import MissingServerSecretError, UpstreamError
from translatemd.core.logging import get_logger, audit_logger
from translatemd.core.security import security_manager

logger = get_logger(__name__)

upstream_calls = Counter('upstream_calls_total', 'Calls to the upstream API', ['service', 'status'])
upstream_duration = Histogram('upstream_call_duration_seconds', 'Upstream call duration', ['service'])


def response_body(response: httpx.Response) -> Any:
    """Upstream body as JSON, falling back to the raw text."""
    try:
        return response.json()
    except ValueError:
        return {"error": response.text}


def completion_text(completion: Any) -> str:
    """Trimmed text of the first choice of a chat completion."""
    choices = getattr(completion, "choices", None) or []
    if not choices:
        raise UpstreamError(502, {"error": "Upstream returned no choices"}, message="Undecodable upstream completion")
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None) or ""
    return content.strip()


class UpstreamClient:
    """Thin async client for the upstream AI API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.openai.com/v1",
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)
        self._openai: Optional[AsyncOpenAI] = None

    @classmethod
    def from_settings(cls, settings: Settings, http_client: Optional[httpx.AsyncClient] = None) -> "UpstreamClient":
        client = cls(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            http_client=http_client,
            timeout=settings.upstream_timeout,
        )
        if client.is_configured:
            logger.info(f"Upstream API configured at {client.base_url} with key {security_manager.hash_api_key(client.api_key)}")
        else:
            logger.warning("OPENAI_API_KEY is not set; proxy routes will answer 500 until it is configured")
        return client

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def require_api_key(self) -> str:
        """Raises MissingServerSecretError before any network activity."""
        if not self.api_key:
            raise MissingServerSecretError()
        return self.api_key

    @property
    def openai(self) -> AsyncOpenAI:
        if self._openai is None:
            self._openai = AsyncOpenAI(
                api_key=self.require_api_key(),
                base_url=self.base_url,
                http_client=self.http_client,
                max_retries=0,
            )
        return self._openai

    async def aclose(self):
        await self.http_client.aclose()

    def _record(self, request_id: Optional[str], service: str, endpoint: str, status: int, started: float):
        elapsed = time.time() - started
        upstream_calls.labels(service=service, status=status).inc()
        upstream_duration.labels(service=service).observe(elapsed)
        audit_logger.log_external_api_call(
            request_id=request_id,
            service=service,
            endpoint=endpoint,
            response_status=status,
            response_time_ms=int(elapsed * 1000),
        )

    async def create_realtime_session(self, model: str, voice: str, request_id: Optional[str] = None) -> Dict[str, Any]:
        """POST /realtime/sessions and return the upstream payload untouched."""
        api_key = self.require_api_key()
        endpoint = f"{self.base_url}/realtime/sessions"
        started = time.time()

        try:
            response = await self.http_client.post(
                endpoint,
                headers={"Authorization": f"Bearer {api_key}"},
                json={"model": model, "voice": voice},
            )
        except httpx.HTTPError as e:
            logger.error(f"[{request_id}] Realtime session request failed: {e}", exc_info=True)
            self._record(request_id, "realtime_session", endpoint, 500, started)
            raise UpstreamError(500, {"error": "Internal server error"}, message=str(e)) from e

        self._record(request_id, "realtime_session", endpoint, response.status_code, started)
        body = response_body(response)
        if response.is_error:
            logger.error(f"[{request_id}] Upstream rejected realtime session: {response.status_code}")
            raise UpstreamError(response.status_code, body)
        return body

    async def chat_completion(
        self,
        *,
        service: str,
        model: str,
        messages: List[Dict[str, str]],
        temperature: float,
        max_tokens: int,
        request_id: Optional[str] = None,
    ) -> str:
        """Single-turn chat completion, returns the trimmed reply text."""
        self.require_api_key()
        started = time.time()

        try:
            completion = await self.openai.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except APIStatusError as e:
            logger.error(f"[{request_id}] Upstream {service} call failed with status {e.status_code}")
            self._record(request_id, service, "chat/completions", e.status_code, started)
            raise UpstreamError(e.status_code, response_body(e.response)) from e
        except APIConnectionError as e:
            logger.error(f"[{request_id}] Could not reach upstream for {service}: {e}", exc_info=True)
            self._record(request_id, service, "chat/completions", 500, started)
            raise UpstreamError(500, {"error": f"{service.replace('_', ' ').capitalize()} failed"}, message=str(e)) from e

        self._record(request_id, service, "chat/completions", 200, started)
        return completion_text(completion)

    async def transcribe_audio(
        self,
        audio: Tuple[str, bytes, str],
        model: str,
        request_id: Optional[str] = None,
    ) -> Any:
        """
        Uploads one audio file for transcription with deterministic decoding
        and verbose output (language and per-segment log-probabilities).
        `audio` is a (filename, bytes, content type) tuple.
        """
        self.require_api_key()
        started = time.time()

        try:
            transcription = await self.openai.audio.transcriptions.create(
                model=model,
                file=audio,
                response_format="verbose_json",
                temperature=0,
            )
        except APIStatusError as e:
            logger.error(f"[{request_id}] Upstream transcription failed with status {e.status_code}")
            self._record(request_id, "transcription", "audio/transcriptions", e.status_code, started)
            raise UpstreamError(e.status_code, response_body(e.response)) from e
        except APIConnectionError as e:
            logger.error(f"[{request_id}] Could not reach upstream for transcription: {e}", exc_info=True)
            self._record(request_id, "transcription", "audio/transcriptions", 500, started)
            raise UpstreamError(500, {"error": f"Transcription failed: {e}"}, message=str(e)) from e

        self._record(request_id, "transcription", "audio/transcriptions", 200, started)
        return transcription
