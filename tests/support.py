"""
tests/support.py
=================
Shared fixtures: a scripted upstream API served through httpx.MockTransport.

Import this module before anything from translatemd.main so the rate
limiter is disabled for the test run.
"""

import json
import os
import sys
from typing import Any, Dict, List, Optional

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "production")

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import httpx  # noqa: E402

from translatemd.services.upstream import UpstreamClient  # noqa: E402

TEST_API_KEY = "sk-test-0000"


def chat_completion(content: Optional[str]) -> Dict[str, Any]:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-4o-mini",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 2, "total_tokens": 12},
    }


def verbose_transcription(text: str, language: Optional[str] = "english", logprobs: Optional[List[float]] = None) -> Dict[str, Any]:
    segments = [
        {"id": i, "seek": 0, "start": float(i), "end": float(i + 1), "text": text, "tokens": [],
         "temperature": 0.0, "avg_logprob": lp, "compression_ratio": 1.0, "no_speech_prob": 0.01}
        for i, lp in enumerate(logprobs or [])
    ]
    return {"task": "transcribe", "language": language, "duration": 1.5, "text": text, "segments": segments}


SESSION_PAYLOAD = {
    "id": "sess_test",
    "object": "realtime.session",
    "model": "gpt-4o-realtime-preview",
    "voice": "verse",
    "client_secret": {"value": "ek_test_secret", "expires_at": 1700000060},
}


class MockUpstream:
    """
    Scripted upstream. Each kind ("session", "transcribe", "detect",
    "translate") answers with a (status, json) pair; every request is kept
    so tests can assert call counts.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.kinds: List[str] = []
        self.replies = {
            "session": (200, SESSION_PAYLOAD),
            "transcribe": (200, verbose_transcription("Hello doctor", logprobs=[-0.1, -0.3])),
            "detect": (200, chat_completion("en")),
            "translate": (200, chat_completion("Hola")),
        }

    def reply(self, kind: str, status: int = 200, body: Any = None):
        self.replies[kind] = (status, body)

    def fail(self, kind: str):
        """Makes `kind` requests fail before any response (connection refused)."""
        self.replies[kind] = None

    def calls(self, kind: Optional[str] = None) -> int:
        if kind is None:
            return len(self.kinds)
        return self.kinds.count(kind)

    def _kind(self, request: httpx.Request) -> str:
        path = request.url.path
        if path.endswith("/realtime/sessions"):
            return "session"
        if path.endswith("/audio/transcriptions"):
            return "transcribe"
        if path.endswith("/chat/completions"):
            body = json.loads(request.content)
            system_prompt = body["messages"][0]["content"]
            return "detect" if system_prompt.startswith("Identify the language") else "translate"
        return "unknown"

    def handler(self, request: httpx.Request) -> httpx.Response:
        kind = self._kind(request)
        self.requests.append(request)
        self.kinds.append(kind)
        if kind not in self.replies:
            return httpx.Response(404, json={"error": {"message": "not found"}})
        if self.replies[kind] is None:
            raise httpx.ConnectError("Connection refused", request=request)
        status, body = self.replies[kind]
        return httpx.Response(status, json=body)

    def last_json(self, kind: str) -> Dict[str, Any]:
        for request, request_kind in reversed(list(zip(self.requests, self.kinds))):
            if request_kind == kind:
                return json.loads(request.content)
        raise AssertionError(f"no {kind} request recorded")

    def client(self, api_key: Optional[str] = TEST_API_KEY) -> UpstreamClient:
        return UpstreamClient(
            api_key=api_key,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(self.handler)),
        )
