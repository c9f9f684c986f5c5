"""
Error taxonomy of the proxy

Every error carries the HTTP status and the JSON body the caller receives.
Upstream failures carry the upstream status and body verbatim.
"""

from typing import Any, Dict, Optional


class ProxyError(Exception):
    """Base class for errors rendered directly as HTTP responses."""

    status_code: int = 500
    error_type: str = "proxy_error"

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.body = body if body is not None else {"error": message}


class MissingServerSecretError(ProxyError):
    """The upstream secret is not configured. Never retried."""

    status_code = 500
    error_type = "missing_server_secret"

    def __init__(self):
        super().__init__("Missing OPENAI_API_KEY")


class MissingFieldsError(ProxyError):
    status_code = 400
    error_type = "missing_fields"

    def __init__(self, *fields: str):
        self.fields = fields
        label = "field" if len(fields) == 1 else "fields"
        super().__init__(f"Missing required {label}: {', '.join(fields)}")


class NoAudioDataError(ProxyError):
    status_code = 400
    error_type = "no_audio_data"

    def __init__(self):
        super().__init__("No audio data provided")


class AudioTooLargeError(ProxyError):
    status_code = 413
    error_type = "audio_too_large"

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Audio payload of {size} bytes exceeds the {limit} byte limit")


class UpstreamError(ProxyError):
    """Failure reported by (or while talking to) the upstream API."""

    error_type = "upstream_failure"

    def __init__(self, status_code: int, body: Optional[Dict[str, Any]] = None, message: str = "Upstream request failed"):
        super().__init__(message, status_code=status_code, body=body)
