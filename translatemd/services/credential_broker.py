"""
Credential Broker

Exchanges the server-held secret for a short-lived realtime session
credential. One upstream call per request, nothing cached or stored.
"""

from typing import Any, Dict, Optional

from translatemd.config import settings
from translatemd.core.logging import get_logger
from translatemd.services.upstream import UpstreamClient

logger = get_logger(__name__)


class CredentialBroker:

    def __init__(self, upstream: UpstreamClient, model: Optional[str] = None, voice: Optional[str] = None):
        self.upstream = upstream
        self.model = model or settings.realtime_model
        self.voice = voice or settings.realtime_voice

    async def issue_session_credential(self, request_id: Optional[str] = None) -> Dict[str, Any]:
        """Returns the upstream session payload, which includes client_secret.value."""
        payload = await self.upstream.create_realtime_session(
            model=self.model,
            voice=self.voice,
            request_id=request_id,
        )
        logger.info(f"[{request_id}] Generated ephemeral token for client (session {payload.get('id', 'n/a')})")
        return payload
