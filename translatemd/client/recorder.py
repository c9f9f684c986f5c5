"""
Continuous-capture server transcription

Every `interval` seconds the current audio segment is flushed from the
segment source (which immediately starts capturing the next one) and sent
to /transcribe. Uploads are sequential, so a stream has at most one
transcription call in flight. Results are published on `events` instead of
delegate callbacks.
"""

import asyncio
from typing import Callable, Optional, Union

import httpx
from pydantic import BaseModel

from translatemd.client.proxy_client import ProxyClient, ProxyClientError
from translatemd.core.logging import get_logger

logger = get_logger(__name__)

# Segments of this size or smaller are silence, not worth a round trip
MIN_AUDIO_BYTES = 768
SEGMENT_INTERVAL = 1.5


class TranscriptionEvent(BaseModel):
    text: str
    confidence: float
    language: str


class TranscriptionErrorEvent(BaseModel):
    message: str
    status_code: Optional[int] = None


class InactivityTimeoutEvent(BaseModel):
    idle_seconds: float


StreamEvent = Union[TranscriptionEvent, TranscriptionErrorEvent, InactivityTimeoutEvent]


class ServerTranscriptionStream:
    """
    `flush_segment` returns the bytes captured since the previous flush.
    `inactivity_timeout` (seconds, usually ClientSettings.auto_turn_off_delay)
    stops the stream when no speech was transcribed for that long.
    """

    def __init__(
        self,
        client: ProxyClient,
        flush_segment: Callable[[], bytes],
        interval: float = SEGMENT_INTERVAL,
        inactivity_timeout: Optional[float] = None,
        content_type: str = "audio/wav",
        min_audio_bytes: int = MIN_AUDIO_BYTES,
    ):
        self.client = client
        self.flush_segment = flush_segment
        self.interval = interval
        self.inactivity_timeout = inactivity_timeout
        self.content_type = content_type
        self.min_audio_bytes = min_audio_bytes
        self.events: "asyncio.Queue[StreamEvent]" = asyncio.Queue()
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None
        self._last_activity = 0.0

    @property
    def is_recording(self) -> bool:
        return self._task is not None and not self._task.done() and not self._stop_event.is_set()

    def start(self):
        if self.is_recording:
            logger.warning("Already recording, ignoring start request")
            return
        self._stop_event = asyncio.Event()
        self._last_activity = asyncio.get_running_loop().time()
        self._task = asyncio.create_task(self._run())
        logger.info(f"Server transcription started, flushing every {self.interval}s")

    def stop(self):
        """Stops the segment timer. An upload in flight finishes and its result is dropped."""
        if self._stop_event is not None and not self._stop_event.is_set():
            self._stop_event.set()
            logger.info("Server transcription stopped")

    async def wait_closed(self):
        if self._task is not None:
            await self._task

    async def _run(self):
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                await self._process_segment()
                self._check_inactivity()

    async def _process_segment(self):
        audio_data = self.flush_segment()
        if len(audio_data) <= self.min_audio_bytes:
            logger.debug(f"Audio segment too small ({len(audio_data)} bytes), skipping transcription")
            return

        try:
            result = await self.client.transcribe(audio_data, self.content_type)
        except (ProxyClientError, httpx.HTTPError) as e:
            if not self._stop_event.is_set():
                await self.events.put(TranscriptionErrorEvent(
                    message=str(e),
                    status_code=getattr(e, "status_code", None),
                ))
            return

        if self._stop_event.is_set():
            logger.debug("Discarding transcription that arrived after stop")
            return

        if result.text:
            self._last_activity = asyncio.get_running_loop().time()
            await self.events.put(TranscriptionEvent(
                text=result.text,
                confidence=result.confidence,
                language=result.language,
            ))

    def _check_inactivity(self):
        if not self.inactivity_timeout or self._stop_event.is_set():
            return
        idle = asyncio.get_running_loop().time() - self._last_activity
        if idle >= self.inactivity_timeout:
            logger.info(f"Recording stopped due to inactivity after {self.inactivity_timeout} seconds")
            self.events.put_nowait(InactivityTimeoutEvent(idle_seconds=idle))
            self.stop()
