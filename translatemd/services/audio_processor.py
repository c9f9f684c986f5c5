"""
Audio payload inspection for the transcription route
"""

from typing import AsyncIterator, Optional, Tuple
from translatemd.config import settings
from translatemd.core.errors import AudioTooLargeError, NoAudioDataError
from translatemd.core.logging import get_logger

logger = get_logger(__name__)

EXTENSIONS = {
    "audio/mpeg": ".mp3",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/wave": ".wav",
    "audio/mp4": ".mp4",
    "audio/m4a": ".m4a",
    "audio/x-m4a": ".m4a",
    "audio/ogg": ".ogg",
    "audio/webm": ".webm",
    "audio/flac": ".flac",
}


class AudioProcessor:
    """Validates raw audio bodies and prepares them for upload"""

    def __init__(self, max_audio_bytes: Optional[int] = None):
        self.max_audio_bytes = max_audio_bytes or settings.max_audio_bytes

    @staticmethod
    def is_audio_content_type(content_type: Optional[str]) -> bool:
        return bool(content_type) and content_type.split(";")[0].strip().lower().startswith("audio/")

    def validate(self, audio_data: Optional[bytes]) -> bytes:
        """Returns the payload, or raises NoAudioDataError / AudioTooLargeError."""
        if not audio_data:
            raise NoAudioDataError()
        if len(audio_data) > self.max_audio_bytes:
            logger.warning(f"Rejected audio payload of {len(audio_data)} bytes")
            raise AudioTooLargeError(len(audio_data), self.max_audio_bytes)
        return audio_data

    async def read_limited(self, chunks: AsyncIterator[bytes], content_length: Optional[str] = None) -> bytes:
        """
        Collects a streamed body, raising AudioTooLargeError as soon as the
        declared or received size passes the limit so oversized uploads are
        never buffered whole.
        """
        if content_length and content_length.isdigit() and int(content_length) > self.max_audio_bytes:
            logger.warning(f"Rejected audio payload declared as {content_length} bytes")
            raise AudioTooLargeError(int(content_length), self.max_audio_bytes)

        received = bytearray()
        async for chunk in chunks:
            received.extend(chunk)
            if len(received) > self.max_audio_bytes:
                logger.warning(f"Rejected audio payload after {len(received)} bytes")
                raise AudioTooLargeError(len(received), self.max_audio_bytes)
        return bytes(received)

    def prepare_upload(self, audio_data: bytes, content_type: Optional[str]) -> Tuple[str, bytes, str]:
        """Builds the (filename, bytes, content type) tuple for the multipart upload."""
        media_type = (content_type or "").split(";")[0].strip().lower()
        if media_type not in EXTENSIONS:
            media_type = self.detect_content_type(audio_data)
        return f"audio{self._get_extension_from_content_type(media_type)}", audio_data, media_type

    def _get_extension_from_content_type(self, content_type: str) -> str:
        """Maps content type to file extension."""
        return EXTENSIONS.get(content_type, ".wav")

    @staticmethod
    def detect_content_type(audio_data: bytes) -> str:
        """Detects the content type from the file signature"""
        # MP4/M4A: 'ftyp' a few bytes in
        if b'ftyp' in audio_data[4:12]:
            return "audio/mp4"

        signatures = {
            b'ID3': "audio/mpeg",      # MP3 with ID3 Tag
            b'\xff\xfb': "audio/mpeg",  # MP3 frame
            b'\xff\xf3': "audio/mpeg",  # MP3 frame
            b'\xff\xf2': "audio/mpeg",  # MP3 frame
            b'RIFF': "audio/wav",
            b'OggS': "audio/ogg",
            b'fLaC': "audio/flac",
            b'\x1a\x45\xdf\xa3': "audio/webm",
        }

        for signature, detected_type in signatures.items():
            if audio_data.startswith(signature):
                return detected_type

        # The mobile recorder sends 16 kHz PCM WAV
        return "audio/wav"
