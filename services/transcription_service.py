"""
Transcription Service
Placeholder speech-to-text for recorded provider sessions
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from config import Settings, get_settings


logger = logging.getLogger(__name__)


PLACEHOLDER_TRANSCRIPT = (
    "[Placeholder transcript] Automatic transcription is not enabled on this "
    "server. The recording was received and stored; edit this text to add "
    "session notes."
)


class TranscriptionError(ValueError):
    """Raised for uploads that cannot be transcribed"""


@dataclass
class TranscriptionResult:
    transcript: str
    duration: int  # seconds, estimated
    size_bytes: int


def estimate_duration_seconds(size_bytes: int, bytes_per_second: int) -> int:
    """Rough duration from file size at a fixed bitrate, never below one second"""
    return max(1, int(size_bytes / bytes_per_second + 0.5))


class Transcriber(ABC):
    """Turns recorded audio into text"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def validate(self, audio: bytes) -> None:
        if not audio:
            raise TranscriptionError("Audio file is empty")
        if len(audio) > self.settings.MAX_AUDIO_UPLOAD_BYTES:
            raise TranscriptionError(
                f"Audio file exceeds {self.settings.MAX_AUDIO_UPLOAD_BYTES} bytes"
            )

    @abstractmethod
    def transcribe(self, audio: bytes, filename: Optional[str] = None) -> TranscriptionResult: ...


class PlaceholderTranscriber(Transcriber):
    """Returns a fixed, labelled transcript and an estimated duration"""

    def transcribe(self, audio: bytes, filename: Optional[str] = None) -> TranscriptionResult:
        self.validate(audio)
        duration = estimate_duration_seconds(len(audio), self.settings.AUDIO_BYTES_PER_SECOND)
        logger.info(f"Placeholder transcription for {filename or 'upload'} ({len(audio)} bytes, ~{duration}s)")
        return TranscriptionResult(
            transcript=PLACEHOLDER_TRANSCRIPT,
            duration=duration,
            size_bytes=len(audio),
        )
