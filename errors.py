from __future__ import annotations

__all__ = [
    "RelayError",
    "CaptureError",
    "TranscriptionError",
    "EmptyAudioError",
    "TranscriptionStatusError",
    "EmptyTranscriptionError",
    "TranslationError",
    "DispatchError",
]


class RelayError(Exception):
    """Base class for relay failures."""


class CaptureError(RelayError):
    """The input device could not be opened or kept running."""


class TranscriptionError(RelayError):
    """The transcription service failed (network or bad response)."""


class EmptyAudioError(TranscriptionError):
    pass


class TranscriptionStatusError(TranscriptionError):
    def __init__(self, status_code: int, body: str):
        super().__init__(f"API request failed ({status_code}): {body}")
        self.status_code = status_code
        self.body = body


class EmptyTranscriptionError(TranscriptionError):
    pass


class TranslationError(RelayError):
    """The translation service failed or returned something unusable."""


class DispatchError(RelayError):
    """Sending a chatbox chunk failed; remaining chunks were abandoned."""

    def __init__(self, message: str, sent: int = 0):
        super().__init__(message)
        self.sent = sent
