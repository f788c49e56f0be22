"""Voice recognition components for PhotoTale.

This package exposes the ``RecognitionSession`` which keeps a transcript
source running and feeds its final transcripts to the command handler, and
the ``ConsoleTranscriptSource`` used to drive it from typed input.
"""

from .recognition_session import (  # noqa: F401
    ConsoleTranscriptSource,
    RecognitionFailure,
    RecognitionSession,
    SessionConfig,
    SourceClosed,
    TranscriptEvent,
)

__all__ = [
    "ConsoleTranscriptSource",
    "RecognitionFailure",
    "RecognitionSession",
    "SessionConfig",
    "SourceClosed",
    "TranscriptEvent",
]
