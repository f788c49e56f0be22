"""
Continuous voice recognition session.

A recogniser is not expected to run forever: it delivers the results of one
*run* (a few interim hypotheses and, usually, a final transcript) and then
ends.  The :class:`RecognitionSession` keeps the microphone "on" from the
user's point of view by restarting a new run after each one ends, waiting
longer after network problems or browser‑style aborts.  Final transcripts are
stripped of punctuation and handed to a handler, typically
:meth:`phototale.story_controller.StoryController.handle_transcript`, whose
outcome is turned into a short feedback line.

The recogniser itself is abstracted as a :class:`TranscriptSource`, so any
speech‑to‑text backend (or typed console input) can drive the session.
"""
from __future__ import annotations

import os
import re
import time
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Protocol, Union

from ..commands import CommandOutcome, CommandStatus
from ..utils.logging_system import setup_log_system

logger = setup_log_system("recognition_session")

LISTENING = "Listening..."
MIC_OFF = "Mic is off."

_PUNCTUATION = re.compile(r"[.,?/#!$%^&*;:{}=\-_`~()]")


@dataclass(frozen=True)
class TranscriptEvent:
    text: str
    is_final: bool = True


@dataclass(frozen=True)
class RecognitionFailure:
    """An error reported by the recogniser, e.g. ``"network"`` or ``"not-allowed"``."""

    kind: str
    message: str = ""


RecognitionEvent = Union[TranscriptEvent, RecognitionFailure]


class SourceClosed(Exception):
    """Raised by a source that will not produce any further runs."""


class TranscriptSource(Protocol):
    def listen(self) -> Iterator[RecognitionEvent]:
        """Start one recognition run and yield its events until it ends."""
        ...


@dataclass
class SessionConfig:
    restart_delay: float = 0.25  # seconds between ordinary runs
    network_retry_delay: float = 2.5
    abort_retry_delay: float = 0.5

    @classmethod
    def from_env(cls) -> "SessionConfig":
        defaults = cls()
        return cls(
            restart_delay=float(os.getenv("SESSION_RESTART_DELAY", defaults.restart_delay)),
            network_retry_delay=float(
                os.getenv("SESSION_NETWORK_RETRY_DELAY", defaults.network_retry_delay)
            ),
            abort_retry_delay=float(os.getenv("SESSION_ABORT_RETRY_DELAY", defaults.abort_retry_delay)),
        )


def clean_transcript(text: str) -> str:
    """Trim and drop punctuation that recognisers add to spoken commands."""
    return _PUNCTUATION.sub("", text.strip())


TranscriptHandler = Callable[[str], CommandOutcome]


class RecognitionSession:
    """
    Keeps a transcript source running and dispatches its final transcripts.

    - ``handler`` receives each cleaned final transcript and returns a
      :class:`~phototale.commands.CommandOutcome`.
    - ``on_display`` (optional) receives every change of the feedback line.
    - ``on_processing_start`` / ``on_processing_end`` bracket handling of a
      final transcript.
    """

    def __init__(
        self,
        source: TranscriptSource,
        handler: TranscriptHandler,
        *,
        config: SessionConfig | None = None,
        on_display: Optional[Callable[[str], None]] = None,
        on_processing_start: Optional[Callable[[], None]] = None,
        on_processing_end: Optional[Callable[[], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.source = source
        self.handler = handler
        self.cfg = config or SessionConfig()
        self._on_display = on_display
        self._on_processing_start = on_processing_start
        self._on_processing_end = on_processing_end
        self._sleep = sleep

        self._listening = False
        self._network_error = False
        self._aborted = False
        self.display = MIC_OFF
        self.last_outcome: Optional[CommandOutcome] = None

    # -------------- lifecycle --------------
    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    @property
    def is_listening(self) -> bool:
        return self._listening

    def start(self) -> None:
        if not self._listening:
            self._listening = True
            self._set_display(LISTENING)
            logger.debug("Recognition session started.")

    def stop(self) -> None:
        if self._listening:
            self._listening = False
            self._set_display(MIC_OFF)
            logger.debug("Recognition session stopped.")

    def run(self) -> None:
        """Run recognition until the session is stopped or the source closes."""
        self.start()
        while self._listening:
            try:
                events = self.source.listen()
                for event in events:
                    self._on_event(event)
                    if not self._listening:
                        break
            except SourceClosed:
                logger.info("Transcript source closed.")
                self.stop()
                break
            except Exception as e:
                logger.error(f"Failed to restart recognition: {e}", exc_info=True)
                self._listening = False
                self._set_display("Mic failed to restart.")
                break

            if not self._listening:
                break
            delay = self._next_restart_delay()
            logger.debug(f"Recognition run ended; restarting in {delay:.2f}s.")
            self._sleep(delay)

    # -------------- events --------------
    def _on_event(self, event: RecognitionEvent) -> None:
        if isinstance(event, RecognitionFailure):
            self._on_failure(event)
        elif event.is_final:
            self._on_final(event.text)
        else:
            self._set_display(event.text)

    def _on_final(self, text: str) -> Optional[CommandOutcome]:
        trimmed = text.strip()
        if not trimmed:
            return None
        self._set_display(trimmed)
        if self._on_processing_start:
            self._on_processing_start()
        try:
            outcome = self.handler(clean_transcript(trimmed))
        except Exception as e:
            logger.error(f"Error executing voice command: {e}", exc_info=True)
            outcome = CommandOutcome(CommandStatus.FAILED, trimmed, error=e)
        self.last_outcome = outcome
        if outcome.status is CommandStatus.MATCHED:
            self._set_display(f"✔ {trimmed}")
        elif outcome.status is CommandStatus.FAILED:
            self._set_display(f"✗ Error: {trimmed}")
        else:
            self._set_display(f"? {trimmed}")
        if self._on_processing_end:
            self._on_processing_end()
        return outcome

    def _on_failure(self, failure: RecognitionFailure) -> None:
        kind = failure.kind
        if kind == "no-speech":
            return
        if kind == "aborted":
            self._aborted = True
            return
        logger.error(f"Speech recognition error: {kind} {failure.message}".rstrip())
        if kind == "network":
            self._network_error = True
            self._set_display("Network issue. Retrying...")
        elif kind in ("audio-capture", "not-allowed"):
            self.stop()
            self._set_display("Mic permission error. Stopping.")
        else:
            self._set_display(f"Mic error: {kind}.")

    def _next_restart_delay(self) -> float:
        if self._network_error:
            self._network_error = False
            return self.cfg.network_retry_delay
        if self._aborted:
            self._aborted = False
            return self.cfg.abort_retry_delay
        return self.cfg.restart_delay

    def _set_display(self, text: str) -> None:
        self.display = text
        if self._on_display:
            self._on_display(text)


class ConsoleTranscriptSource:
    """Reads one typed utterance per run from a line reader (``input`` by default)."""

    def __init__(self, read_line: Optional[Callable[[str], str]] = None, prompt: str = "> ") -> None:
        self._read_line = read_line or input
        self._prompt = prompt

    def listen(self) -> Iterator[RecognitionEvent]:
        try:
            line = self._read_line(self._prompt)
        except EOFError:
            raise SourceClosed() from None
        if line.strip():
            yield TranscriptEvent(line, is_final=True)
        else:
            yield RecognitionFailure("no-speech")
