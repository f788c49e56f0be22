"""
Voice command matching for PhotoTale.

This module resolves one finalized speech‑to‑text transcript to at most one
command out of the table that is active on the current screen.  Commands are
declared with spoken phrases which may be plain literals (``"next"``), prefix
patterns (``"photo *"``), suffix patterns (``"* please"``) or the universal
wildcard (``"*"``) used by free‑text wizard steps.

Every phrase of every command produces a single candidate score:

* the universal wildcard scores ``0.81`` unless a specific phrase has already
  scored above ``0.5``, in which case it is held down to ``0.1``;
* prefix and suffix patterns score ``0.9`` plus a small bonus for the length
  of the fixed part and capture the free text as an argument;
* literals go through a cascade of exact match, phonetic class lookup and
  finally normalised Levenshtein similarity.

The highest scoring candidate wins (earlier candidates win ties) and is
accepted when it reaches the threshold.  The matcher holds no state between
calls apart from the read‑only phonetic table it was built with.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, Union

from rapidfuzz.distance import Levenshtein

from ..utils.logging_system import setup_log_system
from .phonetics import DEFAULT_TABLE, PhoneticTable

logger = setup_log_system("command_matcher")

CommandAction = Callable[..., Any]

DEFAULT_THRESHOLD = 0.7
WILDCARD_SCORE = 0.81
WILDCARD_SUPPRESSED_SCORE = 0.1
WILDCARD_SUPPRESSION_FLOOR = 0.5
PATTERN_BASE_SCORE = 0.9
PHONETIC_BASE_SCORE = 0.8
PHONETIC_LENGTH_PENALTY = 0.05

# Scores are built from float arithmetic, so 1 - 3/10 must still count as 0.7.
_SCORE_TOLERANCE = 1e-9


# ----------------------------------------------------------------------
# Phrase shapes
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class LiteralPhrase:
    text: str


@dataclass(frozen=True)
class PrefixPattern:
    """``"<prefix> *"``: the transcript must start with ``prefix``."""

    prefix: str


@dataclass(frozen=True)
class SuffixPattern:
    """``"* <suffix>"``: the transcript must end with ``suffix``."""

    suffix: str


@dataclass(frozen=True)
class UniversalWildcard:
    """``"*"``: catch‑all for free‑text input."""


Phrase = Union[LiteralPhrase, PrefixPattern, SuffixPattern, UniversalWildcard]


def parse_phrase(phrase: str) -> Optional[Phrase]:
    """
    Turn a declared phrase into its shape.

    Returns ``None`` for blank phrases.  A ``*`` that is neither the first
    nor the last character leaves the phrase a literal.
    """
    lowered = phrase.strip().lower()
    if not lowered:
        return None
    if lowered == "*":
        return UniversalWildcard()
    if lowered.endswith("*"):
        return PrefixPattern(lowered[:-1].strip())
    if lowered.startswith("*"):
        return SuffixPattern(lowered[1:].strip())
    return LiteralPhrase(lowered)


def _phrase_label(phrase: Phrase) -> str:
    if isinstance(phrase, LiteralPhrase):
        return phrase.text
    if isinstance(phrase, PrefixPattern):
        return f"{phrase.prefix} *"
    if isinstance(phrase, SuffixPattern):
        return f"* {phrase.suffix}"
    return "*"


@dataclass
class Command:
    """
    A voice command: one or more equivalent phrases and the action to run.

    ``phrases`` may be given as a single string or a sequence of strings and
    is parsed into phrase shapes on construction.  Blank phrases are dropped,
    so a command without usable phrases simply never matches.
    """

    phrases: Union[str, Sequence[Union[str, Phrase]]]
    action: Optional[CommandAction]
    name: Optional[str] = None
    patterns: Tuple[Phrase, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        raw: Iterable[Union[str, Phrase]]
        raw = [self.phrases] if isinstance(self.phrases, str) else (self.phrases or ())
        parsed: List[Phrase] = []
        for item in raw:
            shape = parse_phrase(item) if isinstance(item, str) else item
            if shape is not None:
                parsed.append(shape)
        self.patterns = tuple(parsed)
        if self.name is None:
            self.name = " | ".join(_phrase_label(p) for p in self.patterns) or "<empty>"


@dataclass(frozen=True)
class MatchResult:
    """The winning candidate of a match pass."""

    score: float
    command: Command
    phrase: Phrase
    args: Tuple[str, ...] = ()

    @property
    def action(self) -> Optional[CommandAction]:
        return self.command.action

    def invoke(self) -> Any:
        if self.action is None:
            return None
        return self.action(*self.args)


class CommandExecutionError(RuntimeError):
    """Raised when the action of a matched command fails."""

    def __init__(self, result: MatchResult, cause: BaseException) -> None:
        super().__init__(f"Command '{result.command.name}' failed: {cause}")
        self.result = result
        self.cause = cause


class CommandStatus(str, Enum):
    MATCHED = "matched"
    UNRECOGNIZED = "unrecognized"
    FAILED = "failed"


@dataclass(frozen=True)
class CommandOutcome:
    """What happened to one finalized transcript."""

    status: CommandStatus
    transcript: str
    result: Optional[MatchResult] = None
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.status is CommandStatus.MATCHED


# ----------------------------------------------------------------------
# Transcript preprocessing
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class _Utterance:
    raw: str  # trimmed, original case; used for argument extraction
    text: str  # lowercased; used for comparison


def _prepare(transcript: str) -> Optional[_Utterance]:
    raw = (transcript or "").strip()
    if not raw:
        return None
    text = raw.lower()
    words = text.split(" ")
    # Recognisers sometimes report a single word twice ("photo photo").
    if len(words) == 2 and words[0] == words[1]:
        text = words[0]
        raw = raw.split(" ")[0]
    return _Utterance(raw=raw, text=text)


# ----------------------------------------------------------------------
# Matcher
# ----------------------------------------------------------------------
_Candidate = Tuple[float, Tuple[str, ...]]


class CommandMatcher:
    """
    Scores transcripts against an active command table.

    Parameters
    ----------
    phonetics:
        Confusion classes used for literal and suffix matching.  Defaults to
        the built‑in English table.
    threshold:
        Minimum score for a match to be accepted.  When omitted, the
        ``COMMAND_MATCH_THRESHOLD`` environment variable is consulted and
        falls back to ``0.7``.
    """

    def __init__(
        self,
        phonetics: PhoneticTable | None = None,
        threshold: float | None = None,
    ) -> None:
        self.phonetics = phonetics if phonetics is not None else DEFAULT_TABLE
        if threshold is None:
            threshold = float(os.getenv("COMMAND_MATCH_THRESHOLD", str(DEFAULT_THRESHOLD)))
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be within [0, 1], got {threshold}")
        self.threshold = threshold
        # Literal strategies in priority order; the first one that applies decides.
        self._literal_strategies: Tuple[Callable[[str, str], Optional[float]], ...] = (
            self._exact_score,
            self._phonetic_score,
            self._edit_distance_score,
        )

    # -------------------------- public API --------------------------
    def match(self, transcript: str, commands: Sequence[Command]) -> Optional[MatchResult]:
        """
        Resolve ``transcript`` and invoke the winning command.

        Returns the :class:`MatchResult` that was executed or ``None`` when
        nothing reached the threshold.  If the command's action raises, the
        error is wrapped in :class:`CommandExecutionError` and re‑raised so
        callers can tell a failed command from an unrecognised one.
        """
        result = self.find_best_match(transcript, commands)
        if result is None:
            return None
        logger.info(
            f"Matched '{transcript}' to '{result.command.name}' "
            f"(score={result.score:.2f}, args={list(result.args)})"
        )
        try:
            result.invoke()
        except Exception as e:
            raise CommandExecutionError(result, e) from e
        return result

    def find_best_match(self, transcript: str, commands: Sequence[Command]) -> Optional[MatchResult]:
        """Return the accepted best match for ``transcript`` without invoking it."""
        best = self.score_best(transcript, commands)
        if best is None:
            logger.debug(f"No candidate for '{transcript}'.")
            return None
        if best.score + _SCORE_TOLERANCE >= self.threshold and best.action is not None:
            return best
        logger.debug(
            f"Best candidate '{best.command.name}' for '{transcript}' scored "
            f"{best.score:.3f}, below threshold {self.threshold}."
        )
        return None

    def score_best(self, transcript: str, commands: Sequence[Command]) -> Optional[MatchResult]:
        """Return the highest scoring candidate regardless of the threshold."""
        utterance = _prepare(transcript)
        if utterance is None:
            return None

        best: Optional[MatchResult] = None
        wildcards: List[Tuple[Command, Phrase]] = []
        for command in commands:
            for phrase in command.patterns:
                if isinstance(phrase, UniversalWildcard):
                    wildcards.append((command, phrase))
                    continue
                candidate = self._score_phrase(phrase, utterance)
                if candidate is None:
                    continue
                score, args = candidate
                logger.debug(f"Compared '{utterance.text}' with '{_phrase_label(phrase)}': {score:.3f}")
                if best is None or score > best.score:
                    best = MatchResult(score=score, command=command, phrase=phrase, args=args)

        # Wildcards go last so a specific phrase always gets to suppress them.
        for command, phrase in wildcards:
            best_score = best.score if best is not None else 0.0
            score = WILDCARD_SUPPRESSED_SCORE if best_score > WILDCARD_SUPPRESSION_FLOOR else WILDCARD_SCORE
            if best is None or score > best.score:
                best = MatchResult(score=score, command=command, phrase=phrase, args=(utterance.raw,))
        return best

    # -------------------------- per phrase --------------------------
    def _score_phrase(self, phrase: Phrase, utterance: _Utterance) -> Optional[_Candidate]:
        if isinstance(phrase, PrefixPattern):
            return self._score_prefix(phrase, utterance)
        if isinstance(phrase, SuffixPattern):
            return self._score_suffix(phrase, utterance)
        if isinstance(phrase, LiteralPhrase):
            return self._score_literal(phrase, utterance)
        return None

    def _score_prefix(self, phrase: PrefixPattern, utterance: _Utterance) -> Optional[_Candidate]:
        prefix = phrase.prefix
        if not utterance.text.startswith(prefix):
            return None
        arg = utterance.raw[len(prefix):].strip()
        if not arg:
            return None
        return PATTERN_BASE_SCORE + len(prefix) / 100, (arg,)

    def _score_suffix(self, phrase: SuffixPattern, utterance: _Utterance) -> Optional[_Candidate]:
        suffix = phrase.suffix
        last_word = utterance.text.split(" ")[-1]
        if not (utterance.text.endswith(suffix) or self.phonetics.are_confusable(last_word, suffix)):
            return None
        head = utterance.raw.rsplit(" ", 1)
        arg = head[0].strip() if len(head) == 2 else ""
        return PATTERN_BASE_SCORE + len(suffix) / 100, (arg,)

    def _score_literal(self, phrase: LiteralPhrase, utterance: _Utterance) -> Optional[_Candidate]:
        for strategy in self._literal_strategies:
            score = strategy(utterance.text, phrase.text)
            if score is not None:
                return score, ()
        return None

    # ------------------------ literal strategies ------------------------
    @staticmethod
    def _exact_score(transcript: str, phrase: str) -> Optional[float]:
        return 1.0 if transcript == phrase else None

    def _phonetic_score(self, transcript: str, phrase: str) -> Optional[float]:
        if not self.phonetics.are_confusable(phrase, transcript):
            return None
        return PHONETIC_BASE_SCORE - PHONETIC_LENGTH_PENALTY * abs(len(transcript) - len(phrase))

    @staticmethod
    def _edit_distance_score(transcript: str, phrase: str) -> Optional[float]:
        longest = max(len(transcript), len(phrase))
        if longest == 0:
            return None
        return 1 - Levenshtein.distance(transcript, phrase) / longest
