"""Voice command matching subsystem for PhotoTale.

This package exposes the ``CommandMatcher`` which resolves a transcribed
utterance to one command of the currently active table, the ``Command``
declaration type and the phonetic confusion table the matcher relies on.
"""

from .command_matcher import (  # noqa: F401
    Command,
    CommandExecutionError,
    CommandMatcher,
    CommandOutcome,
    CommandStatus,
    MatchResult,
)
from .numbers import parse_number_from_string  # noqa: F401
from .phonetics import DEFAULT_TABLE, PhoneticTable  # noqa: F401

__all__ = [
    "Command",
    "CommandExecutionError",
    "CommandMatcher",
    "CommandOutcome",
    "CommandStatus",
    "MatchResult",
    "PhoneticTable",
    "DEFAULT_TABLE",
    "parse_number_from_string",
]
