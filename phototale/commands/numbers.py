"""Parsing of numbers spoken inside a command argument ("in 5 seconds")."""
from __future__ import annotations

import re
from typing import Optional

NUMBER_WORDS = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
}

_LEADING_INT = re.compile(r"^[+-]?\d+")


def _leading_int(text: str) -> Optional[int]:
    m = _LEADING_INT.match(text)
    return int(m.group(0)) if m else None


def parse_number_from_string(text: str | None) -> Optional[int]:
    """
    Extract a small integer from a spoken fragment.

    Tries, in order: a leading integer ("3 seconds"), a leading number word
    ("three seconds", "fiveish"), then the first word that is a number word or
    starts with an integer ("in 5 seconds").  Returns ``None`` if nothing
    numeric is found.
    """
    if not text:
        return None
    trimmed = text.strip()

    value = _leading_int(trimmed)
    if value is not None:
        return value

    lowered = trimmed.lower()
    for word, number in NUMBER_WORDS.items():
        if lowered.startswith(word):
            return number

    for word in lowered.split(" "):
        if word in NUMBER_WORDS:
            return NUMBER_WORDS[word]
        value = _leading_int(word)
        if value is not None:
            return value
    return None
