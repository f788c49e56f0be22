"""
Phonetic confusion classes for spoken commands.

Speech recognisers regularly return a word that *sounds* like the command the
user said but is spelled differently ("foto", "those" for "photo").  This
module holds a hand‑curated table of such confusions.  Each entry maps a
canonical command phrase to the strings a recogniser tends to produce for it;
the key together with its members forms one class.  Two strings are
confusable when they are equal or when some class contains both, so lookups
are symmetric by construction.

The default table covers the English command vocabulary of the story wizard.
A :class:`PhoneticTable` can be built from any other mapping, e.g. for a
different locale or a test.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Tuple

DEFAULT_PHONETIC_CLASSES: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        # Capture
        "photo": ("foto", "shot", "pot", "plot", "pro", "show", "goes", "those", "close", "flows"),
        "take a photo": ("fake a photo", "make a photo", "cake a photo", "bake a photo"),
        "capture": ("captor", "rapture", "chapter", "cap tour", "trap door", "trap tour"),
        "snap": ("snapped", "snapchat", "clap", "slap", "trap", "map", "cap", "lap", "gap"),
        # Navigation
        "home": ("hole", "hose", "hold", "hope", "cope", "know", "flow", "slow"),
        "main screen": ("man screen", "men screen", "mine screen", "mean screen"),
        "start over": ("starp over", "start hover", "heart cover", "cart rover"),
        "back": ("pack", "track", "hack", "crack", "stack", "lack", "sack", "tack"),
        "next": ("text", "flex", "tests", "best", "rest", "gets", "wrecks", "decks"),
        "skip": ("ship", "slip", "grip", "trip", "flip", "nip", "lip", "zip", "rip"),
        # Configuration
        "auto": ("otto", "out to", "out two", "ought to", "ocho"),
        "reset": ("re-set", "re set", "preset", "regret", "re bet", "re get"),
        "raised": ("rased", "rays", "raise", "raze", "rase", "rease", "race", "re set"),
        "retry": ("re try", "re tie", "re cry"),
        "try again": ("cry again", "tie again", "fly again", "die again", "lie again"),
        "check": ("tech", "deck", "neck", "beck", "peck", "reck", "wreck", "sec", "shek"),
        "enable": ("in able", "in cable", "unstable", "in table", "in label"),
        "uncheck": ("un tech", "on check", "un deck", "an check", "on tech"),
        "disable": ("dis able", "dis cable", "this able", "dis table"),
        # Confirmation and output
        "generate": ("general late", "general gate", "gen a rate", "general eight"),
        "confirm": ("con firm", "con form", "con farm", "can form", "con fern"),
        "save story": ("safe story", "save glory", "safe glory", "have story"),
        "download": ("down load", "dawn load", "don load", "on load"),
        # Upload
        "upload": ("up load", "up road", "a prod", "up broad"),
        "upload image": ("up load image", "upload im age", "upload imige"),
        # Story position
        "beginning": ("begin in", "begin then", "begining"),
        "start": ("starp", "heart", "cart", "part", "mart"),
        "middle": ("muddle", "meddle", "riddle", "fiddle", "piddle"),
        "end": ("and", "land", "hand", "band", "stand", "sand"),
    }
)


class PhoneticTable:
    """Read‑only set of confusion classes with symmetric lookup."""

    def __init__(self, classes: Mapping[str, Iterable[str]] | None = None) -> None:
        source = DEFAULT_PHONETIC_CLASSES if classes is None else classes
        built: Dict[str, FrozenSet[str]] = {}
        index: Dict[str, FrozenSet[str]] = {}
        for key, members in source.items():
            canonical = key.strip().lower()
            group = frozenset({canonical, *(m.strip().lower() for m in members)})
            built[canonical] = group
        # A word listed under several keys is confusable with every one of them.
        for group in built.values():
            for word in group:
                index[word] = index.get(word, frozenset()) | group
        self._classes: Mapping[str, FrozenSet[str]] = MappingProxyType(built)
        self._index: Mapping[str, FrozenSet[str]] = MappingProxyType(index)

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and word.strip().lower() in self._index

    def __len__(self) -> int:
        return len(self._classes)

    @property
    def keys(self) -> Tuple[str, ...]:
        return tuple(self._classes)

    def class_of(self, key: str) -> FrozenSet[str]:
        """Return the class registered under ``key`` (empty if there is none)."""
        return self._classes.get(key.strip().lower(), frozenset())

    def members_of(self, word: str) -> FrozenSet[str]:
        """Return every string sharing a class with ``word``, including itself."""
        return self._index.get(word.strip().lower(), frozenset())

    def are_confusable(self, first: str, second: str) -> bool:
        """True if ``first`` and ``second`` are equal or share a class."""
        a = first.strip().lower()
        b = second.strip().lower()
        if a == b:
            return True
        return b in self._index.get(a, frozenset())


DEFAULT_TABLE = PhoneticTable()
