"""Locale-keyed keyword strategies for page and status classification.

The carrier page is free text, so "not found", "has results", "delivered" and
"in customs" are all decided by phrase lists. Each locale contributes a
:class:`KeywordSet`; the extractor and classifier work against whatever merged
set they are given, so a new carrier language is a new registry entry rather
than a code change.
"""

from dataclasses import dataclass
from typing import Any

from .types import TrackingError


@dataclass(frozen=True)
class KeywordSet:
    """Phrase lists used to interpret tracking page text."""

    not_found: tuple[str, ...] = ()
    result_cues: tuple[str, ...] = ()
    delivered: tuple[str, ...] = ()
    customs: tuple[str, ...] = ()

    def merge(self, other: "KeywordSet") -> "KeywordSet":
        """Combine two sets, keeping first-seen order and dropping repeats."""
        return KeywordSet(
            not_found=_unique(self.not_found + other.not_found),
            result_cues=_unique(self.result_cues + other.result_cues),
            delivered=_unique(self.delivered + other.delivered),
            customs=_unique(self.customs + other.customs),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "KeywordSet":
        """Create from dictionary configuration."""
        return cls(
            not_found=tuple(data.get("not_found", [])),
            result_cues=tuple(data.get("result_cues", [])),
            delivered=tuple(data.get("delivered", [])),
            customs=tuple(data.get("customs", [])),
        )


def _unique(items: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(items))


HEBREW = KeywordSet(
    not_found=("לא נמצא", "אין מידע", "לא קיים", "לא אותר", "לא נמסר"),
    result_cues=("תל אביב", "ירושלים", "נמסר", "נמצא"),
    delivered=("נמסר לנמען", "נמסר", "נמסרה"),
    customs=("מכס", "עצור", "בדיקת מכס"),
)

ENGLISH = KeywordSet(
    not_found=("not found", "no information", "no results", "item not found"),
    result_cues=("delivered", "transit", "customs"),
    delivered=("delivered",),
    customs=("customs",),
)

DEFAULT_LOCALES = ("he", "en")

BUILTIN_LOCALES = {"he": HEBREW, "en": ENGLISH}

_registry: dict[str, KeywordSet] = {}


def register_locale(name: str, keyword_set: KeywordSet, replace: bool = False) -> None:
    """Register a keyword set under a locale name."""
    key = name.lower()
    if key in _registry and not replace:
        _registry[key] = _registry[key].merge(keyword_set)
    else:
        _registry[key] = keyword_set


def available_locales() -> list[str]:
    return sorted(_registry)


def get_keyword_set(*locales: str) -> KeywordSet:
    """Merge the keyword sets of the given locales, in order."""
    names = locales or DEFAULT_LOCALES
    merged = KeywordSet()
    for name in names:
        try:
            merged = merged.merge(_registry[name.lower()])
        except KeyError:
            raise TrackingError(
                f"Unknown keyword locale '{name}'; available: {available_locales()}"
            ) from None
    return merged


def reset_locales() -> None:
    """Restore the built-in registry (useful for testing)."""
    _registry.clear()
    _registry.update(BUILTIN_LOCALES)


reset_locales()
