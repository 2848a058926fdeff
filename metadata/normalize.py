"""Title normalization for track comparison.

Two stages feed the canonicalizer:

- ``normalize_title`` folds case and diacritics, rewrites "pt."/"feat."
  style markers, drops promotional phrases and punctuation, and turns Roman
  numerals and spelled-out part numbers into digits.
- ``strip_version_noise`` removes versioning / mix / live-performance
  markers from an already-normalized title, leaving the "core" title.

Both are pure and deterministic.
"""

from __future__ import annotations

import re
import unicodedata

_WHITESPACE_RE = re.compile(r"\s+")
_APOSTROPHE_RE = re.compile(r"['’ʼ`´]")
# Keeps letters, digits, whitespace and hyphens. Underscore is a word char for re.
_PUNCTUATION_RE = re.compile(r"[^\w\s-]|_")
_ROMAN_NUMERAL_RE = re.compile(r"\b(ii|iii|iv|v|vi|vii|viii|ix|x)\b")

_ROMAN_NUMERALS = {
    "ii": "2",
    "iii": "3",
    "iv": "4",
    "v": "5",
    "vi": "6",
    "vii": "7",
    "viii": "8",
    "ix": "9",
    "x": "10",
}

_PART_NUMBER_WORDS = {
    "one": "1",
    "two": "2",
    "three": "3",
    "four": "4",
    "five": "5",
    "six": "6",
    "seven": "7",
    "eight": "8",
    "nine": "9",
    "ten": "10",
}

# Applied in order on the lower-cased, diacritic-free title.
_REPLACEMENTS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\bpt\."), " part "),
    (re.compile(r"\bfeat\."), " feat "),
    (re.compile(r"\bft\."), " feat "),
    (re.compile(r"\bfeaturing\b"), " feat "),
    (re.compile(r"[–—]"), "-"),
    (re.compile(r"&"), " and "),
    (re.compile(r"\bofficial (?:music )?video\b"), " "),
    (re.compile(r"\bofficial audio\b"), " "),
    (re.compile(r"\bremastered\b"), " "),
    (re.compile(r"\bsingle version\b"), " "),
    (re.compile(r"\boriginal mix\b"), " "),
)

# Longer phrases first so "live at" wins over "live".
_VERSION_NOISE = (
    "alternate version",
    "explicit version",
    "album version",
    "single version",
    "clean version",
    "original mix",
    "radio edit",
    "clean edit",
    "promo only",
    "a cappella",
    "live at",
    "live in",
    "instrumental",
    "acapella",
    "mastered",
    "explicit",
    "remix",
    "clean",
    "dirty",
    "demo",
    "live",
    "mix",
)
_VERSION_NOISE_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(phrase) for phrase in _VERSION_NOISE) + r")\b"
)


def _collapse(value: str) -> str:
    tokens = [tok for tok in _WHITESPACE_RE.split(value) if tok and tok.strip("-")]
    return " ".join(tokens)


def strip_diacritics(value: str) -> str:
    """Return ``value`` decomposed with all combining marks removed."""
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.category(ch).startswith("M"))


def _normalize_part_tokens(tokens: list[str]) -> list[str]:
    out = list(tokens)
    for idx, tok in enumerate(out):
        if tok == "pt":
            out[idx] = "part"
        if out[idx] == "part" and idx + 1 < len(out):
            following = out[idx + 1]
            if following in _PART_NUMBER_WORDS:
                out[idx + 1] = _PART_NUMBER_WORDS[following]
            elif following in _ROMAN_NUMERALS:
                out[idx + 1] = _ROMAN_NUMERALS[following]
    return out


def normalize_title(title: str) -> str:
    """Return the comparable form of a raw track title.

    >>> normalize_title("Sūpērman (Official Video)")
    'superman'
    >>> normalize_title("Stan Pt. II")
    'stan part 2'
    """
    text = strip_diacritics(str(title or "").lower())
    for pattern, replacement in _REPLACEMENTS:
        text = pattern.sub(replacement, text)
    text = _APOSTROPHE_RE.sub("", text)
    text = _PUNCTUATION_RE.sub(" ", text)
    text = _ROMAN_NUMERAL_RE.sub(lambda match: _ROMAN_NUMERALS[match.group(1)], text)
    tokens = _normalize_part_tokens(_WHITESPACE_RE.split(text.strip()))
    return _collapse(" ".join(tokens))


def strip_version_noise(normalized: str) -> str:
    """Remove version/mix/live markers from a title already passed through ``normalize_title``."""
    return _collapse(_VERSION_NOISE_RE.sub(" ", normalized or ""))


__all__ = ["normalize_title", "strip_diacritics", "strip_version_noise"]
