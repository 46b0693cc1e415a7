"""
Text-based scoring functions

Implements the exact-match evaluator and the text normalization it relies on.
"""

from __future__ import annotations

import re
import string
import unicodedata
from dataclasses import dataclass
from typing import Any

_OUTER_QUOTES = {
    '"': '"',
    "'": "'",
    "“": "”",
    "‘": "’",
    "`": "`",
}

# ASCII punctuation plus the typographic quotes models like to emit
_PUNCTUATION = set(string.punctuation) | {"“", "”", "‘", "’", "…"}


@dataclass(frozen=True)
class NormalizeOptions:
    """Normalization options read from an exact evaluator spec"""
    trim: bool = True
    case: str = "insensitive"  # insensitive / sensitive
    macrons: bool = True
    strip_outer_quotes: bool = False
    punctuation: str = "keep"  # strip / keep
    whitespace: str = "keep"  # collapse / keep

    @classmethod
    def from_spec(cls, spec: Any) -> "NormalizeOptions":
        """Build options from the ``normalize`` mapping; invalid values fall back to defaults"""
        if not isinstance(spec, dict):
            return cls()
        defaults = cls()

        def _bool(key: str, default: bool) -> bool:
            value = spec.get(key)
            return value if isinstance(value, bool) else default

        def _choice(key: str, choices: tuple[str, ...], default: str) -> str:
            value = spec.get(key)
            return value if value in choices else default

        return cls(
            trim=_bool("trim", defaults.trim),
            case=_choice("case", ("insensitive", "sensitive"), defaults.case),
            macrons=_bool("macrons", defaults.macrons),
            strip_outer_quotes=_bool("stripOuterQuotes", defaults.strip_outer_quotes),
            punctuation=_choice("punctuation", ("strip", "keep"), defaults.punctuation),
            whitespace=_choice("whitespace", ("collapse", "keep"), defaults.whitespace),
        )


def normalize_macrons(text: str) -> str:
    """Compose macron variants (a + U+0304 -> ā) to NFC"""
    return unicodedata.normalize("NFC", text)


def _strip_outer_quotes(text: str) -> str:
    stripped = text.strip()
    while len(stripped) >= 2 and _OUTER_QUOTES.get(stripped[0]) == stripped[-1]:
        stripped = stripped[1:-1].strip()
    return stripped


def normalize_text(text: str | None, options: NormalizeOptions | None = None) -> str:
    """
    Normalize text

    - Strip leading and trailing whitespace (trim)
    - Lowercase (case = insensitive)
    - Unicode NFC so macrons compare equal (macrons)
    - Remove one or more layers of surrounding quotes (stripOuterQuotes)
    - Remove punctuation (punctuation = strip)
    - Collapse consecutive whitespace to a single space (whitespace = collapse)

    Args:
        text: Text to normalize
        options: Normalization options (defaults: trim, case-insensitive, NFC)

    Returns:
        Normalized text
    """
    if options is None:
        options = NormalizeOptions()

    out = text or ""
    if options.trim:
        out = out.strip()
    if options.case == "insensitive":
        out = out.lower()
    if options.macrons:
        out = normalize_macrons(out)
    if options.strip_outer_quotes:
        out = _strip_outer_quotes(out)
    if options.punctuation == "strip":
        out = "".join(ch for ch in out if ch not in _PUNCTUATION)
    if options.whitespace == "collapse":
        out = re.sub(r"\s+", " ", out)
    if options.trim:
        out = out.strip()
    return out


def expected_values(expected: Any) -> list[str]:
    """Expected may be a single value or a list of accepted values"""
    if isinstance(expected, (list, tuple)):
        return [str(e) for e in expected]
    return ["" if expected is None else str(expected)]


def score_exact(spec: dict, expected: Any, actual: str) -> float:
    """
    Exact match evaluation

    Matches when the normalized answer equals any normalized expected value.
    ``allowPrefix`` also accepts answers that start with an expected value;
    ``allowSubstring`` accepts an expected value appearing on word boundaries.

    Args:
        spec: Evaluator spec (``normalize``, ``allowPrefix``, ``allowSubstring``)
        expected: Expected value or list of values
        actual: Model response

    Returns:
        1.0 (match) or 0.0 (mismatch)
    """
    options = NormalizeOptions.from_spec(spec.get("normalize"))
    allow_prefix = bool(spec.get("allowPrefix", False))
    allow_substring = bool(spec.get("allowSubstring", False))

    candidate = normalize_text(actual, options)
    for value in expected_values(expected):
        target = normalize_text(value, options)
        if target == candidate:
            return 1.0
        if allow_prefix and candidate.startswith(target):
            return 1.0
        if allow_substring and re.search(rf"(^|\b){re.escape(target)}(\b|$)", candidate):
            return 1.0
    return 0.0
