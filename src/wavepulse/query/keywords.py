"""Keyword, symbol and name-fragment extraction from natural-language queries."""

from __future__ import annotations

import re
import string

from wavepulse.config.constants import MIN_KEYWORD_LENGTH, NAME_PATTERN_KEYWORDS, STOPWORDS

_COMPONENT_NAME = re.compile(r"\bWm([A-Z]\w+)\b")
_CAPITALIZED_WORD = re.compile(r"\b([A-Z][a-z]+)\b")
_PASCAL_CASE = re.compile(r"\b[A-Z][a-zA-Z0-9]+\b")


def extract_keywords(text: str) -> list[str]:
    """Lowercase, split on whitespace, trim punctuation, drop stopwords and short tokens."""
    tokens = (t.strip(string.punctuation) for t in text.lower().split())
    return list(
        dict.fromkeys(t for t in tokens if len(t) >= MIN_KEYWORD_LENGTH and t not in STOPWORDS)
    )


def extract_symbols(text: str) -> list[str]:
    return list(dict.fromkeys(_PASCAL_CASE.findall(text)))


def extract_name_patterns(text: str, keywords: list[str] | None = None) -> list[str]:
    """File-name fragments: a ``WmXxx`` component name, capitalized words, leading keywords."""
    patterns: list[str] = []
    component = _COMPONENT_NAME.search(text)
    if component:
        name = component.group(1)
        patterns.append(name[0].lower() + name[1:])
        patterns.append(name.lower())
    patterns.extend(word.lower() for word in _CAPITALIZED_WORD.findall(text))
    if keywords is None:
        keywords = extract_keywords(text)
    patterns.extend(keywords[:NAME_PATTERN_KEYWORDS])
    return list(dict.fromkeys(p for p in patterns if p))
