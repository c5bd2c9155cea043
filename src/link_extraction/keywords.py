"""
Keyword and action-phrase matching shared by the selector and matcher.
"""

import html
from typing import Iterable, Optional

from .constants import (
    UNSUBSCRIBE_KEYWORDS, HREF_KEYWORD_VARIANTS, ACTION_PHRASES,
    ACTION_PHRASE_PUNCTUATION, WHITESPACE_PATTERN, TAG_PATTERN
)


def normalize_text(text: Optional[str]) -> str:
    """Lower-case ``text`` and collapse runs of whitespace."""
    if not text:
        return ""
    return WHITESPACE_PATTERN.sub(' ', text).strip().lower()


def strip_tags(markup: str) -> str:
    """Remove markup tags and collapse whitespace, keeping case."""
    return WHITESPACE_PATTERN.sub(' ', TAG_PATTERN.sub(' ', markup)).strip()


def unescape_markup(value: str) -> str:
    """Decode HTML character references such as ``&amp;`` in raw markup."""
    return html.unescape(value).strip()


def contains_keyword(text: Optional[str], keywords: Iterable[str] = UNSUBSCRIBE_KEYWORDS) -> bool:
    """Check whether any keyword occurs in ``text``."""
    normalized = normalize_text(text)
    if not normalized:
        return False
    return any(keyword in normalized for keyword in keywords)


def href_contains_keyword(href: Optional[str]) -> bool:
    """Check an href for a keyword in any of its URL spellings."""
    if not href:
        return False
    href_lower = href.lower()
    return any(variant in href_lower for variant in HREF_KEYWORD_VARIANTS)


def is_action_phrase(text: Optional[str]) -> bool:
    """Check whether link text is a generic call to action like "click here"."""
    normalized = normalize_text(text).strip(ACTION_PHRASE_PUNCTUATION)
    return normalized in ACTION_PHRASES


def is_blank_or_action_phrase(text: Optional[str]) -> bool:
    return not normalize_text(text) or is_action_phrase(text)
