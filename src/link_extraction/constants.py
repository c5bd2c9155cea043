"""
Constants and shared configuration for unsubscribe link extraction.

This module contains all keyword lists, window sizes and pre-compiled
patterns used across the extraction pipeline. They are compiled-in on
purpose: none of them are runtime configuration.
"""

import re
from typing import List, Pattern, Tuple

# Keywords that mark a link or a sentence as unsubscribe-related
UNSUBSCRIBE_KEYWORDS: List[str] = [
    'unsubscribe', 'opt-out', 'optout', 'opt out',
    'preferences', 'manage preferences', 'email preferences',
    'update preferences', 'no longer wish to receive'
]

# Hyphen and no-space spellings, as they appear inside URLs
HREF_KEYWORD_VARIANTS: Tuple[str, ...] = tuple(dict.fromkeys(
    variant
    for keyword in UNSUBSCRIBE_KEYWORDS
    for variant in (keyword, keyword.replace(' ', '-'), keyword.replace(' ', ''))
))

# Generic link texts that only make sense together with nearby wording
ACTION_PHRASES: Tuple[str, ...] = (
    'click here', 'here', 'click', 'tap here',
    'this link', 'follow this link', 'tap'
)

# Characters stripped around link text before comparing with ACTION_PHRASES
ACTION_PHRASE_PUNCTUATION = ' .,;:!?()[]<>"\'»›→'

# Window sizes (characters)
CONTEXT_WINDOW_CHARS = 100
PATTERN_ANCHOR_LOOKAHEAD = 500
PATTERN_PHRASE_SPAN = 150
CONTEXT_SEARCH_RADIUS = 2000
CONTEXT_WIDE_WINDOW = 1000
CONTEXT_ANCHOR_PADDING = 120
MAX_CONTEXT_SNIPPETS = 3

# Pipeline stages, in execution order
STAGE_COLLECT_ANCHORS = "collect_anchors"
STAGE_HEURISTIC = "heuristic"
STAGE_PATTERN = "pattern"
STAGE_MODEL = "model"
STAGE_BEST_EFFORT = "best_effort"

# Candidate selector tiers, highest confidence first
TIER_TEXT_UNSUBSCRIBE = "text_unsubscribe"
TIER_HREF_KEYWORD = "href_keyword"
TIER_TEXT_KEYWORD = "text_keyword"
TIER_CONTEXT_ACTION = "context_action"

# Pattern matcher rules, in evaluation order
RULE_ANCHOR_TEXT = "anchor_text"
RULE_ANCHOR_HREF = "anchor_href"
RULE_KEYWORD_THEN_ACTION = "keyword_then_action_anchor"
RULE_BARE_URL = "bare_url"
RULE_UNSUBSCRIBE_PHRASE = "unsubscribe_phrase"
RULE_UNSUBSCRIBE_FROM_PLEASE = "unsubscribe_from_please"

# Validation failure reasons
REASON_EMPTY = "empty"
REASON_SCHEME = "not_http"
REASON_SPACE = "contains_space"
REASON_UNPARSEABLE = "unparseable"
REASON_HOST = "invalid_host"
REASON_DANGLING = "dangling_delimiter"

DANGLING_SUFFIXES: Tuple[str, ...] = ('?=', '&=', '?', '&')

# Model prompt/response markers
MODEL_RESPONSE_MARKER = "Unsubscribe link:"
MODEL_TRAILING_PUNCTUATION = '.,;:!?)]}>\'"'
BARE_URL_TRAILING_PUNCTUATION = '.,;:!)]}'

# Pre-compiled regex patterns for performance
ANCHOR_PATTERN: Pattern = re.compile(
    r'<a\b(?P<attrs>[^>]*)>(?P<inner>(?:(?!<a\b).)*?)</a\s*>',
    re.IGNORECASE | re.DOTALL
)

HREF_ATTR_PATTERN: Pattern = re.compile(
    r'(?<![\w-])href\s*=\s*(?:"(?P<dq>[^"]*)"|\'(?P<sq>[^\']*)\'|(?P<bare>[^\s"\'>]+))',
    re.IGNORECASE
)

TAG_PATTERN: Pattern = re.compile(r'<[^>]+>')

HTTP_SCHEME_PATTERN: Pattern = re.compile(r'^https?://', re.IGNORECASE)

URL_PATTERN: Pattern = re.compile(r'https?://[^\s<>"\']+', re.IGNORECASE)


def _keyword_regex(keywords) -> str:
    # Longest first so "manage preferences" wins over "preferences"
    ordered = sorted(keywords, key=len, reverse=True)
    return '|'.join(re.escape(keyword).replace(r'\ ', r'\s+') for keyword in ordered)


KEYWORD_PATTERN: Pattern = re.compile(_keyword_regex(UNSUBSCRIBE_KEYWORDS), re.IGNORECASE)

# Narrower keyword set used by the pattern matcher's anchor rules
PATTERN_KEYWORD_PATTERN: Pattern = re.compile(
    r'unsubscribe|opt-out|optout|preferences',
    re.IGNORECASE
)

BARE_URL_KEYWORD_PATTERN: Pattern = re.compile(
    r'unsubscribe|/preferences|/opt-out|/optout',
    re.IGNORECASE
)

UNSUBSCRIBE_PHRASE_PATTERN: Pattern = re.compile(
    r'(?:\bto\s+)?unsubscribe\b.{0,%d}?'
    r'<a\b[^>]*?(?<![\w-])href\s*=\s*["\'](?P<href>[^"\']+)["\'][^>]*>'
    r'\s*(?:click\s+here|here|unsubscribe)\s*</a\s*>' % PATTERN_PHRASE_SPAN,
    re.IGNORECASE | re.DOTALL
)

UNSUBSCRIBE_FROM_PLEASE_PATTERN: Pattern = re.compile(
    r'unsubscribe\s+from\b.{0,%d}?please\s*'
    r'<a\b[^>]*?(?<![\w-])href\s*=\s*["\'](?P<href>[^"\']+)["\'][^>]*>'
    r'\s*(?:click\b.{0,30}?\bhere|here)\s*</a\s*>' % PATTERN_PHRASE_SPAN,
    re.IGNORECASE | re.DOTALL
)

NEGATIVE_RESPONSE_PATTERN: Pattern = re.compile(
    r'\b(?:none|no\s+link|not\s+found)\b',
    re.IGNORECASE
)

WHITESPACE_PATTERN: Pattern = re.compile(r'\s+')
