"""
Ordered-rule pattern matching over raw email text.

This is the fallback path for bodies where the anchor heuristics found
nothing usable. It works directly on the raw string and does not share
state with the anchor collector. Rules run in a fixed order and the
first rule producing an http(s) URL wins.
"""

from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from .constants import (
    ANCHOR_PATTERN, HREF_ATTR_PATTERN, HTTP_SCHEME_PATTERN, URL_PATTERN,
    KEYWORD_PATTERN, PATTERN_KEYWORD_PATTERN, BARE_URL_KEYWORD_PATTERN,
    UNSUBSCRIBE_PHRASE_PATTERN, UNSUBSCRIBE_FROM_PLEASE_PATTERN,
    PATTERN_ANCHOR_LOOKAHEAD, BARE_URL_TRAILING_PUNCTUATION,
    RULE_ANCHOR_TEXT, RULE_ANCHOR_HREF, RULE_KEYWORD_THEN_ACTION, RULE_BARE_URL,
    RULE_UNSUBSCRIBE_PHRASE, RULE_UNSUBSCRIBE_FROM_PLEASE
)
from .keywords import strip_tags, unescape_markup, is_action_phrase
from .logging import ExtractionLogger
from .types import PatternMatch


class _RawAnchor:
    """Anchor span as seen by the pattern rules (no markup parsing)."""

    __slots__ = ('start', 'end', 'href', 'text')

    def __init__(self, match):
        self.start, self.end = match.span()
        href_match = HREF_ATTR_PATTERN.search(match.group('attrs'))
        if href_match:
            href = href_match.group('dq') or href_match.group('sq') or href_match.group('bare') or ''
            self.href = unescape_markup(href)
        else:
            self.href = ''
        self.text = unescape_markup(strip_tags(match.group('inner')))

    @property
    def is_http(self) -> bool:
        return bool(HTTP_SCHEME_PATTERN.match(self.href))


class PatternMatcher:
    """Find an unsubscribe URL with a fixed, ordered list of text rules."""

    def __init__(self):
        self.logger = ExtractionLogger("pattern_matcher")
        self.rules: List[Tuple[str, Callable[[str, Sequence[_RawAnchor]], Optional[str]]]] = [
            (RULE_ANCHOR_TEXT, self._match_anchor_text),
            (RULE_ANCHOR_HREF, self._match_anchor_href),
            (RULE_KEYWORD_THEN_ACTION, self._match_keyword_then_action_anchor),
            (RULE_BARE_URL, self._match_bare_url),
            (RULE_UNSUBSCRIBE_PHRASE, self._match_unsubscribe_phrase),
            (RULE_UNSUBSCRIBE_FROM_PLEASE, self._match_unsubscribe_from_please),
        ]

    def match(self, body: Optional[str]) -> Optional[PatternMatch]:
        """Return the first rule hit, or None."""
        if not body:
            return None

        anchors = [_RawAnchor(m) for m in ANCHOR_PATTERN.finditer(body)]

        for rule_name, rule in self.rules:
            url = rule(body, anchors)
            if url:
                self.logger.debug("Pattern rule matched", {"rule": rule_name, "url": url})
                return PatternMatch(url=url, rule=rule_name)

        return None

    def _match_anchor_text(self, body: str, anchors: Sequence[_RawAnchor]) -> Optional[str]:
        for anchor in anchors:
            if anchor.is_http and PATTERN_KEYWORD_PATTERN.search(anchor.text):
                return anchor.href
        return None

    def _match_anchor_href(self, body: str, anchors: Sequence[_RawAnchor]) -> Optional[str]:
        for anchor in anchors:
            if anchor.is_http and PATTERN_KEYWORD_PATTERN.search(anchor.href):
                return anchor.href
        return None

    def _match_keyword_then_action_anchor(self, body: str, anchors: Sequence[_RawAnchor]) -> Optional[str]:
        for keyword in KEYWORD_PATTERN.finditer(body):
            for anchor in anchors:
                if anchor.start < keyword.end():
                    continue
                if anchor.start - keyword.end() > PATTERN_ANCHOR_LOOKAHEAD:
                    break
                if anchor.is_http and is_action_phrase(anchor.text):
                    return anchor.href
        return None

    def _match_bare_url(self, body: str, anchors: Sequence[_RawAnchor]) -> Optional[str]:
        # Explicit scheme tie-break: the first https token wins over any http token
        first_http = None
        for token in self._bare_url_tokens(body):
            if token.lower().startswith('https://'):
                return token
            if first_http is None:
                first_http = token
        return first_http

    def _bare_url_tokens(self, body: str) -> Iterator[str]:
        for url_match in URL_PATTERN.finditer(body):
            token = unescape_markup(url_match.group(0)).rstrip(BARE_URL_TRAILING_PUNCTUATION)
            if BARE_URL_KEYWORD_PATTERN.search(token):
                yield token

    def _match_unsubscribe_phrase(self, body: str, anchors: Sequence[_RawAnchor]) -> Optional[str]:
        return self._first_http_href(UNSUBSCRIBE_PHRASE_PATTERN.finditer(body))

    def _match_unsubscribe_from_please(self, body: str, anchors: Sequence[_RawAnchor]) -> Optional[str]:
        return self._first_http_href(UNSUBSCRIBE_FROM_PLEASE_PATTERN.finditer(body))

    @staticmethod
    def _first_http_href(matches) -> Optional[str]:
        for match in matches:
            href = unescape_markup(match.group('href'))
            if HTTP_SCHEME_PATTERN.match(href):
                return href
        return None
