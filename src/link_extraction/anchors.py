"""
Anchor candidate collection from raw email bodies.

Anchor spans are located with a regex so that their source offsets are
known (the surrounding text windows are literal slices of the body);
each span is then parsed with BeautifulSoup to get the decoded href and
the visible text without nested markup.
"""

from typing import List, Optional, Tuple
from bs4 import BeautifulSoup

from .constants import (
    ANCHOR_PATTERN, HREF_ATTR_PATTERN, HTTP_SCHEME_PATTERN, CONTEXT_WINDOW_CHARS
)
from .keywords import strip_tags, unescape_markup
from .logging import ExtractionLogger
from .types import AnchorCandidate


class AnchorCandidateCollector:
    """Collect http(s) anchors with their surrounding context windows."""

    def __init__(self, window: int = CONTEXT_WINDOW_CHARS):
        self.window = window
        self.logger = ExtractionLogger("anchor_collector")

    def collect(self, body: Optional[str]) -> List[AnchorCandidate]:
        """Return every http(s) anchor in ``body`` in document order."""
        if not body:
            return []

        candidates = []
        skipped = 0

        for match in ANCHOR_PATTERN.finditer(body):
            href, text = self._parse_anchor(match)
            if not href or not HTTP_SCHEME_PATTERN.match(href):
                skipped += 1
                continue

            start, end = match.span()
            candidates.append(AnchorCandidate(
                href=href,
                anchor_text=text,
                context_before=body[max(0, start - self.window):start],
                context_after=body[end:end + self.window],
                position=start
            ))

        self.logger.debug("Collected anchor candidates", {
            "candidates": len(candidates),
            "skipped_non_http": skipped
        })
        return candidates

    def _parse_anchor(self, match) -> Tuple[Optional[str], str]:
        """Extract (href, visible text) from one anchor span."""
        try:
            soup = BeautifulSoup(match.group(0), 'html.parser')
            tag = soup.find('a')
            if tag is not None and tag.has_attr('href'):
                href = tag['href']
                if isinstance(href, list):
                    href = ' '.join(href)
                return href.strip(), ' '.join(tag.get_text().split())
        except Exception as e:
            # Malformed markup only costs us this anchor's parse, not the anchor
            self.logger.debug("Anchor markup could not be parsed, using regex", {
                "error": str(e),
                "position": match.start()
            })

        return self._parse_anchor_with_regex(match)

    def _parse_anchor_with_regex(self, match) -> Tuple[Optional[str], str]:
        href_match = HREF_ATTR_PATTERN.search(match.group('attrs'))
        if not href_match:
            return None, ' '.join(unescape_markup(strip_tags(match.group('inner'))).split())
        href = href_match.group('dq') or href_match.group('sq') or href_match.group('bare') or ''
        return unescape_markup(href), ' '.join(unescape_markup(strip_tags(match.group('inner'))).split())


def collect_anchor_candidates(body: Optional[str]) -> List[AnchorCandidate]:
    """Convenience wrapper around ``AnchorCandidateCollector.collect``."""
    return AnchorCandidateCollector().collect(body)
