"""
Context window extraction for the model stage.

Only used when a body has no http(s) anchors at all: the model then sees
short windows of text around the first few unsubscribe keywords instead
of the whole message.
"""

from typing import List, Optional, Sequence

from .constants import (
    ANCHOR_PATTERN, KEYWORD_PATTERN, CONTEXT_SEARCH_RADIUS, CONTEXT_WIDE_WINDOW,
    CONTEXT_ANCHOR_PADDING, MAX_CONTEXT_SNIPPETS
)
from .logging import ExtractionLogger
from .types import ContextSnippet


class ContextWindowExtractor:
    """Build up to ``max_snippets`` text windows around keyword occurrences."""

    def __init__(self, max_snippets: int = MAX_CONTEXT_SNIPPETS,
                 search_radius: int = CONTEXT_SEARCH_RADIUS,
                 wide_window: int = CONTEXT_WIDE_WINDOW,
                 anchor_padding: int = CONTEXT_ANCHOR_PADDING):
        self.max_snippets = max_snippets
        self.search_radius = search_radius
        self.wide_window = wide_window
        self.anchor_padding = anchor_padding
        self.logger = ExtractionLogger("context_extractor")

    def extract(self, body: Optional[str]) -> List[ContextSnippet]:
        """Return snippets for the earliest non-overlapping keyword occurrences."""
        if not body:
            return []

        anchor_spans = [m.span() for m in ANCHOR_PATTERN.finditer(body)]
        snippets: List[ContextSnippet] = []
        covered_until = 0

        for keyword in KEYWORD_PATTERN.finditer(body):
            if len(snippets) >= self.max_snippets:
                break
            if snippets and keyword.start() < covered_until:
                continue

            snippet = self._snippet_for(body, keyword, anchor_spans)
            snippets.append(snippet)
            covered_until = snippet.end

        self.logger.debug("Built context snippets", {
            "snippets": len(snippets),
            "anchored": sum(1 for s in snippets if s.anchored)
        })
        return snippets

    def _snippet_for(self, body: str, keyword, anchor_spans: Sequence) -> ContextSnippet:
        span = self._find_forward(keyword, anchor_spans) or self._find_backward(keyword, anchor_spans)

        if span:
            start = max(0, span[0] - self.anchor_padding)
            end = min(len(body), span[1] + self.anchor_padding)
            anchored = True
        else:
            start = max(0, keyword.start() - self.wide_window)
            end = min(len(body), keyword.end() + self.wide_window)
            anchored = False

        return ContextSnippet(
            text=body[start:end],
            keyword=keyword.group(0),
            start=start,
            end=end,
            anchored=anchored
        )

    def _find_forward(self, keyword, anchor_spans: Sequence):
        for start, end in anchor_spans:
            if start < keyword.end():
                continue
            if start - keyword.end() <= self.search_radius:
                return start, end
            break
        return None

    def _find_backward(self, keyword, anchor_spans: Sequence):
        for start, end in reversed(anchor_spans):
            if end > keyword.start():
                continue
            if keyword.start() - end <= self.search_radius:
                return start, end
            break
        return None
