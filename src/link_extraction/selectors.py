"""
Priority-tier selection over collected anchor candidates.

Tiers are evaluated in order and encode confidence: explicit
"unsubscribe" link text, then an unsubscribe-looking URL, then any other
keyword in the link text, then a generic "click here" link whose
surroundings mention unsubscribing. Within a tier, document order wins.
"""

from typing import Callable, List, Optional, Sequence, Tuple

from .constants import (
    TIER_TEXT_UNSUBSCRIBE, TIER_HREF_KEYWORD, TIER_TEXT_KEYWORD, TIER_CONTEXT_ACTION
)
from .keywords import (
    normalize_text, contains_keyword, href_contains_keyword, is_blank_or_action_phrase
)
from .logging import ExtractionLogger
from .types import AnchorCandidate

TierPredicate = Callable[[AnchorCandidate], bool]


def _text_contains_unsubscribe(candidate: AnchorCandidate) -> bool:
    return 'unsubscribe' in normalize_text(candidate.anchor_text)


def _href_contains_keyword(candidate: AnchorCandidate) -> bool:
    return href_contains_keyword(candidate.href)


def _text_contains_keyword(candidate: AnchorCandidate) -> bool:
    return contains_keyword(candidate.anchor_text)


def _context_mentions_keyword_near_action(candidate: AnchorCandidate) -> bool:
    if not is_blank_or_action_phrase(candidate.anchor_text):
        return False
    return contains_keyword(candidate.context_before) or contains_keyword(candidate.context_after)


SELECTION_TIERS: List[Tuple[str, TierPredicate]] = [
    (TIER_TEXT_UNSUBSCRIBE, _text_contains_unsubscribe),
    (TIER_HREF_KEYWORD, _href_contains_keyword),
    (TIER_TEXT_KEYWORD, _text_contains_keyword),
    (TIER_CONTEXT_ACTION, _context_mentions_keyword_near_action),
]


class CandidateSelector:
    """Pick the most likely unsubscribe anchor from a candidate list."""

    def __init__(self, tiers: Optional[Sequence[Tuple[str, TierPredicate]]] = None):
        self.tiers = list(tiers if tiers is not None else SELECTION_TIERS)
        self.logger = ExtractionLogger("candidate_selector")

    def match_tier(self, candidates: Sequence[AnchorCandidate]) -> Optional[Tuple[str, AnchorCandidate]]:
        """Return (tier name, candidate) for the highest tier with a match."""
        for tier_name, predicate in self.tiers:
            for candidate in candidates:
                if predicate(candidate):
                    self.logger.debug("Anchor selected", {
                        "tier": tier_name,
                        "href": candidate.href,
                        "position": candidate.position
                    })
                    return tier_name, candidate
        return None

    def select(self, candidates: Sequence[AnchorCandidate]) -> Optional[AnchorCandidate]:
        """Return the selected candidate, or None when no tier matches."""
        matched = self.match_tier(candidates)
        return matched[1] if matched else None
