"""
Unsubscribe link extraction.

This package finds the single most likely unsubscribe URL in an email
body:
- Anchor collection with surrounding context windows
- Priority-tier selection over the collected anchors
- Ordered pattern rules over the raw text
- An optional generative model as the last resort
- Validation of every candidate, with best-effort fallback
"""

from .anchors import AnchorCandidateCollector
from .selectors import CandidateSelector
from .patterns import PatternMatcher
from .context import ContextWindowExtractor
from .validators import UnsubscribeUrlValidator, is_valid_unsubscribe_url
from .model import (
    GenerativeModelAdapter, TransformersModelAdapter, TimeoutModelAdapter
)
from .engine import UnsubscribeLinkEngine, extract_unsubscribe_link
from .senders import SenderLinkAggregator
from .types import (
    AnchorCandidate, ContextSnippet, ExtractionResult, EmailRecord,
    SenderUnsubscribeInfo
)

__all__ = [
    'AnchorCandidateCollector',
    'CandidateSelector',
    'PatternMatcher',
    'ContextWindowExtractor',
    'UnsubscribeUrlValidator',
    'is_valid_unsubscribe_url',
    'GenerativeModelAdapter',
    'TransformersModelAdapter',
    'TimeoutModelAdapter',
    'UnsubscribeLinkEngine',
    'extract_unsubscribe_link',
    'SenderLinkAggregator',
    'AnchorCandidate',
    'ContextSnippet',
    'ExtractionResult',
    'EmailRecord',
    'SenderUnsubscribeInfo'
]
