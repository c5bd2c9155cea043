"""
Type-safe dataclasses for unsubscribe link extraction.

This module provides structured, immutable dataclasses passed between
the stages of the extraction pipeline and returned to callers.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional


@dataclass(frozen=True)
class AnchorCandidate:
    """An http(s) anchor found in an email body, with its surroundings."""

    href: str
    anchor_text: str
    context_before: str = ""
    context_after: str = ""
    position: int = 0

    @property
    def has_visible_text(self) -> bool:
        return bool(self.anchor_text.strip())


@dataclass(frozen=True)
class ContextSnippet:
    """A window of body text built to feed the model stage."""

    text: str
    keyword: str
    start: int
    end: int
    anchored: bool = False

    def __len__(self) -> int:
        return len(self.text)


@dataclass(frozen=True)
class PatternMatch:
    """First hit produced by the pattern matcher."""

    url: str
    rule: str


@dataclass(frozen=True)
class ValidationResult:
    """Type-safe result for URL validation."""

    is_valid: bool
    url: Optional[str]
    reason: Optional[str] = None

    @property
    def summary(self) -> str:
        """Human-readable summary of validation result."""
        if self.is_valid:
            return "URL is valid"
        return f"URL rejected ({self.reason})"


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of one extraction call."""

    link: Optional[str] = None
    anchors: List[str] = field(default_factory=list)
    stage: Optional[str] = None
    is_valid: bool = False

    @property
    def found(self) -> bool:
        """Check if any link (valid or best effort) was produced."""
        return self.link is not None

    @property
    def is_best_effort(self) -> bool:
        """Check if the link failed validation and is only a fallback."""
        return self.link is not None and not self.is_valid

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            'link': self.link,
            'anchors': list(self.anchors),
            'stage': self.stage,
            'is_valid': self.is_valid
        }


@dataclass(frozen=True)
class EmailRecord:
    """An already-fetched message: who sent it and its raw body."""

    sender: str
    body: str
    subject: str = ""


@dataclass(frozen=True)
class SenderUnsubscribeInfo:
    """One unsubscribe link per sender, as reported by the aggregator."""

    sender_email: str
    sender_name: Optional[str] = None
    unsubscribe_link: Optional[str] = None
    email_count: int = 0
    is_valid: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            'sender_email': self.sender_email,
            'sender_name': self.sender_name,
            'unsubscribe_link': self.unsubscribe_link,
            'email_count': self.email_count,
            'is_valid': self.is_valid
        }
