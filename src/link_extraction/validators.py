"""
Unsubscribe URL validation.

A candidate link is only returned as a confident result when it is an
absolute http(s) URL with a dotted host and no obvious truncation.
Validation is a pure function of the string.
"""

import urllib.parse
from typing import Optional

from .constants import (
    HTTP_SCHEME_PATTERN, DANGLING_SUFFIXES,
    REASON_EMPTY, REASON_SCHEME, REASON_SPACE, REASON_UNPARSEABLE,
    REASON_HOST, REASON_DANGLING
)
from .types import ValidationResult


class UnsubscribeUrlValidator:
    """Decide whether a candidate string is a usable unsubscribe URL."""

    def validate(self, url: Optional[str]) -> ValidationResult:
        """Validate a URL, returning the first failed check as the reason."""
        if not url:
            return ValidationResult(False, url, REASON_EMPTY)

        if not HTTP_SCHEME_PATTERN.match(url):
            return ValidationResult(False, url, REASON_SCHEME)

        if ' ' in url:
            return ValidationResult(False, url, REASON_SPACE)

        try:
            parsed = urllib.parse.urlparse(url)
            host = parsed.hostname
        except ValueError:
            return ValidationResult(False, url, REASON_UNPARSEABLE)

        if parsed.scheme.lower() not in ('http', 'https') or not parsed.netloc:
            return ValidationResult(False, url, REASON_UNPARSEABLE)

        if not host or '.' not in host:
            return ValidationResult(False, url, REASON_HOST)

        if url.endswith(DANGLING_SUFFIXES):
            return ValidationResult(False, url, REASON_DANGLING)

        return ValidationResult(True, url)

    def is_valid(self, url: Optional[str]) -> bool:
        """Check whether ``url`` passes every validation rule."""
        return self.validate(url).is_valid


def is_valid_unsubscribe_url(url: Optional[str]) -> bool:
    """Module-level shortcut for ``UnsubscribeUrlValidator().is_valid``."""
    return UnsubscribeUrlValidator().is_valid(url)
