"""
Custom exceptions for unsubscribe link extraction with error context.

Only the model stage raises; the engine catches these and degrades to
the heuristic and pattern results, so they never reach callers of
``UnsubscribeLinkEngine.extract``.
"""

from typing import Dict, Any, Optional


class LinkExtractionError(Exception):
    """Base exception for link extraction failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context

    def __str__(self) -> str:
        base_message = super().__str__()
        if self.context:
            context_info = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base_message} (context: {context_info})"
        return base_message


class ModelUnavailableError(LinkExtractionError):
    """Raised when the generative model is missing or fails to load."""

    def __init__(self, message: str, model_path: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        context = dict(context or {})
        if model_path:
            context.setdefault('model_path', model_path)
        super().__init__(message, context)
        self.model_path = model_path


class ModelInvocationError(LinkExtractionError):
    """Raised when a loaded model fails while generating a response."""

    def __init__(self, message: str, stage: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        context = dict(context or {})
        if stage:
            context.setdefault('stage', stage)
        super().__init__(message, context)
        self.stage = stage
