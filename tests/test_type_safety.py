"""
Tests for the pipeline dataclasses and exception types.
"""

import pytest
from dataclasses import FrozenInstanceError

from src.link_extraction.types import (
    AnchorCandidate, ContextSnippet, PatternMatch, ValidationResult,
    ExtractionResult, EmailRecord, SenderUnsubscribeInfo
)
from src.link_extraction.exceptions import (
    LinkExtractionError, ModelUnavailableError, ModelInvocationError
)


class TestExtractionDataclasses:
    """Test dataclass implementations for type-safe returns."""

    def test_anchor_candidate_structure(self):
        candidate = AnchorCandidate(
            href="https://example.com/unsubscribe",
            anchor_text="Unsubscribe",
            context_before="Tired of us? ",
            context_after=".",
            position=13
        )

        assert candidate.href == "https://example.com/unsubscribe"
        assert candidate.has_visible_text is True
        assert AnchorCandidate("https://example.com/x", "  ").has_visible_text is False

    def test_context_snippet_length(self):
        snippet = ContextSnippet(text="reply to unsubscribe", keyword="unsubscribe", start=5, end=25)

        assert len(snippet) == 20
        assert snippet.anchored is False

    def test_validation_result_summary(self):
        assert ValidationResult(True, "https://example.com/u").summary == "URL is valid"
        assert ValidationResult(False, "https://example", "invalid_host").summary == \
            "URL rejected (invalid_host)"

    def test_extraction_result_defaults(self):
        """An empty result means nothing was found."""
        result = ExtractionResult()

        assert result.link is None
        assert result.anchors == []
        assert result.stage is None
        assert result.found is False
        assert result.is_best_effort is False

    def test_extraction_result_flags(self):
        valid = ExtractionResult(link="https://example.com/u", stage="heuristic", is_valid=True)
        best_effort = ExtractionResult(link="https://example.com/u?", stage="pattern", is_valid=False)

        assert valid.found is True and valid.is_best_effort is False
        assert best_effort.found is True and best_effort.is_best_effort is True

    def test_extraction_result_to_dict_copies_anchors(self):
        anchors = ["https://example.com/a"]
        result = ExtractionResult(link=None, anchors=anchors)

        data = result.to_dict()
        data['anchors'].append("https://example.com/b")

        assert result.anchors == ["https://example.com/a"]
        assert data == {
            'link': None,
            'anchors': ["https://example.com/a", "https://example.com/b"],
            'stage': None,
            'is_valid': False
        }

    def test_email_record_defaults(self):
        assert EmailRecord(sender="a@example.com", body="hi").subject == ""

    def test_sender_info_to_dict(self):
        info = SenderUnsubscribeInfo(
            sender_email="news@example.com",
            sender_name="News",
            unsubscribe_link="https://example.com/unsubscribe",
            email_count=4,
            is_valid=True
        )

        assert info.to_dict()["email_count"] == 4
        assert info.to_dict()["sender_name"] == "News"

    @pytest.mark.parametrize("instance,attribute", [
        (AnchorCandidate("https://example.com/x", "x"), "href"),
        (PatternMatch("https://example.com/x", "bare_url"), "url"),
        (ExtractionResult(), "link"),
        (SenderUnsubscribeInfo("a@example.com"), "unsubscribe_link"),
    ])
    def test_dataclass_immutability(self, instance, attribute):
        with pytest.raises(FrozenInstanceError):
            setattr(instance, attribute, "changed")


class TestExtractionExceptions:
    """Test custom exception classes for proper error handling."""

    def test_base_error(self):
        with pytest.raises(LinkExtractionError) as exc_info:
            raise LinkExtractionError("Extraction failed")

        assert str(exc_info.value) == "Extraction failed"
        assert exc_info.value.context is None

    def test_base_error_with_context(self):
        error = LinkExtractionError("Extraction failed", context={"stage": "pattern", "rule": "bare_url"})

        assert str(error) == "Extraction failed (context: stage=pattern, rule=bare_url)"

    def test_model_unavailable_error(self):
        error = ModelUnavailableError("Model directory not found", model_path="/models/phi")

        assert isinstance(error, LinkExtractionError)
        assert error.model_path == "/models/phi"
        assert error.context == {"model_path": "/models/phi"}

    def test_model_invocation_error(self):
        error = ModelInvocationError("Generation failed", stage="model", context={"attempt": 1})

        assert error.stage == "model"
        assert error.context == {"attempt": 1, "stage": "model"}
        assert "Generation failed" in str(error)

    def test_caller_context_is_not_mutated(self):
        context = {"attempt": 1}

        ModelInvocationError("Generation failed", stage="model", context=context)

        assert context == {"attempt": 1}
