"""
Tests for prompt construction, response parsing and model adapters.

No real model is loaded here; transformers is replaced with a mock
module where the adapter needs it.
"""

import asyncio
import sys

import pytest
from unittest.mock import MagicMock, patch

from src.link_extraction.exceptions import ModelUnavailableError, ModelInvocationError
from src.link_extraction.model import (
    GenerativeModelAdapter, TransformersModelAdapter, TimeoutModelAdapter,
    build_anchor_prompt, build_snippet_prompt, parse_model_response, NEGATIVE_TOKEN
)
from src.link_extraction.constants import MODEL_RESPONSE_MARKER
from src.link_extraction.types import AnchorCandidate, ContextSnippet


class TestPromptBuilding:
    """Test the prompts sent to the model."""

    def test_anchor_prompt_lists_every_candidate(self):
        candidates = [
            AnchorCandidate("https://example.com/home", "Home"),
            AnchorCandidate("https://example.com/r/1", "here",
                            context_before="If you no longer\n wish to receive these, click ",
                            context_after=" to stop."),
        ]

        prompt = build_anchor_prompt(candidates)

        assert '1. url: https://example.com/home | text: "Home"' in prompt
        assert '2. url: https://example.com/r/1 | text: "here"' in prompt
        assert 'before: "If you no longer wish to receive these, click"' in prompt
        assert 'after: "to stop."' in prompt
        assert NEGATIVE_TOKEN in prompt
        assert prompt.endswith(MODEL_RESPONSE_MARKER)

    def test_snippet_prompt_embeds_text(self):
        snippet = ContextSnippet(text="  To unsubscribe visit example dot com  ", keyword="unsubscribe",
                                 start=0, end=40)

        prompt = build_snippet_prompt(snippet)

        assert "Email content:\nTo unsubscribe visit example dot com\n" in prompt
        assert prompt.endswith(MODEL_RESPONSE_MARKER)


class TestParseModelResponse:
    """Test extraction of the chosen URL from raw model output."""

    def test_plain_url(self):
        assert parse_model_response("https://example.com/unsubscribe") == "https://example.com/unsubscribe"

    def test_prompt_echo_is_removed(self):
        prompt = "Links:\n1. url: https://example.com/home\n\nUnsubscribe link:"
        output = prompt + " https://example.com/leave?id=7"

        assert parse_model_response(output, prompt) == "https://example.com/leave?id=7"

    def test_text_after_last_marker_is_used(self):
        output = "Unsubscribe link: https://a.example.com/x\nUnsubscribe link: https://b.example.com/unsubscribe"

        assert parse_model_response(output) == "https://b.example.com/unsubscribe"

    @pytest.mark.parametrize("output", [
        "NONE",
        "Unsubscribe link: none",
        "No link in this email.",
        "Link not found",
        "None. The closest is https://example.com/home",
    ])
    def test_negative_answers(self, output):
        assert parse_model_response(output) is None

    def test_url_before_negative_word_wins(self):
        output = "https://example.com/unsubscribe (none of the others qualify)"

        assert parse_model_response(output) == "https://example.com/unsubscribe"

    @pytest.mark.parametrize("output", [
        "https://example.com/unsubscribe.",
        "<https://example.com/unsubscribe>",
        "(https://example.com/unsubscribe)",
        "'https://example.com/unsubscribe',",
    ])
    def test_trailing_punctuation_is_trimmed(self, output):
        assert parse_model_response(output) == "https://example.com/unsubscribe"

    @pytest.mark.parametrize("output", ["", None, "I could not decide.", "Visit our website"])
    def test_no_url(self, output):
        assert parse_model_response(output) is None


class TestTransformersModelAdapter:
    """Test lazy loading and generation through the transformers adapter."""

    def _fake_transformers(self, decoded="Unsubscribe link: https://example.com/u"):
        tokenizer = MagicMock()
        input_ids = MagicMock()
        input_ids.shape = (1, 3)
        tokenizer.return_value = {'input_ids': input_ids}
        tokenizer.decode.return_value = decoded
        tokenizer.eos_token_id = 0

        model = MagicMock()
        model.generate.return_value = [[1, 2, 3, 4]]

        module = MagicMock()
        module.AutoTokenizer.from_pretrained.return_value = tokenizer
        module.AutoModelForCausalLM.from_pretrained.return_value = model
        return module, tokenizer, model

    def test_missing_directory(self, tmp_path):
        adapter = TransformersModelAdapter(tmp_path / "missing")

        with pytest.raises(ModelUnavailableError) as exc_info:
            adapter.load()

        assert exc_info.value.model_path == str(tmp_path / "missing")
        assert "model_path=" in str(exc_info.value)

    def test_transformers_not_installed(self, tmp_path):
        adapter = TransformersModelAdapter(tmp_path)

        with patch.dict(sys.modules, {'transformers': None}):
            with pytest.raises(ModelUnavailableError, match="transformers is not installed"):
                adapter.load()

        assert adapter.is_loaded is False

    def test_load_failure_is_wrapped(self, tmp_path):
        module, _, _ = self._fake_transformers()
        module.AutoModelForCausalLM.from_pretrained.side_effect = OSError("no weights")
        adapter = TransformersModelAdapter(tmp_path)

        with patch.dict(sys.modules, {'transformers': module}):
            with pytest.raises(ModelUnavailableError, match="no weights"):
                adapter.load()

    @pytest.mark.asyncio
    async def test_complete_before_load(self, tmp_path):
        adapter = TransformersModelAdapter(tmp_path)

        with pytest.raises(ModelUnavailableError):
            await adapter.complete("prompt")

    @pytest.mark.asyncio
    async def test_load_and_complete(self, tmp_path):
        module, tokenizer, model = self._fake_transformers()
        adapter = TransformersModelAdapter(tmp_path, max_new_tokens=32)

        with patch.dict(sys.modules, {'transformers': module}):
            adapter.load()
            adapter.load()

        assert adapter.is_loaded is True
        module.AutoTokenizer.from_pretrained.assert_called_once_with(str(tmp_path))
        model.eval.assert_called_once()

        output = await adapter.complete("prompt")

        assert output == "Unsubscribe link: https://example.com/u"
        tokenizer.assert_called_once_with("prompt", return_tensors='pt')
        _, kwargs = model.generate.call_args
        assert kwargs['max_new_tokens'] == 32
        assert kwargs['do_sample'] is False
        tokenizer.decode.assert_called_once_with([4], skip_special_tokens=True)

    @pytest.mark.asyncio
    async def test_generation_failure(self, tmp_path):
        module, _, model = self._fake_transformers()
        model.generate.side_effect = RuntimeError("CUDA out of memory")
        adapter = TransformersModelAdapter(tmp_path)

        with patch.dict(sys.modules, {'transformers': module}):
            adapter.load()

        with pytest.raises(ModelInvocationError, match="CUDA out of memory"):
            await adapter.complete("prompt")


class _SlowAdapter(GenerativeModelAdapter):
    name = "slow"

    def __init__(self, delay):
        self.delay = delay
        self.loaded = False

    def load(self):
        self.loaded = True

    async def complete(self, prompt):
        await asyncio.sleep(self.delay)
        return "https://example.com/unsubscribe"


class TestTimeoutModelAdapter:
    """Test latency bounding around another adapter."""

    def test_load_is_delegated(self):
        inner = _SlowAdapter(0)
        adapter = TimeoutModelAdapter(inner, timeout=1)

        adapter.load()

        assert inner.loaded is True
        assert adapter.name == "slow+timeout"

    @pytest.mark.asyncio
    async def test_fast_call_passes_through(self):
        adapter = TimeoutModelAdapter(_SlowAdapter(0), timeout=1)

        assert await adapter.complete("prompt") == "https://example.com/unsubscribe"

    @pytest.mark.asyncio
    async def test_slow_call_times_out(self):
        adapter = TimeoutModelAdapter(_SlowAdapter(5), timeout=0.01)

        with pytest.raises(ModelInvocationError, match="timed out"):
            await adapter.complete("prompt")
