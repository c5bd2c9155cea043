"""
Generative model adapters for the last-resort extraction stage.

The engine only talks to ``GenerativeModelAdapter``: ``load()`` once,
then ``await complete(prompt)`` per attempt. Prompt construction and
response parsing live here as plain functions so they can be tested
without a model.
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence, Union

from .constants import (
    MODEL_RESPONSE_MARKER, MODEL_TRAILING_PUNCTUATION, URL_PATTERN,
    NEGATIVE_RESPONSE_PATTERN, WHITESPACE_PATTERN
)
from .exceptions import ModelUnavailableError, ModelInvocationError
from .logging import ExtractionLogger
from .types import AnchorCandidate, ContextSnippet

NEGATIVE_TOKEN = "NONE"

SELECTION_RULES = (
    "Choose using this priority:\n"
    "1. a link whose text contains \"unsubscribe\";\n"
    "2. a link whose URL contains unsubscribe, opt-out, optout or preferences;\n"
    "3. a link whose text mentions opting out or email preferences;\n"
    "4. a link with generic text such as \"click here\" when the words around it "
    "mention unsubscribing or opting out."
)

ANCHOR_PROMPT_TEMPLATE = """You are given the links found in an email. Select the single link a recipient should visit to stop receiving emails from this sender.
{rules}
Reply with exactly one absolute URL copied from the list, or {negative} if no link qualifies.

Links:
{links}

{marker}"""

SNIPPET_PROMPT_TEMPLATE = """Extract the unsubscribe link from the following email excerpt. Return only the URL, or {negative} if no unsubscribe link is present.
{rules}

Email content:
{snippet}

{marker}"""


def _squash(text: str, limit: Optional[int] = None) -> str:
    squashed = WHITESPACE_PATTERN.sub(' ', text or '').strip()
    if limit is not None and len(squashed) > limit:
        return squashed[:limit]
    return squashed


def build_anchor_prompt(candidates: Sequence[AnchorCandidate]) -> str:
    """Prompt listing every anchor with its text and surrounding words."""
    lines = []
    for index, candidate in enumerate(candidates, start=1):
        lines.append(
            f'{index}. url: {candidate.href} | text: "{_squash(candidate.anchor_text)}" '
            f'| before: "{_squash(candidate.context_before)}" '
            f'| after: "{_squash(candidate.context_after)}"'
        )
    return ANCHOR_PROMPT_TEMPLATE.format(
        rules=SELECTION_RULES,
        negative=NEGATIVE_TOKEN,
        links='\n'.join(lines),
        marker=MODEL_RESPONSE_MARKER
    )


def build_snippet_prompt(snippet: ContextSnippet) -> str:
    """Prompt asking for the unsubscribe URL inside one text window."""
    return SNIPPET_PROMPT_TEMPLATE.format(
        rules=SELECTION_RULES,
        negative=NEGATIVE_TOKEN,
        snippet=snippet.text.strip(),
        marker=MODEL_RESPONSE_MARKER
    )


def parse_model_response(output: Optional[str], prompt: Optional[str] = None) -> Optional[str]:
    """
    Pull the chosen URL out of free-form model output.

    Many runtimes echo the prompt before the completion, so the prompt is
    removed first, then everything up to the last response marker. An
    explicit negative answer before any URL means "no link".
    """
    if not output:
        return None

    text = output
    if prompt and prompt in text:
        text = text.split(prompt, 1)[1]

    marker_index = text.rfind(MODEL_RESPONSE_MARKER)
    if marker_index != -1:
        text = text[marker_index + len(MODEL_RESPONSE_MARKER):]

    url_match = URL_PATTERN.search(text)
    negative_match = NEGATIVE_RESPONSE_PATTERN.search(text)

    if negative_match and (url_match is None or negative_match.start() < url_match.start()):
        return None
    if url_match is None:
        return None

    url = url_match.group(0).rstrip(MODEL_TRAILING_PUNCTUATION)
    return url or None


class GenerativeModelAdapter(ABC):
    """Boundary to a text-completion model."""

    name = "model"

    @abstractmethod
    def load(self) -> None:
        """Prepare the model. Raises ModelUnavailableError on failure."""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Return the model's raw output. Raises ModelInvocationError on failure."""


class TransformersModelAdapter(GenerativeModelAdapter):
    """
    Local causal language model loaded from a directory with transformers.

    A single model instance is shared by every call; generation runs in a
    worker thread and is serialized by ``_generate_lock``.
    """

    name = "transformers"

    def __init__(self, model_path: Union[str, Path], max_new_tokens: int = 128):
        self.model_path = Path(model_path).expanduser()
        self.max_new_tokens = max_new_tokens
        self.logger = ExtractionLogger("model_adapter").bind(model_path=str(self.model_path))
        self._model = None
        self._tokenizer = None
        self._generate_lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._model is not None and self._tokenizer is not None

    def load(self) -> None:
        if self.is_loaded:
            return

        if not self.model_path.is_dir():
            raise ModelUnavailableError("Model directory not found", model_path=str(self.model_path))

        try:
            # Imported here so heuristic-only installs never need transformers
            from transformers import AutoModelForCausalLM, AutoTokenizer
        except ImportError as e:
            raise ModelUnavailableError(
                "transformers is not installed", model_path=str(self.model_path)
            ) from e

        self.logger.info("Loading generative model")
        try:
            with self.logger.time_operation("model_load"):
                tokenizer = AutoTokenizer.from_pretrained(str(self.model_path))
                model = AutoModelForCausalLM.from_pretrained(str(self.model_path))
                model.eval()
        except Exception as e:
            raise ModelUnavailableError(
                f"Failed to load model: {e}", model_path=str(self.model_path)
            ) from e

        self._tokenizer = tokenizer
        self._model = model
        self.logger.info("Generative model loaded")

    async def complete(self, prompt: str) -> str:
        if not self.is_loaded:
            raise ModelUnavailableError("Model has not been loaded", model_path=str(self.model_path))

        try:
            return await asyncio.to_thread(self._generate, prompt)
        except Exception as e:
            raise ModelInvocationError(f"Generation failed: {e}", context={
                'model_path': str(self.model_path)
            }) from e

    def _generate(self, prompt: str) -> str:
        with self._generate_lock:
            inputs = self._tokenizer(prompt, return_tensors='pt')
            output_ids = self._model.generate(
                **inputs,
                max_new_tokens=self.max_new_tokens,
                do_sample=False,
                pad_token_id=self._tokenizer.eos_token_id
            )
            # Decode only the generated continuation, not the echoed prompt
            prompt_length = inputs['input_ids'].shape[-1]
            return self._tokenizer.decode(output_ids[0][prompt_length:], skip_special_tokens=True)


class TimeoutModelAdapter(GenerativeModelAdapter):
    """Bound the latency of another adapter's ``complete`` calls."""

    def __init__(self, inner: GenerativeModelAdapter, timeout: float):
        self.inner = inner
        self.timeout = timeout
        self.name = f"{inner.name}+timeout"

    def load(self) -> None:
        self.inner.load()

    async def complete(self, prompt: str) -> str:
        try:
            return await asyncio.wait_for(self.inner.complete(prompt), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise ModelInvocationError("Model call timed out", context={
                'timeout_seconds': self.timeout
            }) from e
