"""
Unsubscribe link extraction engine.

Runs a single pass of the extraction pipeline over one email body:

    collect anchors -> heuristic selection -> pattern matching
        -> model fallback -> best effort

Each stage only runs when the previous ones produced no valid link. An
invalid candidate is never thrown away: the earliest one seen is kept
and returned when nothing later validates.
"""

import asyncio
import threading
from pathlib import Path
from typing import List, Optional, Union

from .anchors import AnchorCandidateCollector
from .constants import (
    STAGE_COLLECT_ANCHORS, STAGE_HEURISTIC, STAGE_PATTERN, STAGE_MODEL
)
from .context import ContextWindowExtractor
from .exceptions import ModelInvocationError
from .logging import ExtractionLogger
from .model import (
    GenerativeModelAdapter, TransformersModelAdapter,
    build_anchor_prompt, build_snippet_prompt, parse_model_response
)
from .patterns import PatternMatcher
from .selectors import CandidateSelector
from .types import AnchorCandidate, ExtractionResult
from .validators import UnsubscribeUrlValidator


class _BestEffort:
    """Call-local holder for the earliest invalid candidate."""

    __slots__ = ('link', 'stage')

    def __init__(self):
        self.link: Optional[str] = None
        self.stage: Optional[str] = None

    def offer(self, link: Optional[str], stage: str) -> None:
        if link and self.link is None:
            self.link = link
            self.stage = stage


class UnsubscribeLinkEngine:
    """Find the single most likely unsubscribe URL in an email body."""

    def __init__(
        self,
        model_path: Optional[Union[str, Path]] = None,
        model_adapter: Optional[GenerativeModelAdapter] = None,
        max_new_tokens: int = 128,
        collector: Optional[AnchorCandidateCollector] = None,
        selector: Optional[CandidateSelector] = None,
        pattern_matcher: Optional[PatternMatcher] = None,
        context_extractor: Optional[ContextWindowExtractor] = None,
        validator: Optional[UnsubscribeUrlValidator] = None
    ):
        if model_adapter is None and model_path:
            model_adapter = TransformersModelAdapter(model_path, max_new_tokens=max_new_tokens)

        self.model_adapter = model_adapter
        self.collector = collector or AnchorCandidateCollector()
        self.selector = selector or CandidateSelector()
        self.pattern_matcher = pattern_matcher or PatternMatcher()
        self.context_extractor = context_extractor or ContextWindowExtractor()
        self.validator = validator or UnsubscribeUrlValidator()
        self.logger = ExtractionLogger("engine")

        # Model loading is attempted at most once per engine
        self._model_available: Optional[bool] = None
        self._model_load_lock = threading.Lock()

    @property
    def model_configured(self) -> bool:
        return self.model_adapter is not None

    async def extract(self, body: Optional[str]) -> ExtractionResult:
        """Extract the unsubscribe link from ``body``. Never raises."""
        body = body or ""
        best_effort = _BestEffort()
        anchors: List[str] = []

        try:
            return await self._run_pipeline(body, best_effort, anchors)
        except Exception as e:
            self.logger.log_exception(e, {
                "body_length": len(body),
                "best_effort": best_effort.link
            })
            return self._result(best_effort.link, anchors, best_effort.stage, False)

    async def _run_pipeline(self, body: str, best_effort: _BestEffort,
                            anchors: List[str]) -> ExtractionResult:
        log = self.logger.bind(body_length=len(body))

        # COLLECT_ANCHORS
        candidates = self.collector.collect(body)
        anchors.extend(candidate.href for candidate in candidates)
        log.debug("Stage finished", {"stage": STAGE_COLLECT_ANCHORS, "anchors": len(anchors)})

        # SELECT_HEURISTIC
        selected = self.selector.select(candidates)
        if selected is not None:
            if self.validator.is_valid(selected.href):
                log.info("Unsubscribe link found", {"stage": STAGE_HEURISTIC, "link": selected.href})
                return self._result(selected.href, anchors, STAGE_HEURISTIC, True)
            best_effort.offer(selected.href, STAGE_HEURISTIC)
            log.debug("Heuristic candidate failed validation", {"link": selected.href})

        # PATTERN_MATCH
        pattern_match = self.pattern_matcher.match(body)
        if pattern_match is not None:
            if self.validator.is_valid(pattern_match.url):
                log.info("Unsubscribe link found", {
                    "stage": STAGE_PATTERN,
                    "rule": pattern_match.rule,
                    "link": pattern_match.url
                })
                return self._result(pattern_match.url, anchors, STAGE_PATTERN, True)
            best_effort.offer(pattern_match.url, STAGE_PATTERN)
            log.debug("Pattern candidate failed validation", {
                "rule": pattern_match.rule,
                "link": pattern_match.url
            })

        # MODEL_FALLBACK
        if self.model_configured and await self._ensure_model_loaded():
            link = await self._run_model_stage(body, candidates, log)
            if link:
                log.info("Unsubscribe link found", {"stage": STAGE_MODEL, "link": link})
                return self._result(link, anchors, STAGE_MODEL, True)

        # RETURN_BEST_EFFORT
        if best_effort.link:
            log.info("Returning best-effort link", {
                "stage": best_effort.stage,
                "link": best_effort.link
            })
        else:
            log.info("No unsubscribe link found", {"anchors": len(anchors)})
        return self._result(best_effort.link, anchors, best_effort.stage, False)

    async def _run_model_stage(self, body: str, candidates: List[AnchorCandidate],
                               log: ExtractionLogger) -> Optional[str]:
        if candidates:
            prompts = [build_anchor_prompt(candidates)]
        else:
            prompts = [build_snippet_prompt(s) for s in self.context_extractor.extract(body)]

        for attempt, prompt in enumerate(prompts, start=1):
            try:
                output = await self.model_adapter.complete(prompt)
            except Exception as e:
                error = e if isinstance(e, ModelInvocationError) else ModelInvocationError(
                    str(e), stage=STAGE_MODEL
                )
                log.log_exception(error, {"attempt": attempt})
                return None

            link = parse_model_response(output, prompt)
            if link and self.validator.is_valid(link):
                return link
            log.debug("Model attempt produced no valid link", {
                "attempt": attempt,
                "parsed": link,
                "source": "anchors" if candidates else "snippet"
            })

        return None

    async def _ensure_model_loaded(self) -> bool:
        if self._model_available is not None:
            return self._model_available
        return await asyncio.to_thread(self._load_model_once)

    def _load_model_once(self) -> bool:
        with self._model_load_lock:
            if self._model_available is None:
                try:
                    self.model_adapter.load()
                    self._model_available = True
                except Exception as e:
                    self.logger.warning("Generative model unavailable, skipping model stage", {
                        "adapter": self.model_adapter.name,
                        "error": str(e)
                    })
                    self._model_available = False
            return self._model_available

    @staticmethod
    def _result(link: Optional[str], anchors: List[str], stage: Optional[str],
                is_valid: bool) -> ExtractionResult:
        return ExtractionResult(link=link, anchors=list(anchors), stage=stage, is_valid=is_valid)


async def extract_unsubscribe_link(body: Optional[str],
                                   model_path: Optional[Union[str, Path]] = None) -> ExtractionResult:
    """One-shot extraction with a fresh engine."""
    return await UnsubscribeLinkEngine(model_path=model_path).extract(body)
