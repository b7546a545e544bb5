"""QuizGateway: orchestration façade over the provider gateway.

Each operation is one sequential pipeline with at most one outbound call:
  1. Build the provider request (pure)
  2. Dispatch via the vendor adapter with the next rotated credential
  3. Decode the envelope text
  4. Normalize and parse (topics / quiz only)

Storage is not touched here; callers own document cleanup.

Usage:
    gateway = build_quiz_gateway(settings)
    topics = await gateway.extract_topics(pdf_bytes)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from quizmaster.core.config import Settings
from quizmaster.core.exceptions import ResponseParseError
from quizmaster.gateway.key_rotator import KeyRotator
from quizmaster.gateway.normalizer import normalize_text, parse_json
from quizmaster.gateway.prompts import build_analysis_request, build_quiz_request, build_topics_request
from quizmaster.gateway.types import Provider, ProviderRequest
from quizmaster.gateway.vendor_adapters import BaseVendorAdapter, get_adapter
from quizmaster.schemas.quiz import Quiz, Topic

logger = logging.getLogger(__name__)

NO_WRONG_ANSWERS_MESSAGE = "No wrong answers to analyze. Keep up the great work!"


class QuizGateway:
    """Topics, quiz and weak-area analysis on top of two providers.

    Integrates:
      - GeminiAdapter + KeyRotator: document-based topics and quiz
      - OpenRouterAdapter + KeyRotator: weak-area analysis
    """

    def __init__(
        self,
        gemini: BaseVendorAdapter,
        openrouter: BaseVendorAdapter,
        gemini_keys: KeyRotator,
        openrouter_keys: KeyRotator,
        analysis_model: str,
    ):
        self.gemini = gemini
        self.openrouter = openrouter
        self.gemini_keys = gemini_keys
        self.openrouter_keys = openrouter_keys
        self.analysis_model = analysis_model

    async def _complete(self, adapter: BaseVendorAdapter, keys: KeyRotator, request: ProviderRequest) -> str:
        raw = await adapter.send(request, keys.next_key())
        return adapter.extract_text(raw)

    async def extract_topics(self, document: bytes) -> list[Topic]:
        request = build_topics_request(document)
        text = normalize_text(await self._complete(self.gemini, self.gemini_keys, request))
        items = parse_json(text, list, Provider.GEMINI.value)

        try:
            topics = [Topic.model_validate(item) for item in items]
        except ValidationError as e:
            raise ResponseParseError(Provider.GEMINI.value, "topics are not {title, description} objects", text) from e

        logger.info("Extracted %d topics", len(topics))
        return topics

    async def generate_quiz(self, document: bytes, topic: str, question_count: Any) -> Quiz:
        # Builder validates topic/count before anything goes out
        request = build_quiz_request(document, topic, question_count)
        text = normalize_text(await self._complete(self.gemini, self.gemini_keys, request))
        data = parse_json(text, dict, Provider.GEMINI.value)

        if not isinstance(data.get("questions"), list):
            raise ResponseParseError(Provider.GEMINI.value, "missing 'questions' array", text)
        try:
            quiz = Quiz.model_validate(data)
        except ValidationError as e:
            reason = f"malformed quiz questions: {e.error_count()} errors"
            raise ResponseParseError(Provider.GEMINI.value, reason, text) from e

        logger.info("Generated quiz on %r with %d questions", topic, len(quiz.questions))
        return quiz

    async def analyze_weak_areas(self, wrong_answers: Sequence[Any] | None) -> str:
        if not wrong_answers:
            return NO_WRONG_ANSWERS_MESSAGE

        request = build_analysis_request(wrong_answers, self.analysis_model)
        analysis = await self._complete(self.openrouter, self.openrouter_keys, request)
        logger.info("Analyzed %d wrong answers", len(wrong_answers))
        return analysis


def build_quiz_gateway(cfg: Settings) -> QuizGateway:
    """Wire adapters and key rotators from configuration."""
    return QuizGateway(
        gemini=get_adapter(Provider.GEMINI, cfg.gemini_api_url, timeout=cfg.request_timeout_seconds),
        openrouter=get_adapter(
            Provider.OPENROUTER,
            cfg.openrouter_api_url,
            timeout=cfg.request_timeout_seconds,
            referer=cfg.openrouter_referer,
            title=cfg.openrouter_title,
        ),
        gemini_keys=KeyRotator(cfg.gemini_key_list, name=Provider.GEMINI.value),
        openrouter_keys=KeyRotator(
            [cfg.openrouter_api_key] if cfg.openrouter_api_key else [],
            name=Provider.OPENROUTER.value,
        ),
        analysis_model=cfg.openrouter_model,
    )
