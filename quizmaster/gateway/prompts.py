"""Prompt Builder: pure construction of provider request bodies.

No I/O happens here: each builder returns a ProviderRequest value that the
vendor adapters send as-is.
"""

from __future__ import annotations

import base64
import json
from collections.abc import Sequence
from typing import Any

from quizmaster.core.exceptions import CallerInputError
from quizmaster.gateway.types import Provider, ProviderRequest

PDF_MIME_TYPE = "application/pdf"
MAX_TOPICS = 10

TOPICS_PROMPT = (
    "Analyze the content of the provided PDF document. "
    f"Identify up to {MAX_TOPICS} main topics. "
    "For each topic, provide a concise 'title' and a one-sentence 'description'. "
    "Return the output as a valid JSON array of objects only. "
    "Do not include any text, backticks, or markdown formatting outside the JSON array."
)

QUIZ_PROMPT_TEMPLATE = (
    "You are an expert Quiz Generator. Use the provided document to create a quiz about "
    'the specific topic: "{topic}". Generate exactly {count} multiple-choice questions. '
    "For each question, provide: a unique 'id' (string), the 'question' text (string), "
    "an array of exactly 4 'options' (strings), the 0-based index (0-3) of the correct option "
    "as 'correctAnswerIndex' (number), and a concise 'explanation' (string). "
    "Return the output as a single, valid JSON object with one key: 'questions'. "
    "When a question draws on an image inside the document, do not miss any data from that image. "
    "Do not include markdown."
)

ANALYSIS_PROMPT_TEMPLATE = (
    "You are a helpful academic tutor. A student has provided a list of quiz questions they "
    "answered incorrectly. Analyze this data to identify 1-3 key themes or weak areas. "
    "Provide a concise, encouraging, and actionable summary to help the student know what "
    "to study next. Address the user directly.\n\n"
    "Here is the data:\n{data}"
)


def coerce_question_count(value: Any) -> int:
    """Accept a positive count given as a number or a numeric string."""
    if value is None:
        raise CallerInputError("Missing required parameters.", details="questionCount is required")
    if isinstance(value, bool):
        raise CallerInputError("Invalid questionCount.", details=f"not a number: {value!r}")

    if isinstance(value, int):
        count = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise CallerInputError("Invalid questionCount.", details=f"not a whole number: {value!r}")
        count = int(value)
    elif isinstance(value, str):
        try:
            count = int(value.strip())
        except ValueError:
            raise CallerInputError("Invalid questionCount.", details=f"not a number: {value!r}") from None
    else:
        raise CallerInputError("Invalid questionCount.", details=f"not a number: {value!r}")

    if count < 1:
        raise CallerInputError("Invalid questionCount.", details=f"must be positive, got {count}")
    return count


def _gemini_document_payload(prompt: str, document: bytes) -> dict[str, Any]:
    encoded = base64.b64encode(document).decode("ascii")
    return {
        "contents": [
            {
                "parts": [
                    {"text": prompt},
                    {"inline_data": {"mime_type": PDF_MIME_TYPE, "data": encoded}},
                ]
            }
        ]
    }


def build_topics_request(document: bytes) -> ProviderRequest:
    return ProviderRequest(
        provider=Provider.GEMINI,
        prompt=TOPICS_PROMPT,
        payload=_gemini_document_payload(TOPICS_PROMPT, document),
    )


def build_quiz_request(document: bytes, topic: str, question_count: Any) -> ProviderRequest:
    if not isinstance(topic, str) or not topic.strip():
        raise CallerInputError("Missing required parameters.", details="topic is required")
    count = coerce_question_count(question_count)

    prompt = QUIZ_PROMPT_TEMPLATE.format(topic=topic, count=count)
    return ProviderRequest(
        provider=Provider.GEMINI,
        prompt=prompt,
        payload=_gemini_document_payload(prompt, document),
    )


def build_analysis_request(wrong_answers: Sequence[Any], model: str) -> ProviderRequest:
    # Records are opaque; forward them exactly as the caller sent them
    data = json.dumps(list(wrong_answers), indent=2, ensure_ascii=False)
    prompt = ANALYSIS_PROMPT_TEMPLATE.format(data=data)
    return ProviderRequest(
        provider=Provider.OPENROUTER,
        prompt=prompt,
        payload={
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
        },
    )
