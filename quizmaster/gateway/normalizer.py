"""Response Normalizer: post-processes provider text before JSON parsing.

Providers wrap JSON in markdown fences even when asked not to, so every
fence marker is removed wherever it appears, then the text is trimmed.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from quizmaster.core.exceptions import ResponseParseError

logger = logging.getLogger(__name__)

# A language tag only counts when whitespace or the end of text follows it
# ("```json\n", "```json {"); otherwise just the backticks go, so "```[1]```"
# keeps its payload.
_FENCE_PATTERN = re.compile(r"```(?:[\w+.-]*(?=\s|$))?")
_FENCE = "```"


def normalize_text(raw: str) -> str:
    """Strip markdown code-fence markers and surrounding whitespace.

    Idempotent: removal repeats until no triple backtick is left, so
    ``normalize_text(normalize_text(x)) == normalize_text(x)``.
    """
    text = raw or ""
    while _FENCE in text:
        text = _FENCE_PATTERN.sub("", text)
    return text.strip()


def parse_json(text: str, expect: type, provider: str) -> Any:
    """Parse cleaned text and check the top-level JSON type.

    Raises ResponseParseError with the offending text on failure.
    """
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("%s returned invalid JSON (%s)", provider, e)
        raise ResponseParseError(provider, f"invalid JSON: {e}", text) from e

    if not isinstance(value, expect):
        kind = "array" if expect is list else "object"
        logger.warning("%s returned JSON %s, expected %s", provider, type(value).__name__, kind)
        raise ResponseParseError(provider, f"expected a JSON {kind}", text)

    return value
