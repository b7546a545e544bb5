"""Core types for the provider gateway.

Request values produced by the prompt builders, plus the pydantic models
used to decode provider response envelopes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Provider(str, Enum):
    """Upstream LLM providers."""

    GEMINI = "gemini"  # generation-style, document-capable
    OPENROUTER = "openrouter"  # chat-style


@dataclass(frozen=True)
class ProviderRequest:
    """A ready-to-send request body for one provider.

    ``prompt`` is kept alongside the payload so tests and logs can inspect the
    instruction without digging through the provider-specific body.
    """

    provider: Provider
    prompt: str
    payload: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Gemini generateContent envelope
# ---------------------------------------------------------------------------


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="ignore")


class GeminiPart(_Envelope):
    text: str


class GeminiContent(_Envelope):
    parts: list[GeminiPart] = Field(min_length=1)


class GeminiCandidate(_Envelope):
    content: GeminiContent


class GeminiEnvelope(_Envelope):
    candidates: list[GeminiCandidate] = Field(min_length=1)

    @property
    def text(self) -> str:
        return self.candidates[0].content.parts[0].text


# ---------------------------------------------------------------------------
# OpenAI-compatible chat completions envelope (OpenRouter)
# ---------------------------------------------------------------------------


class ChatMessage(_Envelope):
    content: str


class ChatChoice(_Envelope):
    message: ChatMessage


class ChatEnvelope(_Envelope):
    choices: list[ChatChoice] = Field(min_length=1)

    @property
    def text(self) -> str:
        return self.choices[0].message.content
