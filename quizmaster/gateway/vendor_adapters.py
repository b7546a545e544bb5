"""Vendor-Specific Adapters: protocol-level handling for each LLM provider.

Each adapter POSTs a ProviderRequest payload to its configured endpoint,
attaches the credential the provider's way, and decodes the text out of the
provider's response envelope.

Provider-specific behaviors:
  - Gemini: key as ``?key=`` query parameter; text at
    candidates[0].content.parts[0].text
  - OpenRouter: ``Authorization: Bearer`` plus HTTP-Referer / X-Title
    identification headers; text at choices[0].message.content

No retries: a failed call surfaces immediately.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from quizmaster.core.exceptions import MalformedUpstreamResponse, UpstreamError
from quizmaster.core.metrics import UPSTREAM_CALLS, UPSTREAM_DURATION
from quizmaster.gateway.types import ChatEnvelope, GeminiEnvelope, Provider, ProviderRequest

logger = logging.getLogger(__name__)

_BODY_EXCERPT_CHARS = 500


def _describe_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "<root>"
    return f"unexpected response envelope at {location}: {first['msg']}"


class BaseVendorAdapter(ABC):
    """Base class for all vendor adapters."""

    provider: Provider
    envelope: type[BaseModel]

    def __init__(self, endpoint: str, timeout: float = 60.0):
        self.endpoint = endpoint
        self.timeout = timeout

    @abstractmethod
    def _auth(self, credential: str) -> tuple[dict[str, str], dict[str, str]]:
        """Return (query params, headers) carrying the credential."""
        ...

    async def send(self, request: ProviderRequest, credential: str) -> dict[str, Any]:
        """POST the request and return the decoded JSON envelope.

        Raises UpstreamError on transport failure or non-2xx status, and
        MalformedUpstreamResponse when a 2xx body is not a JSON object.
        """
        name = self.provider.value
        params, auth_headers = self._auth(credential)
        headers = {"Content-Type": "application/json", **auth_headers}
        start = time.monotonic()

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    self.endpoint,
                    json=request.payload,
                    params=params,
                    headers=headers,
                )
        except httpx.TimeoutException as e:
            self._record(start, "timeout")
            logger.warning("%s: timeout after %ss", name, self.timeout, extra={"provider": name})
            raise UpstreamError(name, f"timeout after {self.timeout}s") from e
        except httpx.HTTPError as e:
            self._record(start, "transport_error")
            logger.warning("%s: transport error %s", name, type(e).__name__, extra={"provider": name})
            raise UpstreamError(name, f"{type(e).__name__}: {e}") from e

        if not resp.is_success:
            self._record(start, f"http_{resp.status_code}")
            excerpt = resp.text[:_BODY_EXCERPT_CHARS]
            logger.warning("%s: HTTP %d: %s", name, resp.status_code, excerpt, extra={"provider": name})
            raise UpstreamError(name, f"HTTP {resp.status_code}: {excerpt}", status=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            self._record(start, "malformed")
            raise MalformedUpstreamResponse(name, "response body is not JSON") from e

        if not isinstance(data, dict):
            self._record(start, "malformed")
            raise MalformedUpstreamResponse(name, f"expected a JSON object, got {type(data).__name__}")

        elapsed_ms = self._record(start, "success")
        logger.info("%s: response received in %d ms", name, elapsed_ms, extra={"provider": name})
        return data

    def extract_text(self, raw: dict[str, Any]) -> str:
        """Decode the provider envelope and return its text payload."""
        try:
            envelope = self.envelope.model_validate(raw)
        except ValidationError as e:
            reason = _describe_validation_error(e)
            logger.warning("%s: %s", self.provider.value, reason, extra={"provider": self.provider.value})
            raise MalformedUpstreamResponse(self.provider.value, reason) from e
        return envelope.text

    def _record(self, start: float, outcome: str) -> int:
        elapsed = time.monotonic() - start
        UPSTREAM_CALLS.labels(provider=self.provider.value, outcome=outcome).inc()
        UPSTREAM_DURATION.labels(provider=self.provider.value).observe(elapsed)
        return int(elapsed * 1000)


# ---------------------------------------------------------------------------
# Gemini Adapter (Google AI generateContent)
# ---------------------------------------------------------------------------


class GeminiAdapter(BaseVendorAdapter):
    """Google Gemini adapter; key travels as a query parameter."""

    provider = Provider.GEMINI
    envelope = GeminiEnvelope

    def _auth(self, credential: str) -> tuple[dict[str, str], dict[str, str]]:
        return {"key": credential}, {}


# ---------------------------------------------------------------------------
# OpenRouter Adapter (OpenAI-compatible chat completions)
# ---------------------------------------------------------------------------


class OpenRouterAdapter(BaseVendorAdapter):
    """OpenRouter chat completions adapter with app identification headers."""

    provider = Provider.OPENROUTER
    envelope = ChatEnvelope

    def __init__(self, endpoint: str, timeout: float = 60.0, referer: str = "", title: str = ""):
        super().__init__(endpoint, timeout=timeout)
        self.referer = referer
        self.title = title

    def _auth(self, credential: str) -> tuple[dict[str, str], dict[str, str]]:
        headers = {"Authorization": f"Bearer {credential}"}
        if self.referer:
            headers["HTTP-Referer"] = self.referer
        if self.title:
            headers["X-Title"] = self.title
        return {}, headers


# ---------------------------------------------------------------------------
# Adapter registry
# ---------------------------------------------------------------------------

ADAPTER_REGISTRY: dict[Provider, type[BaseVendorAdapter]] = {
    Provider.GEMINI: GeminiAdapter,
    Provider.OPENROUTER: OpenRouterAdapter,
}


def get_adapter(provider: Provider, endpoint: str, **kwargs) -> BaseVendorAdapter:
    """Factory: get the appropriate adapter for a provider."""
    cls = ADAPTER_REGISTRY.get(provider)
    if cls is None:
        raise ValueError(f"No adapter registered for provider: {provider}")
    return cls(endpoint=endpoint, **kwargs)
