"""Error taxonomy shared by the gateway, the document store and the API layer."""

from __future__ import annotations


class QuizMasterError(Exception):
    """Base error. Rendered as ``{"success": false, "error": ..., "details": ...}``."""

    status_code: int = 500

    def __init__(self, message: str, details: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(QuizMasterError):
    """Fatal configuration problem (e.g. an empty credential set)."""


class CallerInputError(QuizMasterError):
    """Missing or malformed caller input. Raised before any network call."""

    status_code = 400


class DocumentNotFoundError(QuizMasterError):
    status_code = 404


class ProcessingFailed(QuizMasterError):
    """An AI operation failed; ``details`` holds the underlying cause."""

    status_code = 500


class UpstreamFailure(QuizMasterError):
    """Base for everything that goes wrong on the provider side."""

    status_code = 502

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class UpstreamError(UpstreamFailure):
    """Transport failure or non-2xx status from a provider."""

    def __init__(self, provider: str, cause: str, status: int | None = None):
        super().__init__(provider, cause)
        self.cause = cause
        self.upstream_status = status


class MalformedUpstreamResponse(UpstreamFailure):
    """Provider answered, but the envelope is not shaped as expected."""


class ResponseParseError(UpstreamFailure):
    """Cleaned provider text is not the JSON value we asked for."""

    def __init__(self, provider: str, reason: str, text: str):
        super().__init__(provider, f"{reason}; response text: {text!r}")
        self.reason = reason
        self.text = text
