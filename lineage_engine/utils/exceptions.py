"""
Custom exception hierarchy for the Document Lineage Engine.

Errors are split into two groups. Entity-level errors (model invocation after
retries, unparseable model output) are isolated to the entity that produced
them. Pipeline-level errors (extraction fetch, persistence, no mappings at
all) fail the owning document job.
"""

from __future__ import annotations

from typing import Optional


class LineageEngineError(Exception):
    """Base exception for all Document Lineage Engine errors."""

    pass


class ConfigurationError(LineageEngineError):
    """Raised when configuration is invalid or missing."""

    pass


class ExtractionFetchError(LineageEngineError):
    """Raised when a document extraction cannot be fetched or decoded."""

    pass


class LLMError(LineageEngineError):
    """Raised for text-generation model errors."""

    pass


class RateLimitError(LLMError):
    """Raised when the model provider throttles the request (HTTP 429)."""

    def __init__(self, message: str = "Rate limit exceeded", retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


class ModelInvocationError(LLMError):
    """Raised when a model call fails.

    ``transient`` is True for throttling failures that are worth retrying.
    """

    def __init__(self, message: str, transient: bool = False):
        super().__init__(message)
        self.transient = transient


class RetriesExhausted(ModelInvocationError):
    """Raised after every retry attempt for a transient failure has been used."""

    def __init__(self, attempts: int, last_error: str):
        super().__init__(
            f"Model invocation failed after {attempts} attempts: {last_error}",
            transient=True,
        )
        self.attempts = attempts
        self.last_error = last_error


class ResponseParseError(LineageEngineError):
    """Raised when model output cannot be turned into a lineage mapping."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class NoMappingsGeneratedError(LineageEngineError):
    """Raised when every logical entity of a document failed to produce a mapping."""

    pass


class PersistenceError(LineageEngineError):
    """Raised for repository read/write failures."""

    pass


class JobNotFoundError(PersistenceError):
    """Raised when no document job exists for a document id."""

    pass
