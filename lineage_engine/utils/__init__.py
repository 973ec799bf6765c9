"""
Utility modules for the Document Lineage Engine.

This package provides common utilities, exceptions, constants, type aliases,
the JSON repair helper, clock capabilities and logging configuration used
throughout the engine.
"""

from __future__ import annotations

from .clock import Clock, IdGenerator, isoformat, utc_now, uuid_id_generator
from .constants import (
    CONFIDENCE_THRESHOLD,
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_JITTER_RATIO,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_RETRIES,
)
from .exceptions import (
    ConfigurationError,
    ExtractionFetchError,
    JobNotFoundError,
    LineageEngineError,
    LLMError,
    ModelInvocationError,
    NoMappingsGeneratedError,
    PersistenceError,
    RateLimitError,
    ResponseParseError,
    RetriesExhausted,
)
from .json_repair import repair_json
from .logging_config import DocumentIDFilter, setup_logging
from .types import Metadata, MetadataValue

__all__ = [
    "Clock",
    "IdGenerator",
    "isoformat",
    "utc_now",
    "uuid_id_generator",
    "CONFIDENCE_THRESHOLD",
    "DEFAULT_BASE_DELAY_MS",
    "DEFAULT_JITTER_RATIO",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_MAX_RETRIES",
    "ConfigurationError",
    "ExtractionFetchError",
    "JobNotFoundError",
    "LineageEngineError",
    "LLMError",
    "ModelInvocationError",
    "NoMappingsGeneratedError",
    "PersistenceError",
    "RateLimitError",
    "ResponseParseError",
    "RetriesExhausted",
    "repair_json",
    "DocumentIDFilter",
    "setup_logging",
    "Metadata",
    "MetadataValue",
]
