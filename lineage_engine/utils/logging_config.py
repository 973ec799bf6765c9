"""
Logging configuration for the Document Lineage Engine.

This module sets up structured logging with consistent formatting across
the engine. Every record carries the id of the document being processed
(or "-" outside a document context).
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

from .constants import DEFAULT_LOG_LEVEL, LOG_FORMAT


class DocumentIDFilter(logging.Filter):
    """
    Logging filter that adds a document ID to log records.

    Components pass ``extra={"document_id": ...}`` while a document is being
    processed; every other record gets a placeholder.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Add document_id to log record.

        Args:
            record: Log record to filter

        Returns:
            Always True (don't filter out any records)
        """
        if not hasattr(record, "document_id"):
            record.document_id = "-"
        return True


def setup_logging(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    include_document_id: bool = True,
) -> None:
    """
    Configure application-wide logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to env var or INFO.
        format_string: Custom log format string. Defaults to standard format.
        include_document_id: Whether to include the document ID in logs.

    Example:
        >>> setup_logging(level="DEBUG")
        >>> logger = logging.getLogger(__name__)
        >>> logger.info("Engine started")
    """
    log_level = level or os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL)
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    log_format = format_string or LOG_FORMAT
    if not include_document_id:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(DocumentIDFilter())

    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        handlers=[handler],
        force=True,  # Override any existing configuration
    )

    # Set third-party library log levels to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured with level: {log_level}")
