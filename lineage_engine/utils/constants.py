"""
Application constants for the Document Lineage Engine.

Default values shared by the settings layer and the pipeline components.
"""

from __future__ import annotations

# Retry configuration
DEFAULT_MAX_RETRIES = 5  # additional attempts after the first call
DEFAULT_BASE_DELAY_MS = 1000  # delay before the first retry
DEFAULT_JITTER_RATIO = 0.2  # +/- share of the delay drawn uniformly

# Confidence gate
CONFIDENCE_THRESHOLD = 0.7

# Prompt defaults
DEFAULT_JOB_PREFIX = "job1"
DEFAULT_DOMAIN = "domain"
DEFAULT_SYSTEM = "llm"

# Node vocabulary
NODE_TYPE_TABLE = "table"
NODE_TYPE_COLUMN = "column"
DATA_TYPES = ("string", "number", "boolean", "date")
DEFAULT_RELATIONSHIP_TYPE = "business_reference"

# Model configuration
DEFAULT_LLM_MODEL = "anthropic/claude-3-haiku"
DEFAULT_LLM_TEMPERATURE = 0.1
DEFAULT_MAX_TOKENS = 4096
DEFAULT_REQUEST_TIMEOUT = 120  # seconds

# Logging configuration
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(document_id)s] - %(message)s"
RAW_RESPONSE_LOG_LIMIT = 500  # characters of raw model output kept in logs
