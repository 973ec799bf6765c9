"""Parsing of raw model text into a LineageMapping."""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from lineage_engine.models.lineage import LineageMapping, LineageNode, LineageRelationship
from lineage_engine.utils.constants import RAW_RESPONSE_LOG_LIMIT
from lineage_engine.utils.exceptions import ResponseParseError
from lineage_engine.utils.json_repair import repair_json

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def extract_json_span(text: str) -> Optional[str]:
    """Return the text between the first ``{`` and the last ``}``, inclusive."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1:
        return None
    if end <= start:
        # Truncated output with no closing brace; let the repair step close it
        return text[start:]
    return text[start : end + 1]


def _load_object(candidate: str) -> Optional[Any]:
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        return None


def _validate_items(
    items: List[Any], model: Type[T], label: str, log: logging.Logger
) -> List[T]:
    valid: List[T] = []
    for index, item in enumerate(items):
        try:
            valid.append(model.model_validate(item))
        except ValidationError as exc:
            log.warning(f"Invalid {label} at index {index} skipped: {exc}")
    return valid


def parse_lineage_response(raw_text: str, log: Optional[logging.Logger] = None) -> LineageMapping:
    """
    Parse the model's raw text into a LineageMapping.

    The JSON object is located between the first ``{`` and the last ``}``.
    When it does not parse, it is passed through ``repair_json`` once.
    Missing ``lineageNodes`` / ``lineageRelationships`` are treated as empty;
    individually invalid nodes or relationships are skipped.

    Args:
        raw_text: Raw model output
        log: Optional logger

    Returns:
        Parsed lineage mapping

    Raises:
        ResponseParseError: If no usable JSON object can be recovered
    """
    log = log or logger
    text = raw_text or ""
    span = extract_json_span(text)
    if span is None:
        log.error(
            "Could not locate a JSON object in model response",
            extra={"raw_response": text[:RAW_RESPONSE_LOG_LIMIT]},
        )
        raise ResponseParseError("Could not extract JSON from model response", raw_text=text)

    parsed = _load_object(span)
    if parsed is None:
        parsed = _load_object(repair_json(span, log=log))
    if parsed is None:
        log.error(
            "Malformed model response could not be repaired",
            extra={"raw_response": text[:RAW_RESPONSE_LOG_LIMIT]},
        )
        raise ResponseParseError("Model response is not valid JSON", raw_text=text)

    if not isinstance(parsed, dict):
        raise ResponseParseError("Model response JSON is not an object", raw_text=text)

    nodes = parsed.get("lineageNodes")
    relationships = parsed.get("lineageRelationships")
    if nodes is None:
        nodes = []
    if relationships is None:
        relationships = []
    if not isinstance(nodes, list) or not isinstance(relationships, list):
        raise ResponseParseError(
            "lineageNodes and lineageRelationships must be arrays", raw_text=text
        )

    return LineageMapping(
        lineage_nodes=_validate_items(nodes, LineageNode, "lineage node", log),
        lineage_relationships=_validate_items(
            relationships, LineageRelationship, "lineage relationship", log
        ),
    )
