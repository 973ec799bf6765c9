"""Services layer: prompt construction, generation, merging and the document pipeline."""

from __future__ import annotations

from .prompt_builder import LineagePromptBuilder, infer_data_type, to_snake_case
from .response_parser import parse_lineage_response
from .mapping_merger import MappingMerger
from .lineage_generation import EntityFailure, EntityGenerationReport, LineageGenerationService
from .document_processor import ALLOWED_TRANSITIONS, DocumentProcessor, decide_job_status

__all__ = [
    "LineagePromptBuilder",
    "infer_data_type",
    "to_snake_case",
    "parse_lineage_response",
    "MappingMerger",
    "EntityFailure",
    "EntityGenerationReport",
    "LineageGenerationService",
    "ALLOWED_TRANSITIONS",
    "DocumentProcessor",
    "decide_job_status",
]
