"""Pydantic models for extraction input, lineage output and persisted state."""

from __future__ import annotations

from .lineage import (
    TERMINAL_STATUSES,
    Attribute,
    BusinessRule,
    DocumentExtraction,
    DocumentJob,
    DocumentMappingResponse,
    DocumentMappings,
    DocumentProcessRequest,
    DocumentStatus,
    EntityRelationship,
    LineageMapping,
    LineageNode,
    LineageRelationship,
    LogicalEntity,
    MappedNode,
    MappedRelationship,
    MergedLineageMapping,
    NodeMetadata,
    NodeRecord,
    RelationshipRecord,
)

__all__ = [
    "TERMINAL_STATUSES",
    "Attribute",
    "BusinessRule",
    "DocumentExtraction",
    "DocumentJob",
    "DocumentMappingResponse",
    "DocumentMappings",
    "DocumentProcessRequest",
    "DocumentStatus",
    "EntityRelationship",
    "LineageMapping",
    "LineageNode",
    "LineageRelationship",
    "LogicalEntity",
    "MappedNode",
    "MappedRelationship",
    "MergedLineageMapping",
    "NodeMetadata",
    "NodeRecord",
    "RelationshipRecord",
]
