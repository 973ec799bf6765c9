"""Storage capabilities and bundled backends."""

from __future__ import annotations

from .extraction_source import LocalExtractionSource
from .memory_store import (
    InMemoryJobRepository,
    InMemoryNodeRepository,
    InMemoryRelationshipRepository,
)
from .repositories import (
    ExtractionSource,
    JobRepository,
    NodeRepository,
    RelationshipRepository,
)

__all__ = [
    "LocalExtractionSource",
    "InMemoryJobRepository",
    "InMemoryNodeRepository",
    "InMemoryRelationshipRepository",
    "ExtractionSource",
    "JobRepository",
    "NodeRepository",
    "RelationshipRepository",
]
