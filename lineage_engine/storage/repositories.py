"""Capability interfaces for the collaborators the lineage pipeline persists to.

The pipeline only depends on these abstract classes; which backend implements
them (in-memory, document store, table store) is a deployment decision.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from lineage_engine.models.lineage import (
    DocumentExtraction,
    DocumentJob,
    DocumentStatus,
    NodeRecord,
    RelationshipRecord,
)


class ExtractionSource(ABC):
    """Reads extraction documents produced by the upstream extraction step."""

    @abstractmethod
    async def fetch_extraction(self, bucket: str, key: str) -> DocumentExtraction:
        """Return the extraction stored under ``bucket``/``key``.

        Raises:
            ExtractionFetchError: If the document cannot be read or decoded
        """
        raise NotImplementedError


class JobRepository(ABC):
    """Stores document jobs and their status transitions."""

    @abstractmethod
    async def create_job(self, document_id: str, bucket: str = "", key: str = "") -> DocumentJob:
        raise NotImplementedError

    @abstractmethod
    async def update_status(
        self,
        document_id: str,
        status: DocumentStatus,
        error_message: Optional[str] = None,
    ) -> None:
        """Set the status of the newest job for ``document_id``.

        Raises:
            JobNotFoundError: If no job exists for the document
        """
        raise NotImplementedError

    @abstractmethod
    async def find_by_document_id(self, document_id: str) -> List[DocumentJob]:
        """Return the jobs of a document, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, job_id: str) -> Optional[DocumentJob]:
        raise NotImplementedError


class NodeRepository(ABC):
    """Stores lineage nodes."""

    @abstractmethod
    async def bulk_create(self, nodes: Sequence[NodeRecord]) -> List[NodeRecord]:
        """Persist nodes, returning them in input order with assigned ids."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_job_id(self, job_id: str) -> List[NodeRecord]:
        raise NotImplementedError

    @abstractmethod
    async def find_by_node_type(self, node_type: str) -> List[NodeRecord]:
        raise NotImplementedError


class RelationshipRepository(ABC):
    """Stores lineage relationships."""

    @abstractmethod
    async def bulk_create(
        self, relationships: Sequence[RelationshipRecord]
    ) -> List[RelationshipRecord]:
        """Persist relationships, returning them in input order with assigned ids."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_job_id(self, job_id: str) -> List[RelationshipRecord]:
        raise NotImplementedError

    @abstractmethod
    async def find_all(self) -> List[RelationshipRecord]:
        raise NotImplementedError
