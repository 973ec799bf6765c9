"""
In-memory storage backend for document jobs, lineage nodes and relationships.

Implements the repository capabilities used by the document processor.
Suitable for tests, local runs and as a reference for other backends:
ids and timestamps come from the injected id generator and clock.
"""

import logging
from typing import Dict, List, Optional, Sequence

from lineage_engine.models.lineage import (
    TERMINAL_STATUSES,
    DocumentJob,
    DocumentStatus,
    NodeRecord,
    RelationshipRecord,
)
from lineage_engine.utils.clock import Clock, IdGenerator, utc_now, uuid_id_generator
from lineage_engine.utils.exceptions import JobNotFoundError

from .repositories import JobRepository, NodeRepository, RelationshipRepository

logger = logging.getLogger(__name__)


class InMemoryJobRepository(JobRepository):
    """
    Document jobs kept in insertion order.

    The newest job of a document is the one status updates apply to.
    """

    def __init__(
        self,
        clock: Clock = utc_now,
        id_generator: IdGenerator = uuid_id_generator,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._clock = clock
        self._id_generator = id_generator
        self._logger = log or logger
        self._jobs: List[DocumentJob] = []

    async def create_job(self, document_id: str, bucket: str = "", key: str = "") -> DocumentJob:
        """
        Create a new job for a document.

        Args:
            document_id: Document identifier
            bucket: Storage bucket holding the extraction
            key: Storage key of the extraction

        Returns:
            Created job in PENDING status
        """
        now = self._clock()
        job = DocumentJob(
            job_id=self._id_generator("job"),
            document_id=document_id,
            bucket=bucket,
            key=key,
            status=DocumentStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        self._jobs.append(job)
        self._logger.info(f"Created job {job.job_id} for document {document_id}")
        return job.model_copy()

    async def update_status(
        self,
        document_id: str,
        status: DocumentStatus,
        error_message: Optional[str] = None,
    ) -> None:
        self._logger.info(f"Updating job {document_id} status to {status.value}")
        job = self._latest(document_id)
        if job is None:
            self._logger.warning(
                f"Document job not found for update with documentId {document_id}"
            )
            raise JobNotFoundError(f"Document job not found with documentId {document_id}")

        now = self._clock()
        job.status = status
        job.updated_at = now
        job.error_message = error_message
        if status in TERMINAL_STATUSES:
            job.completed_at = now

    async def find_by_document_id(self, document_id: str) -> List[DocumentJob]:
        return [
            job.model_copy()
            for job in reversed(self._jobs)
            if job.document_id == document_id
        ]

    async def find_by_id(self, job_id: str) -> Optional[DocumentJob]:
        for job in self._jobs:
            if job.job_id == job_id:
                return job.model_copy()
        return None

    def _latest(self, document_id: str) -> Optional[DocumentJob]:
        for job in reversed(self._jobs):
            if job.document_id == document_id:
                return job
        return None


class InMemoryNodeRepository(NodeRepository):
    """Lineage nodes with repository-assigned ids."""

    def __init__(
        self,
        clock: Clock = utc_now,
        id_generator: IdGenerator = uuid_id_generator,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._clock = clock
        self._id_generator = id_generator
        self._logger = log or logger
        self._nodes: Dict[str, NodeRecord] = {}

    async def bulk_create(self, nodes: Sequence[NodeRecord]) -> List[NodeRecord]:
        self._logger.info(f"Bulk creating {len(nodes)} lineage nodes")
        now = self._clock()
        created: List[NodeRecord] = []
        for node in nodes:
            record = node.model_copy(
                update={
                    "node_id": self._id_generator("node"),
                    "created_at": now,
                    "updated_at": now,
                }
            )
            self._nodes[record.node_id] = record
            created.append(record)
        return created

    async def find_by_job_id(self, job_id: str) -> List[NodeRecord]:
        return [node for node in self._nodes.values() if node.job_id == job_id]

    async def find_by_node_type(self, node_type: str) -> List[NodeRecord]:
        return [node for node in self._nodes.values() if node.node_type == node_type]


class InMemoryRelationshipRepository(RelationshipRepository):
    """Lineage relationships with repository-assigned ids."""

    def __init__(
        self,
        clock: Clock = utc_now,
        id_generator: IdGenerator = uuid_id_generator,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._clock = clock
        self._id_generator = id_generator
        self._logger = log or logger
        self._relationships: Dict[str, RelationshipRecord] = {}

    async def bulk_create(
        self, relationships: Sequence[RelationshipRecord]
    ) -> List[RelationshipRecord]:
        self._logger.info(f"Bulk creating {len(relationships)} lineage relationships")
        now = self._clock()
        created: List[RelationshipRecord] = []
        for relationship in relationships:
            record = relationship.model_copy(
                update={
                    "relationship_id": self._id_generator("rel"),
                    "created_at": now,
                    "updated_at": now,
                }
            )
            self._relationships[record.relationship_id] = record
            created.append(record)
        return created

    async def find_by_job_id(self, job_id: str) -> List[RelationshipRecord]:
        return [rel for rel in self._relationships.values() if rel.job_id == job_id]

    async def find_all(self) -> List[RelationshipRecord]:
        return list(self._relationships.values())
