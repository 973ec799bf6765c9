"""
Document processing pipeline and job state machine.

``process_document`` drives a document job from ENRICHMENTING to
ENRICHMENTED, MANUAL_REVIEW or FAILED:

1. mark the job ENRICHMENTING
2. fetch the extraction
3. generate one mapping per logical entity
4. merge the mappings
5. persist nodes and relationships
6. gate on node confidence

Any exception fails the job with its message and is re-raised.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Mapping, Optional

from lineage_engine.config.settings import Settings
from lineage_engine.llm.model_invoker import ResilientModelInvoker
from lineage_engine.llm.remote_clients import ModelClient, OpenRouterClient
from lineage_engine.models.lineage import (
    DocumentExtraction,
    DocumentMappingResponse,
    DocumentMappings,
    DocumentProcessRequest,
    DocumentStatus,
    LineageMapping,
    LineageNode,
    MappedNode,
    MappedRelationship,
    MergedLineageMapping,
    NodeRecord,
    RelationshipRecord,
)
from lineage_engine.services.lineage_generation import LineageGenerationService
from lineage_engine.services.mapping_merger import MappingMerger
from lineage_engine.services.prompt_builder import LineagePromptBuilder
from lineage_engine.storage.extraction_source import LocalExtractionSource
from lineage_engine.storage.memory_store import (
    InMemoryJobRepository,
    InMemoryNodeRepository,
    InMemoryRelationshipRepository,
)
from lineage_engine.storage.repositories import (
    ExtractionSource,
    JobRepository,
    NodeRepository,
    RelationshipRepository,
)
from lineage_engine.utils.constants import CONFIDENCE_THRESHOLD, DEFAULT_SYSTEM
from lineage_engine.utils.exceptions import (
    ExtractionFetchError,
    JobNotFoundError,
    PersistenceError,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Mapping[DocumentStatus, FrozenSet[DocumentStatus]] = {
    DocumentStatus.PENDING: frozenset({DocumentStatus.ENRICHMENTING, DocumentStatus.FAILED}),
    DocumentStatus.EXTRACTED: frozenset({DocumentStatus.ENRICHMENTING, DocumentStatus.FAILED}),
    DocumentStatus.CLASSIFIED: frozenset({DocumentStatus.ENRICHMENTING, DocumentStatus.FAILED}),
    DocumentStatus.ENRICHMENTING: frozenset(
        {DocumentStatus.ENRICHMENTED, DocumentStatus.MANUAL_REVIEW, DocumentStatus.FAILED}
    ),
    # Re-processing a finished document starts a fresh enrichment
    DocumentStatus.ENRICHMENTED: frozenset({DocumentStatus.ENRICHMENTING}),
    DocumentStatus.MANUAL_REVIEW: frozenset({DocumentStatus.ENRICHMENTING}),
    DocumentStatus.FAILED: frozenset({DocumentStatus.ENRICHMENTING}),
}


def is_verified(confidence: Optional[float], threshold: float = CONFIDENCE_THRESHOLD) -> bool:
    return confidence is not None and confidence >= threshold


def decide_job_status(
    mapping: LineageMapping, threshold: float = CONFIDENCE_THRESHOLD
) -> DocumentStatus:
    """ENRICHMENTED when every node meets the threshold, else MANUAL_REVIEW."""
    all_verified = all(
        is_verified(node.metadata.confidence_score, threshold) for node in mapping.lineage_nodes
    )
    return DocumentStatus.ENRICHMENTED if all_verified else DocumentStatus.MANUAL_REVIEW


class DocumentProcessor:
    """Runs the lineage pipeline for one document at a time per call."""

    def __init__(
        self,
        extraction_source: ExtractionSource,
        generation_service: LineageGenerationService,
        job_repository: JobRepository,
        node_repository: NodeRepository,
        relationship_repository: RelationshipRepository,
        merger: Optional[MappingMerger] = None,
        confidence_threshold: float = CONFIDENCE_THRESHOLD,
        system: str = DEFAULT_SYSTEM,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.extraction_source = extraction_source
        self.generation_service = generation_service
        self.job_repository = job_repository
        self.node_repository = node_repository
        self.relationship_repository = relationship_repository
        self.merger = merger or MappingMerger()
        self.confidence_threshold = confidence_threshold
        self.system = system
        self._logger = log or logger

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        model_client: Optional[ModelClient] = None,
        job_repository: Optional[JobRepository] = None,
    ) -> "DocumentProcessor":
        """
        Wire a processor from settings with the bundled local backends.

        Args:
            settings: Application settings
            model_client: Model client to use instead of OpenRouter
            job_repository: Shared job repository (a new in-memory one otherwise)

        Returns:
            Configured DocumentProcessor
        """
        client = model_client or OpenRouterClient.from_settings(settings.openrouter)
        pipeline = settings.pipeline
        generation_service = LineageGenerationService(
            ResilientModelInvoker.from_settings(client, settings.retry),
            prompt_builder=LineagePromptBuilder(
                domain=pipeline.domain,
                confidence_threshold=pipeline.confidence_threshold,
            ),
        )
        return cls(
            extraction_source=LocalExtractionSource(settings.storage.extraction_root),
            generation_service=generation_service,
            job_repository=job_repository or InMemoryJobRepository(),
            node_repository=InMemoryNodeRepository(),
            relationship_repository=InMemoryRelationshipRepository(),
            confidence_threshold=pipeline.confidence_threshold,
            system=pipeline.system,
        )

    async def process_document(self, request: DocumentProcessRequest) -> None:
        """
        Run the full lineage pipeline for a document.

        Args:
            request: Storage location of the extraction and the document id

        Raises:
            Exception: Any pipeline failure, after the job is marked FAILED
        """
        document_id = request.document_id
        log_extra = {"document_id": document_id}
        self._logger.info(
            f"Processing document {document_id} from {request.bucket}/{request.key}",
            extra=log_extra,
        )

        try:
            job_id = await self._resolve_job_id(document_id)
            await self._transition(document_id, DocumentStatus.ENRICHMENTING)

            extraction = await self._fetch_extraction(request)
            report = await self.generation_service.generate_entity_mappings(
                extraction, job_id=job_id, document_id=document_id
            )
            if report.failed:
                self._logger.warning(
                    f"{len(report.failed)} entities failed: "
                    f"{[failure.entity_id for failure in report.failed]}",
                    extra=log_extra,
                )

            merged = self.merger.merge(report.mappings)
            await self._persist(job_id, merged)

            status = decide_job_status(merged, self.confidence_threshold)
            await self._transition(document_id, status)
            self._logger.info(
                f"Document {document_id} finished with status {status.value}", extra=log_extra
            )
        except Exception as exc:
            self._logger.error(f"Failed to process document {document_id}: {exc}", extra=log_extra)
            await self._record_failure(document_id, str(exc) or type(exc).__name__)
            raise

    async def get_document_with_mappings(self, document_id: str) -> DocumentMappingResponse:
        """Project the newest job of a document and its persisted lineage."""
        jobs = await self.job_repository.find_by_document_id(document_id)
        if not jobs:
            raise JobNotFoundError(f"Document job not found with documentId {document_id}")
        job = jobs[0]

        nodes = await self.node_repository.find_by_job_id(job.job_id)
        relationships = await self.relationship_repository.find_by_job_id(job.job_id)

        return DocumentMappingResponse(
            document_id=document_id,
            status=job.status,
            mappings=DocumentMappings(
                nodes=[
                    MappedNode(
                        node_id=node.node_id,
                        node_type=node.node_type,
                        node_name=node.node_name,
                        qualified_name=node.qualified_name,
                        metadata=node.metadata,
                        is_verified=node.is_verified,
                    )
                    for node in nodes
                ],
                relationships=[
                    MappedRelationship(
                        source_node=rel.source_node_id,
                        target_node=rel.target_node_id,
                        relationship_type=rel.relationship_type,
                        business_rule=rel.business_rule,
                        is_verified=rel.is_verified,
                    )
                    for rel in relationships
                ],
            ),
        )

    async def _resolve_job_id(self, document_id: str) -> str:
        jobs = await self.job_repository.find_by_document_id(document_id)
        if not jobs:
            raise JobNotFoundError(f"Document job not found with documentId {document_id}")
        return jobs[0].job_id

    async def _fetch_extraction(self, request: DocumentProcessRequest) -> DocumentExtraction:
        try:
            return await self.extraction_source.fetch_extraction(request.bucket, request.key)
        except ExtractionFetchError:
            raise
        except Exception as exc:
            raise ExtractionFetchError(
                f"Failed to fetch extraction {request.bucket}/{request.key}: {exc}"
            ) from exc

    async def _transition(
        self,
        document_id: str,
        status: DocumentStatus,
        error_message: Optional[str] = None,
    ) -> None:
        jobs = await self.job_repository.find_by_document_id(document_id)
        if jobs:
            current = jobs[0].status
            if status not in ALLOWED_TRANSITIONS.get(current, frozenset()):
                self._logger.warning(
                    f"Unexpected job transition {current.value} -> {status.value}",
                    extra={"document_id": document_id},
                )
        await self.job_repository.update_status(document_id, status, error_message)

    async def _record_failure(self, document_id: str, message: str) -> None:
        try:
            await self._transition(document_id, DocumentStatus.FAILED, message)
        except Exception as exc:
            self._logger.error(
                f"Could not record FAILED status for document {document_id}: {exc}",
                extra={"document_id": document_id},
            )

    async def _persist(self, job_id: str, merged: MergedLineageMapping) -> None:
        try:
            # Tables first so column parent ids can point at persisted table ids
            roots = [node for node in merged.lineage_nodes if node.is_table]
            children = [node for node in merged.lineage_nodes if node.is_column]

            created_roots = await self.node_repository.bulk_create(
                [self._node_record(job_id, node, None) for node in roots]
            )
            persisted_ids: Dict[str, str] = {
                node.node_id: record.node_id for node, record in zip(roots, created_roots)
            }
            created_children = await self.node_repository.bulk_create(
                [
                    self._node_record(job_id, node, persisted_ids.get(node.parent_id))
                    for node in children
                ]
            )
            persisted_ids.update(
                {node.node_id: record.node_id for node, record in zip(children, created_children)}
            )

            relationship_records = [
                RelationshipRecord(
                    job_id=job_id,
                    source_node_id=persisted_ids[rel.source_node_id],
                    target_node_id=persisted_ids[rel.target_node_id],
                    relationship_type=rel.relationship_type,
                    business_rule=rel.business_rule.model_dump(mode="json"),
                    confidence=rel.confidence,
                    is_verified=is_verified(rel.confidence, self.confidence_threshold),
                )
                for rel in merged.lineage_relationships
            ]
            await self.relationship_repository.bulk_create(relationship_records)
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError(f"Failed to persist lineage for job {job_id}: {exc}") from exc

        self._logger.info(
            f"Persisted {len(persisted_ids)} nodes and {len(relationship_records)} "
            f"relationships for job {job_id}"
        )

    def _node_record(
        self, job_id: str, node: LineageNode, parent_id: Optional[str]
    ) -> NodeRecord:
        return NodeRecord(
            job_id=job_id,
            node_type=node.node_type,
            node_name=node.node_name,
            qualified_name=node.dedup_key,
            parent_id=parent_id,
            metadata=node.metadata.model_dump(mode="json", exclude_none=True),
            system=self.system,
            is_verified=is_verified(node.metadata.confidence_score, self.confidence_threshold),
        )
