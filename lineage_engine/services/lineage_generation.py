"""
Per-entity lineage generation: prompt, invoke and parse one entity at a time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from lineage_engine.llm.model_invoker import ResilientModelInvoker
from lineage_engine.models.lineage import DocumentExtraction, LineageMapping, LogicalEntity
from lineage_engine.services.prompt_builder import LineagePromptBuilder
from lineage_engine.services.response_parser import parse_lineage_response
from lineage_engine.utils.constants import DEFAULT_JOB_PREFIX
from lineage_engine.utils.exceptions import LineageEngineError, NoMappingsGeneratedError

logger = logging.getLogger(__name__)


@dataclass
class EntityFailure:
    """An entity whose mapping could not be generated."""

    entity_id: str
    error_type: str
    message: str


@dataclass
class EntityGenerationReport:
    """Summary of one document's per-entity generation run."""

    mappings: List[LineageMapping] = field(default_factory=list)
    succeeded: List[str] = field(default_factory=list)
    failed: List[EntityFailure] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable summary."""
        return {
            "succeeded": list(self.succeeded),
            "failed": [
                {"entity_id": f.entity_id, "error_type": f.error_type, "message": f.message}
                for f in self.failed
            ],
            "node_count": sum(len(m.lineage_nodes) for m in self.mappings),
            "relationship_count": sum(len(m.lineage_relationships) for m in self.mappings),
        }


class LineageGenerationService:
    """Generates one lineage mapping per logical entity, sequentially."""

    def __init__(
        self,
        invoker: ResilientModelInvoker,
        prompt_builder: Optional[LineagePromptBuilder] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.invoker = invoker
        self.prompt_builder = prompt_builder or LineagePromptBuilder()
        self._logger = log or logger

    async def generate_entity_mapping(
        self,
        entity: LogicalEntity,
        extraction: DocumentExtraction,
        job_id: str = DEFAULT_JOB_PREFIX,
    ) -> LineageMapping:
        """Run prompt -> model -> parse for a single entity."""
        prompt = self.prompt_builder.build_entity_prompt(
            entity,
            extraction.relationships_for(entity.entity_id),
            job_id=job_id,
        )
        raw_text = await self.invoker.invoke(prompt)
        return parse_lineage_response(raw_text, log=self._logger)

    async def generate_entity_mappings(
        self,
        extraction: DocumentExtraction,
        job_id: str = DEFAULT_JOB_PREFIX,
        document_id: str = "-",
    ) -> EntityGenerationReport:
        """
        Generate mappings for every logical entity in document order.

        A failing entity is logged and skipped; it never aborts the others.

        Raises:
            NoMappingsGeneratedError: If no entity produced a mapping
        """
        report = EntityGenerationReport()
        entities = extraction.logical_entities
        log_extra = {"document_id": document_id}

        for position, entity in enumerate(entities, start=1):
            self._logger.info(
                f"Generating lineage for entity {entity.entity_id} ({position}/{len(entities)})",
                extra=log_extra,
            )
            try:
                mapping = await self.generate_entity_mapping(entity, extraction, job_id=job_id)
            except LineageEngineError as exc:
                self._logger.warning(
                    f"Lineage generation failed for entity {entity.entity_id}: "
                    f"{type(exc).__name__}: {exc}",
                    extra={**log_extra, "raw_response": getattr(exc, "raw_text", None)},
                )
                report.failed.append(
                    EntityFailure(
                        entity_id=entity.entity_id,
                        error_type=type(exc).__name__,
                        message=str(exc),
                    )
                )
                continue

            report.mappings.append(mapping)
            report.succeeded.append(entity.entity_id)

        if not report.mappings:
            raise NoMappingsGeneratedError(
                f"No entity mappings generated ({len(report.failed)} of "
                f"{len(entities)} entities failed)"
            )
        return report
