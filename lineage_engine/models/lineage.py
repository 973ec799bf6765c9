"""Models for extraction input, model output and persisted lineage state."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lineage_engine.utils.constants import (
    DATA_TYPES,
    DEFAULT_RELATIONSHIP_TYPE,
    NODE_TYPE_COLUMN,
    NODE_TYPE_TABLE,
)
from lineage_engine.utils.types import Metadata


class WireModel(BaseModel):
    """Base for models exchanged with the model or API consumers in camelCase."""

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        """Return the camelCase JSON-serializable form."""
        return self.model_dump(by_alias=True, mode="json")


# ---------------------------------------------------------------------------
# Extraction input
# ---------------------------------------------------------------------------


class Attribute(BaseModel):
    """A named attribute (future column) of a logical entity."""

    model_config = ConfigDict(frozen=True)

    attribute_name: str = Field(..., description="Attribute name as extracted")
    description: str = Field("", description="Attribute purpose")
    sample_values: List[str] = Field(default_factory=list, description="Example values")

    @field_validator("sample_values", mode="before")
    @classmethod
    def _stringify_samples(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(item) for item in value]
        return value


class LogicalEntity(BaseModel):
    """A business concept discovered by upstream extraction."""

    model_config = ConfigDict(frozen=True)

    entity_id: str = Field(..., description="Identifier unique within the document")
    entity_name: str = Field(..., description="Human-readable name")
    entity_description: str = Field("", description="Purpose of the entity")
    attributes: List[Attribute] = Field(default_factory=list)


class EntityRelationship(BaseModel):
    """A relationship between two logical entities, referenced by entity_id."""

    model_config = ConfigDict(frozen=True)

    source_entity: str
    target_entity: str
    relationship_type: str = ""
    description: str = ""
    confidence: float = Field(0.0, ge=0.0, le=1.0)

    def involves(self, entity_id: str) -> bool:
        """Return True when the entity is either endpoint."""
        return entity_id in (self.source_entity, self.target_entity)


class ExtractedDataEntities(BaseModel):
    logical_entities: List[LogicalEntity] = Field(default_factory=list)


class DataRelationships(BaseModel):
    entity_relationships: List[EntityRelationship] = Field(default_factory=list)


class ExtractionPayload(BaseModel):
    extracted_data_entities: ExtractedDataEntities = Field(
        default_factory=ExtractedDataEntities
    )
    data_relationships: DataRelationships = Field(default_factory=DataRelationships)


class DocumentExtraction(BaseModel):
    """Extraction document as stored by the upstream extraction step."""

    extraction: ExtractionPayload = Field(default_factory=ExtractionPayload)

    @property
    def logical_entities(self) -> List[LogicalEntity]:
        return self.extraction.extracted_data_entities.logical_entities

    @property
    def entity_relationships(self) -> List[EntityRelationship]:
        return self.extraction.data_relationships.entity_relationships

    def relationships_for(self, entity_id: str) -> List[EntityRelationship]:
        """Relationships where the entity is source or target, in document order."""
        return [rel for rel in self.entity_relationships if rel.involves(entity_id)]


# ---------------------------------------------------------------------------
# Model output
# ---------------------------------------------------------------------------


class NodeMetadata(BaseModel):
    """Typed metadata attached to a lineage node."""

    model_config = ConfigDict(extra="ignore")

    description: str = ""
    data_type: Optional[Literal["string", "number", "boolean", "date"]] = None
    confidence_score: float = Field(0.0, ge=0.0, le=1.0)
    last_updated: Optional[str] = None

    @field_validator("description", mode="before")
    @classmethod
    def _default_description(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("data_type", mode="before")
    @classmethod
    def _normalize_data_type(cls, value: Any) -> Any:
        if value is None:
            return None
        normalized = str(value).strip().lower()
        return normalized if normalized in DATA_TYPES else "string"

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _default_confidence(cls, value: Any) -> Any:
        return 0.0 if value is None else value


class LineageNode(WireModel):
    """A table or column vertex produced by one model call."""

    node_id: str = Field(..., alias="nodeId")
    node_type: Literal["table", "column"] = Field(..., alias="nodeType")
    node_name: str = Field(..., alias="nodeName")
    qualified_name: Optional[str] = Field(None, alias="qualifiedName")
    parent_id: Optional[str] = Field(None, alias="parentId")
    metadata: NodeMetadata = Field(default_factory=NodeMetadata)

    @field_validator("node_type", mode="before")
    @classmethod
    def _normalize_node_type(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @property
    def dedup_key(self) -> str:
        """Cross-call identity: qualifiedName, falling back to nodeId."""
        return self.qualified_name or self.node_id

    @property
    def is_table(self) -> bool:
        return self.node_type == NODE_TYPE_TABLE

    @property
    def is_column(self) -> bool:
        return self.node_type == NODE_TYPE_COLUMN


class BusinessRule(BaseModel):
    description: str = ""

    @field_validator("description", mode="before")
    @classmethod
    def _default_description(cls, value: Any) -> Any:
        return "" if value is None else value


class LineageRelationship(WireModel):
    """A directed edge between two nodes of the same model call."""

    relationship_id: Optional[str] = Field(None, alias="relationshipId")
    source_node_id: str = Field(..., alias="sourceNodeId")
    target_node_id: str = Field(..., alias="targetNodeId")
    relationship_type: str = Field(DEFAULT_RELATIONSHIP_TYPE, alias="relationshipType")
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    business_rule: BusinessRule = Field(default_factory=BusinessRule, alias="businessRule")


class LineageMapping(WireModel):
    """Nodes and relationships produced by one model call."""

    lineage_nodes: List[LineageNode] = Field(default_factory=list, alias="lineageNodes")
    lineage_relationships: List[LineageRelationship] = Field(
        default_factory=list, alias="lineageRelationships"
    )


class MergedLineageMapping(LineageMapping):
    """Mapping with globally de-duplicated nodes and resolvable relationship endpoints."""

    pass


# ---------------------------------------------------------------------------
# Jobs and persisted records
# ---------------------------------------------------------------------------


class DocumentStatus(str, Enum):
    UPLOADED = "UPLOADED"  # Document has been uploaded
    PENDING = "PENDING"  # Job created, not yet picked up
    EXTRACTING = "EXTRACTING"
    EXTRACTED = "EXTRACTED"
    CLASSIFYING = "CLASSIFYING"
    CLASSIFIED = "CLASSIFIED"
    ENRICHMENTING = "ENRICHMENTING"  # Lineage generation in progress
    ENRICHMENTED = "ENRICHMENTED"  # Lineage generated and verified
    MANUAL_REVIEW = "MANUAL_REVIEW"  # At least one node below the confidence threshold
    FAILED = "FAILED"


TERMINAL_STATUSES = frozenset(
    {DocumentStatus.ENRICHMENTED, DocumentStatus.MANUAL_REVIEW, DocumentStatus.FAILED}
)


class DocumentJob(BaseModel):
    """Tracks one document's processing status."""

    job_id: str
    document_id: str
    bucket: str = ""
    key: str = ""
    status: DocumentStatus = DocumentStatus.PENDING
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None


class DocumentProcessRequest(WireModel):
    bucket: str
    key: str
    document_id: str = Field(..., alias="documentId")


class NodeRecord(WireModel):
    """A persisted lineage node."""

    node_id: str = Field("", alias="nodeId")
    job_id: str = Field(..., alias="jobId")
    node_type: str = Field(..., alias="nodeType")
    node_name: str = Field(..., alias="nodeName")
    qualified_name: str = Field("", alias="qualifiedName")
    parent_id: Optional[str] = Field(None, alias="parentId")
    metadata: Metadata = Field(default_factory=dict)
    system: str = ""
    is_verified: bool = Field(False, alias="isVerified")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")


class RelationshipRecord(WireModel):
    """A persisted lineage relationship."""

    relationship_id: str = Field("", alias="relationshipId")
    job_id: str = Field(..., alias="jobId")
    source_node_id: str = Field(..., alias="sourceNodeId")
    target_node_id: str = Field(..., alias="targetNodeId")
    relationship_type: str = Field(..., alias="relationshipType")
    business_rule: Metadata = Field(default_factory=dict, alias="businessRule")
    confidence: Optional[float] = None
    is_verified: bool = Field(False, alias="isVerified")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")


# ---------------------------------------------------------------------------
# Read projection
# ---------------------------------------------------------------------------


class MappedNode(WireModel):
    node_id: str = Field(..., alias="nodeId")
    node_type: str = Field(..., alias="nodeType")
    node_name: str = Field(..., alias="nodeName")
    qualified_name: str = Field(..., alias="qualifiedName")
    metadata: Metadata = Field(default_factory=dict)
    is_verified: bool = Field(..., alias="isVerified")


class MappedRelationship(WireModel):
    source_node: str = Field(..., alias="sourceNode")
    target_node: str = Field(..., alias="targetNode")
    relationship_type: str = Field(..., alias="relationshipType")
    business_rule: Metadata = Field(default_factory=dict, alias="businessRule")
    is_verified: bool = Field(..., alias="isVerified")


class DocumentMappings(WireModel):
    nodes: List[MappedNode] = Field(default_factory=list)
    relationships: List[MappedRelationship] = Field(default_factory=list)


class DocumentMappingResponse(WireModel):
    """Consumer-facing projection of a document's persisted lineage."""

    document_id: str = Field(..., alias="documentId")
    status: DocumentStatus
    mappings: DocumentMappings = Field(default_factory=DocumentMappings)


# Rebuild models to resolve forward references from PEP 563 (from __future__ import annotations)
for _model in (
    Attribute,
    LogicalEntity,
    EntityRelationship,
    ExtractedDataEntities,
    DataRelationships,
    ExtractionPayload,
    DocumentExtraction,
    NodeMetadata,
    LineageNode,
    BusinessRule,
    LineageRelationship,
    LineageMapping,
    MergedLineageMapping,
    DocumentJob,
    DocumentProcessRequest,
    NodeRecord,
    RelationshipRecord,
    MappedNode,
    MappedRelationship,
    DocumentMappings,
    DocumentMappingResponse,
):
    _model.model_rebuild()
