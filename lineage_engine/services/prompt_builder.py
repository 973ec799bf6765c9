"""Prompt construction for per-entity lineage generation."""

from __future__ import annotations

import json
import re
from typing import Iterable, List, Sequence

from lineage_engine.models.lineage import EntityRelationship, LogicalEntity
from lineage_engine.utils.constants import (
    CONFIDENCE_THRESHOLD,
    DEFAULT_DOMAIN,
    DEFAULT_JOB_PREFIX,
    DEFAULT_RELATIONSHIP_TYPE,
)

_NUMBER_PATTERN = re.compile(r"^[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?$")
_DATE_PATTERNS = (
    re.compile(r"^\d{4}-\d{2}-\d{2}$"),  # YYYY-MM-DD
    re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$"),  # MM/DD/YYYY
    re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?$"),
)
_BOOLEAN_LITERALS = {"true", "false"}

OUTPUT_SCHEMA = """{
  "lineageNodes": [
    {
      "nodeId": "string",
      "nodeType": "table" | "column",
      "nodeName": "string",
      "qualifiedName": "string",
      "parentId": "string" | null,
      "metadata": {
        "description": "string",
        "data_type": "string" | "number" | "boolean" | "date",
        "confidence_score": 0.0,
        "last_updated": "ISO-8601 datetime string"
      }
    }
  ],
  "lineageRelationships": [
    {
      "relationshipId": "string",
      "sourceNodeId": "string",
      "targetNodeId": "string",
      "relationshipType": "string",
      "confidence": 0.0,
      "businessRule": {
        "description": "string"
      }
    }
  ]
}"""


def to_snake_case(name: str) -> str:
    """Normalize a name to lower_snake_case ("Material Inventory" -> "material_inventory")."""
    if not name:
        return ""
    spaced = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name.strip())
    normalized = re.sub(r"[^A-Za-z0-9]+", "_", spaced).lower()
    return normalized.strip("_")


def infer_data_type(sample_values: Iterable[str]) -> str:
    """
    Infer a column data type from sample values.

    Rules, in order: all numeric -> "number"; all common date patterns ->
    "date"; all true/false literals -> "boolean"; otherwise "string".
    An empty sample list is "string".
    """
    values = [str(value).strip() for value in sample_values if str(value).strip()]
    if not values:
        return "string"
    if all(_NUMBER_PATTERN.match(value) for value in values):
        return "number"
    if all(any(pattern.match(value) for pattern in _DATE_PATTERNS) for value in values):
        return "date"
    if all(value.lower() in _BOOLEAN_LITERALS for value in values):
        return "boolean"
    return "string"


def filter_relationships(
    entity: LogicalEntity, relationships: Iterable[EntityRelationship]
) -> List[EntityRelationship]:
    """Relationships where the entity is source or target, compared by entity_id."""
    return [rel for rel in relationships if rel.involves(entity.entity_id)]


class LineagePromptBuilder:
    """Builds a schema-constrained lineage prompt for one logical entity."""

    def __init__(
        self,
        domain: str = DEFAULT_DOMAIN,
        confidence_threshold: float = CONFIDENCE_THRESHOLD,
    ) -> None:
        self.domain = domain
        self.confidence_threshold = confidence_threshold

    def build_entity_prompt(
        self,
        entity: LogicalEntity,
        relationships: Sequence[EntityRelationship],
        job_id: str = DEFAULT_JOB_PREFIX,
    ) -> str:
        """Build the lineage generation prompt for one entity."""
        related = filter_relationships(entity, relationships)
        entity_json = json.dumps(entity.model_dump(mode="json"), indent=2)
        relationships_json = json.dumps(
            [rel.model_dump(mode="json") for rel in related], indent=2
        )
        table_node_id = f"{job_id}_{entity.entity_id}"
        table_qualified_name = f"{self.domain}.{entity.entity_id}"

        return (
            "You are a data architecture assistant. Transform the extracted entity "
            "and its relationships below into a lineage graph of table and column nodes.\n\n"
            f"Entity to process: {entity.entity_id}\n\n"
            "## Extracted entity\n"
            f"{entity_json}\n\n"
            "## Entity relationships\n"
            f"{relationships_json}\n\n"
            "## Required output schema\n"
            "Return exactly one JSON object with these keys and no others:\n"
            f"{OUTPUT_SCHEMA}\n\n"
            "## Node rules\n"
            f'- Emit one node with nodeType "table" for the entity: nodeId "{table_node_id}", '
            f'qualifiedName "{table_qualified_name}", parentId null.\n'
            '- Emit one node with nodeType "column" per attribute: nodeId '
            f'"{table_node_id}_<attribute_name>", qualifiedName '
            f'"{table_qualified_name}.<attribute_name>", parentId "{table_node_id}".\n'
            '- nodeType must be exactly "table" or "column". parentId must be null '
            "(JSON null, not a string) for tables and the parent table's nodeId for columns.\n"
            "- For every related entity in the relationships, also emit a table node "
            f'with nodeId "{job_id}_<entity_id>" and qualifiedName "{self.domain}.<entity_id>" '
            "so every relationship endpoint exists in lineageNodes.\n\n"
            "## Naming rules\n"
            "- nodeName is lower_snake_case: lowercase, spaces and punctuation replaced "
            "by single underscores.\n"
            "- qualifiedName segments use the entity_id and attribute_name values, "
            "normalized the same way.\n\n"
            "## Data type inference rules\n"
            'Set metadata.data_type on column nodes only, applying these rules in order:\n'
            '- all sample_values numeric (decimals allowed): "number"\n'
            '- all sample_values match a date pattern (YYYY-MM-DD, MM/DD/YYYY, ISO datetime): "date"\n'
            '- all sample_values are "true" or "false" (case insensitive): "boolean"\n'
            '- otherwise: "string"\n'
            "Pre-computed hints for this entity:\n"
            f"{self._attribute_hints(entity)}\n\n"
            "## Relationship rules\n"
            "- One lineageRelationship per entity relationship, between the two table nodes.\n"
            f'- relationshipId "{job_id}_<source_entity>_<target_entity>", relationshipType '
            f'"{DEFAULT_RELATIONSHIP_TYPE}" unless another type is clearly stated.\n'
            "- confidence copies the input confidence; businessRule.description copies the "
            "relationship description.\n"
            "- sourceNodeId and targetNodeId must be nodeIds present in lineageNodes.\n\n"
            "## Confidence rules\n"
            "- metadata.confidence_score is a number between 0.0 and 1.0.\n"
            "- Complete descriptions and clear sample values: 0.8-1.0.\n"
            "- Partial descriptions or unclear names: 0.6-0.8.\n"
            f"- Anything below {self.confidence_threshold} is routed to manual review, "
            "so do not inflate scores.\n\n"
            "Respond with ONLY the JSON object. Do not add explanations, markdown "
            "fences or any text before or after it."
        )

    def _attribute_hints(self, entity: LogicalEntity) -> str:
        if not entity.attributes:
            return "- (no attributes)"
        return "\n".join(
            f"- {attribute.attribute_name}: nodeName "
            f'"{to_snake_case(attribute.attribute_name)}", data_type '
            f'"{infer_data_type(attribute.sample_values)}"'
            for attribute in entity.attributes
        )
