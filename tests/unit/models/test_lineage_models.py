import pytest
from pydantic import ValidationError

from lineage_engine.models.lineage import (
    Attribute,
    DocumentExtraction,
    DocumentProcessRequest,
    EntityRelationship,
    LineageNode,
    NodeRecord,
)


def test_attribute_sample_values_are_strings():
    attribute = Attribute(attribute_name="quantity", sample_values=[100, 2.5, True])

    assert attribute.sample_values == ["100", "2.5", "True"]
    assert Attribute(attribute_name="empty", sample_values=None).sample_values == []


def test_entity_relationship_confidence_is_bounded():
    with pytest.raises(ValidationError):
        EntityRelationship(source_entity="a", target_entity="b", confidence=1.5)


def test_relationships_for_entity():
    extraction = DocumentExtraction.model_validate(
        {
            "extraction": {
                "data_relationships": {
                    "entity_relationships": [
                        {"source_entity": "a", "target_entity": "b"},
                        {"source_entity": "c", "target_entity": "a"},
                        {"source_entity": "b", "target_entity": "c"},
                    ]
                }
            }
        }
    )

    related = extraction.relationships_for("a")

    assert [(r.source_entity, r.target_entity) for r in related] == [("a", "b"), ("c", "a")]
    assert extraction.logical_entities == []


def test_lineage_node_dedup_key_falls_back_to_node_id():
    named = LineageNode.model_validate(
        {"nodeId": "n1", "nodeType": "Table", "nodeName": "t", "qualifiedName": "domain.t"}
    )
    unnamed = LineageNode.model_validate({"nodeId": "n2", "nodeType": "column", "nodeName": "c"})

    assert named.dedup_key == "domain.t"
    assert named.is_table
    assert unnamed.dedup_key == "n2"
    assert unnamed.is_column


def test_request_accepts_camel_case():
    request = DocumentProcessRequest.model_validate(
        {"bucket": "b", "key": "k.json", "documentId": "doc-1"}
    )

    assert request.document_id == "doc-1"
    assert request.to_wire() == {"bucket": "b", "key": "k.json", "documentId": "doc-1"}


def test_node_record_nested_metadata_round_trips_to_wire():
    record = NodeRecord(
        job_id="job-1",
        node_type="column",
        node_name="quantity",
        metadata={"description": "Units", "confidence_score": 0.9, "tags": {"pii": False}},
    )

    wire = record.to_wire()

    assert wire["jobId"] == "job-1"
    assert wire["metadata"]["tags"] == {"pii": False}
    assert wire["isVerified"] is False
