import pytest

from lineage_engine.models.lineage import Attribute, EntityRelationship, LogicalEntity
from lineage_engine.services.prompt_builder import (
    OUTPUT_SCHEMA,
    LineagePromptBuilder,
    filter_relationships,
    infer_data_type,
    to_snake_case,
)


@pytest.fixture
def inventory_entity():
    return LogicalEntity(
        entity_id="material_inventory",
        entity_name="Material Inventory",
        entity_description="Tracks stock levels per material",
        attributes=[
            Attribute(attribute_name="inventory_id", sample_values=["INV001", "INV002"]),
            Attribute(attribute_name="Quantity", sample_values=["100", "250"]),
            Attribute(attribute_name="last_counted", sample_values=["2024-01-31"]),
        ],
    )


@pytest.fixture
def relationships():
    return [
        EntityRelationship(
            source_entity="sales_order",
            target_entity="material_inventory",
            relationship_type="references",
            description="Orders reserve inventory",
            confidence=0.92,
        ),
        EntityRelationship(
            source_entity="customer",
            target_entity="sales_order",
            description="Customers place orders",
            confidence=0.8,
        ),
    ]


@pytest.mark.parametrize(
    "samples, expected",
    [
        (["100", "250"], "number"),
        (["1.5", "-3", "2e10"], "number"),
        (["2024-01-31", "12/31/2023"], "date"),
        (["2024-01-31T10:15:00Z"], "date"),
        (["true", "FALSE"], "boolean"),
        (["INV001", "INV002"], "string"),
        (["100", "abc"], "string"),
        ([], "string"),
    ],
)
def test_infer_data_type(samples, expected):
    assert infer_data_type(samples) == expected


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Material Inventory", "material_inventory"),
        ("MaterialInventory", "material_inventory"),
        ("Sales-Order ID", "sales_order_id"),
        ("already_snake", "already_snake"),
        ("", ""),
    ],
)
def test_to_snake_case(name, expected):
    assert to_snake_case(name) == expected


def test_filter_relationships_matches_either_endpoint(inventory_entity, relationships):
    related = filter_relationships(inventory_entity, relationships)

    assert [rel.source_entity for rel in related] == ["sales_order"]


def test_prompt_names_entity_and_embeds_schema(inventory_entity, relationships):
    prompt = LineagePromptBuilder().build_entity_prompt(inventory_entity, relationships)

    assert "Entity to process: material_inventory" in prompt
    assert OUTPUT_SCHEMA in prompt
    assert '"lineageNodes"' in prompt
    assert '"lineageRelationships"' in prompt
    assert "Respond with ONLY the JSON object" in prompt


def test_prompt_includes_only_related_relationships(inventory_entity, relationships):
    prompt = LineagePromptBuilder().build_entity_prompt(inventory_entity, relationships)

    assert "Orders reserve inventory" in prompt
    assert "Customers place orders" not in prompt


def test_prompt_uses_job_and_domain_for_identifiers(inventory_entity, relationships):
    builder = LineagePromptBuilder(domain="finance")
    prompt = builder.build_entity_prompt(inventory_entity, relationships, job_id="job42")

    assert '"job42_material_inventory"' in prompt
    assert '"finance.material_inventory"' in prompt


def test_prompt_lists_inferred_type_hints(inventory_entity, relationships):
    prompt = LineagePromptBuilder().build_entity_prompt(inventory_entity, relationships)

    assert '- inventory_id: nodeName "inventory_id", data_type "string"' in prompt
    assert '- Quantity: nodeName "quantity", data_type "number"' in prompt
    assert '- last_counted: nodeName "last_counted", data_type "date"' in prompt


def test_prompt_mentions_confidence_threshold(inventory_entity):
    prompt = LineagePromptBuilder(confidence_threshold=0.85).build_entity_prompt(
        inventory_entity, []
    )

    assert "Anything below 0.85" in prompt
    assert "[]" in prompt
