import json
import re
from typing import Dict, List, Union
from unittest.mock import AsyncMock

import pytest

from lineage_engine.llm.model_invoker import ResilientModelInvoker
from lineage_engine.llm.remote_clients import ModelClient
from lineage_engine.models.lineage import DocumentExtraction
from lineage_engine.services.lineage_generation import LineageGenerationService
from lineage_engine.utils.exceptions import (
    ModelInvocationError,
    NoMappingsGeneratedError,
    RateLimitError,
)

EXTRACTION = {
    "extraction": {
        "extracted_data_entities": {
            "logical_entities": [
                {"entity_id": "customer", "entity_name": "Customer", "attributes": []},
                {"entity_id": "sales_order", "entity_name": "Sales Order", "attributes": []},
                {"entity_id": "invoice", "entity_name": "Invoice", "attributes": []},
            ]
        },
        "data_relationships": {
            "entity_relationships": [
                {
                    "source_entity": "customer",
                    "target_entity": "sales_order",
                    "description": "Customers place orders",
                    "confidence": 0.9,
                }
            ]
        },
    }
}


def table_response(entity_id: str) -> str:
    return json.dumps(
        {
            "lineageNodes": [
                {
                    "nodeId": f"job1_{entity_id}",
                    "nodeType": "table",
                    "nodeName": entity_id,
                    "qualifiedName": f"domain.{entity_id}",
                    "metadata": {"confidence_score": 0.9},
                }
            ],
            "lineageRelationships": [],
        }
    )


class EntityRoutedClient(ModelClient):
    """Answers per entity named in the prompt."""

    def __init__(self, answers: Dict[str, Union[str, Exception]]):
        self.answers = answers
        self.prompts: List[str] = []

    async def invoke_model(self, prompt: str) -> str:
        self.prompts.append(prompt)
        entity_id = re.search(r"Entity to process: (\S+)", prompt).group(1)
        answer = self.answers[entity_id]
        if isinstance(answer, Exception):
            raise answer
        return answer


def make_service(client: ModelClient) -> LineageGenerationService:
    invoker = ResilientModelInvoker(client, max_retries=1, jitter_ratio=0.0, sleep=AsyncMock())
    return LineageGenerationService(invoker)


@pytest.mark.asyncio
async def test_generates_one_mapping_per_entity_in_order():
    client = EntityRoutedClient(
        {e: table_response(e) for e in ("customer", "sales_order", "invoice")}
    )
    extraction = DocumentExtraction.model_validate(EXTRACTION)

    report = await make_service(client).generate_entity_mappings(extraction, job_id="job1")

    assert report.succeeded == ["customer", "sales_order", "invoice"]
    assert report.failed == []
    assert [m.lineage_nodes[0].node_id for m in report.mappings] == [
        "job1_customer",
        "job1_sales_order",
        "job1_invoice",
    ]
    # Only the relationships touching an entity reach its prompt
    assert "Customers place orders" in client.prompts[0]
    assert "Customers place orders" not in client.prompts[2]


@pytest.mark.asyncio
async def test_failing_entities_do_not_abort_the_others():
    client = EntityRoutedClient(
        {
            "customer": ModelInvocationError("OpenRouter API error: 400"),
            "sales_order": table_response("sales_order"),
            "invoice": "Sorry, no JSON today",
        }
    )
    extraction = DocumentExtraction.model_validate(EXTRACTION)

    report = await make_service(client).generate_entity_mappings(extraction)

    assert report.succeeded == ["sales_order"]
    assert [(f.entity_id, f.error_type) for f in report.failed] == [
        ("customer", "ModelInvocationError"),
        ("invoice", "ResponseParseError"),
    ]
    summary = report.to_dict()
    assert summary["node_count"] == 1
    assert summary["failed"][0]["entity_id"] == "customer"


@pytest.mark.asyncio
async def test_exhausted_retries_fail_only_that_entity():
    client = EntityRoutedClient(
        {
            "customer": table_response("customer"),
            "sales_order": RateLimitError(),
            "invoice": table_response("invoice"),
        }
    )
    extraction = DocumentExtraction.model_validate(EXTRACTION)

    report = await make_service(client).generate_entity_mappings(extraction)

    assert report.succeeded == ["customer", "invoice"]
    assert [f.error_type for f in report.failed] == ["RetriesExhausted"]


@pytest.mark.asyncio
async def test_all_entities_failing_raises():
    client = EntityRoutedClient(
        {e: ModelInvocationError("bad request") for e in ("customer", "sales_order", "invoice")}
    )
    extraction = DocumentExtraction.model_validate(EXTRACTION)

    with pytest.raises(NoMappingsGeneratedError, match="3 of 3"):
        await make_service(client).generate_entity_mappings(extraction)


@pytest.mark.asyncio
async def test_document_without_entities_raises():
    client = EntityRoutedClient({})

    with pytest.raises(NoMappingsGeneratedError):
        await make_service(client).generate_entity_mappings(DocumentExtraction())
