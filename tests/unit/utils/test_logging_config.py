import logging
from datetime import datetime, timezone

from lineage_engine.utils.clock import isoformat, uuid_id_generator
from lineage_engine.utils.logging_config import DocumentIDFilter, setup_logging


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "message", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_document_id_filter_adds_placeholder():
    record = make_record()

    assert DocumentIDFilter().filter(record)
    assert record.document_id == "-"


def test_document_id_filter_keeps_existing_id():
    record = make_record(document_id="doc-1")

    DocumentIDFilter().filter(record)

    assert record.document_id == "doc-1"


def test_setup_logging_sets_level_and_quiets_http_clients():
    setup_logging(level="DEBUG")

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING


def test_clock_helpers():
    assert isoformat(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)) == "2024-05-01T12:00:00Z"
    assert uuid_id_generator("node").startswith("node-")
