from __future__ import annotations

import json
import logging
import re

from sql_advisor.core.config import reset_settings
from sql_advisor.utils import logging as logging_utils
from sql_advisor.utils.logging import log_event, new_request_id


def test_request_ids_are_prefixed_and_unique() -> None:
    first, second = new_request_id(), new_request_id()

    assert re.fullmatch(r"sa-[0-9a-f]{12}", first)
    assert first != second


def test_log_event_writes_one_json_line(caplog) -> None:
    with caplog.at_level(logging.INFO, logger="sql_advisor"):
        log_event("analysis.start", {"request_id": "sa-000000000000", "sql_len": 42})

    record = caplog.records[-1]
    data = json.loads(record.getMessage())
    assert data["event"] == "analysis.start"
    assert data["service"] == "sql-advisor"
    assert data["sql_len"] == 42
    assert data["level"] == "info"


def test_log_event_honours_level(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="sql_advisor"):
        log_event("normalize.error", {"error": "boom"}, level="warning")

    assert caplog.records[-1].levelno == logging.WARNING


def _fresh_event_mirror(monkeypatch, uri: str) -> None:
    monkeypatch.setenv("MONGODB_URI", uri)
    monkeypatch.setattr(logging_utils, "_EVENT_COLLECTION", None)
    monkeypatch.setattr(logging_utils, "_EVENT_COLLECTION_READY", False)
    monkeypatch.setattr(logging_utils, "_EVENT_COLLECTION_FAILED", False)
    reset_settings()


def test_malformed_mongodb_uri_disables_event_mirror(monkeypatch, caplog) -> None:
    _fresh_event_mirror(monkeypatch, "mongodb://localhost:notaport")

    with caplog.at_level(logging.INFO, logger="sql_advisor"):
        log_event("analysis.start", {"sql_len": 1})
        log_event("analysis.done", {"sql_len": 1})

    assert logging_utils._EVENT_COLLECTION_FAILED is True
    assert logging_utils._EVENT_COLLECTION is None
    assert [json.loads(r.getMessage())["event"] for r in caplog.records[-2:]] == ["analysis.start", "analysis.done"]


def test_event_mirror_setup_errors_are_contained(monkeypatch) -> None:
    def _broken_client(*args, **kwargs):
        raise ValueError("Port contains non-digit characters")

    _fresh_event_mirror(monkeypatch, "mongodb://db.local:27017")
    monkeypatch.setattr(logging_utils, "MongoClient", _broken_client)

    log_event("analysis.start", {"sql_len": 1})

    assert logging_utils._EVENT_COLLECTION_FAILED is True
