"""Structured logging helpers for the SQL advisor service."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import uuid4

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from sql_advisor.core.config import get_settings


_LOGGER_NAME = "sql_advisor"
_EVENT_COLLECTION = None
_EVENT_COLLECTION_READY = False
_EVENT_COLLECTION_FAILED = False
_EVENT_COLLECTION_NAME = "app_events"


def get_logger() -> logging.Logger:
    """Return a shared logger instance."""
    logger = logging.getLogger(_LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(get_settings().log_level)
    handler = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger


def new_request_id() -> str:
    """Generate a request id to trace a single analysis."""
    return f"sa-{uuid4().hex[:12]}"


def _get_event_collection():
    global _EVENT_COLLECTION, _EVENT_COLLECTION_READY, _EVENT_COLLECTION_FAILED
    if _EVENT_COLLECTION_READY:
        return _EVENT_COLLECTION
    if _EVENT_COLLECTION_FAILED:
        return None

    settings = get_settings()
    if not settings.mongo_uri:
        _EVENT_COLLECTION_FAILED = True
        return None

    try:
        client = MongoClient(settings.mongo_uri, serverSelectionTimeoutMS=2000)
        collection = client[settings.mongo_db][_EVENT_COLLECTION_NAME]
        collection.create_index([("ts", 1)])
        collection.create_index([("event", 1), ("ts", -1)])
        _EVENT_COLLECTION = collection
        _EVENT_COLLECTION_READY = True
        return _EVENT_COLLECTION
    except Exception:
        _EVENT_COLLECTION_FAILED = True
        return None


def log_event(
    event: str,
    payload: Dict[str, Any] | None = None,
    *,
    level: str = "info",
) -> None:
    """Write one structured log event in JSON format."""
    logger = get_logger()
    data: Dict[str, Any] = {
        "event": event,
        "ts": datetime.now(timezone.utc).isoformat(),
        "service": "sql-advisor",
        "level": level.lower(),
    }
    if payload:
        data.update(payload)

    message = json.dumps(data, ensure_ascii=False, default=str)
    writer = getattr(logger, level.lower(), logger.info)
    writer("%s", message)

    collection = _get_event_collection()
    if collection is not None:
        try:
            # Round-trip through JSON so the stored document matches the log line.
            collection.insert_one(json.loads(message))
        except PyMongoError:
            pass
