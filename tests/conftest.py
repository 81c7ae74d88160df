from __future__ import annotations

import pytest

from sql_advisor.core.config import reset_settings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    for name in (
        "OPENAI_API_KEY",
        "OPENAI_MODEL",
        "MONGODB_URI",
        "MAX_SQL_TEXT_LENGTH",
        "PLAN_CHAR_LIMIT",
        "LLM_TIMEOUT_SEC",
        "CORS_ALLOW_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()
