from __future__ import annotations

import re

import sqlparse

from sql_advisor.utils.logging import log_event


_WS_RE = re.compile(r"\s+")


def normalize_sql(sql: str) -> str:
    """Upper-case keywords and reindent; returns the input unchanged if formatting fails."""
    text = str(sql or "")
    try:
        formatted = sqlparse.format(text, keyword_case="upper", reindent=True)
    except Exception as exc:
        log_event("normalize.error", {"error": str(exc), "sql_len": len(text)}, level="warning")
        return text
    formatted = str(formatted or "").strip()
    return formatted or text


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", str(text or "")).strip()


def comparable_text(text: str) -> str:
    """Whitespace-collapsed, lower-cased form used for echo detection."""
    return collapse_whitespace(text).lower()
