from __future__ import annotations

import re

from sql_advisor.services.advisor.sql_view import SqlView


MAX_INDEX_COLUMNS = 3
TABLE_PLACEHOLDER = "<yourtable>"

# identifier = literal | placeholder; column-to-column comparisons are join keys, not candidates.
_LITERAL_OR_PLACEHOLDER = (
    r"(?:@@?[A-Z_][A-Z0-9_]*"
    r"|:[A-Z_][A-Z0-9_]*"
    r"|\$\d+"
    r"|\?"
    r"|%S"
    r"|N?'(?:[^']|'')*'"
    r"|\"[^\"]*\""
    r"|-?\d+(?:\.\d+)?)"
)
_EQUALITY_RE = re.compile(
    rf"(?<![\w\.\]\"@:])([A-Z_][A-Z0-9_\.\[\]\"]*)\s*(?<![<>!])=(?!=)\s*{_LITERAL_OR_PLACEHOLDER}(?![\w\.])"
)
_FROM_TABLE_RE = re.compile(r"\bFROM\s+([A-Z0-9_\.\[\]\"]+)")
_JOIN_TABLE_RE = re.compile(r"\bJOIN\s+([A-Z0-9_\.\[\]\"]+)")


def equality_columns(compact: str) -> list[str]:
    columns: list[str] = []
    for match in _EQUALITY_RE.finditer(compact):
        column = match.group(1).split(".")[-1].strip('[]"').lower()
        if column and column not in columns:
            columns.append(column)
    return columns[:MAX_INDEX_COLUMNS]


def target_table(compact: str) -> str:
    match = _FROM_TABLE_RE.search(compact) or _JOIN_TABLE_RE.search(compact)
    return match.group(1).lower() if match else TABLE_PLACEHOLDER


def suggest_indexes(view: SqlView) -> list[str]:
    columns = equality_columns(view.compact)
    if not columns:
        return []
    table = target_table(view.compact)
    return [f"create index ix_{columns[0]}_suggested on {table} ({', '.join(columns)});"]
