from __future__ import annotations

from dataclasses import dataclass
import re

from sql_advisor.services.advisor.sql_view import mask_non_code


_COLUMN = r"(?P<col>[A-Za-z_\[\"`][A-Za-z0-9_\.\[\]\"`]*)"
_YEAR = r"(?P<yyyy>(?:19|20)\d{2})(?!\d)"

# Tried in order; only the first pattern type that matches is applied.
_DATE_PART_EQUALITY: tuple[tuple[str, re.Pattern[str]], ...] = (
    (
        "year_function",
        re.compile(rf"\bYEAR\s*\(\s*{_COLUMN}\s*\)\s*=\s*{_YEAR}", re.IGNORECASE),
    ),
    (
        "datepart_year",
        re.compile(
            rf"\bDATEPART\s*\(\s*(?:YEAR|YYYY|YY)\s*,\s*{_COLUMN}\s*\)\s*=\s*{_YEAR}",
            re.IGNORECASE,
        ),
    ),
    (
        "extract_year",
        re.compile(rf"\bEXTRACT\s*\(\s*YEAR\s+FROM\s+{_COLUMN}\s*\)\s*=\s*{_YEAR}", re.IGNORECASE),
    ),
)


@dataclass(frozen=True)
class RewriteOutcome:
    rewrite_sql: str | None
    # True when a structural rewrite was substituted into the query
    structural: bool = False
    pattern: str | None = None


def _year_range(column: str, year: int) -> str:
    return f"({column} >= '{year:04d}-01-01' AND {column} < '{year + 1:04d}-01-01')"


def rewrite_date_part_equality(sql: str, dbms: str | None = None) -> tuple[str, str] | None:
    """Replace the first ``FUNC(col) = YYYY`` with a parenthesized half-open date range.

    Comments and string literals are never matched. Returns
    ``(rewritten_sql, pattern_name)`` or None when nothing matched.
    """
    text = str(sql or "")
    code = mask_non_code(text, dbms)
    for name, pattern in _DATE_PART_EQUALITY:
        match = pattern.search(code)
        if not match:
            continue
        replacement = _year_range(match.group("col"), int(match.group("yyyy")))
        return text[: match.start()] + replacement + text[match.end() :], name
    return None


def synthesize_rewrite(normalized_sql: str, guidance: list[str], dbms: str | None = None) -> RewriteOutcome:
    structural = rewrite_date_part_equality(normalized_sql, dbms)
    if structural is not None:
        rewritten, name = structural
        return RewriteOutcome(rewrite_sql=rewritten, structural=True, pattern=name)
    if guidance:
        return RewriteOutcome(rewrite_sql="\n".join(guidance))
    return RewriteOutcome(rewrite_sql=None)
