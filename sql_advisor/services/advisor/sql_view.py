"""Clause-level view of a normalized query.

Detectors and the index builder read the query through a ``SqlView``: the
normalized text, a comment-free whitespace-collapsed upper-cased copy, and the
clause spans (SELECT, FROM, JOIN, ON, WHERE, ...) found by walking the sqlglot
token stream with parenthesis depth. A clause opened inside parentheses ends at
the matching close; an outer clause spans its nested subqueries, so a WHERE that
contains ``EXISTS (SELECT ...)`` still sees the subquery text and tokens.

``mask_non_code`` blanks comments and string literals while keeping every
other character at its offset, so text-level patterns can be matched against
code only and the match positions reused on the original text.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import re

import sqlglot
import sqlparse
from sqlglot.tokens import Token, TokenType

from sql_advisor.services.advisor.normalizer import collapse_whitespace
from sql_advisor.utils.logging import log_event


_DIALECTS = {
    "sqlserver": "tsql",
    "postgres": "postgres",
    "mysql": "mysql",
}

_CLAUSE_TOKENS: dict[TokenType, str] = {
    TokenType.SELECT: "SELECT",
    TokenType.FROM: "FROM",
    TokenType.JOIN: "JOIN",
    TokenType.ON: "ON",
    TokenType.WHERE: "WHERE",
    TokenType.GROUP_BY: "GROUP BY",
    TokenType.HAVING: "HAVING",
    TokenType.ORDER_BY: "ORDER BY",
    TokenType.LIMIT: "LIMIT",
    TokenType.UNION: "UNION",
    TokenType.EXCEPT: "EXCEPT",
    TokenType.INTERSECT: "INTERSECT",
}

_CLAUSE_RE = re.compile(
    r"\b(SELECT|FROM|JOIN|ON|WHERE|GROUP\s+BY|HAVING|ORDER\s+BY|LIMIT|UNION|EXCEPT|INTERSECT)\b"
)
_COMMENT_OR_STRING_RE = re.compile(r"--[^\n]*|/\*.*?\*/|N?'(?:[^']|'')*'", re.DOTALL)


@dataclass(frozen=True)
class Clause:
    keyword: str
    depth: int
    # whitespace-collapsed, upper-cased, keyword included
    text: str
    # empty when segmented by the regex fallback
    tokens: tuple[Token, ...] = field(default=(), repr=False, compare=False)


@dataclass(frozen=True)
class SqlView:
    text: str
    compact: str
    clauses: tuple[Clause, ...]
    segmented_by: str = "tokens"

    def clauses_of(self, keyword: str) -> list[Clause]:
        return [clause for clause in self.clauses if clause.keyword == keyword]

    def has_clause(self, keyword: str) -> bool:
        return any(clause.keyword == keyword for clause in self.clauses)


def dialect_for(dbms: str | None) -> str | None:
    return _DIALECTS.get(str(dbms or "").strip().lower())


def _is_string(token: Token) -> bool:
    return token.token_type.name.endswith("STRING")


def _blank(match: re.Match[str]) -> str:
    return " " * len(match.group(0))


def mask_non_code(text: str, dbms: str | None = None) -> str:
    """Same-length copy of ``text`` with comments and string literals replaced by spaces."""
    source = str(text or "")
    try:
        tokens = sqlglot.tokenize(source, read=dialect_for(dbms))
    except Exception:
        return _COMMENT_OR_STRING_RE.sub(_blank, source)
    chars = [" "] * len(source)
    for token in tokens:
        if _is_string(token):
            continue
        # token.end is inclusive
        chars[token.start : token.end + 1] = source[token.start : token.end + 1]
    return "".join(chars)


def _strip_comments(text: str) -> str:
    try:
        return sqlparse.format(text, strip_comments=True)
    except Exception:
        return text


def _segment_tokens(text: str, dialect: str | None) -> list[Clause]:
    tokens = sqlglot.tokenize(text, read=dialect)
    # [keyword, depth, start, end]
    spans: list[list] = []
    open_at: dict[int, int] = {}
    depth = 0
    for token in tokens:
        if token.token_type == TokenType.L_PAREN:
            depth += 1
            continue
        if token.token_type == TokenType.R_PAREN:
            idx = open_at.pop(depth, None)
            if idx is not None:
                spans[idx][3] = token.start
            depth = max(0, depth - 1)
            continue
        keyword = _CLAUSE_TOKENS.get(token.token_type)
        if keyword is None:
            continue
        idx = open_at.get(depth)
        if idx is not None:
            spans[idx][3] = token.start
        open_at[depth] = len(spans)
        spans.append([keyword, depth, token.start, len(text)])

    return [
        Clause(
            keyword=keyword,
            depth=span_depth,
            text=collapse_whitespace(text[start:end]).upper(),
            tokens=tuple(token for token in tokens if start <= token.start < end),
        )
        for keyword, span_depth, start, end in spans
    ]


def _segment_regex(compact: str) -> list[Clause]:
    code = collapse_whitespace(_COMMENT_OR_STRING_RE.sub(_blank, compact))
    matches = list(_CLAUSE_RE.finditer(code))
    clauses: list[Clause] = []
    for idx, match in enumerate(matches):
        end = matches[idx + 1].start() if idx + 1 < len(matches) else len(code)
        clauses.append(
            Clause(
                keyword=collapse_whitespace(match.group(1)),
                depth=0,
                text=code[match.start() : end].strip(),
            )
        )
    return clauses


def build_view(text: str, dbms: str | None = None) -> SqlView:
    source = str(text or "")
    uncommented = _strip_comments(source)
    compact = collapse_whitespace(uncommented).upper()
    try:
        clauses = _segment_tokens(uncommented, dialect_for(dbms))
        segmented_by = "tokens"
    except Exception as exc:
        log_event(
            "view.tokenize.error",
            {"error": str(exc), "dbms": dbms, "sql_len": len(source)},
            level="warning",
        )
        clauses = _segment_regex(compact)
        segmented_by = "regex"
    return SqlView(text=source, compact=compact, clauses=tuple(clauses), segmented_by=segmented_by)
