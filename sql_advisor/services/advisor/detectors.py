from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable
import re

from sqlglot.tokens import TokenType

from sql_advisor.services.advisor.sql_view import Clause, SqlView


_SELECT_STAR_RE = re.compile(
    r"\bSELECT\s+(?:DISTINCT\s+|ALL\s+)?(?:TOP\s+\(?\d+\)?\s+(?:PERCENT\s+)?)?(?:[A-Z0-9_\[\]\"`]+\.)?\*"
)
_LEADING_WILDCARD_RE = re.compile(r"\bI?LIKE\s+N?['\"]%")
_OR_RE = re.compile(r"\bOR\b")
_NON_SARGABLE_FUNCTIONS = frozenset(
    {
        "YEAR",
        "MONTH",
        "DAY",
        "DATEPART",
        "DATEADD",
        "DATEDIFF",
        "DATE_TRUNC",
        "EXTRACT",
        "SUBSTRING",
        "SUBSTR",
        "LEFT",
        "RIGHT",
        "CAST",
        "CONVERT",
    }
)
_NON_SARGABLE_FUNC_RE = re.compile(rf"\b({'|'.join(sorted(_NON_SARGABLE_FUNCTIONS))})\s*\(")


def _select_star(view: SqlView) -> bool:
    return bool(_SELECT_STAR_RE.search(view.compact))


def _leading_wildcard(view: SqlView) -> bool:
    return bool(_LEADING_WILDCARD_RE.search(view.compact))


def _calls_function(clause: Clause) -> bool:
    if not clause.tokens:
        return bool(_NON_SARGABLE_FUNC_RE.search(clause.text))
    return any(
        token.token_type not in (TokenType.IDENTIFIER, TokenType.STRING)
        and token.text.upper() in _NON_SARGABLE_FUNCTIONS
        and following.token_type == TokenType.L_PAREN
        for token, following in zip(clause.tokens, clause.tokens[1:])
    )


def _has_or(clause: Clause) -> bool:
    if not clause.tokens:
        return bool(_OR_RE.search(clause.text))
    return any(token.token_type == TokenType.OR for token in clause.tokens)


# WHERE clause tokens exclude comments and keep string literals as single tokens.
def _function_on_column(view: SqlView) -> bool:
    return any(_calls_function(clause) for clause in view.clauses_of("WHERE"))


def _or_in_where(view: SqlView) -> bool:
    return any(_has_or(clause) for clause in view.clauses_of("WHERE"))


def _order_by_without_join(view: SqlView) -> bool:
    return view.has_clause("ORDER BY") and not view.has_clause("JOIN")


def _join_without_where(view: SqlView) -> bool:
    return view.has_clause("JOIN") and not view.has_clause("WHERE")


@dataclass(frozen=True)
class Rule:
    rule_id: str
    matches: Callable[[SqlView], bool]
    finding: str
    risk: str | None = None
    guidance: str | None = None


# Declared order is output order.
RULES: tuple[Rule, ...] = (
    Rule(
        "R1",
        _select_star,
        "avoid unbounded projection; select only required columns",
        risk="wider rows reduce cache efficiency",
        guidance="replace * with explicit columns",
    ),
    Rule(
        "R2",
        _leading_wildcard,
        "leading-wildcard pattern match defeats index seeks",
        risk="full scan risk on large tables",
        guidance="consider full-text/trigram search",
    ),
    Rule(
        "R3",
        _function_on_column,
        "non-sargable predicate blocks index seeks",
        guidance="rewrite to a range predicate on the raw column",
    ),
    Rule("R4", _or_in_where, "disjunctive predicates may prevent index usage"),
    Rule("R5", _order_by_without_join, "ensure an index supports the ORDER BY key(s)"),
    Rule("R6", _join_without_where, "unfiltered join may multiply row counts"),
)

_RULES_BY_ID = {rule.rule_id: rule for rule in RULES}


def rule(rule_id: str) -> Rule:
    return _RULES_BY_ID[rule_id]


@dataclass
class DetectorReport:
    rule_ids: list[str] = field(default_factory=list)
    findings: list[str] = field(default_factory=list)
    risks: list[str] = field(default_factory=list)
    # SQL comment lines, used when no structural rewrite applies
    guidance: list[str] = field(default_factory=list)


def run_detectors(view: SqlView) -> DetectorReport:
    report = DetectorReport()
    for item in RULES:
        if not item.matches(view):
            continue
        report.rule_ids.append(item.rule_id)
        report.findings.append(item.finding)
        if item.risk:
            report.risks.append(item.risk)
        if item.guidance:
            report.guidance.append(f"-- {item.guidance}")
    return report
