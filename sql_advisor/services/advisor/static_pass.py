from __future__ import annotations

from dataclasses import dataclass, field

from sql_advisor.services.advisor.detectors import rule, run_detectors
from sql_advisor.services.advisor.index_advisor import suggest_indexes
from sql_advisor.services.advisor.normalizer import normalize_sql
from sql_advisor.services.advisor.rewrite import synthesize_rewrite
from sql_advisor.services.advisor.sql_view import build_view
from sql_advisor.utils.logging import log_event


@dataclass
class StaticReport:
    normalized_sql: str
    findings: list[str] = field(default_factory=list)
    risks: list[str] = field(default_factory=list)
    index_recommendations: list[str] = field(default_factory=list)
    rewrite_sql: str | None = None
    rule_ids: list[str] = field(default_factory=list)
    rewrite_pattern: str | None = None


def run_static_pass(sql_text: str, dbms: str | None = None, *, normalized_sql: str | None = None) -> StaticReport:
    """Detectors, rewrite synthesis and index candidates over one query. Never raises."""
    normalized = normalized_sql if normalized_sql is not None else normalize_sql(sql_text)
    try:
        view = build_view(normalized, dbms)
        detected = run_detectors(view)
        rewrite = synthesize_rewrite(normalized, detected.guidance, dbms)
        indexes = suggest_indexes(view)
    except Exception as exc:
        log_event(
            "static.error",
            {"error_type": type(exc).__name__, "error": str(exc), "sql_len": len(normalized)},
            level="error",
        )
        return StaticReport(normalized_sql=normalized)

    report = StaticReport(
        normalized_sql=normalized,
        findings=list(detected.findings),
        risks=list(detected.risks),
        index_recommendations=indexes,
        rewrite_sql=rewrite.rewrite_sql,
        rule_ids=list(detected.rule_ids),
        rewrite_pattern=rewrite.pattern,
    )
    if rewrite.structural and "R3" not in report.rule_ids:
        report.rule_ids.append("R3")
        report.findings.append(rule("R3").finding)
    return report
