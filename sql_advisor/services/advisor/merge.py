from __future__ import annotations

from typing import Iterable

from sql_advisor.models.analysis import AnalysisResult
from sql_advisor.services.advisor.augmenter import (
    STATUS_ABSENT,
    STATUS_FAILED,
    AugmentationOutcome,
)
from sql_advisor.services.advisor.normalizer import comparable_text
from sql_advisor.services.advisor.static_pass import StaticReport


NO_REWRITE_SENTINEL = "no query rewrite suggestions were identified"
STATIC_SUMMARY = "static analysis completed"
DEFAULT_TEST_STEPS: tuple[str, ...] = (
    "Capture current plan & metrics (duration, CPU, reads).",
    "Apply one change at a time (index or rewrite).",
    "Compare estimated vs actual plans; validate row estimates.",
    "Benchmark on representative data; check regressions.",
)
_SUMMARY_QUALIFIERS = {
    STATUS_ABSENT: "augmentation not configured",
    STATUS_FAILED: "augmentation failed",
}


def dedupe(items: Iterable[str] | None) -> list[str]:
    """Exact-match dedupe keeping the first occurrence in place."""
    seen: set[str] = set()
    out: list[str] = []
    for item in items or []:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def _non_blank(items: Iterable[str] | None) -> list[str]:
    return [item for item in items or [] if str(item).strip()]


def is_echo(candidate: str | None, *originals: str | None) -> bool:
    target = comparable_text(candidate or "")
    return bool(target) and any(target == comparable_text(original or "") for original in originals)


def diagnostic_finding(reason: str | None) -> str:
    return f"augmentation unavailable: {reason or 'unknown error'}"


def default_summary(status: str) -> str:
    qualifier = _SUMMARY_QUALIFIERS.get(status, "augmentation returned no summary")
    return f"{STATIC_SUMMARY} ({qualifier})"


def choose_rewrite(augmented: str | None, static: str | None, *originals: str | None) -> str:
    for candidate in (augmented, static):
        if candidate and candidate.strip() and not is_echo(candidate, *originals):
            return candidate
    return NO_REWRITE_SENTINEL


def merge_results(static: StaticReport, outcome: AugmentationOutcome, *, original_sql: str) -> AnalysisResult:
    """Reconcile static and augmented results; static entries always come first."""
    payload = outcome.payload if outcome.succeeded else None

    static_findings = list(static.findings)
    if outcome.status == STATUS_FAILED:
        static_findings.append(diagnostic_finding(outcome.reason))

    if payload is None:
        return AnalysisResult(
            summary=default_summary(outcome.status),
            findings=dedupe(static_findings),
            rewrite_sql=choose_rewrite(None, static.rewrite_sql, original_sql, static.normalized_sql),
            index_recommendations=dedupe(static.index_recommendations),
            risks=dedupe(static.risks),
            test_steps=list(DEFAULT_TEST_STEPS),
        )

    test_steps = _non_blank(payload.test_steps)
    return AnalysisResult(
        summary=payload.summary.strip() or default_summary(outcome.status),
        findings=dedupe(static_findings + _non_blank(payload.findings)),
        rewrite_sql=choose_rewrite(
            payload.rewrite_sql,
            static.rewrite_sql,
            original_sql,
            static.normalized_sql,
        ),
        index_recommendations=dedupe(static.index_recommendations + _non_blank(payload.index_recommendations)),
        risks=dedupe(static.risks + _non_blank(payload.risks)),
        test_steps=test_steps or list(DEFAULT_TEST_STEPS),
    )
