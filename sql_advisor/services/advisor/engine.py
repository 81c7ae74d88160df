from __future__ import annotations

from time import perf_counter

from sql_advisor.models.analysis import AnalysisRequest, AnalysisResult
from sql_advisor.services.advisor.augmenter import AdvisoryAugmenter, AbsentAugmenter
from sql_advisor.services.advisor.merge import merge_results
from sql_advisor.services.advisor.normalizer import normalize_sql
from sql_advisor.services.advisor.static_pass import run_static_pass
from sql_advisor.utils.logging import log_event


class AdvisoryEngine:
    def __init__(self, augmenter: AdvisoryAugmenter | None = None) -> None:
        self.augmenter = augmenter or AbsentAugmenter()

    def analyze(self, request: AnalysisRequest, *, request_id: str | None = None) -> AnalysisResult:
        stage_latency_ms: dict[str, float] = {}
        t0 = perf_counter()

        def _tick(stage: str, start: float) -> None:
            stage_latency_ms[stage] = round((perf_counter() - start) * 1000.0, 2)

        log_event(
            "analysis.start",
            {
                "request_id": request_id,
                "dbms": request.dbms,
                "sql_len": len(request.sql_text),
                "plan_len": len(request.plan_xml or ""),
                "augmenter": type(self.augmenter).__name__,
            },
        )

        s = perf_counter()
        normalized = normalize_sql(request.sql_text)
        static = run_static_pass(request.sql_text, request.dbms, normalized_sql=normalized)
        _tick("static", s)

        s = perf_counter()
        outcome = self.augmenter.augment(request, normalized, request_id=request_id)
        _tick("augment", s)

        result = merge_results(static, outcome, original_sql=request.sql_text)
        log_event(
            "analysis.done",
            {
                "request_id": request_id,
                "rules": static.rule_ids,
                "rewrite_pattern": static.rewrite_pattern,
                "augmentation": outcome.status,
                "findings": len(result.findings),
                "total_latency_ms": round((perf_counter() - t0) * 1000.0, 2),
                "stage_latency_ms": stage_latency_ms,
            },
        )
        return result
