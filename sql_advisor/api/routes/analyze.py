from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from sql_advisor.core.config import get_settings
from sql_advisor.models.analysis import AnalysisRequest, AnalysisResult
from sql_advisor.services.advisor.augmenter import build_augmenter
from sql_advisor.services.advisor.engine import AdvisoryEngine
from sql_advisor.utils.logging import log_event, new_request_id

router = APIRouter()


def get_engine() -> AdvisoryEngine:
    return AdvisoryEngine(build_augmenter(get_settings()))


def _validate_request(req: AnalysisRequest) -> None:
    if not req.sql_text.strip():
        raise HTTPException(
            status_code=422,
            detail={"code": "EMPTY_SQL_TEXT", "message": "sql_text must not be empty"},
        )
    max_len = get_settings().max_sql_text_length
    if len(req.sql_text) > max_len:
        raise HTTPException(
            status_code=413,
            detail={"code": "SQL_TEXT_TOO_LONG", "message": f"sql_text length must be <= {max_len}"},
        )


@router.post("/analyze", response_model=AnalysisResult)
def analyze(req: AnalysisRequest, engine: AdvisoryEngine = Depends(get_engine)) -> AnalysisResult:
    request_id = new_request_id()
    try:
        _validate_request(req)
    except HTTPException as exc:
        log_event("request.analyze.rejected", {"request_id": request_id, "detail": exc.detail}, level="warning")
        raise
    return engine.analyze(req, request_id=request_id)
