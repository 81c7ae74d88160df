"""Optional generative-text augmentation of the static analysis.

The augmenter is injected into the engine as a capability: ``AbsentAugmenter``
when no OpenAI credential is configured, ``LLMAugmenter`` otherwise. The LLM
variant makes exactly one call and never raises; every failure comes back as an
``AugmentationOutcome`` with status ``failed`` and a short reason.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from sql_advisor.core.config import Settings, get_settings
from sql_advisor.models.analysis import AnalysisRequest
from sql_advisor.services.advisor.normalizer import collapse_whitespace
from sql_advisor.services.agents.json_utils import extract_json_object
from sql_advisor.services.agents.llm_client import LLMClient
from sql_advisor.utils.logging import log_event


STATUS_ABSENT = "absent"
STATUS_OK = "ok"
STATUS_FAILED = "failed"

_REASON_MAX_CHARS = 200

_DBMS_LABELS = {
    "sqlserver": "SQL Server",
    "postgres": "PostgreSQL",
    "mysql": "MySQL",
}

_ADVISORY_FIELDS = ("summary", "findings", "rewrite_sql", "index_recommendations", "risks", "test_steps")


class AugmentationError(RuntimeError):
    """The augmentation service answered, but not with a usable advisory."""


class AdvisoryPayload(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    summary: str
    findings: List[str]
    rewrite_sql: str
    index_recommendations: List[str]
    risks: List[str]
    test_steps: List[str]


def _string_list_schema() -> Dict[str, Any]:
    return {"type": "array", "items": {"type": "string"}}


ADVISORY_RESPONSE_FORMAT: Dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "sql_advisory",
        "strict": True,
        "schema": {
            "type": "object",
            "properties": {
                "summary": {"type": "string"},
                "findings": _string_list_schema(),
                "rewrite_sql": {"type": "string"},
                "index_recommendations": _string_list_schema(),
                "risks": _string_list_schema(),
                "test_steps": _string_list_schema(),
            },
            "required": list(_ADVISORY_FIELDS),
            "additionalProperties": False,
        },
    },
}


@dataclass(frozen=True)
class AugmentationOutcome:
    status: str
    payload: Optional[AdvisoryPayload] = None
    reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_OK and self.payload is not None


def short_reason(exc: BaseException) -> str:
    text = collapse_whitespace(str(exc)) or type(exc).__name__
    if len(text) > _REASON_MAX_CHARS:
        text = text[: _REASON_MAX_CHARS - 3].rstrip() + "..."
    return text


def parse_advisory(content: str) -> AdvisoryPayload:
    try:
        data = extract_json_object(content)
    except ValueError as exc:
        raise AugmentationError(str(exc)) from exc
    try:
        return AdvisoryPayload.model_validate(data)
    except ValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        raise AugmentationError(f"non-conforming response ({', '.join(fields) or 'schema'})") from exc


class AdvisoryAugmenter(ABC):
    @abstractmethod
    def augment(
        self,
        request: AnalysisRequest,
        normalized_sql: str,
        *,
        request_id: str | None = None,
    ) -> AugmentationOutcome:
        raise NotImplementedError


class AbsentAugmenter(AdvisoryAugmenter):
    def augment(
        self,
        request: AnalysisRequest,
        normalized_sql: str,
        *,
        request_id: str | None = None,
    ) -> AugmentationOutcome:
        return AugmentationOutcome(status=STATUS_ABSENT)


class LLMAugmenter(AdvisoryAugmenter):
    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    def build_messages(self, request: AnalysisRequest, normalized_sql: str) -> list[dict[str, str]]:
        dbms_label = _DBMS_LABELS.get(request.dbms, request.dbms)
        if request.version:
            dbms_label = f"{dbms_label} {request.version}"
        plan = (request.plan_xml or "")[: self._settings.plan_char_limit]

        system_msg = (
            f"You are a veteran {dbms_label} performance engineer. "
            "Return safe, actionable tuning advice. Use <YourTable> placeholders; never invent schema names."
        )
        user_msg = (
            "SQL (formatted):\n```\n"
            f"{normalized_sql}\n```\n\nContext:\n"
            f"{request.context or 'n/a'}\n\nExecution plan (optional):\n"
            f"{plan if plan else 'n/a'}\n"
        )
        json_instructions = (
            "Return a JSON object with keys: summary (string), findings (array of strings), "
            "rewrite_sql (string), index_recommendations (array of strings), risks (array of strings), "
            "test_steps (array of strings). "
            "If no safe optimization exists, set rewrite_sql to an empty string. "
            "Prefer sargable range predicates over functions on columns. No extra keys or text."
        )
        return [
            {"role": "system", "content": system_msg},
            {"role": "user", "content": user_msg},
            {"role": "user", "content": json_instructions},
        ]

    def augment(
        self,
        request: AnalysisRequest,
        normalized_sql: str,
        *,
        request_id: str | None = None,
    ) -> AugmentationOutcome:
        try:
            client = LLMClient(self._settings)
            reply = client.chat(
                messages=self.build_messages(request, normalized_sql),
                model=self._settings.openai_model,
                max_tokens=self._settings.llm_max_output_tokens,
                response_format=ADVISORY_RESPONSE_FORMAT,
            )
            payload = parse_advisory(str((reply or {}).get("content") or ""))
        except Exception as exc:
            reason = short_reason(exc)
            log_event(
                "augment.error",
                {"request_id": request_id, "error_type": type(exc).__name__, "error": reason},
                level="error",
            )
            return AugmentationOutcome(status=STATUS_FAILED, reason=reason)

        usage = (reply or {}).get("usage") or {}
        log_event(
            "augment.done",
            {
                "request_id": request_id,
                "model": self._settings.openai_model,
                "total_tokens": usage.get("total_tokens", 0),
                "findings": len(payload.findings),
            },
        )
        return AugmentationOutcome(status=STATUS_OK, payload=payload)


def build_augmenter(settings: Settings | None = None) -> AdvisoryAugmenter:
    settings = settings or get_settings()
    if not settings.augmentation_enabled:
        return AbsentAugmenter()
    return LLMAugmenter(settings)
