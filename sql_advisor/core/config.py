from __future__ import annotations

from dataclasses import dataclass
import os

from dotenv import load_dotenv


load_dotenv()


def _int(value: str | None, default: int, *, minimum: int | None = None) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    if minimum is not None:
        return max(minimum, parsed)
    return parsed


def _float(value: str | None, default: float) -> float:
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _str(value: str | None, default: str = "") -> str:
    if value is None:
        return default
    return value.strip()


def _csv(value: str | None, default: str) -> tuple[str, ...]:
    raw = _str(value, default) or default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str

    openai_api_key: str
    openai_base_url: str
    openai_org: str
    openai_model: str

    llm_timeout_sec: int
    llm_temperature: float
    llm_max_output_tokens: int
    plan_char_limit: int

    max_sql_text_length: int
    api_request_timeout_sec: int
    cors_allow_origins: tuple[str, ...]
    log_level: str

    mongo_uri: str
    mongo_db: str

    @property
    def augmentation_enabled(self) -> bool:
        return bool(self.openai_api_key)


def load_settings() -> Settings:
    return Settings(
        app_name=_str(os.getenv("APP_NAME"), "SQL Advisor API"),
        app_version=_str(os.getenv("APP_VERSION"), "1.2.1"),
        openai_api_key=_str(os.getenv("OPENAI_API_KEY"), ""),
        openai_base_url=_str(os.getenv("OPENAI_BASE_URL"), ""),
        openai_org=_str(os.getenv("OPENAI_ORG"), ""),
        openai_model=_str(os.getenv("OPENAI_MODEL"), "gpt-4o-mini") or "gpt-4o-mini",
        llm_timeout_sec=_int(os.getenv("LLM_TIMEOUT_SEC"), 30, minimum=1),
        llm_temperature=_float(os.getenv("LLM_TEMPERATURE"), 0.2),
        llm_max_output_tokens=_int(os.getenv("LLM_MAX_OUTPUT_TOKENS"), 1200, minimum=1),
        plan_char_limit=_int(os.getenv("PLAN_CHAR_LIMIT"), 20000, minimum=0),
        max_sql_text_length=_int(os.getenv("MAX_SQL_TEXT_LENGTH"), 100000, minimum=1),
        api_request_timeout_sec=_int(os.getenv("API_REQUEST_TIMEOUT_SEC"), 60, minimum=1),
        cors_allow_origins=_csv(os.getenv("CORS_ALLOW_ORIGINS"), "*"),
        log_level=_str(os.getenv("LOG_LEVEL"), "INFO").upper() or "INFO",
        mongo_uri=_str(os.getenv("MONGODB_URI"), ""),
        mongo_db=_str(os.getenv("MONGODB_DB"), "sql_advisor") or "sql_advisor",
    )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = load_settings()
    return _SETTINGS


def reset_settings() -> None:
    global _SETTINGS
    _SETTINGS = None
