from __future__ import annotations

from typing import Any

from openai import OpenAI

from sql_advisor.core.config import Settings, get_settings


class LLMClient:
    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self._settings = settings
        # No retries; the caller degrades on failure.
        self.client = OpenAI(
            api_key=settings.openai_api_key or None,
            base_url=settings.openai_base_url or None,
            organization=settings.openai_org or None,
            timeout=settings.llm_timeout_sec,
            max_retries=0,
        )

    def chat(
        self,
        messages: list[dict[str, str]],
        model: str,
        max_tokens: int,
        *,
        response_format: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": self._settings.llm_temperature,
        }
        if response_format:
            kwargs["response_format"] = response_format
        response = self.client.chat.completions.create(**kwargs)

        choices = list(getattr(response, "choices", []) or [])
        if not choices:
            raise RuntimeError("LLM response has no choices")
        message = getattr(choices[0], "message", None)
        refusal = getattr(message, "refusal", None)
        if refusal:
            raise RuntimeError(f"LLM refused: {refusal}")
        raw_content = getattr(message, "content", "")
        if isinstance(raw_content, str):
            content = raw_content
        elif raw_content is None:
            content = ""
        elif isinstance(raw_content, list):
            parts: list[str] = []
            for item in raw_content:
                if isinstance(item, dict):
                    parts.append(str(item.get("text") or ""))
                else:
                    parts.append(str(getattr(item, "text", "") or ""))
            content = "".join(parts)
        else:
            content = str(raw_content)
        usage_obj = getattr(response, "usage", None)
        usage = {
            "prompt_tokens": getattr(usage_obj, "prompt_tokens", 0) if usage_obj is not None else 0,
            "completion_tokens": getattr(usage_obj, "completion_tokens", 0) if usage_obj is not None else 0,
            "total_tokens": getattr(usage_obj, "total_tokens", 0) if usage_obj is not None else 0,
        }
        return {"content": content, "usage": usage}
