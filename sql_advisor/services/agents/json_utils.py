from __future__ import annotations

import json
import re
from typing import Any


_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.IGNORECASE | re.DOTALL)
_DECODER = json.JSONDecoder()


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the first JSON object in an LLM reply (bare, fenced, or embedded in prose)."""
    raw = str(text or "").strip()
    if not raw:
        raise ValueError("LLM response is empty")

    candidates = [raw]
    fence_match = _JSON_FENCE_RE.search(raw)
    if fence_match:
        candidates.append(fence_match.group(1).strip())

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    for idx, ch in enumerate(raw):
        if ch != "{":
            continue
        try:
            parsed, _ = _DECODER.raw_decode(raw, idx)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    raise ValueError("LLM response is not valid JSON")
