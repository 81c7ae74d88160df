from __future__ import annotations

import pytest

from sql_advisor.services.agents.json_utils import extract_json_object


def test_extract_bare_object() -> None:
    assert extract_json_object('{"summary": "ok"}') == {"summary": "ok"}


def test_extract_fenced_object() -> None:
    text = 'Result:\n```json\n{"summary": "ok", "findings": []}\n```\nDone.'

    assert extract_json_object(text) == {"summary": "ok", "findings": []}


def test_extract_object_embedded_in_prose() -> None:
    text = 'Sure thing {not json} then {"risks": ["spill"]} trailing words'

    assert extract_json_object(text) == {"risks": ["spill"]}


@pytest.mark.parametrize(
    "text, message",
    [
        ("", "LLM response is empty"),
        ("   ", "LLM response is empty"),
        ("[1, 2, 3]", "LLM response is not valid JSON"),
        ("no braces here", "LLM response is not valid JSON"),
    ],
)
def test_extract_rejects_unusable_replies(text, message) -> None:
    with pytest.raises(ValueError, match=message):
        extract_json_object(text)
