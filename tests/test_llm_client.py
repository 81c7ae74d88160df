from __future__ import annotations

import dataclasses
from types import SimpleNamespace

import pytest

from sql_advisor.core.config import load_settings
from sql_advisor.services.agents import llm_client
from sql_advisor.services.agents.llm_client import LLMClient


def _install_fake_openai(monkeypatch, response):
    created: dict = {}

    class _FakeCompletions:
        def create(self, **kwargs):
            created["request"] = kwargs
            return response

    class _FakeOpenAI:
        def __init__(self, **kwargs):
            created["client"] = kwargs
            self.chat = SimpleNamespace(completions=_FakeCompletions())

    monkeypatch.setattr(llm_client, "OpenAI", _FakeOpenAI)
    return created


def _settings():
    return dataclasses.replace(load_settings(), openai_api_key="test-key", llm_timeout_sec=7)


def _response(content, refusal=None, usage=None):
    message = SimpleNamespace(content=content, refusal=refusal)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=usage)


def test_chat_returns_content_and_usage(monkeypatch) -> None:
    usage = SimpleNamespace(prompt_tokens=10, completion_tokens=5, total_tokens=15)
    created = _install_fake_openai(monkeypatch, _response('{"summary": "ok"}', usage=usage))

    reply = LLMClient(_settings()).chat(
        messages=[{"role": "user", "content": "hi"}],
        model="gpt-4o-mini",
        max_tokens=100,
        response_format={"type": "json_object"},
    )

    assert reply == {
        "content": '{"summary": "ok"}',
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }
    assert created["client"]["timeout"] == 7
    assert created["client"]["max_retries"] == 0
    assert created["request"]["response_format"] == {"type": "json_object"}
    assert created["request"]["temperature"] == 0.2


def test_chat_joins_content_parts(monkeypatch) -> None:
    parts = [{"text": '{"a": '}, SimpleNamespace(text="1}")]
    _install_fake_openai(monkeypatch, _response(parts))

    reply = LLMClient(_settings()).chat(messages=[], model="m", max_tokens=10)

    assert reply["content"] == '{"a": 1}'
    assert reply["usage"]["total_tokens"] == 0


def test_chat_raises_on_refusal_or_missing_choices(monkeypatch) -> None:
    _install_fake_openai(monkeypatch, _response(None, refusal="not allowed"))
    with pytest.raises(RuntimeError, match="LLM refused"):
        LLMClient(_settings()).chat(messages=[], model="m", max_tokens=10)

    _install_fake_openai(monkeypatch, SimpleNamespace(choices=[], usage=None))
    with pytest.raises(RuntimeError, match="no choices"):
        LLMClient(_settings()).chat(messages=[], model="m", max_tokens=10)
