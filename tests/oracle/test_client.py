"""Tests for the runner-backed oracle client."""

from __future__ import annotations

import asyncio

import pytest

from quickwiki.errors import OracleError, OracleUnavailable, SchemaError
from quickwiki.oracle.client import PROBE_PROMPT, Oracle, RunnerOracle
from quickwiki.oracle.retry import RetryPolicy
from quickwiki.oracle.runner import LLMRunner
from quickwiki.schemas import FileSelection, PageBody


class _ScriptedRunner:
    """Runner double returning queued replies and recording requests."""

    def __init__(self, *replies) -> None:
        self.replies = list(replies)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def _oracle(*replies, retries: int = 0) -> tuple[RunnerOracle, _ScriptedRunner]:
    script = _ScriptedRunner(*replies)
    runner = LLMRunner(model="test-model", base_url=None, api_key=None, runner=script)
    return RunnerOracle(runner, retry=RetryPolicy(retries=retries, initial_delay=0.0)), script


def test_runner_oracle_satisfies_protocol() -> None:
    oracle, _ = _oracle()

    assert isinstance(oracle, Oracle)


def test_respond_joins_context_before_prompt() -> None:
    oracle, script = _oracle("answer")

    assert asyncio.run(oracle.respond("question", "background")) == "answer"
    assert script.requests[0].prompt == "background\n\nquestion"
    assert script.requests[0].response_format is None
    assert script.requests[0].system == RunnerOracle.SYSTEM_PROMPT


def test_respond_structured_sends_schema_and_validates() -> None:
    oracle, script = _oracle('{"rawMarkdownContent": "# Page\\n"}')

    body = asyncio.run(oracle.respond_structured("write", PageBody))

    assert body.raw_markdown_content == "# Page\n"
    response_format = script.requests[0].response_format
    assert response_format["type"] == "json_schema"
    assert response_format["json_schema"]["name"] == "PageBody"
    assert response_format["json_schema"]["schema"]["required"] == ["rawMarkdownContent"]


def test_respond_structured_selection_sends_object_schema() -> None:
    oracle, script = _oracle('{"files": ["a.py"]}')

    selection = asyncio.run(oracle.respond_structured("pick", FileSelection))

    assert selection.files == ["a.py"]
    json_schema = script.requests[0].response_format["json_schema"]
    assert json_schema["name"] == "FileSelection"
    assert json_schema["schema"]["type"] == "object"


def test_transport_errors_are_retried() -> None:
    oracle, script = _oracle(OracleError("busy"), "fine", retries=2)

    assert asyncio.run(oracle.respond("hi")) == "fine"
    assert len(script.requests) == 2


def test_parse_failures_are_not_retried() -> None:
    oracle, script = _oracle("not json", '{"files": ["never used"]}', retries=3)

    with pytest.raises(SchemaError):
        asyncio.run(oracle.respond_structured("pick", FileSelection))

    assert len(script.requests) == 1


def test_initialize_sends_probe() -> None:
    oracle, script = _oracle("pong")

    asyncio.run(oracle.initialize())

    assert script.requests[0].prompt == PROBE_PROMPT


def test_initialize_failure_is_oracle_unavailable() -> None:
    oracle, _ = _oracle(OracleError("connection refused"))

    with pytest.raises(OracleUnavailable) as excinfo:
        asyncio.run(oracle.initialize())

    assert str(excinfo.value) == "initialize: Model endpoint is not reachable: connection refused"
