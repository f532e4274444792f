"""Async oracle capability consumed by the selector, planner and compiler."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Protocol, TypeVar, runtime_checkable

from ..errors import OracleError, OracleUnavailable
from ..logging import get_logger
from ..schemas import json_schema_for, parse_structured
from .retry import RetryPolicy, with_retry
from .runner import LLMRunner

T = TypeVar("T")

PROBE_PROMPT = "Test connection"


@runtime_checkable
class Oracle(Protocol):
    """Answers free-text and structured-output prompts."""

    async def respond(self, prompt: str, context: str | None = None) -> str:
        ...

    async def respond_structured(
        self, prompt: str, shape: Any, context: str | None = None
    ) -> Any:
        ...


class RunnerOracle:
    """:class:`Oracle` backed by a blocking :class:`LLMRunner`.

    Runner calls are pushed to a worker thread and wrapped in the retry
    policy. Structured replies are validated against the requested shape;
    validation failures are not retried.
    """

    SYSTEM_PROMPT = (
        "You are a senior engineer writing developer documentation for an unfamiliar codebase. "
        "Stay grounded in the files you are shown and never invent paths, commands or APIs."
    )

    def __init__(
        self,
        runner: LLMRunner,
        *,
        retry: RetryPolicy | None = None,
        system: str | None = SYSTEM_PROMPT,
    ) -> None:
        self.runner = runner
        self.retry = retry or RetryPolicy()
        self.system = system
        self.logger = get_logger("oracle")

    async def initialize(self) -> None:
        """Send a probe prompt; raise :class:`OracleUnavailable` if it fails."""
        try:
            await self.respond(PROBE_PROMPT)
        except OracleError as exc:
            raise OracleUnavailable(f"Model endpoint is not reachable: {exc.detail}") from exc
        self.logger.info("Model endpoint %s is ready (model=%s)", self.runner.base_url, self.runner.model)

    async def respond(self, prompt: str, context: str | None = None) -> str:
        return await self._call(_join(prompt, context), None)

    async def respond_structured(
        self, prompt: str, shape: Any, context: str | None = None
    ) -> Any:
        response_format = {
            "type": "json_schema",
            "json_schema": {
                "name": _shape_name(shape),
                "schema": json_schema_for(shape),
            },
        }
        text = await self._call(_join(prompt, context), response_format)
        return parse_structured(shape, text)

    async def _call(self, prompt: str, response_format: Dict[str, Any] | None) -> str:
        self.logger.debug(
            "Sending prompt (%d chars, structured=%s)", len(prompt), response_format is not None
        )

        async def _attempt() -> str:
            return await asyncio.to_thread(
                self.runner.run,
                prompt,
                system=self.system,
                response_format=response_format,
            )

        return await with_retry(_attempt, self.retry)


def _join(prompt: str, context: str | None) -> str:
    return f"{context}\n\n{prompt}" if context else prompt


def _shape_name(shape: Any) -> str:
    name = getattr(shape, "__name__", None)
    if isinstance(name, str) and name.isidentifier():
        return name
    return "response"


__all__ = ["Oracle", "PROBE_PROMPT", "RunnerOracle"]
