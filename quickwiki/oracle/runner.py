"""Blocking adapter around an OpenAI-compatible chat completions endpoint."""

from __future__ import annotations

import http.client
import ipaddress
import json
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from ..config import LLMConfig
from ..errors import OracleError

_AUTO_BASE_URL = object()
_AUTO_API_KEY = object()


@dataclass
class LLMRequest:
    """Represents one inference request."""

    prompt: str
    system: Optional[str]
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    base_url: Optional[str]
    api_key: Optional[str]
    request_timeout: Optional[float]
    response_format: Optional[Dict[str, Any]] = None


class LLMRunner:
    """Executes prompts against the configured model endpoint."""

    DEFAULT_MODEL = "ai/smollm2:360M-Q4_K_M"
    DEFAULT_BASE_URL = "http://localhost:12434/engines/v1"
    ENV_MODEL_KEYS = ("QUICKWIKI_LLM_MODEL", "OPENAI_MODEL")
    ENV_BASE_URL_KEYS = ("QUICKWIKI_LLM_BASE_URL", "OPENAI_BASE_URL")
    ENV_API_KEY_KEYS = ("QUICKWIKI_LLM_API_KEY", "OPENAI_API_KEY", "GEMINI_API_KEY")

    def __init__(
        self,
        model: str | None = None,
        *,
        base_url: str | None | object = _AUTO_BASE_URL,
        temperature: Optional[float] = 0.2,
        max_tokens: Optional[int] = None,
        api_key: str | None | object = _AUTO_API_KEY,
        request_timeout: Optional[float] = 120.0,
        allow_remote: bool = False,
        runner: Callable[[LLMRequest], str] | None = None,
    ) -> None:
        self.allow_remote = allow_remote
        self.model = self._resolve_model(model)
        self.base_url = self._resolve_base_url(base_url)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.api_key = self._resolve_api_key(api_key)
        self.request_timeout = request_timeout
        self._runner = runner or self._http_runner

    @classmethod
    def from_config(cls, config: LLMConfig) -> "LLMRunner":
        kwargs: Dict[str, Any] = {"allow_remote": config.allow_remote}
        if config.base_url is not None:
            kwargs["base_url"] = config.base_url
        if config.api_key is not None:
            kwargs["api_key"] = config.api_key
        if config.temperature is not None:
            kwargs["temperature"] = config.temperature
        if config.max_tokens is not None:
            kwargs["max_tokens"] = config.max_tokens
        if config.request_timeout is not None:
            kwargs["request_timeout"] = config.request_timeout
        return cls(config.model, **kwargs)

    def run(
        self,
        prompt: str,
        *,
        system: str | None = None,
        response_format: Dict[str, Any] | None = None,
    ) -> str:
        """Send the prompt and return the response text."""
        request = LLMRequest(
            prompt=prompt,
            system=system,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
            response_format=response_format,
        )
        return self._runner(request)

    @staticmethod
    def _http_runner(request: LLMRequest) -> str:
        if not request.base_url:
            raise OracleError("HTTP runner requires a base_url to be configured.")
        endpoint = f"{request.base_url}/chat/completions"
        payload: dict[str, object] = {
            "model": request.model,
            "messages": LLMRunner._build_messages(request.system, request.prompt),
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens
        if request.response_format is not None:
            payload["response_format"] = request.response_format

        data = json.dumps(payload).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if request.api_key:
            headers["Authorization"] = f"Bearer {request.api_key}"

        http_request = Request(endpoint, data=data, headers=headers, method="POST")
        timeout = request.request_timeout or 120.0

        try:
            with urlopen(http_request, timeout=timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:  # pragma: no cover - depends on runtime
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            message = detail.strip() or exc.reason
            raise OracleError(f"LLM endpoint failed with status {exc.code}: {message}") from exc
        except URLError as exc:  # pragma: no cover - depends on runtime
            raise OracleError(f"LLM endpoint unreachable: {exc.reason}") from exc
        except TimeoutError as exc:  # pragma: no cover - depends on runtime
            raise OracleError(f"LLM endpoint timed out after {timeout}s") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise OracleError(f"LLM endpoint connection failed: {exc!r}") from exc

        try:
            response_payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise OracleError("LLM endpoint returned invalid JSON") from exc

        content = LLMRunner._extract_content(response_payload)
        if not content:
            raise OracleError("LLM endpoint returned an empty response")
        return content.strip()

    @staticmethod
    def _build_messages(system: str | None, prompt: str) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    @staticmethod
    def _extract_content(payload: object) -> str:
        if not isinstance(payload, dict):
            return ""
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str):
                return content
        text = first.get("text")
        if isinstance(text, str):
            return text
        return ""

    def _resolve_model(self, model: str | None) -> str:
        if model:
            return model
        return self._first_env_value(self.ENV_MODEL_KEYS) or self.DEFAULT_MODEL

    def _resolve_base_url(self, base_url: str | None | object) -> str | None:
        if base_url is None:
            return None
        if base_url is not _AUTO_BASE_URL:
            return self._check_host(str(base_url))
        env_value = self._first_env_value(self.ENV_BASE_URL_KEYS)
        return self._check_host(env_value or self.DEFAULT_BASE_URL)

    def _resolve_api_key(self, api_key: str | None | object) -> str | None:
        if api_key is _AUTO_API_KEY:
            return self._first_env_value(self.ENV_API_KEY_KEYS)
        return api_key  # type: ignore[return-value]

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None

    def _check_host(self, url: str) -> str:
        normalized = url.rstrip("/")
        host = urlparse(normalized).hostname
        if host is None or self.allow_remote or self._is_local_host(host):
            return normalized
        raise OracleError(
            f"Remote base_url '{url}' is not permitted. Set llm.allow_remote: true to use it."
        )

    @staticmethod
    def _is_local_host(host: str) -> bool:
        lowered = host.lower()
        allowed_hosts = {
            "localhost",
            "127.0.0.1",
            "0.0.0.0",
            "::1",
            "model-runner.docker.internal",
            "host.docker.internal",
        }
        if lowered in allowed_hosts:
            return True
        if lowered.endswith(".local") or lowered.endswith(".localdomain"):
            return True
        try:
            ip = ipaddress.ip_address(lowered)
        except ValueError:
            return False
        return ip.is_loopback


__all__ = ["LLMRequest", "LLMRunner"]
