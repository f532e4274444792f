"""Model-backed oracle: transport, retry policy and async client."""

from .client import Oracle, RunnerOracle
from .retry import RetryPolicy, with_retry
from .runner import LLMRequest, LLMRunner

__all__ = ["LLMRequest", "LLMRunner", "Oracle", "RetryPolicy", "RunnerOracle", "with_retry"]
