"""AI provider clients used by the admin tooling."""

from .cohere import CohereClient
from .errors import AIErrorType, AIProviderError
from .ollama import OllamaClient
from .retry import DEFAULT_RETRY_POLICY, RetryPolicy, call_with_retry

__all__ = [
    "AIErrorType",
    "AIProviderError",
    "CohereClient",
    "DEFAULT_RETRY_POLICY",
    "OllamaClient",
    "RetryPolicy",
    "call_with_retry",
]
