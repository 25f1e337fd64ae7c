"""
LLM providers package.

Unified interface over the interchangeable chat backends:
- Groq: OpenAI-compatible chat completions (tried first)
- Gemini: Google generateContent (fallback)

Use the ProviderGateway for calls with failover:
    from jobcopilot.providers import ProviderGateway
    gateway = ProviderGateway(credentials)
"""

from .base import FailureReason, LLMProvider, ProviderResponse
from .factory import PROVIDER_ORDER, ProviderFactory, next_provider, select_provider
from .gateway import FailoverResult, ProviderGateway
from .gemini_provider import GeminiProvider
from .groq_provider import GroqProvider
from .parsing import extract_json_array

__all__ = [
    "FailureReason",
    "LLMProvider",
    "ProviderResponse",
    "PROVIDER_ORDER",
    "ProviderFactory",
    "select_provider",
    "next_provider",
    "FailoverResult",
    "ProviderGateway",
    "GroqProvider",
    "GeminiProvider",
    "extract_json_array",
]
