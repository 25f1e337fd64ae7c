"""
Groq provider for cloud LLM inference.

Groq serves an OpenAI-compatible chat completions API, so the request and
response shapes are the OpenAI ones with a bearer token.
"""

import logging
import time
from typing import Dict, Optional

import requests

from .base import FailureReason, LLMProvider, ProviderResponse

logger = logging.getLogger(__name__)


class GroqProvider(LLMProvider):
    """
    Groq provider (first in the failover order).

    Features:
    - llama-3.3-70b-versatile by default
    - Bearer-token auth; 401 means the key was rejected
    - Low temperature (0.2) for consistent JSON arrays
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize Groq provider.

        Args:
            config: Provider configuration with:
                - model: Model name (default: llama-3.3-70b-versatile)
                - base_url: API base URL (for proxies)
                - timeout: Request timeout in seconds
                - temperature: Sampling temperature
        """
        config = config or {}
        self.model = config.get("model", "llama-3.3-70b-versatile")
        self.base_url = config.get("base_url", "https://api.groq.com/openai/v1")
        self.timeout = config.get("timeout", 60)
        self.temperature = config.get("temperature", 0.2)

    def get_name(self) -> str:
        return "groq"

    def call(self, prompt: str, api_key: str) -> ProviderResponse:
        start_time = time.time()
        try:
            response = requests.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model,
                    "messages": [{"role": "user", "content": prompt}],
                    "temperature": self.temperature,
                },
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Groq request failed: {e}")
            return ProviderResponse.fail(FailureReason.NETWORK)

        latency_ms = int((time.time() - start_time) * 1000)

        if response.status_code != 200:
            reason = self.reason_for_status(response.status_code, auth_codes=(401,))
            logger.warning(f"Groq returned HTTP {response.status_code} ({reason.value})")
            return ProviderResponse.fail(reason, response.status_code, latency_ms)

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Unexpected Groq response shape: {e}")
            return ProviderResponse.fail(FailureReason.NO_CONTENT, 200, latency_ms)

        if not content:
            return ProviderResponse.fail(FailureReason.NO_CONTENT, 200, latency_ms)

        return ProviderResponse.ok(content, latency_ms)
