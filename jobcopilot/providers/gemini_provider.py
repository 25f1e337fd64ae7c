"""
Google Gemini provider for cloud LLM inference.

Uses the generateContent REST endpoint with the API key in the query string.
"""

import logging
import time
from typing import Dict, Optional

import requests

from .base import FailureReason, LLMProvider, ProviderResponse

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """
    Google Gemini provider (second in the failover order).

    Gemini answers an invalid key with HTTP 400 rather than 401, so 400, 401
    and 403 all map to an auth failure.
    """

    AUTH_STATUS_CODES = (400, 401, 403)

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize Gemini provider.

        Args:
            config: Provider configuration with:
                - model: Model name (default: gemini-1.5-flash)
                - base_url: API base URL
                - timeout: Request timeout in seconds
        """
        config = config or {}
        self.model = config.get("model", "gemini-1.5-flash")
        self.base_url = config.get(
            "base_url", "https://generativelanguage.googleapis.com/v1beta"
        )
        self.timeout = config.get("timeout", 60)

    def get_name(self) -> str:
        return "gemini"

    def call(self, prompt: str, api_key: str) -> ProviderResponse:
        start_time = time.time()
        endpoint = f"{self.base_url}/models/{self.model}:generateContent"
        try:
            response = requests.post(
                endpoint,
                params={"key": api_key},
                headers={"Content-Type": "application/json"},
                json={"contents": [{"parts": [{"text": prompt}]}]},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            # The exception text may carry the URL, and with it the key
            logger.error(f"Gemini request failed: {type(e).__name__}")
            return ProviderResponse.fail(FailureReason.NETWORK)

        latency_ms = int((time.time() - start_time) * 1000)

        if response.status_code != 200:
            reason = self.reason_for_status(response.status_code, self.AUTH_STATUS_CODES)
            logger.warning(f"Gemini returned HTTP {response.status_code} ({reason.value})")
            return ProviderResponse.fail(reason, response.status_code, latency_ms)

        try:
            data = response.json()
        except ValueError:
            logger.error("Gemini returned a non-JSON body")
            return ProviderResponse.fail(FailureReason.NO_CONTENT, 200, latency_ms)

        candidates = data.get("candidates") or []
        if not candidates:
            logger.error("No candidates in Gemini response")
            return ProviderResponse.fail(FailureReason.NO_CONTENT, 200, latency_ms)

        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = parts[0].get("text") if parts else None
        if not text:
            logger.error("No text part in Gemini response")
            return ProviderResponse.fail(FailureReason.NO_CONTENT, 200, latency_ms)

        return ProviderResponse.ok(text, latency_ms)
