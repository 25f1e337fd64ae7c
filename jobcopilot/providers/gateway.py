"""
LLM provider gateway.

Uniform call interface over the configured providers, with the failover
chain used by every LLM stage. Each provider is tried at most once per
request; there is no retry-with-backoff and no proactive throttle. A 429 is
simply a reason to move on to the next provider.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .base import FailureReason, LLMProvider, ProviderResponse
from .factory import ProviderFactory, next_provider, select_provider

logger = logging.getLogger(__name__)

KEY_TEST_PROMPT = "Reply with exactly: OK"


@dataclass
class FailoverResult:
    """
    Outcome of a request routed through the failover chain.

    Attributes:
        success: Whether some provider returned an acceptable response
        value: Parsed value (parse callback output, or the raw content)
        provider: Provider that produced the value
        reason: FailureReason value when every attempt failed
        attempts: (provider, outcome) pairs in the order tried
    """
    success: bool
    value: Any = None
    provider: Optional[str] = None
    reason: Optional[str] = None
    attempts: List[Tuple[str, str]] = field(default_factory=list)


class ProviderGateway:
    """
    Routes prompts to providers using the fixed preference order.

    Usage:
        gateway = ProviderGateway({"groq": "gsk_...", "gemini": "AIza..."})
        result = gateway.call_with_failover(prompt, parse=extract_json_array)
        if result.success:
            rows = result.value
    """

    def __init__(
        self,
        credentials: Mapping[str, str],
        providers: Optional[Dict[str, LLMProvider]] = None,
        providers_config: Optional[Dict] = None,
    ):
        """
        Args:
            credentials: provider name -> API key (missing/empty = not configured)
            providers: Pre-built provider instances (tests inject fakes here)
            providers_config: Per-provider config used when building instances
        """
        self.credentials = {k: v for k, v in dict(credentials or {}).items() if v}
        self.providers = providers if providers is not None else ProviderFactory.create_all(providers_config)
        self.calls = 0

    @property
    def has_credentials(self) -> bool:
        return self.select_provider() is not None

    def select_provider(self) -> Optional[str]:
        return select_provider(self._usable_credentials())

    def next_provider(self, current: Optional[str]) -> Optional[str]:
        return next_provider(current, self._usable_credentials())

    def _usable_credentials(self) -> Dict[str, str]:
        return {k: v for k, v in self.credentials.items() if k in self.providers}

    def call(self, provider_id: str, prompt: str, api_key: Optional[str] = None) -> ProviderResponse:
        """
        One round-trip to one provider. Never raises.

        Args:
            provider_id: Provider name
            prompt: Prompt text
            api_key: Override credential (defaults to the configured one)
        """
        key = api_key or self.credentials.get(provider_id)
        if not key:
            return ProviderResponse.fail(FailureReason.NO_KEY)

        provider = self.providers.get(provider_id)
        if provider is None:
            logger.error(f"Provider '{provider_id}' is not available")
            return ProviderResponse.fail(FailureReason.NO_KEY)

        self.calls += 1
        try:
            return provider.call(prompt, key)
        except Exception as e:
            logger.error(f"Provider '{provider_id}' raised: {e}", exc_info=True)
            return ProviderResponse.fail(FailureReason.NETWORK)

    def call_with_failover(
        self,
        prompt: str,
        start: Optional[str] = None,
        parse: Optional[Callable[[str], Any]] = None,
    ) -> FailoverResult:
        """
        Send the same prompt down the provider chain until one succeeds.

        Args:
            prompt: Prompt text, resent unchanged to each provider
            start: Provider to try first (default: first configured)
            parse: Validates/parses the content; returning None marks the
                response malformed and advances the chain

        Returns:
            FailoverResult. When exhausted, `reason` is the single attempted
            provider's failure, or ALL_FAILED when several were tried.
        """
        provider = start if start and self.credentials.get(start) else self.select_provider()
        if provider is None:
            return FailoverResult(success=False, reason=FailureReason.NO_KEY.value)

        attempts: List[Tuple[str, str]] = []
        while provider:
            logger.debug(f"LLM request via {provider}")
            response = self.call(provider, prompt)

            if response.success:
                value = parse(response.content) if parse else response.content
                if value is not None:
                    attempts.append((provider, "ok"))
                    return FailoverResult(
                        success=True, value=value, provider=provider, attempts=attempts
                    )
                attempts.append((provider, FailureReason.PARSE_ERROR.value))
                logger.warning(f"{provider} returned an unparsable response")
            else:
                attempts.append((provider, response.reason))
                logger.warning(f"{provider} failed: {response.reason}")

            provider = self.next_provider(provider)
            if provider:
                logger.info(f"Failing over to {provider}")

        reason = attempts[0][1] if len(attempts) == 1 else FailureReason.ALL_FAILED.value
        return FailoverResult(success=False, reason=reason, attempts=attempts)

    def test_key(self, provider_id: str, api_key: str) -> bool:
        """Check a candidate key with a trivial prompt."""
        response = self.call(provider_id, KEY_TEST_PROMPT, api_key=api_key)
        if not response.success:
            logger.warning(f"Key check for {provider_id} failed: {response.reason}")
        return response.success
