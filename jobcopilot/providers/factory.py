"""
Provider factory and selection policy.

Single entry point to instantiate a provider by name, plus the fixed
preference order used to pick a provider and to fail over to the next one.
"""

import logging
from typing import Dict, List, Mapping, Optional, Type

from .base import LLMProvider
from .gemini_provider import GeminiProvider
from .groq_provider import GroqProvider

logger = logging.getLogger(__name__)

# Failover order: earlier entries are always tried first
PROVIDER_ORDER = ("groq", "gemini")


class ProviderFactory:
    """
    Registry of provider classes.

    Instances are created fresh on each call: a provider is cheap to build
    and holds no connection, and each sync gets its own gateway.
    """

    _providers: Dict[str, Type[LLMProvider]] = {}

    @classmethod
    def register(cls, name: str, provider_class: Type[LLMProvider]) -> None:
        """
        Register a provider class.

        Args:
            name: Provider identifier (e.g., 'groq', 'gemini')
            provider_class: LLMProvider subclass
        """
        cls._providers[name] = provider_class
        logger.debug(f"Registered provider: {name}")

    @classmethod
    def create(cls, name: str, config: Optional[Dict] = None) -> LLMProvider:
        """
        Create a provider instance.

        Raises:
            ValueError: If provider name is unknown
        """
        if name not in cls._providers:
            available = list(cls._providers.keys())
            raise ValueError(f"Unknown provider: '{name}'. Available: {available}")
        return cls._providers[name](config or {})

    @classmethod
    def create_all(cls, providers_config: Optional[Dict] = None) -> Dict[str, LLMProvider]:
        """Instantiate every provider in PROVIDER_ORDER with its config section."""
        providers_config = providers_config or {}
        return {
            name: cls.create(name, providers_config.get(name, {}))
            for name in PROVIDER_ORDER
            if cls.is_registered(name)
        }

    @classmethod
    def list_providers(cls) -> List[str]:
        """List all registered provider names."""
        return list(cls._providers.keys())

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._providers

    @classmethod
    def unregister(cls, name: str) -> bool:
        """Unregister a provider (mainly for testing)."""
        return cls._providers.pop(name, None) is not None


def select_provider(credentials: Mapping[str, str]) -> Optional[str]:
    """First provider in PROVIDER_ORDER with a configured credential, or None."""
    for name in PROVIDER_ORDER:
        if credentials.get(name):
            return name
    return None


def next_provider(current: Optional[str], credentials: Mapping[str, str]) -> Optional[str]:
    """
    Next configured provider after `current` in PROVIDER_ORDER, or None when exhausted.

    An unknown `current` restarts from the top of the order.
    """
    start = PROVIDER_ORDER.index(current) + 1 if current in PROVIDER_ORDER else 0
    for name in PROVIDER_ORDER[start:]:
        if credentials.get(name):
            return name
    return None


ProviderFactory.register("groq", GroqProvider)
ProviderFactory.register("gemini", GeminiProvider)
