"""
Credential and profile storage using the system keyring.

Holds the LLM API keys and the saved candidate profile text. Uses the
`keyring` library, which supports:
- Windows Credential Manager
- macOS Keychain
- Linux Secret Service (GNOME Keyring, KWallet)
"""

import logging
from typing import Dict, Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

logger = logging.getLogger(__name__)

# Service name for keyring entries
SERVICE_NAME = "jobcopilot"

PROFILE_KINDS = ("linkedin", "resume")


def get_api_key(provider: str) -> Optional[str]:
    """
    Retrieve API key for a provider from secure storage.

    Args:
        provider: Provider name ('groq' or 'gemini')

    Returns:
        API key string or None if not found
    """
    try:
        key = keyring.get_password(SERVICE_NAME, f"{provider}_api_key")
        if key:
            logger.debug(f"Retrieved API key for {provider} from keyring")
        return key or None
    except KeyringError as e:
        logger.error(f"Failed to retrieve API key for {provider}: {e}")
        return None


def set_api_key(provider: str, api_key: str) -> bool:
    """
    Store API key for a provider in secure storage.

    Returns:
        True if successful, False otherwise
    """
    try:
        keyring.set_password(SERVICE_NAME, f"{provider}_api_key", api_key)
        logger.info(f"Stored API key for {provider} in keyring")
        return True
    except KeyringError as e:
        logger.error(f"Failed to store API key for {provider}: {e}")
        return False


def delete_api_key(provider: str) -> bool:
    """Remove API key for a provider from secure storage."""
    try:
        keyring.delete_password(SERVICE_NAME, f"{provider}_api_key")
        logger.info(f"Deleted API key for {provider} from keyring")
        return True
    except PasswordDeleteError:
        logger.warning(f"No API key found for {provider} to delete")
        return False
    except KeyringError as e:
        logger.error(f"Failed to delete API key for {provider}: {e}")
        return False


def load_credentials(providers_config: Optional[Dict] = None) -> Dict[str, str]:
    """
    Collect the configured API keys for every known provider.

    A key set in the config file wins over the keyring entry. Providers
    without a key are left out of the result entirely.
    """
    from ..providers.factory import PROVIDER_ORDER

    providers_config = providers_config or {}
    credentials: Dict[str, str] = {}
    for name in PROVIDER_ORDER:
        key = providers_config.get(name, {}).get("api_key") or get_api_key(name)
        if key:
            credentials[name] = key
    return credentials


def get_profile(kind: str) -> str:
    """Return saved profile text ('linkedin' or 'resume'), or an empty string."""
    if kind not in PROFILE_KINDS:
        raise ValueError(f"Unknown profile kind: {kind}")
    try:
        return keyring.get_password(SERVICE_NAME, f"profile_{kind}") or ""
    except KeyringError as e:
        logger.error(f"Failed to retrieve {kind} profile: {e}")
        return ""


def set_profile(kind: str, text: str) -> bool:
    """Store parsed profile text for prompt context."""
    if kind not in PROFILE_KINDS:
        raise ValueError(f"Unknown profile kind: {kind}")
    try:
        keyring.set_password(SERVICE_NAME, f"profile_{kind}", text)
        logger.info(f"Stored {kind} profile ({len(text)} chars)")
        return True
    except KeyringError as e:
        logger.error(f"Failed to store {kind} profile: {e}")
        return False


def get_install_id() -> Optional[str]:
    """
    Return the anonymous install identifier, generating it on first use.

    Used only to derive the hashed telemetry uid.
    """
    try:
        install_id = keyring.get_password(SERVICE_NAME, "install_id")
        if not install_id:
            install_id = generate_install_id()
            keyring.set_password(SERVICE_NAME, "install_id", install_id)
        return install_id
    except KeyringError as e:
        logger.debug(f"Install id unavailable: {e}")
        return None


def generate_install_id() -> str:
    """
    Generate a random install identifier.

    Returns:
        A 16-byte hex-encoded token
    """
    import secrets

    return secrets.token_hex(16)
