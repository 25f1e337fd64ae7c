"""
Configuration loader for Job Search Co-Pilot.

Behavior:
- Looks for a config path passed explicitly, then in env var `JOBCOPILOT_CONFIG`.
- Falls back to `jobcopilot/config.json` next to the package.
- If nothing is found, uses conservative defaults.

Loaded files are validated against `json_schema/config.schema.json` and
deep-merged over the defaults, so a file only needs the keys it changes.
"""

import copy
import json
import os
from typing import Any, Dict, Optional

from jsonschema import ValidationError, validate

from ..exceptions import ConfigError
from .logger import logger

DEFAULT_CONFIG: Dict[str, Any] = {
    "lookback": 50,
    "followup_days": 5,
    "batch_size": 10,
    "snippet_chars": 300,
    "use_llm": True,
    "final_categories": ["Offer", "Final Round", "Contract"],
    "blocked_domains": [],
    "owner_email": "",
    "cache_path": os.path.join("~", ".jobcopilot", "cache.json"),
    "table_path": "dashboard.csv",
    "mail_source": {"mbox_path": ""},
    "providers": {
        "groq": {"model": "llama-3.3-70b-versatile", "timeout": 60},
        "gemini": {"model": "gemini-1.5-flash", "timeout": 60},
    },
    "telemetry": {"enabled": False, "endpoint": ""},
    "smtp": {
        "host": "",
        "port": 587,
        "user": "",
        "password_env": "JOBCOPILOT_SMTP_PASS",
        "use_tls": True,
    },
    "log_level": "INFO",
}

_SCHEMA_PATH = os.path.join(
    os.path.dirname(__file__), "..", "json_schema", "config.schema.json"
)

_config_cache: Dict[str, Any] = {}


def _default_config_path() -> str:
    base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    return os.path.join(base_dir, "config.json")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from JSON with sensible fallbacks.

    An existing file that fails schema validation raises ConfigError rather
    than silently falling back: running a sync with a half-applied config
    would classify against the wrong lookback or thresholds.

    Each call returns its own copy, so callers may modify the result.
    """
    global _config_cache
    if _config_cache and path is None:
        return copy.deepcopy(_config_cache)

    candidates = []
    if path:
        candidates.append(path)
    env_path = os.environ.get("JOBCOPILOT_CONFIG")
    if env_path:
        candidates.append(env_path)
    candidates.append(_default_config_path())

    for p in candidates:
        p_abs = os.path.abspath(os.path.expanduser(p))
        if not os.path.exists(p_abs):
            continue
        try:
            with open(p_abs, "r", encoding="utf-8") as f:
                cfg = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in config file {p_abs}: {e}") from e

        validate_config(cfg)
        merged = _deep_merge(DEFAULT_CONFIG, cfg)
        _config_cache = merged
        logger.info(f"Configuration loaded from {p_abs}")
        return copy.deepcopy(merged)

    logger.warning(
        "No config found; using default configuration. "
        "Create 'jobcopilot/config.json' or set JOBCOPILOT_CONFIG to customize."
    )
    _config_cache = copy.deepcopy(DEFAULT_CONFIG)
    return copy.deepcopy(_config_cache)


def validate_config(cfg: Dict[str, Any]) -> None:
    """Validate a configuration dict against the JSON Schema.

    Raises ConfigError on an invalid config.
    """
    if not isinstance(cfg, dict):
        raise ConfigError("Configuration must be a JSON object/dict")

    with open(_SCHEMA_PATH, "r", encoding="utf-8") as f:
        schema = json.load(f)

    try:
        validate(instance=cfg, schema=schema)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e.message}") from e


def reset_config() -> None:
    """Drop the cached configuration (mainly for testing)."""
    global _config_cache
    _config_cache = {}


if __name__ == "__main__":
    print(json.dumps(load_config(), indent=2))
