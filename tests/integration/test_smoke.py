"""
Smoke tests for a fresh install.

Verify that every module imports and that the packaged schema ships with the
code.
"""

import importlib
import os

import pytest

MODULES = [
    "jobcopilot.main",
    "jobcopilot.core.orchestrator",
    "jobcopilot.core.rules",
    "jobcopilot.core.privacy",
    "jobcopilot.core.triage_cache",
    "jobcopilot.core.prompt_engine",
    "jobcopilot.core.status",
    "jobcopilot.core.digest",
    "jobcopilot.core.context_parser",
    "jobcopilot.core.render",
    "jobcopilot.providers.gateway",
    "jobcopilot.providers.groq_provider",
    "jobcopilot.providers.gemini_provider",
    "jobcopilot.sources.mbox_source",
    "jobcopilot.utils.config",
    "jobcopilot.utils.secrets",
    "jobcopilot.utils.telemetry",
    "jobcopilot.utils.notify",
]


class TestModuleImports:
    @pytest.mark.parametrize("module_name", MODULES)
    def test_importable(self, module_name):
        try:
            assert importlib.import_module(module_name) is not None
        except ImportError as e:
            pytest.fail(f"Failed to import {module_name}: {e}")


class TestPackaging:
    def test_schema_shipped(self):
        import jobcopilot

        schema = os.path.join(os.path.dirname(jobcopilot.__file__), "json_schema", "config.schema.json")
        assert os.path.exists(schema)

    def test_version(self):
        from jobcopilot import __version__

        assert __version__.count(".") == 2
