"""Logging, configuration, secrets and delivery helpers."""
