"""
Exceptions raised past the triage pipeline.

LLM failures never show up here: providers report them as typed
ProviderResponse failures and rows degrade to fallback values instead.
"""


class JobCopilotError(Exception):
    """Base class for errors surfaced to the caller."""


class MailSourceError(JobCopilotError):
    """The sent-thread list could not be fetched at all."""


class ConfigError(JobCopilotError):
    """Configuration file is present but invalid."""
