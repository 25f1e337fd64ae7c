"""
Job Search Co-Pilot.

Triages sent-mail threads into job-search outreach, resolves who owes the
next reply, and suggests a play and a draft for each conversation.
"""

from .__version__ import __version__

__all__ = ["__version__"]
