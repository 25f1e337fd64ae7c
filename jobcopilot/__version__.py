"""
Job Search Co-Pilot - Version and metadata
"""

__version__ = "1.2.0"
__author__ = "Job Search Co-Pilot Contributors"
__license__ = "MIT"
__description__ = "Sent-mail triage for job search outreach with LLM plays and drafts"
