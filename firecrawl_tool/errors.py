"""Exceptions raised by the Firecrawl tool.

Transport failures are not wrapped: aiohttp's ``ClientError`` family
propagates as raised by the session.
"""

from typing import Optional


class FirecrawlToolError(Exception):
    """Base class for Firecrawl tool errors."""


class ConfigurationError(FirecrawlToolError):
    """Required credential missing; raised before any network call."""


class ValidationError(FirecrawlToolError):
    """Malformed operation parameters; raised before submission."""


class RemoteJobFailure(FirecrawlToolError):
    """The remote job reached its terminal failure status."""

    def __init__(self, message: str, job_id: Optional[str] = None, remote_error: Optional[str] = None):
        super().__init__(message)
        self.job_id = job_id
        self.remote_error = remote_error


class JobTimeoutError(FirecrawlToolError, TimeoutError):
    """Polling exhausted its attempt bound without a terminal status."""

    def __init__(self, message: str, job_id: Optional[str] = None, attempts: int = 0):
        super().__init__(message)
        self.job_id = job_id
        self.attempts = attempts
