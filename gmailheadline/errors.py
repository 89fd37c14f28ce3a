"""Exception hierarchy for gmail-headline runs."""

from typing import Optional


class HeadlineError(Exception):
    """Base class for every error that ends a run.

    ``stage`` names the pipeline stage that was running when the error
    surfaced (``"session"``, ``"retrieve"``, ``"mark-read"`` or ``"delete"``).
    It is filled in by the orchestrator if the raising code left it empty.
    """

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage


class ConfigError(HeadlineError):
    """Configuration file missing, unreadable or malformed"""


class CredentialError(HeadlineError):
    """Client secret unreadable or the OAuth exchange failed"""


class SinkError(HeadlineError):
    """Output file could not be opened or written"""


class RemoteError(HeadlineError):
    """A Gmail API call failed"""

    def __init__(self, message: str, status: Optional[int] = None, stage: Optional[str] = None):
        super().__init__(message, stage=stage)
        self.status = status
