"""
Error taxonomy for repository analysis.

Every failure that leaves the service is an ``AnalysisError`` subclass and is
rendered as an RFC 7807 style problem body by ``to_problem``.
"""

from enum import Enum
from http import HTTPStatus
from typing import Any, Dict, Optional


SUPPORTED_PLATFORMS_TEXT = "GitHub, GitLab, Bitbucket, Azure DevOps, Codeberg, Gitea, SourceHut"


class AnalysisError(Exception):
    """Base exception for analysis failures."""

    status: int = 500

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status

    @property
    def title(self) -> str:
        try:
            return HTTPStatus(self.status).phrase
        except ValueError:
            return "Error"

    def to_problem(self) -> Dict[str, Any]:
        """Render the error as a problem-details dictionary."""
        return {
            "type": f"https://httpstatuses.com/{self.status}",
            "title": self.title,
            "status": self.status,
            "detail": self.message,
        }


class ValidationError(AnalysisError):
    """The request itself is malformed."""
    status = 400


class ParseFailureReason(str, Enum):
    """Why a repository URL could not be parsed."""
    EMPTY = "empty"
    UNRECOGNIZED = "unrecognized"


class UrlParseError(ValidationError):
    """A repository URL is empty or matches no supported platform shape."""

    def __init__(self, reason: ParseFailureReason, url: str = ""):
        if reason == ParseFailureReason.EMPTY:
            message = "Repository URL is required"
        else:
            message = f"Invalid repository URL. Supported platforms: {SUPPORTED_PLATFORMS_TEXT}."
        super().__init__(message)
        self.reason = reason
        self.url = url


class AuthError(AnalysisError):
    """The caller, or the target platform, requires credentials."""
    status = 401


class UpstreamError(AnalysisError):
    """A hosting platform failed or answered with something unexpected."""
    status = 500

    def __init__(self, message: str, platform: Optional[str] = None, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.platform = platform
        self.upstream_status = upstream_status


class NotFoundError(UpstreamError):
    """The repository does not exist or is private."""


class RateLimitError(AnalysisError):
    """The caller is analyzing repositories too quickly."""
    status = 429

    def __init__(self, message: str, retry_after: int):
        super().__init__(message)
        self.retry_after = retry_after


class InternalError(AnalysisError):
    """Anything unexpected that happened while orchestrating an analysis."""
    status = 500

    def __init__(self, message: str = "Failed to analyze repository"):
        super().__init__(message)
