"""
Error taxonomy for ProcessLink nodes and lookups.

- Configuration and validation errors surface before any network activity
- Transport errors (connection, DNS, timeouts) abort the enclosing operation
- Security rejections (untrusted redirect targets) are transport errors
- Degraded data (bad status, unparseable body) never raises; callers absorb it
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ErrorCategory(str, Enum):
    """Classification of errors for handling decisions."""
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    SECURITY = "security"
    UNKNOWN = "unknown"


class ProcessLinkError(Exception):
    category = ErrorCategory.UNKNOWN
    is_retryable = False


class ConfigurationError(ProcessLinkError, ValueError):
    """Missing config node, site id or API key."""
    category = ErrorCategory.CONFIGURATION


class ValidationError(ProcessLinkError, ValueError):
    """Missing or malformed message fields."""
    category = ErrorCategory.VALIDATION


class TransportError(ProcessLinkError):
    """The request could not be completed (connection refused, DNS failure...)."""
    category = ErrorCategory.TRANSPORT
    is_retryable = True


class RequestTimeoutError(TransportError):
    category = ErrorCategory.TIMEOUT

    def __init__(self, message: str = "Request timeout"):
        super().__init__(message)


class RedirectBlockedError(TransportError):
    """A redirect pointed at a host outside the allow-list."""
    category = ErrorCategory.SECURITY
    is_retryable = False

    def __init__(self, hostname: Optional[str]):
        self.hostname = hostname
        super().__init__(f"Redirect to untrusted domain blocked: {hostname}")


class TooManyRedirectsError(TransportError):
    def __init__(self, max_redirects: int):
        self.max_redirects = max_redirects
        super().__init__(f"Too many redirects (limit {max_redirects})")


@dataclass
class ErrorContext:
    """Structured error information for logging."""
    category: ErrorCategory
    message: str
    is_retryable: bool
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "message": self.message,
            "is_retryable": self.is_retryable,
            "suggestion": self.suggestion,
        }


SUGGESTIONS = {
    ErrorCategory.CONFIGURATION: "Select a Process Link config node with a Site ID and API Key.",
    ErrorCategory.VALIDATION: "Check the message carries the fields the node expects.",
    ErrorCategory.TRANSPORT: "Check your network connection and try again.",
    ErrorCategory.TIMEOUT: "The service took too long to answer. Try again or raise the node timeout.",
    ErrorCategory.SECURITY: "The service redirected to an unexpected host; the request was not sent.",
    ErrorCategory.UNKNOWN: "An unexpected error occurred. Check the logs for details.",
}


def describe_error(error: BaseException) -> ErrorContext:
    """Classify an error and return structured context."""
    category = getattr(error, "category", ErrorCategory.UNKNOWN)
    return ErrorContext(
        category=category,
        message=str(error) or error.__class__.__name__,
        is_retryable=getattr(error, "is_retryable", False),
        suggestion=SUGGESTIONS.get(category),
    )
