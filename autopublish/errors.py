"""Error taxonomy and failure classification for platform publishes.

Every failure inside a platform publish is labelled with an ErrorCategory.
The category decides whether a retry can help and which message the
business owner sees.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from autopublish.models import Platform


# Graph API family codes for expired, revoked or invalidated sessions
TOKEN_ERROR_CODES = frozenset({190, 463, 102})


class ErrorCategory(Enum):
    TOKEN_EXPIRED = "token_expired"
    VALIDATION = "validation"
    TRANSIENT = "transient"


class PublishError(Exception):
    """Base class for all publish failures."""

    category: ErrorCategory | None = None

    def __init__(self, message: str, retries: int = 0) -> None:
        self.message = message
        self.retries = retries
        super().__init__(message)


class MissingCredentials(PublishError):
    """Required credential fields are absent; no network call was made."""
    category = ErrorCategory.VALIDATION


class ContentValidationError(PublishError):
    """Content cannot be published on the platform as it is."""
    category = ErrorCategory.VALIDATION


class TokenExpired(PublishError):
    category = ErrorCategory.TOKEN_EXPIRED


class TransientNetworkError(PublishError):
    """Connection failure, timeout or an unreadable response."""


class PlatformAPIError(PublishError):
    """A platform answered with a non-2xx status or an embedded error object."""

    def __init__(
        self,
        platform: str,
        message: str,
        code: int | None = None,
        subcode: int | None = None,
        status: int | None = None,
        retries: int = 0,
    ) -> None:
        self.platform = platform
        self.code = code
        self.subcode = subcode
        self.status = status
        super().__init__(message, retries)

    def __str__(self) -> str:
        if self.code is not None:
            return f"{self.message} (code {self.code})"
        return self.message


class ContainerProcessingError(PublishError):
    def __init__(self, message: str = "container processing failed", retries: int = 0) -> None:
        super().__init__(message, retries)


class ContainerTimeout(PublishError):
    def __init__(self, message: str = "processing timeout", retries: int = 0) -> None:
        super().__init__(message, retries)


def _unwrap(error: BaseException) -> BaseException:
    from autopublish.retry import RetryError

    while isinstance(error, RetryError):
        error = error.last_error
    return error


def classify(error: BaseException) -> ErrorCategory:
    """Label a failure as token_expired, validation or transient."""
    error = _unwrap(error)

    category = getattr(error, "category", None)
    if isinstance(category, ErrorCategory):
        return category

    for attr in ("code", "subcode"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and value in TOKEN_ERROR_CODES:
            return ErrorCategory.TOKEN_EXPIRED

    text = str(error).lower()
    if "token" in text and ("expired" in text or "invalid" in text):
        return ErrorCategory.TOKEN_EXPIRED

    return ErrorCategory.TRANSIENT


def is_retryable(error: BaseException) -> bool:
    """Shared retry predicate: retrying an expired token cannot help."""
    return classify(error) is not ErrorCategory.TOKEN_EXPIRED


def describe_failure(
    platform: Platform | str,
    error: BaseException,
    category: ErrorCategory | None = None,
) -> str:
    """Build the user-facing message for a failed publish."""
    error = _unwrap(error)
    category = category or classify(error)
    label = getattr(platform, "label", str(platform))
    raw = str(error) or type(error).__name__

    if category is ErrorCategory.TOKEN_EXPIRED:
        return (
            f"{label} access token has expired or been revoked. "
            f"Reconnect your {label} account in auto-publish settings. ({raw})"
        )
    if category is ErrorCategory.VALIDATION:
        return raw
    return f"{label} publish failed: {raw}"
