"""Common contract for platform publishers.

Each publisher checks its preconditions (credentials, required media)
before any network call, runs its platform calls under the retry
executor and turns every known failure into a classified PublishResult.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable

from autopublish.credentials import AnyCredentials, PlatformCredentials
from autopublish.errors import (
    ErrorCategory,
    MissingCredentials,
    PlatformAPIError,
    PublishError,
    classify,
    describe_failure,
    is_retryable,
)
from autopublish.models import (
    ConnectionStatus,
    Platform,
    PublishContent,
    PublishOutcome,
    PublishResult,
)
from autopublish.retry import RetryError, RetryPolicy, with_retry
from autopublish.transport import HttpResponse, HttpTransport

logger = logging.getLogger(__name__)


class PlatformPublisher(ABC):
    platform: Platform
    default_api_url: str = ""

    def __init__(
        self,
        transport: HttpTransport,
        retry_policy: RetryPolicy | None = None,
        sleep_func: Callable[[float], None] | None = None,
        locale: str = "ru",
        api_url: str | None = None,
    ) -> None:
        self.transport = transport
        self.retry_policy = retry_policy or RetryPolicy()
        self.sleep_func = sleep_func
        self.locale = locale
        self.api_url = (api_url or self.default_api_url).rstrip("/")

    def publish(
        self,
        content: PublishContent,
        credentials: PlatformCredentials,
        business_name: str,
    ) -> PublishResult:
        """Publish content to the platform. Never raises for platform failures."""
        try:
            creds = self.required_credentials(credentials)
            self.check_content(content)
            outcome = self._publish(content, creds, business_name)
        except RetryError as exc:
            return self._failure(exc.last_error, exc.retries)
        except PublishError as exc:
            return self._failure(exc, exc.retries)

        logger.info(
            "Published to %s: %s (retries: %d)",
            self.platform.value, outcome.post_url, outcome.retries,
        )
        return PublishResult.published(
            self.platform, outcome.post_id, outcome.post_url, outcome.retries,
        )

    def test_connection(self, credentials: PlatformCredentials) -> ConnectionStatus:
        try:
            creds = self.required_credentials(credentials)
        except MissingCredentials as exc:
            return ConnectionStatus(False, error=str(exc))
        return self._test_connection(creds)

    def required_credentials(self, credentials: PlatformCredentials) -> AnyCredentials:
        bundle = credentials.for_platform(self.platform)
        if bundle is None:
            raise MissingCredentials(f"{self.platform.label} is not configured")
        return bundle

    def check_content(self, content: PublishContent) -> None:
        """Raise ContentValidationError when content cannot go to this platform."""

    @abstractmethod
    def _publish(
        self, content: PublishContent, creds: Any, business_name: str,
    ) -> PublishOutcome:
        ...

    @abstractmethod
    def _test_connection(self, creds: Any) -> ConnectionStatus:
        ...

    def _retry(self, operation: Callable[[], Any], policy: RetryPolicy | None = None) -> tuple[Any, int]:
        return with_retry(
            operation, policy or self.retry_policy, is_retryable, self.sleep_func,
        )

    def _failure(self, error: BaseException, retries: int) -> PublishResult:
        category = classify(error)
        message = describe_failure(self.platform, error, category)
        if category is ErrorCategory.TRANSIENT:
            logger.error("Publish to %s failed after %d retries: %s",
                         self.platform.value, retries, error)
        else:
            logger.warning("Publish to %s rejected (%s): %s",
                           self.platform.value, category.value, error)
        return PublishResult.failed(self.platform, message, retries, category.value)


GRAPH_API_URL = "https://graph.facebook.com/v18.0"


def check_graph_response(platform: Platform, response: HttpResponse) -> dict[str, Any]:
    """Return a Graph API body or raise its embedded error object."""
    body = response.body if isinstance(response.body, dict) else {}
    error = body.get("error")
    if isinstance(error, dict):
        raise PlatformAPIError(
            platform.value,
            error.get("message") or f"{platform.label} API error",
            code=error.get("code"),
            subcode=error.get("error_subcode"),
            status=response.status,
        )
    if not response.ok:
        raise PlatformAPIError(platform.value, f"HTTP {response.status}", status=response.status)
    return body


class GraphPublisher(PlatformPublisher):
    default_api_url = GRAPH_API_URL

    def _check(self, response: HttpResponse) -> dict[str, Any]:
        return check_graph_response(self.platform, response)
