"""Container publish workflow for Instagram.

Instagram posts go through three strictly sequential steps:

  create   → POST an image URL and caption, get a media container id
  poll     → GET the container status at a fixed interval until FINISHED
  finalize → POST the container id to media_publish, get the media id

Create and finalize are retried; polling has its own fixed-interval,
fixed-ceiling loop. A permalink lookup after finalize is best effort.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from autopublish.credentials import InstagramCredentials
from autopublish.errors import (
    ContainerProcessingError,
    ContainerTimeout,
    PlatformAPIError,
    PublishError,
    is_retryable,
)
from autopublish.models import ContainerState, Platform, PublishOutcome
from autopublish.publisher import check_graph_response
from autopublish.retry import RetryError, RetryPolicy, with_retry
from autopublish.transport import HttpResponse, HttpTransport

logger = logging.getLogger(__name__)

POLL_INTERVAL = 3.0
MAX_POLLS = 20
STEP_MAX_ATTEMPTS = 2
FALLBACK_URL = "https://www.instagram.com/"

_STATUS_MAP = {
    "FINISHED": ContainerState.FINISHED,
    "PUBLISHED": ContainerState.FINISHED,
    "ERROR": ContainerState.ERROR,
    "EXPIRED": ContainerState.ERROR,
}


class ContainerWorkflow:
    """One run of create → poll → finalize for a single post."""

    def __init__(
        self,
        transport: HttpTransport,
        graph_url: str,
        credentials: InstagramCredentials,
        policy: RetryPolicy | None = None,
        sleep_func: Callable[[float], None] | None = None,
        poll_interval: float = POLL_INTERVAL,
        max_polls: int = MAX_POLLS,
    ) -> None:
        self._transport = transport
        self._graph_url = graph_url.rstrip("/")
        self._creds = credentials
        self._policy = (policy or RetryPolicy()).capped(STEP_MAX_ATTEMPTS)
        self._sleep = sleep_func or time.sleep
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.state: ContainerState | None = None
        self.polls = 0
        self.retries = 0

    def _check(self, response: HttpResponse) -> dict[str, Any]:
        return check_graph_response(Platform.INSTAGRAM, response)

    def _post(self, path: str, payload: dict[str, Any]) -> str:
        response = self._transport.request(
            "POST", f"{self._graph_url}/{path}", json_body=payload,
        )
        body = self._check(response)
        if not body.get("id"):
            raise PlatformAPIError(Platform.INSTAGRAM.value, f"No id returned by {path}")
        return str(body["id"])

    def _step(self, path: str, payload: dict[str, Any]) -> str:
        try:
            result, attempts = with_retry(
                lambda: self._post(path, payload), self._policy, is_retryable, self._sleep,
            )
        except RetryError as exc:
            self.retries += exc.retries
            raise RetryError(self.retries + 1, exc.last_error) from exc.last_error
        self.retries += attempts - 1
        return result

    def create(self, caption: str, image_url: str) -> str:
        container_id = self._step(f"{self._creds.business_account_id}/media", {
            "image_url": image_url,
            "caption": caption,
            "access_token": self._creds.access_token,
        })
        self.state = ContainerState.CREATED
        logger.debug("Created Instagram container %s", container_id)
        return container_id

    def status(self, container_id: str) -> ContainerState:
        response = self._transport.request(
            "GET", f"{self._graph_url}/{container_id}",
            params={"fields": "status_code", "access_token": self._creds.access_token},
        )
        body = self._check(response)
        code = str(body.get("status_code", "")).upper()
        return _STATUS_MAP.get(code, ContainerState.IN_PROGRESS)

    def wait_until_ready(self, container_id: str) -> None:
        """Poll at a fixed interval until the container is FINISHED.

        Raises:
            ContainerProcessingError: Platform reported ERROR or EXPIRED.
            ContainerTimeout: Still not finished after max_polls polls.
            PublishError: A poll failed with an expired or invalid token;
                other poll failures count as in progress.
        """
        while self.polls < self.max_polls:
            self._sleep(self.poll_interval)
            self.polls += 1
            try:
                self.state = self.status(container_id)
            except PublishError as exc:
                if not is_retryable(exc):
                    exc.retries = self.retries
                    raise
                logger.warning("Container %s status poll %d failed: %s",
                               container_id, self.polls, exc)
                self.state = ContainerState.IN_PROGRESS
                continue
            if self.state is ContainerState.FINISHED:
                return
            if self.state is ContainerState.ERROR:
                raise ContainerProcessingError(
                    "Instagram container processing failed", retries=self.retries,
                )
        raise ContainerTimeout(
            f"Instagram processing timeout after {self.polls} status checks",
            retries=self.retries,
        )

    def finalize(self, container_id: str) -> str:
        return self._step(f"{self._creds.business_account_id}/media_publish", {
            "creation_id": container_id,
            "access_token": self._creds.access_token,
        })

    def permalink(self, media_id: str) -> str:
        """Resolve the post permalink; falls back to the generic Instagram URL."""
        try:
            response = self._transport.request(
                "GET", f"{self._graph_url}/{media_id}",
                params={"fields": "permalink", "access_token": self._creds.access_token},
            )
            link = self._check(response).get("permalink")
        except PublishError as exc:
            logger.info("Permalink lookup for %s failed: %s", media_id, exc)
            return FALLBACK_URL
        return link or FALLBACK_URL

    def run(self, caption: str, image_url: str) -> PublishOutcome:
        container_id = self.create(caption, image_url)
        self.wait_until_ready(container_id)
        media_id = self.finalize(container_id)
        return PublishOutcome(
            post_id=media_id, post_url=self.permalink(media_id), retries=self.retries,
        )
