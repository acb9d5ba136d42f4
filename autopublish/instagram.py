"""Instagram business account publishing through the Graph API container workflow."""

from __future__ import annotations

from typing import Any, Sequence

from autopublish.connection import IDENTITY, describe_connection_failure
from autopublish.container import MAX_POLLS, POLL_INTERVAL, ContainerWorkflow
from autopublish.credentials import InstagramCredentials
from autopublish.errors import ContentValidationError, PublishError
from autopublish.formatting import format_container_post
from autopublish.models import ConnectionStatus, Platform, PublishContent, PublishOutcome
from autopublish.publisher import GraphPublisher


class InstagramPublisher(GraphPublisher):
    platform = Platform.INSTAGRAM

    def __init__(
        self,
        *args: Any,
        hashtags: Sequence[str] = (),
        poll_interval: float = POLL_INTERVAL,
        max_polls: int = MAX_POLLS,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.hashtags = tuple(hashtags)
        self.poll_interval = poll_interval
        self.max_polls = max_polls

    def check_content(self, content: PublishContent) -> None:
        if not content.image_url:
            raise ContentValidationError("Instagram requires an image")

    def workflow(self, creds: InstagramCredentials) -> ContainerWorkflow:
        return ContainerWorkflow(
            self.transport,
            self.api_url,
            creds,
            policy=self.retry_policy,
            sleep_func=self.sleep_func,
            poll_interval=self.poll_interval,
            max_polls=self.max_polls,
        )

    def _publish(
        self, content: PublishContent, creds: InstagramCredentials, business_name: str,
    ) -> PublishOutcome:
        post = format_container_post(
            content, business_name, locale=self.locale, hashtags=self.hashtags,
        )
        return self.workflow(creds).run(post.caption, post.image_url)

    def _test_connection(self, creds: InstagramCredentials) -> ConnectionStatus:
        try:
            response = self.transport.request(
                "GET", f"{self.api_url}/{creds.business_account_id}",
                params={"fields": "username", "access_token": creds.access_token},
            )
            account = self._check(response)
        except PublishError as exc:
            return describe_connection_failure(self.platform, exc, IDENTITY)
        return ConnectionStatus(True, info=f"Connected to: @{account.get('username', '')}")
