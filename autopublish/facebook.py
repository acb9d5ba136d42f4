"""Facebook page publishing through the Graph API.

The endpoint depends on the content: an image goes to /photos, a link to
/feed with a link preview, anything else to /feed as plain text.
"""

from __future__ import annotations

from typing import Any

from autopublish.connection import IDENTITY, RESOURCE, describe_connection_failure
from autopublish.credentials import FacebookCredentials
from autopublish.errors import PlatformAPIError, PublishError
from autopublish.formatting import FACEBOOK, format_message
from autopublish.models import ConnectionStatus, Platform, PublishContent, PublishOutcome
from autopublish.publisher import GraphPublisher


class FacebookPublisher(GraphPublisher):
    platform = Platform.FACEBOOK

    def build_request(
        self, content: PublishContent, creds: FacebookCredentials, business_name: str,
    ) -> tuple[str, dict[str, Any]]:
        """Pick the endpoint and request arguments for the content."""
        if content.image_url:
            caption = format_message(content, business_name, FACEBOOK, locale=self.locale)
            return f"{self.api_url}/{creds.page_id}/photos", {"json_body": {
                "url": content.image_url,
                "caption": caption,
                "access_token": creds.access_token,
            }}
        if content.link:
            message = format_message(
                content, business_name, FACEBOOK, locale=self.locale, include_link=False,
            )
            return f"{self.api_url}/{creds.page_id}/feed", {"form": {
                "message": message,
                "link": content.link,
                "access_token": creds.access_token,
            }}
        message = format_message(content, business_name, FACEBOOK, locale=self.locale)
        return f"{self.api_url}/{creds.page_id}/feed", {"form": {
            "message": message,
            "access_token": creds.access_token,
        }}

    def _publish(
        self, content: PublishContent, creds: FacebookCredentials, business_name: str,
    ) -> PublishOutcome:
        url, kwargs = self.build_request(content, creds, business_name)

        def post() -> dict[str, Any]:
            return self._check(self.transport.request("POST", url, **kwargs))

        body, attempts = self._retry(post)
        # /photos returns the photo id plus the feed post_id; /feed only id
        post_id = body.get("post_id") or body.get("id")
        if not post_id:
            raise PlatformAPIError(
                self.platform.value, "Facebook response has no post id", retries=attempts - 1,
            )
        return PublishOutcome(
            post_id=str(post_id),
            post_url=f"https://www.facebook.com/{post_id}",
            retries=attempts - 1,
        )

    def _test_connection(self, creds: FacebookCredentials) -> ConnectionStatus:
        try:
            response = self.transport.request(
                "GET", f"{self.api_url}/me",
                params={"fields": "id,name", "access_token": creds.access_token},
            )
            self._check(response)
        except PublishError as exc:
            return describe_connection_failure(self.platform, exc, IDENTITY)

        try:
            response = self.transport.request(
                "GET", f"{self.api_url}/{creds.page_id}",
                params={"fields": "name", "access_token": creds.access_token},
            )
            page = self._check(response)
        except PublishError as exc:
            return describe_connection_failure(
                self.platform, exc, RESOURCE, resource=f"page {creds.page_id}",
            )
        return ConnectionStatus(True, info=f"Connected to: {page.get('name', creds.page_id)}")
