"""VK community wall publishing through the VK API."""

from __future__ import annotations

from typing import Any

from autopublish.connection import IDENTITY, RESOURCE, describe_connection_failure
from autopublish.credentials import VkCredentials
from autopublish.errors import PlatformAPIError, PublishError
from autopublish.formatting import VK, format_message
from autopublish.models import ConnectionStatus, Platform, PublishContent, PublishOutcome
from autopublish.publisher import PlatformPublisher

API_VERSION = "5.131"

# VK error 5: user authorization failed
AUTH_FAILED = 5


class VkPublisher(PlatformPublisher):
    platform = Platform.VK
    default_api_url = "https://api.vk.com/method"

    def __init__(self, *args: Any, api_version: str = API_VERSION, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.api_version = api_version

    def _check(self, body: Any, status: int) -> Any:
        body = body if isinstance(body, dict) else {}
        error = body.get("error")
        if isinstance(error, dict):
            raise PlatformAPIError(
                self.platform.value,
                error.get("error_msg") or "VK API error",
                code=error.get("error_code"),
                status=status,
            )
        if "response" not in body:
            raise PlatformAPIError(
                self.platform.value, f"Unexpected VK response (HTTP {status})", status=status,
            )
        return body["response"]

    def _wall_post(self, form: dict[str, Any]) -> Any:
        response = self.transport.request("POST", f"{self.api_url}/wall.post", form=form)
        return self._check(response.body, response.status)

    def _publish(
        self, content: PublishContent, creds: VkCredentials, business_name: str,
    ) -> PublishOutcome:
        form: dict[str, Any] = {
            "access_token": creds.access_token,
            "owner_id": f"-{creds.group_id}",
            "from_group": 1,
            "message": format_message(content, business_name, VK, locale=self.locale),
            "v": self.api_version,
        }
        if content.image_url:
            form["attachments"] = content.image_url

        result, attempts = self._retry(lambda: self._wall_post(form))
        post_id = result.get("post_id") if isinstance(result, dict) else None
        if post_id is None:
            raise PlatformAPIError(
                self.platform.value, "VK response has no post_id", retries=attempts - 1,
            )
        return PublishOutcome(
            post_id=str(post_id),
            post_url=f"https://vk.com/wall-{creds.group_id}_{post_id}",
            retries=attempts - 1,
        )

    def _test_connection(self, creds: VkCredentials) -> ConnectionStatus:
        try:
            response = self.transport.request(
                "GET", f"{self.api_url}/groups.getById",
                params={
                    "access_token": creds.access_token,
                    "group_id": creds.group_id,
                    "v": self.api_version,
                },
            )
            groups = self._check(response.body, response.status)
        except PlatformAPIError as exc:
            step = IDENTITY if exc.code == AUTH_FAILED else RESOURCE
            return describe_connection_failure(
                self.platform, exc, step, resource=f"group {creds.group_id}",
            )
        except PublishError as exc:
            return describe_connection_failure(
                self.platform, exc, RESOURCE, resource=f"group {creds.group_id}",
            )

        # Newer API versions wrap the list as {"groups": [...]}
        if isinstance(groups, dict):
            groups = groups.get("groups", [])
        name = groups[0].get("name") if groups else creds.group_id
        return ConnectionStatus(True, info=f"Connected to: {name}")
