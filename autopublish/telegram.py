"""Telegram channel publishing through the Bot API.

Media posts (photo or video with caption) are tried first; when they give
up the same text goes out as a plain message.
"""

from __future__ import annotations

from functools import partial
from typing import Any

from autopublish.connection import IDENTITY, RESOURCE, describe_connection_failure
from autopublish.credentials import TelegramCredentials
from autopublish.errors import ErrorCategory, PlatformAPIError, PublishError, classify, is_retryable
from autopublish.formatting import TELEGRAM, format_message
from autopublish.models import ConnectionStatus, Platform, PublishContent, PublishOutcome
from autopublish.publisher import PlatformPublisher
from autopublish.retry import FallbackStrategy

PARSE_MODE = "MarkdownV2"


def post_url(channel_id: str, message_id: int | str) -> str:
    """Public link to a channel message.

    Public channels use their @username; private channels use the numeric
    id without the -100 prefix under /c/.
    """
    channel = channel_id.strip()
    if channel.startswith("-100") and channel[4:].isdigit():
        return f"https://t.me/c/{channel[4:]}/{message_id}"
    return f"https://t.me/{channel.lstrip('@')}/{message_id}"


class TelegramPublisher(PlatformPublisher):
    platform = Platform.TELEGRAM
    default_api_url = "https://api.telegram.org"

    def _bot_url(self, creds: TelegramCredentials, method: str) -> str:
        return f"{self.api_url}/bot{creds.bot_token}/{method}"

    def _check(self, body: Any, status: int) -> dict[str, Any]:
        if not isinstance(body, dict) or body.get("ok") is not True:
            body = body if isinstance(body, dict) else {}
            raise PlatformAPIError(
                self.platform.value,
                body.get("description") or f"Failed to publish to Telegram (HTTP {status})",
                code=body.get("error_code"),
                status=status,
            )
        return body.get("result") or {}

    def _send(self, creds: TelegramCredentials, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        response = self.transport.request(
            "POST", self._bot_url(creds, method), json_body=payload,
        )
        return self._check(response.body, response.status)

    def _publish(
        self, content: PublishContent, creds: TelegramCredentials, business_name: str,
    ) -> PublishOutcome:
        text = format_message(content, business_name, TELEGRAM, locale=self.locale)

        primary = None
        if content.image_url:
            primary = partial(self._send, creds, "sendPhoto", {
                "chat_id": creds.channel_id,
                "photo": content.image_url,
                "caption": text,
                "parse_mode": PARSE_MODE,
            })
        elif content.video_url:
            primary = partial(self._send, creds, "sendVideo", {
                "chat_id": creds.channel_id,
                "video": content.video_url,
                "caption": text,
                "parse_mode": PARSE_MODE,
            })
        fallback = partial(self._send, creds, "sendMessage", {
            "chat_id": creds.channel_id,
            "text": text,
            "parse_mode": PARSE_MODE,
            "disable_web_page_preview": False,
        })

        strategy = FallbackStrategy(
            primary=primary,
            fallback=fallback,
            policy=self.retry_policy,
            should_retry=is_retryable,
            sleep_func=self.sleep_func,
            should_fallback=lambda exc: classify(exc) is not ErrorCategory.TOKEN_EXPIRED,
        )
        message, attempts = strategy.run()
        message_id = message.get("message_id")
        if message_id is None:
            raise PlatformAPIError(
                self.platform.value, "Telegram response has no message_id", retries=attempts - 1,
            )
        return PublishOutcome(
            post_id=str(message_id),
            post_url=post_url(creds.channel_id, message_id),
            retries=attempts - 1,
        )

    def _test_connection(self, creds: TelegramCredentials) -> ConnectionStatus:
        try:
            response = self.transport.request("GET", self._bot_url(creds, "getMe"))
            self._check(response.body, response.status)
        except PublishError as exc:
            return describe_connection_failure(self.platform, exc, IDENTITY)

        try:
            response = self.transport.request(
                "GET", self._bot_url(creds, "getChat"),
                params={"chat_id": creds.channel_id},
            )
            chat = self._check(response.body, response.status)
        except PublishError as exc:
            return describe_connection_failure(
                self.platform, exc, RESOURCE,
                resource=f"channel {creds.channel_id} (make sure the bot is an admin)",
            )

        name = chat.get("title") or f"@{chat.get('username', creds.channel_id)}"
        return ConnectionStatus(True, info=f"Connected to: {name}")
