"""Tests for the Telegram publisher."""

from dataclasses import replace

from autopublish.credentials import PlatformCredentials
from autopublish.models import Platform
from autopublish.retry import RetryPolicy
from autopublish.telegram import TelegramPublisher, post_url
from autopublish.transport import HttpResponse

SENT = {"ok": True, "result": {"message_id": 77, "chat": {"id": -100500}}}
BAD_PHOTO = {"ok": False, "error_code": 400, "description": "Bad Request: wrong file identifier"}


def _publisher(transport, attempts=3):
    return TelegramPublisher(
        transport, retry_policy=RetryPolicy(max_attempts=attempts), sleep_func=lambda _: None,
    )


class TestPublish:
    def test_text_only_message(self, transport, credentials, event):
        transport.add("POST", "/sendMessage", SENT)
        result = _publisher(transport).publish(event, credentials, "Jazz Club")

        assert result.success is True
        assert result.platform is Platform.TELEGRAM
        assert result.post_id == "77"
        assert result.post_url == "https://t.me/jazzclub/77"
        assert result.retry_count == 0

        call = transport.calls[0]
        assert call.url == "https://api.telegram.org/bot123:ABC/sendMessage"
        assert call.json_body["chat_id"] == "@jazzclub"
        assert call.json_body["parse_mode"] == "MarkdownV2"
        assert call.json_body["text"].startswith("🎉 *Jazz Night*")

    def test_photo_with_caption(self, transport, credentials, event_with_image):
        transport.add("POST", "/sendPhoto", SENT)
        result = _publisher(transport).publish(event_with_image, credentials, "Jazz Club")

        assert result.success is True
        body = transport.calls[0].json_body
        assert body["photo"] == "https://cdn.example.com/jazz.jpg"
        assert "caption" in body
        assert transport.calls_to("/sendMessage") == []

    def test_video_with_caption(self, transport, credentials, event):
        content = replace(event, video_url="https://cdn.example.com/clip.mp4")
        transport.add("POST", "/sendVideo", SENT)
        result = _publisher(transport).publish(content, credentials, "Jazz Club")
        assert result.success is True
        assert transport.calls[0].json_body["video"] == "https://cdn.example.com/clip.mp4"

    def test_falls_back_to_text_after_media_exhausted(self, transport, credentials, event_with_image):
        transport.add("POST", "/sendPhoto", BAD_PHOTO)
        transport.add("POST", "/sendMessage", SENT)
        result = _publisher(transport, attempts=2).publish(event_with_image, credentials, "Jazz Club")

        assert result.success is True
        assert len(transport.calls_to("/sendPhoto")) == 2
        assert len(transport.calls_to("/sendMessage")) == 1
        # counts only the text path that produced the post
        assert result.retry_count == 0

    def test_fallback_retry_count(self, transport, credentials, event_with_image):
        transport.add("POST", "/sendPhoto", BAD_PHOTO)
        transport.add(
            "POST", "/sendMessage",
            HttpResponse(502, {"ok": False, "description": "Bad Gateway"}),
            SENT,
        )
        result = _publisher(transport, attempts=2).publish(event_with_image, credentials, "Jazz Club")
        assert result.success is True
        assert result.retry_count == 1

    def test_both_paths_fail(self, transport, credentials, event_with_image):
        transport.add("POST", "/sendPhoto", BAD_PHOTO)
        transport.add("POST", "/sendMessage", {"ok": False, "description": "Bad Request: chat not found"})
        result = _publisher(transport, attempts=2).publish(event_with_image, credentials, "Jazz Club")

        assert result.success is False
        assert result.error == "Telegram publish failed: Bad Request: chat not found"
        assert result.error_category == "transient"
        assert result.retry_count == 1

    def test_invalid_token_is_not_retried_or_fallen_back(self, transport, credentials, event_with_image):
        transport.add("POST", "/sendPhoto", HttpResponse(
            401, {"ok": False, "error_code": 401, "description": "Unauthorized: bot token invalid"},
        ))
        result = _publisher(transport).publish(event_with_image, credentials, "Jazz Club")

        assert result.success is False
        assert result.error_category == "token_expired"
        assert "Reconnect your Telegram account" in result.error
        assert len(transport.calls) == 1

    def test_missing_message_id_keeps_retry_count(self, transport, credentials, event):
        transport.add(
            "POST", "/sendMessage",
            HttpResponse(502, {"ok": False, "description": "Bad Gateway"}),
            {"ok": True, "result": {}},
        )
        result = _publisher(transport).publish(event, credentials, "Jazz Club")
        assert result.success is False
        assert result.error == "Telegram publish failed: Telegram response has no message_id"
        assert result.retry_count == 1

    def test_missing_credentials_make_no_calls(self, transport, event):
        result = _publisher(transport).publish(event, PlatformCredentials(), "Jazz Club")
        assert result.success is False
        assert result.error == "Telegram is not configured"
        assert result.error_category == "validation"
        assert result.retry_count == 0
        assert transport.calls == []


class TestPostUrl:
    def test_public_channel(self):
        assert post_url("@jazzclub", 5) == "https://t.me/jazzclub/5"

    def test_private_channel(self):
        assert post_url("-1001234567", 5) == "https://t.me/c/1234567/5"


class TestConnection:
    def test_success(self, transport, credentials):
        transport.add("GET", "/getMe", {"ok": True, "result": {"username": "club_bot"}})
        transport.add("GET", "/getChat", {"ok": True, "result": {"title": "Jazz Club"}})
        status = _publisher(transport).test_connection(credentials)
        assert status.success is True
        assert status.info == "Connected to: Jazz Club"
        assert transport.calls[1].params == {"chat_id": "@jazzclub"}

    def test_bad_bot_token(self, transport, credentials):
        transport.add("GET", "/getMe", HttpResponse(
            401, {"ok": False, "error_code": 401, "description": "Unauthorized"},
        ))
        status = _publisher(transport).test_connection(credentials)
        assert status.success is False
        assert "credentials are invalid" in status.error
        assert len(transport.calls) == 1

    def test_channel_unreachable(self, transport, credentials):
        transport.add("GET", "/getMe", {"ok": True, "result": {}})
        transport.add("GET", "/getChat", {"ok": False, "description": "Bad Request: chat not found"})
        status = _publisher(transport).test_connection(credentials)
        assert status.success is False
        assert "Cannot access channel @jazzclub" in status.error
