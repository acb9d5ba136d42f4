"""Tests for the Facebook page publisher."""

from dataclasses import replace

from autopublish.credentials import PlatformCredentials
from autopublish.facebook import FacebookPublisher
from autopublish.retry import RetryPolicy
from autopublish.transport import HttpResponse


def _publisher(transport, attempts=3):
    return FacebookPublisher(
        transport, retry_policy=RetryPolicy(max_attempts=attempts), sleep_func=lambda _: None,
    )


class TestEndpointSelection:
    def test_image_goes_to_photos(self, transport, credentials, event_with_image):
        transport.add("POST", "/1005/photos", {"id": "555", "post_id": "1005_555"})
        result = _publisher(transport).publish(event_with_image, credentials, "Jazz Club")

        assert result.success is True
        assert result.post_id == "1005_555"
        assert result.post_url == "https://www.facebook.com/1005_555"
        call = transport.calls[0]
        assert call.json_body["url"] == "https://cdn.example.com/jazz.jpg"
        assert call.json_body["access_token"] == "fb-token"
        assert call.json_body["caption"].startswith("🎉 Jazz Night")
        assert call.form is None

    def test_link_goes_to_feed_with_link(self, transport, credentials, event_with_image):
        content = replace(event_with_image, image_url=None)
        transport.add("POST", "/1005/feed", {"id": "1005_777"})
        result = _publisher(transport).publish(content, credentials, "Jazz Club")

        assert result.post_id == "1005_777"
        form = transport.calls[0].form
        assert form["link"] == "https://afisha.example.com/events/1"
        assert "https://afisha.example.com" not in form["message"]

    def test_plain_text_goes_to_feed(self, transport, credentials, event):
        transport.add("POST", "/1005/feed", {"id": "1005_778"})
        result = _publisher(transport).publish(event, credentials, "Jazz Club")

        assert result.success is True
        form = transport.calls[0].form
        assert set(form) == {"message", "access_token"}


class TestFailures:
    def test_validate_without_token_makes_no_calls(self, transport, event):
        creds = PlatformCredentials.from_flat({"facebookAccessToken": None, "facebookPageId": "1005"})
        result = _publisher(transport).publish(event, creds, "Jazz Club")
        assert result.success is False
        assert result.error == "Facebook is not configured"
        assert transport.calls == []

    def test_token_code_190_not_retried(self, transport, credentials, event):
        transport.add("POST", "/1005/feed", HttpResponse(400, {"error": {
            "message": "Error validating access token: The session has been invalidated",
            "code": 190,
        }}))
        result = _publisher(transport).publish(event, credentials, "Jazz Club")
        assert result.error_category == "token_expired"
        assert len(transport.calls) == 1

    def test_server_error_retried_then_surfaced(self, transport, credentials, event):
        transport.add("POST", "/1005/feed", HttpResponse(503, "Service Unavailable"))
        result = _publisher(transport, attempts=3).publish(event, credentials, "Jazz Club")
        assert result.success is False
        assert result.error == "Facebook publish failed: HTTP 503"
        assert result.retry_count == 2
        assert len(transport.calls) == 3

    def test_missing_post_id_keeps_retry_count(self, transport, credentials, event):
        transport.add("POST", "/1005/feed", HttpResponse(503, "Service Unavailable"), {"success": True})
        result = _publisher(transport).publish(event, credentials, "Jazz Club")
        assert result.success is False
        assert result.error == "Facebook publish failed: Facebook response has no post id"
        assert result.retry_count == 1


class TestConnection:
    def test_success(self, transport, credentials):
        transport.add("GET", "/me", {"id": "1", "name": "Owner"})
        transport.add("GET", "/1005", {"id": "1005", "name": "Jazz Club Page"})
        status = _publisher(transport).test_connection(credentials)
        assert status.success is True
        assert status.info == "Connected to: Jazz Club Page"

    def test_page_unreachable(self, transport, credentials):
        transport.add("GET", "/me", {"id": "1", "name": "Owner"})
        transport.add("GET", "/1005", HttpResponse(404, {"error": {
            "message": "Unsupported get request", "code": 100,
        }}))
        status = _publisher(transport).test_connection(credentials)
        assert status.success is False
        assert "Cannot access page 1005" in status.error
