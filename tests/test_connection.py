"""Tests for connection testing across platforms."""

from autopublish.connection import IDENTITY, RESOURCE, ConnectionTester, describe_connection_failure
from autopublish.credentials import PlatformCredentials
from autopublish.errors import PlatformAPIError
from autopublish.models import ConnectionStatus, Platform
from autopublish.telegram import TelegramPublisher
from autopublish.vk import VkPublisher


class _CrashingPublisher(VkPublisher):
    def _test_connection(self, creds):
        raise RuntimeError("socket closed")


class TestDescribeConnectionFailure:
    def test_expired_token_wins(self):
        error = PlatformAPIError("facebook", "Session has expired", code=190)
        status = describe_connection_failure(Platform.FACEBOOK, error, RESOURCE, "page 1005")
        assert status.error == "Facebook access token has expired. Reconnect your Facebook account."

    def test_identity_step(self):
        error = PlatformAPIError("telegram", "Unauthorized", code=401)
        status = describe_connection_failure(Platform.TELEGRAM, error, IDENTITY)
        assert status.error == "Telegram credentials are invalid: Unauthorized (code 401)"

    def test_resource_step(self):
        error = PlatformAPIError("vk", "Access denied", code=15)
        status = describe_connection_failure(Platform.VK, error, RESOURCE, "group 4242")
        assert status == ConnectionStatus(False, error="Cannot access group 4242 on VK: Access denied (code 15)")


class TestConnectionTester:
    def test_validates_before_network(self, transport):
        tester = ConnectionTester({Platform.TELEGRAM: TelegramPublisher(transport)})
        status = tester.test("telegram", PlatformCredentials())
        assert status.success is False
        assert status.error == "Telegram credentials not configured"
        assert transport.calls == []

    def test_unknown_platform(self, transport, credentials):
        status = ConnectionTester({}).test("myspace", credentials)
        assert status.error == "Platform myspace not supported"

    def test_unregistered_platform(self, credentials):
        status = ConnectionTester({}).test("vk", credentials)
        assert status.error == "Platform vk not supported"

    def test_success(self, transport, credentials):
        transport.add("GET", "/getMe", {"ok": True, "result": {"username": "club_bot"}})
        transport.add("GET", "/getChat", {"ok": True, "result": {"username": "jazzclub"}})
        tester = ConnectionTester({Platform.TELEGRAM: TelegramPublisher(transport)})
        status = tester.test("channel-bot", credentials)
        assert status.success is True
        assert status.info == "Connected to: @jazzclub"

    def test_crash_is_contained(self, transport, credentials):
        tester = ConnectionTester({Platform.VK: _CrashingPublisher(transport)})
        status = tester.test(Platform.VK, credentials)
        assert status.success is False
        assert status.error == "Failed to connect to VK API: socket closed"
