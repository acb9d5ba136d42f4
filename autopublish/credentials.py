"""Per-platform credential bundles and the no-network precondition check."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union

from autopublish.models import Platform


@dataclass(frozen=True)
class TelegramCredentials:
    bot_token: str
    channel_id: str


@dataclass(frozen=True)
class VkCredentials:
    access_token: str
    group_id: str


@dataclass(frozen=True)
class InstagramCredentials:
    access_token: str
    business_account_id: str


@dataclass(frozen=True)
class FacebookCredentials:
    access_token: str
    page_id: str


AnyCredentials = Union[
    TelegramCredentials, VkCredentials, InstagramCredentials, FacebookCredentials,
]

# Flat settings-store keys per platform: (snake_case, camelCase, display label)
FLAT_FIELDS: dict[Platform, tuple[tuple[str, str, str], ...]] = {
    Platform.TELEGRAM: (
        ("telegram_bot_token", "telegramBotToken", "Telegram Bot Token"),
        ("telegram_channel_id", "telegramChannelId", "Telegram Channel ID"),
    ),
    Platform.VK: (
        ("vk_access_token", "vkAccessToken", "VK Access Token"),
        ("vk_group_id", "vkGroupId", "VK Group ID"),
    ),
    Platform.INSTAGRAM: (
        ("instagram_access_token", "instagramAccessToken", "Instagram Access Token"),
        ("instagram_business_account_id", "instagramBusinessAccountId",
         "Instagram Business Account ID"),
    ),
    Platform.FACEBOOK: (
        ("facebook_access_token", "facebookAccessToken", "Facebook Access Token"),
        ("facebook_page_id", "facebookPageId", "Facebook Page ID"),
    ),
}

_BUNDLES: dict[Platform, type] = {
    Platform.TELEGRAM: TelegramCredentials,
    Platform.VK: VkCredentials,
    Platform.INSTAGRAM: InstagramCredentials,
    Platform.FACEBOOK: FacebookCredentials,
}


def _flat_value(data: Mapping[str, Any], snake: str, camel: str) -> str | None:
    for key in (snake, camel):
        value = data.get(key)
        if value not in (None, ""):
            return str(value).strip() or None
    return None


@dataclass(frozen=True)
class PlatformCredentials:
    """Credential bundles for all platforms of one business."""
    telegram: TelegramCredentials | None = None
    vk: VkCredentials | None = None
    instagram: InstagramCredentials | None = None
    facebook: FacebookCredentials | None = None

    def for_platform(self, platform: Platform) -> AnyCredentials | None:
        return getattr(self, platform.value)

    def configured_platforms(self) -> list[Platform]:
        return [p for p in Platform if self.for_platform(p) is not None]

    @classmethod
    def from_flat(cls, data: Mapping[str, Any]) -> PlatformCredentials:
        """Build bundles from flat settings keys. Incomplete bundles are left out."""
        bundles: dict[str, AnyCredentials] = {}
        for platform, fields in FLAT_FIELDS.items():
            values = [_flat_value(data, snake, camel) for snake, camel, _ in fields]
            if all(values):
                bundles[platform.value] = _BUNDLES[platform](*values)
        return cls(**bundles)


@dataclass(frozen=True)
class CredentialCheck:
    valid: bool
    error: str | None = None


def validate_credentials(
    platform: Platform | str,
    credentials: PlatformCredentials | Mapping[str, Any],
) -> CredentialCheck:
    """Check that the platform's required credential fields are present.

    Pure precondition check; never touches the network. Accepts either
    composed PlatformCredentials or the flat settings mapping, in which
    case the error names the first missing field.
    """
    try:
        target = Platform(platform)
    except ValueError:
        return CredentialCheck(False, f"Platform {platform} not supported")

    if isinstance(credentials, PlatformCredentials):
        if credentials.for_platform(target) is None:
            return CredentialCheck(False, f"{target.label} credentials not configured")
        return CredentialCheck(True)

    for snake, camel, label in FLAT_FIELDS[target]:
        if _flat_value(credentials, snake, camel) is None:
            return CredentialCheck(False, f"{label} is required")
    return CredentialCheck(True)
