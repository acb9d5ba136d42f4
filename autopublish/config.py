"""Configuration loader for autopublish.

Loads YAML config files with environment variable overrides.
All env vars use the AUTOPUBLISH_ prefix.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from autopublish.container import STEP_MAX_ATTEMPTS
from autopublish.credentials import (
    FacebookCredentials,
    InstagramCredentials,
    PlatformCredentials,
    TelegramCredentials,
    VkCredentials,
)
from autopublish.retry import RetryPolicy

ENV_PREFIX = "AUTOPUBLISH_"


@dataclass
class PublishConfig:
    """Unified configuration for the publish engine and CLI."""
    telegram_bot_token: str = ""
    telegram_channel_id: str = ""
    vk_access_token: str = ""
    vk_group_id: str = ""
    instagram_access_token: str = ""
    instagram_business_account_id: str = ""
    facebook_access_token: str = ""
    facebook_page_id: str = ""
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    container_poll_interval: float = 3.0
    container_max_polls: int = 20
    graph_api_version: str = "v18.0"
    vk_api_version: str = "5.131"
    http_timeout: float = 30.0
    locale: str = "ru"
    instagram_hashtags: list[str] = field(default_factory=list)
    history_path: str = "publish_history.json"
    max_workers: int | None = None
    log_level: str = "INFO"

    def credentials(self) -> PlatformCredentials:
        telegram = vk = instagram = facebook = None
        if self.telegram_bot_token and self.telegram_channel_id:
            telegram = TelegramCredentials(self.telegram_bot_token, self.telegram_channel_id)
        if self.vk_access_token and self.vk_group_id:
            vk = VkCredentials(self.vk_access_token, self.vk_group_id)
        if self.instagram_access_token and self.instagram_business_account_id:
            instagram = InstagramCredentials(
                self.instagram_access_token, self.instagram_business_account_id,
            )
        if self.facebook_access_token and self.facebook_page_id:
            facebook = FacebookCredentials(self.facebook_access_token, self.facebook_page_id)
        return PlatformCredentials(
            telegram=telegram, vk=vk, instagram=instagram, facebook=facebook,
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
        )

    def container_policy(self) -> RetryPolicy:
        return self.retry_policy().capped(STEP_MAX_ATTEMPTS)

    @property
    def graph_api_url(self) -> str:
        return f"https://graph.facebook.com/{self.graph_api_version}"


def load_config(path: Path | None = None) -> PublishConfig:
    """Load config from YAML file with env var overrides.

    Env vars override YAML values. Mapping:
      AUTOPUBLISH_TELEGRAM_BOT_TOKEN → telegram.bot_token
      AUTOPUBLISH_TELEGRAM_CHANNEL_ID → telegram.channel_id
      AUTOPUBLISH_VK_ACCESS_TOKEN → vk.access_token
      AUTOPUBLISH_VK_GROUP_ID → vk.group_id
      AUTOPUBLISH_INSTAGRAM_ACCESS_TOKEN → instagram.access_token
      AUTOPUBLISH_INSTAGRAM_BUSINESS_ACCOUNT_ID → instagram.business_account_id
      AUTOPUBLISH_FACEBOOK_ACCESS_TOKEN → facebook.access_token
      AUTOPUBLISH_FACEBOOK_PAGE_ID → facebook.page_id
      AUTOPUBLISH_HISTORY_PATH → history_path
      AUTOPUBLISH_LOG_LEVEL → log_level
    """
    raw: dict[str, Any] = {}
    if path and path.exists():
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
        raw = loaded if isinstance(loaded, dict) else {}

    telegram = raw.get("telegram") or {}
    vk = raw.get("vk") or {}
    instagram = raw.get("instagram") or {}
    facebook = raw.get("facebook") or {}
    retry = raw.get("retry") or {}
    container = raw.get("container") or {}
    api = raw.get("api") or {}

    defaults = PublishConfig()
    workers = raw.get("max_workers")

    return PublishConfig(
        telegram_bot_token=_env_or("TELEGRAM_BOT_TOKEN", telegram.get("bot_token", "")),
        telegram_channel_id=_env_or("TELEGRAM_CHANNEL_ID", str(telegram.get("channel_id", ""))),
        vk_access_token=_env_or("VK_ACCESS_TOKEN", vk.get("access_token", "")),
        vk_group_id=_env_or("VK_GROUP_ID", str(vk.get("group_id", ""))),
        instagram_access_token=_env_or(
            "INSTAGRAM_ACCESS_TOKEN", instagram.get("access_token", ""),
        ),
        instagram_business_account_id=_env_or(
            "INSTAGRAM_BUSINESS_ACCOUNT_ID", str(instagram.get("business_account_id", "")),
        ),
        facebook_access_token=_env_or("FACEBOOK_ACCESS_TOKEN", facebook.get("access_token", "")),
        facebook_page_id=_env_or("FACEBOOK_PAGE_ID", str(facebook.get("page_id", ""))),
        max_attempts=int(retry.get("max_attempts", defaults.max_attempts)),
        base_delay=float(retry.get("base_delay", defaults.base_delay)),
        max_delay=float(retry.get("max_delay", defaults.max_delay)),
        container_poll_interval=float(
            container.get("poll_interval", defaults.container_poll_interval),
        ),
        container_max_polls=int(container.get("max_polls", defaults.container_max_polls)),
        graph_api_version=str(api.get("graph_version", defaults.graph_api_version)),
        vk_api_version=str(api.get("vk_version", defaults.vk_api_version)),
        http_timeout=float(api.get("timeout", defaults.http_timeout)),
        locale=raw.get("locale", defaults.locale),
        instagram_hashtags=list(raw.get("instagram_hashtags") or []),
        history_path=_env_or("HISTORY_PATH", raw.get("history_path", defaults.history_path)),
        max_workers=int(workers) if workers else None,
        log_level=_env_or("LOG_LEVEL", raw.get("log_level", defaults.log_level)),
    )


def _env_or(suffix: str, default: str) -> str:
    return os.environ.get(f"{ENV_PREFIX}{suffix}", default)
