"""Factory for building a Dispatcher from PublishConfig.

Shared by the CLI and the request-handling layer to avoid duplicated
publisher construction logic.
"""

from __future__ import annotations

from typing import Callable

from autopublish.config import PublishConfig
from autopublish.dispatcher import Dispatcher
from autopublish.facebook import FacebookPublisher
from autopublish.instagram import InstagramPublisher
from autopublish.telegram import TelegramPublisher
from autopublish.transport import HttpTransport, UrllibTransport
from autopublish.vk import VkPublisher


def build_dispatcher(
    cfg: PublishConfig,
    transport: HttpTransport | None = None,
    sleep_func: Callable[[float], None] | None = None,
) -> Dispatcher:
    """Build a Dispatcher with a publisher registered for every platform.

    Args:
        cfg: Publish configuration with retry, polling and API settings.
        transport: Optional HTTP transport. If None, a UrllibTransport is
            constructed with cfg.http_timeout.
        sleep_func: Optional sleep function for backoff and polling waits.

    Returns:
        A fully wired Dispatcher.
    """
    transport = transport or UrllibTransport(timeout=cfg.http_timeout)
    policy = cfg.retry_policy()
    common = {"retry_policy": policy, "sleep_func": sleep_func, "locale": cfg.locale}

    dispatcher = Dispatcher(max_workers=cfg.max_workers)
    dispatcher.register(TelegramPublisher(transport, **common))
    dispatcher.register(VkPublisher(transport, api_version=cfg.vk_api_version, **common))
    dispatcher.register(InstagramPublisher(
        transport,
        api_url=cfg.graph_api_url,
        hashtags=cfg.instagram_hashtags,
        poll_interval=cfg.container_poll_interval,
        max_polls=cfg.container_max_polls,
        retry_policy=cfg.container_policy(),
        sleep_func=sleep_func,
        locale=cfg.locale,
    ))
    dispatcher.register(FacebookPublisher(transport, api_url=cfg.graph_api_url, **common))
    return dispatcher
