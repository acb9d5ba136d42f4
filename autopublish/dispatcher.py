"""Concurrent fan-out of one publish request to several platforms.

Each requested platform runs as its own task in a thread pool. A task that
raises is turned into a failed PublishResult at the task boundary, so one
platform can never abort or change the result of another.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Iterable, Mapping

from autopublish.connection import ConnectionTester
from autopublish.credentials import PlatformCredentials
from autopublish.errors import ErrorCategory
from autopublish.models import ConnectionStatus, Platform, PublishContent, PublishResult
from autopublish.publisher import PlatformPublisher

logger = logging.getLogger(__name__)


class Dispatcher:
    """Publishes content to every requested platform and collects one result each.

    Results come back in completion order; key them by ``platform``.
    """

    def __init__(
        self,
        publishers: Mapping[Platform, PlatformPublisher] | None = None,
        max_workers: int | None = None,
    ) -> None:
        self._publishers: dict[Platform, PlatformPublisher] = dict(publishers or {})
        self._max_workers = max_workers

    def register(self, publisher: PlatformPublisher) -> None:
        self._publishers[publisher.platform] = publisher

    def publisher_for(self, platform: Platform) -> PlatformPublisher | None:
        return self._publishers.get(platform)

    @property
    def platforms(self) -> list[Platform]:
        return list(self._publishers)

    def _run(
        self,
        publisher: PlatformPublisher,
        content: PublishContent,
        credentials: PlatformCredentials,
        business_name: str,
    ) -> PublishResult:
        try:
            return publisher.publish(content, credentials, business_name)
        except Exception as exc:
            logger.exception("Unhandled error publishing to %s", publisher.platform.value)
            return PublishResult.failed(
                publisher.platform,
                f"{publisher.platform.label} publish failed: {exc or type(exc).__name__}",
                category=ErrorCategory.TRANSIENT.value,
            )

    def publish_to_all(
        self,
        content: PublishContent,
        platforms: Iterable[Platform | str],
        credentials: PlatformCredentials,
        business_name: str,
    ) -> list[PublishResult]:
        results: list[PublishResult] = []
        tasks: list[PlatformPublisher] = []

        for requested in platforms:
            try:
                platform = Platform(requested)
            except ValueError:
                results.append(PublishResult.failed(
                    str(requested), f"Platform {requested} not supported",
                    category=ErrorCategory.VALIDATION.value,
                ))
                continue
            publisher = self._publishers.get(platform)
            if publisher is None:
                results.append(PublishResult.failed(
                    platform, f"Platform {platform.value} not supported",
                    category=ErrorCategory.VALIDATION.value,
                ))
                continue
            tasks.append(publisher)

        if tasks:
            workers = self._max_workers or len(tasks)
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="publish") as pool:
                futures: dict[Future[PublishResult], PlatformPublisher] = {
                    pool.submit(self._run, pub, content, credentials, business_name): pub
                    for pub in tasks
                }
                for future in as_completed(futures):
                    pub = futures[future]
                    try:
                        results.append(future.result())
                    except Exception as exc:
                        logger.exception("Publish task for %s crashed", pub.platform.value)
                        results.append(PublishResult.failed(
                            pub.platform, f"{pub.platform.label} publish failed: {exc}",
                            category=ErrorCategory.TRANSIENT.value,
                        ))

        summary = summarize(results)
        logger.info(
            "Dispatched '%s' to %d platform(s): %d published, %d failed",
            content.title, len(results), summary["successful"], summary["failed"],
        )
        return results

    def test_connection(
        self, platform: Platform | str, credentials: PlatformCredentials,
    ) -> ConnectionStatus:
        return ConnectionTester(self._publishers).test(platform, credentials)


def summarize(results: Iterable[PublishResult]) -> dict[str, int]:
    results = list(results)
    successful = sum(1 for r in results if r.success)
    return {"successful": successful, "failed": len(results) - successful}
