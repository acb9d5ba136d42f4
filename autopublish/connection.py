"""Credential connection tests.

A connection test makes one or two lightweight read calls: first the
identity behind the token, then reachability of the configured channel,
group, account or page.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Mapping

from autopublish.credentials import PlatformCredentials, validate_credentials
from autopublish.errors import ErrorCategory, classify
from autopublish.models import ConnectionStatus, Platform

if TYPE_CHECKING:
    from autopublish.publisher import PlatformPublisher

logger = logging.getLogger(__name__)

IDENTITY = "identity"
RESOURCE = "resource"


def describe_connection_failure(
    platform: Platform, error: BaseException, step: str, resource: str = "",
) -> ConnectionStatus:
    """Map a failed connection-test call to a user-facing status.

    Token expiry wins over the step; otherwise a failed identity call means
    the credentials are invalid and a failed resource call means the
    resource is unreachable.
    """
    label = platform.label
    if classify(error) is ErrorCategory.TOKEN_EXPIRED:
        message = f"{label} access token has expired. Reconnect your {label} account."
    elif step == IDENTITY:
        message = f"{label} credentials are invalid: {error}"
    else:
        target = resource or "configured resource"
        message = f"Cannot access {target} on {label}: {error}"
    return ConnectionStatus(False, error=message)


class ConnectionTester:
    """Validates stored credentials against each platform."""

    def __init__(self, publishers: Mapping[Platform, PlatformPublisher]) -> None:
        self._publishers = publishers

    def test(
        self, platform: Platform | str, credentials: PlatformCredentials,
    ) -> ConnectionStatus:
        check = validate_credentials(platform, credentials)
        if not check.valid:
            return ConnectionStatus(False, error=check.error)

        target = Platform(platform)
        publisher = self._publishers.get(target)
        if publisher is None:
            return ConnectionStatus(False, error=f"Platform {target.value} not supported")

        try:
            status = publisher.test_connection(credentials)
        except Exception as exc:
            logger.exception("Connection test for %s crashed", target.value)
            return ConnectionStatus(
                False, error=f"Failed to connect to {target.label} API: {exc}",
            )
        logger.info("Connection test for %s: %s", target.value,
                    status.info if status.success else status.error)
        return status
