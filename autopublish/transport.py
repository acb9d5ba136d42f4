"""HTTP transport used by all platform publishers.

Publishers talk to platforms through the HttpTransport protocol so tests
can substitute a scripted fake. UrllibTransport is the production
implementation.
"""

from __future__ import annotations

import json
import logging
import socket
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any, Mapping, Protocol

from autopublish.errors import TransientNetworkError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HttpResponse:
    status: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class HttpTransport(Protocol):
    def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Mapping[str, Any] | None = None,
        form: Mapping[str, Any] | None = None,
    ) -> HttpResponse:
        ...


def _redact(url: str) -> str:
    """Strip the query string and bot tokens from a URL before logging it."""
    base = url.split("?", 1)[0]
    if "/bot" in base:
        head, _, tail = base.partition("/bot")
        method = tail.split("/", 1)[1] if "/" in tail else ""
        base = f"{head}/bot***/{method}"
    return base


class UrllibTransport:
    """JSON-over-HTTP transport on urllib.request.

    Error statuses are returned as responses since platforms put their
    error objects in the body. Connection failures, timeouts and bodies
    that are not JSON raise TransientNetworkError.
    """

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = timeout

    def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Mapping[str, Any] | None = None,
        form: Mapping[str, Any] | None = None,
    ) -> HttpResponse:
        if params:
            url = f"{url}?{urllib.parse.urlencode(params)}"

        data: bytes | None = None
        headers = {"Accept": "application/json"}
        if json_body is not None:
            data = json.dumps(json_body).encode("utf-8")
            headers["Content-Type"] = "application/json"
        elif form is not None:
            data = urllib.parse.urlencode(form).encode("utf-8")
            headers["Content-Type"] = "application/x-www-form-urlencoded"

        req = urllib.request.Request(url, data=data, headers=headers, method=method)
        logger.debug("%s %s", method, _redact(url))
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                status = resp.status
                raw = resp.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as exc:
            status = exc.code
            raw = exc.read().decode("utf-8", errors="replace")
        except urllib.error.URLError as exc:
            raise TransientNetworkError(f"Connection error: {exc.reason}") from exc
        except (socket.timeout, TimeoutError) as exc:
            raise TransientNetworkError(f"Request timed out after {self.timeout}s") from exc

        try:
            body = json.loads(raw) if raw else {}
        except json.JSONDecodeError as exc:
            raise TransientNetworkError(
                f"Unexpected non-JSON response (HTTP {status}): {raw[:200]}"
            ) from exc
        return HttpResponse(status=status, body=body)
