"""Shared fixtures: a scripted HTTP transport and sample content."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

import pytest

from autopublish.credentials import (
    FacebookCredentials,
    InstagramCredentials,
    PlatformCredentials,
    TelegramCredentials,
    VkCredentials,
)
from autopublish.models import PublishContent
from autopublish.transport import HttpResponse


@dataclass
class Call:
    method: str
    url: str
    params: dict[str, Any] | None = None
    json_body: dict[str, Any] | None = None
    form: dict[str, Any] | None = None


@dataclass
class _Route:
    method: str
    suffix: str
    responses: list[Any] = field(default_factory=list)


class FakeTransport:
    """Records requests and replays scripted responses per route.

    A route matches on method and URL suffix (query params are passed
    separately, so they never affect matching). Responses are consumed in
    order and the last one repeats. A response may be an HttpResponse, a
    dict (returned with status 200) or an exception to raise. Unrouted
    requests get a 404.
    """

    def __init__(self) -> None:
        self.calls: list[Call] = []
        self._routes: list[_Route] = []
        self._lock = threading.Lock()

    def add(self, method: str, suffix: str, *responses: Any) -> FakeTransport:
        self._routes.append(_Route(method, suffix, list(responses)))
        return self

    def calls_to(self, suffix: str) -> list[Call]:
        return [c for c in self.calls if c.url.endswith(suffix)]

    def request(self, method, url, *, params=None, json_body=None, form=None):
        with self._lock:
            self.calls.append(Call(
                method, url,
                dict(params) if params else None,
                dict(json_body) if json_body is not None else None,
                dict(form) if form is not None else None,
            ))
            route = next(
                (r for r in self._routes if r.method == method and url.endswith(r.suffix)),
                None,
            )
            if route is None or not route.responses:
                return HttpResponse(404, {"error": {"message": "Not found"}})
            response = route.responses.pop(0) if len(route.responses) > 1 else route.responses[0]

        if isinstance(response, BaseException):
            raise response
        if isinstance(response, HttpResponse):
            return response
        return HttpResponse(200, response)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def credentials() -> PlatformCredentials:
    return PlatformCredentials(
        telegram=TelegramCredentials("123:ABC", "@jazzclub"),
        vk=VkCredentials("vk-token", "4242"),
        instagram=InstagramCredentials("ig-token", "17841400000"),
        facebook=FacebookCredentials("fb-token", "1005"),
    )


@pytest.fixture
def event() -> PublishContent:
    return PublishContent.from_dict({
        "title": "Jazz Night",
        "contentType": "event",
        "date": "2026-03-01T19:00:00Z",
        "location": "City Hall",
        "isFree": True,
    })


@pytest.fixture
def event_with_image() -> PublishContent:
    return PublishContent.from_dict({
        "title": "Jazz Night",
        "contentType": "event",
        "description": "Live quartet and open jam.",
        "imageUrl": "https://cdn.example.com/jazz.jpg",
        "link": "https://afisha.example.com/events/1",
        "date": "2026-03-01T19:00:00Z",
        "location": "City Hall",
        "price": 5000,
    })
