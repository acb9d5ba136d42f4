"""Value objects shared by the formatter, publishers and dispatcher."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping


class Platform(Enum):
    TELEGRAM = "telegram"
    VK = "vk"
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"

    @classmethod
    def _missing_(cls, value: object) -> Platform | None:
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if key == member.value or key == member.alias:
                    return member
        return None

    @property
    def alias(self) -> str:
        return _ALIASES[self]

    @property
    def label(self) -> str:
        return _LABELS[self]


_ALIASES = {
    Platform.TELEGRAM: "channel-bot",
    Platform.VK: "graph-wall",
    Platform.INSTAGRAM: "graph-container",
    Platform.FACEBOOK: "graph-feed",
}

_LABELS = {
    Platform.TELEGRAM: "Telegram",
    Platform.VK: "VK",
    Platform.INSTAGRAM: "Instagram",
    Platform.FACEBOOK: "Facebook",
}


class ContentType(Enum):
    EVENT = "event"
    PROMOTION = "promotion"


class ContainerState(Enum):
    CREATED = "created"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"
    ERROR = "error"


@dataclass(frozen=True)
class EventDetails:
    date: datetime | None = None
    location: str | None = None
    price: int | float | None = None
    is_free: bool = False


@dataclass(frozen=True)
class PromotionDetails:
    discount: str | None = None
    valid_until: datetime | None = None


def parse_datetime(value: Any) -> datetime | None:
    """Parse an ISO-8601 string (a trailing Z is accepted)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) not in (None, ""):
            return data[key]
    return None


def _number(value: Any) -> int | float | None:
    """Numeric price from a payload value; JSON clients may send strings."""
    if value is None or isinstance(value, (int, float)):
        return value
    return float(str(value).strip())


@dataclass(frozen=True)
class PublishContent:
    """Normalized content of one publish request, shared read-only by all publishers."""
    title: str
    content_type: ContentType
    description: str | None = None
    image_url: str | None = None
    video_url: str | None = None
    link: str | None = None
    details: EventDetails | PromotionDetails | None = None

    @property
    def event(self) -> EventDetails | None:
        return self.details if isinstance(self.details, EventDetails) else None

    @property
    def promotion(self) -> PromotionDetails | None:
        return self.details if isinstance(self.details, PromotionDetails) else None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PublishContent:
        """Build content from a flat request payload (camelCase or snake_case keys)."""
        content_type = ContentType(_pick(data, "contentType", "content_type") or "event")
        details: EventDetails | PromotionDetails
        if content_type is ContentType.EVENT:
            details = EventDetails(
                date=parse_datetime(_pick(data, "date")),
                location=_pick(data, "location"),
                price=_number(_pick(data, "price")),
                is_free=bool(_pick(data, "isFree", "is_free")),
            )
        else:
            details = PromotionDetails(
                discount=_pick(data, "discount"),
                valid_until=parse_datetime(_pick(data, "validUntil", "valid_until")),
            )
        return cls(
            title=data["title"],
            content_type=content_type,
            description=_pick(data, "description"),
            image_url=_pick(data, "imageUrl", "image_url"),
            video_url=_pick(data, "videoUrl", "video_url"),
            link=_pick(data, "link"),
            details=details,
        )


@dataclass(frozen=True)
class PublishResult:
    """Outcome of publishing to one platform.

    Use published() or failed() to build one; a result is either a success
    with post id and url, or a failure with an error message.
    """
    platform: Platform | str
    success: bool
    post_id: str | None = None
    post_url: str | None = None
    error: str | None = None
    retry_count: int = 0
    error_category: str | None = None

    @classmethod
    def published(
        cls, platform: Platform, post_id: str, post_url: str, retry_count: int = 0,
    ) -> PublishResult:
        if not post_id or not post_url:
            raise ValueError("A published result needs both post_id and post_url")
        return cls(
            platform=platform, success=True, post_id=str(post_id),
            post_url=post_url, retry_count=retry_count,
        )

    @classmethod
    def failed(
        cls,
        platform: Platform | str,
        error: str,
        retry_count: int = 0,
        category: str | None = None,
    ) -> PublishResult:
        if not error:
            raise ValueError("A failed result needs an error message")
        return cls(
            platform=platform, success=False, error=error,
            retry_count=retry_count, error_category=category,
        )

    @property
    def platform_name(self) -> str:
        return self.platform.value if isinstance(self.platform, Platform) else str(self.platform)

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["platform"] = self.platform_name
        return data


@dataclass(frozen=True)
class PublishOutcome:
    """Raw success data handed from a publisher's platform call to publish()."""
    post_id: str
    post_url: str
    retries: int = 0


@dataclass(frozen=True)
class ConnectionStatus:
    success: bool
    error: str | None = None
    info: str | None = None
