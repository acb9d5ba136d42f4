"""Platform-specific message formatting.

Pure functions turning PublishContent into message text for each
platform's dialect: event and promotion templates, description clipping,
locale-formatted dates and Telegram MarkdownV2 escaping.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from autopublish.errors import ContentValidationError
from autopublish.models import ContentType, PublishContent


@dataclass(frozen=True)
class Dialect:
    name: str
    description_limit: int
    markdown: bool = False
    link_style: str = "raw"  # "markdown", "raw" or "none"
    hashtags: bool = False


TELEGRAM = Dialect("telegram", 300, markdown=True, link_style="markdown")
VK = Dialect("vk", 500)
INSTAGRAM = Dialect("instagram", 1000, link_style="none", hashtags=True)
FACEBOOK = Dialect("facebook", 1500)

ELLIPSIS = "..."

_MARKDOWN_RESERVED = re.compile(r"([_*\[\]()~`>#+\-=|{}.!\\])")
_MARKDOWN_URL_RESERVED = re.compile(r"([)\\])")

_STRINGS = {
    "ru": {
        "free": "Вход свободный",
        "price": "от {price} ₸",
        "discount": "Скидка: {discount}",
        "valid_until": "Действует до: {date}",
        "more": "Подробнее",
    },
    "en": {
        "free": "Free entry",
        "price": "from {price} ₸",
        "discount": "Discount: {discount}",
        "valid_until": "Valid until: {date}",
        "more": "Read more",
    },
}

_MONTHS_RU = (
    "января", "февраля", "марта", "апреля", "мая", "июня",
    "июля", "августа", "сентября", "октября", "ноября", "декабря",
)
_MONTHS_EN = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


@dataclass(frozen=True)
class CaptionedImage:
    caption: str
    image_url: str


def clip(text: str, limit: int, marker: str = ELLIPSIS) -> str:
    """Clip text to limit characters at a word boundary, marker included."""
    if len(text) <= limit:
        return text
    room = max(limit - len(marker), 0)
    cut = text.rfind(" ", 0, room)
    if cut <= 0:
        cut = room
    return text[:cut].rstrip() + marker


def escape_markdown(text: str) -> str:
    """Escape the Telegram MarkdownV2 reserved characters."""
    return _MARKDOWN_RESERVED.sub(r"\\\1", text)


def format_date(value: datetime, locale: str = "ru", with_time: bool = True) -> str:
    if locale == "en":
        text = f"{_MONTHS_EN[value.month - 1]} {value.day}, {value.year}"
        return f"{text}, {value:%H:%M}" if with_time else f"{_MONTHS_EN[value.month - 1]} {value.day}"
    if not with_time:
        return f"{value.day} {_MONTHS_RU[value.month - 1]}"
    return f"{value.day} {_MONTHS_RU[value.month - 1]} {value.year} г. в {value:%H:%M}"


def format_price(price: int | float) -> str:
    if float(price).is_integer():
        return f"{int(price):,}"
    return f"{price:,.2f}"


def _strings(locale: str) -> dict[str, str]:
    return _STRINGS.get(locale, _STRINGS["ru"])


def format_message(
    content: PublishContent,
    business_name: str,
    dialect: Dialect,
    *,
    locale: str = "ru",
    hashtags: Sequence[str] = (),
    include_link: bool = True,
) -> str:
    """Render content as message text in the given dialect.

    Blocks are separated by blank lines; missing fields are left out.
    """
    strings = _strings(locale)
    esc = escape_markdown if dialect.markdown else (lambda s: s)

    def bold(text: str) -> str:
        return f"*{esc(text)}*" if dialect.markdown else text

    description = None
    if content.description:
        description = esc(clip(content.description.strip(), dialect.description_limit))

    blocks: list[list[str]] = []
    if content.content_type is ContentType.EVENT:
        blocks.append([f"🎉 {bold(content.title)}"])
        if description:
            blocks.append([description])
        facts = []
        event = content.event
        if event and event.date:
            facts.append(f"📅 {esc(format_date(event.date, locale))}")
        if event and event.location:
            facts.append(f"📍 {esc(event.location)}")
        if event and event.is_free:
            facts.append(f"💵 {esc(strings['free'])}")
        elif event and event.price:
            facts.append(f"💵 {esc(strings['price'].format(price=format_price(event.price)))}")
        blocks.append(facts)
    else:
        blocks.append([f"🔥 {bold(content.title)}"])
        promotion = content.promotion
        if promotion and promotion.discount:
            label, _, _ = strings["discount"].partition("{discount}")
            blocks.append([f"💰 {esc(label)}{bold(promotion.discount)}"])
        if description:
            blocks.append([description])
        if promotion and promotion.valid_until:
            date = format_date(promotion.valid_until, locale, with_time=False)
            blocks.append([f"⏰ {esc(strings['valid_until'].format(date=date))}"])

    blocks.append([f"🏪 {esc(business_name)}"])

    if include_link and content.link and dialect.link_style != "none":
        if dialect.link_style == "markdown":
            url = _MARKDOWN_URL_RESERVED.sub(r"\\\1", content.link)
            blocks.append([f"[{esc(strings['more'])}]({url})"])
        else:
            blocks.append([content.link])

    if dialect.hashtags and hashtags:
        blocks.append([" ".join(_hashtag(tag) for tag in hashtags)])

    return "\n\n".join("\n".join(block) for block in blocks if block)


def _hashtag(tag: str) -> str:
    tag = tag.strip()
    return tag if tag.startswith("#") else f"#{tag}"


def format_container_post(
    content: PublishContent,
    business_name: str,
    *,
    locale: str = "ru",
    hashtags: Sequence[str] = (),
) -> CaptionedImage:
    """Caption plus the image URL required by the container workflow."""
    if not content.image_url:
        raise ContentValidationError("Instagram requires an image")
    caption = format_message(
        content, business_name, INSTAGRAM, locale=locale, hashtags=hashtags,
    )
    return CaptionedImage(caption=caption, image_url=content.image_url)
