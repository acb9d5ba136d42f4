"""CLI entry point for autopublish.

Usage:
    autopublish publish --title TITLE --business NAME [--type event|promotion] [--platforms telegram,vk]
    autopublish test-connection PLATFORM
    autopublish history [--platform P] [--status S] [--limit N]
    autopublish status
"""

from __future__ import annotations

import argparse
import logging
import sys
import uuid
from pathlib import Path

from autopublish.config import PublishConfig, load_config
from autopublish.dispatcher import summarize
from autopublish.factory import build_dispatcher
from autopublish.history import PublishHistory
from autopublish.models import Platform, PublishContent

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _history(cfg: PublishConfig) -> PublishHistory:
    return PublishHistory(Path(cfg.history_path) if cfg.history_path else None)


def cmd_publish(cfg: PublishConfig, args: argparse.Namespace) -> int:
    try:
        content = PublishContent.from_dict({
            "title": args.title,
            "contentType": args.type,
            "description": args.description,
            "imageUrl": args.image_url,
            "videoUrl": args.video_url,
            "link": args.link,
            "date": args.date,
            "location": args.location,
            "price": args.price,
            "isFree": args.free,
            "discount": args.discount,
            "validUntil": args.valid_until,
        })
    except ValueError as exc:
        print(f"autopublish publish: error: invalid content: {exc}", file=sys.stderr)
        return 2
    platforms = [p.strip() for p in args.platforms.split(",") if p.strip()]

    dispatcher = build_dispatcher(cfg)
    results = dispatcher.publish_to_all(content, platforms, cfg.credentials(), args.business)

    for r in results:
        status = "published" if r.success else "failed"
        print(f"  [{status.upper()}] {r.platform_name}: {r.post_url or r.error} (retries: {r.retry_count})")

    content_id = args.content_id or uuid.uuid4().hex
    _history(cfg).record(args.business_id, args.type, content_id, results)

    summary = summarize(results)
    print(f"{summary['successful']} published, {summary['failed']} failed")
    return 0 if summary["failed"] == 0 else 1


def cmd_test_connection(cfg: PublishConfig, platform: str) -> int:
    status = build_dispatcher(cfg).test_connection(platform, cfg.credentials())
    if status.success:
        print(f"OK: {status.info}")
        return 0
    print(f"FAILED: {status.error}", file=sys.stderr)
    return 1


def cmd_history(cfg: PublishConfig, platform: str | None, status: str | None, limit: int) -> int:
    records = _history(cfg).query(platform=platform, status=status, limit=limit)
    print(f"Records: {len(records)}")
    for r in records:
        detail = r.external_post_url if r.status == "published" else r.error_message
        print(f"  [{r.status}] {r.platform} / {r.content_type} {r.content_id}: {detail}")
    return 0


def cmd_status(cfg: PublishConfig) -> int:
    configured = set(cfg.credentials().configured_platforms())
    for platform in Platform:
        state = "configured" if platform in configured else "not configured"
        print(f"{platform.label + ':':<11}{state}")
    print(f"History:   {cfg.history_path or 'in memory'}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="autopublish", description="Social auto-publish CLI")
    parser.add_argument("--config", type=Path, default=None, help="Config YAML file")
    parser.add_argument("--log-level", default=None, help="Override configured log level")
    sub = parser.add_subparsers(dest="command")

    pub = sub.add_parser("publish", help="Publish content to platforms")
    pub.add_argument("--title", required=True)
    pub.add_argument("--business", required=True, help="Business display name")
    pub.add_argument("--type", choices=["event", "promotion"], default="event")
    pub.add_argument("--platforms", default="telegram",
                     help="Comma-separated platform list")
    pub.add_argument("--description")
    pub.add_argument("--image-url")
    pub.add_argument("--video-url")
    pub.add_argument("--link")
    pub.add_argument("--date", help="ISO-8601 event date")
    pub.add_argument("--location")
    pub.add_argument("--price", type=float)
    pub.add_argument("--free", action="store_true")
    pub.add_argument("--discount")
    pub.add_argument("--valid-until", help="ISO-8601 promotion end date")
    pub.add_argument("--business-id", default="cli")
    pub.add_argument("--content-id")

    test_p = sub.add_parser("test-connection", help="Check stored credentials")
    test_p.add_argument("platform")

    hist = sub.add_parser("history", help="View publish history")
    hist.add_argument("--platform")
    hist.add_argument("--status", choices=["published", "failed"])
    hist.add_argument("--limit", type=int, default=20)

    sub.add_parser("status", help="Show configuration status")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return

    cfg = load_config(args.config)
    configure_logging(args.log_level or cfg.log_level)

    if args.command == "publish":
        code = cmd_publish(cfg, args)
    elif args.command == "test-connection":
        code = cmd_test_connection(cfg, args.platform)
    elif args.command == "history":
        code = cmd_history(cfg, args.platform, args.status, args.limit)
    else:
        code = cmd_status(cfg)
    sys.exit(code)


if __name__ == "__main__":
    main()
