"""Persistent publish history for auditing dispatch results.

Records one row per PublishResult to a JSON file, so a business can see
what went out where, and why a platform failed.
"""

from __future__ import annotations

import json
import os
import threading
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from autopublish.models import PublishResult

PUBLISHED = "published"
FAILED = "failed"


@dataclass
class HistoryRecord:
    """One audit row for a single platform of a single dispatch."""
    business_id: str
    platform: str
    content_type: str
    content_id: str
    status: str  # "published" or "failed"
    external_post_id: str | None = None
    external_post_url: str | None = None
    error_message: str | None = None
    retry_count: int = 0
    published_at: str | None = None
    record_id: str = ""
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.record_id:
            self.record_id = uuid.uuid4().hex
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()

    @classmethod
    def from_result(
        cls, business_id: str, content_type: str, content_id: str, result: PublishResult,
    ) -> HistoryRecord:
        record = cls(
            business_id=business_id,
            platform=result.platform_name,
            content_type=content_type,
            content_id=content_id,
            status=PUBLISHED if result.success else FAILED,
            external_post_id=result.post_id,
            external_post_url=result.post_url,
            error_message=result.error,
            retry_count=result.retry_count,
        )
        if result.success:
            record.published_at = record.created_at
        return record


class PublishHistory:
    """JSON file-backed publish history. In memory only when path is None."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._records: list[HistoryRecord] = []
        self._lock = threading.Lock()
        if path and path.exists():
            self._load()

    def _load(self) -> None:
        if not self._path or not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            self._records = [
                HistoryRecord(**rec) for rec in data.get("records", [])
            ]
        except (json.JSONDecodeError, TypeError, AttributeError):
            self._records = []

    def _save(self) -> None:
        if not self._path:
            return
        data = {"records": [asdict(r) for r in self._records]}
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(str(tmp), str(self._path))

    def record(
        self,
        business_id: str,
        content_type: str,
        content_id: str,
        results: Iterable[PublishResult],
    ) -> list[HistoryRecord]:
        rows = [
            HistoryRecord.from_result(business_id, content_type, content_id, r)
            for r in results
        ]
        with self._lock:
            self._records.extend(rows)
            self._save()
        return rows

    def query(
        self,
        platform: str | None = None,
        content_type: str | None = None,
        status: str | None = None,
        business_id: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[HistoryRecord]:
        """Matching records, newest first."""
        rows = [
            r for r in reversed(self._records)
            if (platform is None or r.platform == platform)
            and (content_type is None or r.content_type == content_type)
            and (status is None or r.status == status)
            and (business_id is None or r.business_id == business_id)
        ]
        return rows[offset:offset + limit]

    def get_failures(self) -> list[HistoryRecord]:
        return [r for r in self._records if r.status == FAILED]

    @property
    def total_records(self) -> int:
        return len(self._records)

    @property
    def all_records(self) -> list[HistoryRecord]:
        return list(self._records)
