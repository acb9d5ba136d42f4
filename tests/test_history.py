"""Tests for the publish history module."""

from autopublish.history import HistoryRecord, PublishHistory
from autopublish.models import Platform, PublishResult

OK_VK = PublishResult.published(Platform.VK, "901", "https://vk.com/wall-4242_901")
FAILED_TG = PublishResult.failed(Platform.TELEGRAM, "Telegram publish failed: timeout", 2, "transient")


class TestHistoryRecord:
    def test_from_published_result(self):
        rec = HistoryRecord.from_result("b1", "event", "e1", OK_VK)
        assert rec.platform == "vk"
        assert rec.status == "published"
        assert rec.external_post_url == "https://vk.com/wall-4242_901"
        assert rec.published_at == rec.created_at
        assert rec.error_message is None

    def test_from_failed_result(self):
        rec = HistoryRecord.from_result("b1", "event", "e1", FAILED_TG)
        assert rec.status == "failed"
        assert rec.retry_count == 2
        assert rec.error_message == "Telegram publish failed: timeout"
        assert rec.published_at is None

    def test_auto_fields(self):
        rec = HistoryRecord("b1", "vk", "event", "e1", "published")
        assert len(rec.record_id) == 32
        assert len(rec.created_at) > 0


class TestPublishHistory:
    def test_record_and_count(self):
        history = PublishHistory()
        rows = history.record("b1", "event", "e1", [OK_VK, FAILED_TG])
        assert len(rows) == 2
        assert history.total_records == 2

    def test_get_failures(self):
        history = PublishHistory()
        history.record("b1", "event", "e1", [OK_VK, FAILED_TG])
        failures = history.get_failures()
        assert len(failures) == 1
        assert failures[0].platform == "telegram"

    def test_query_filters(self):
        history = PublishHistory()
        history.record("b1", "event", "e1", [OK_VK, FAILED_TG])
        history.record("b2", "promotion", "p1", [OK_VK])

        assert len(history.query(platform="vk")) == 2
        assert len(history.query(content_type="promotion")) == 1
        assert len(history.query(status="failed")) == 1
        assert len(history.query(business_id="b1")) == 2
        assert history.query(platform="instagram") == []

    def test_query_newest_first_with_paging(self):
        history = PublishHistory()
        for i in range(5):
            history.record("b1", "event", f"e{i}", [OK_VK])

        page = history.query(limit=2)
        assert [r.content_id for r in page] == ["e4", "e3"]
        page = history.query(limit=2, offset=2)
        assert [r.content_id for r in page] == ["e2", "e1"]

    def test_persistence(self, tmp_path):
        path = tmp_path / "history.json"
        first = PublishHistory(path)
        first.record("b1", "event", "e1", [OK_VK])
        assert path.exists()

        second = PublishHistory(path)
        assert second.total_records == 1
        assert second.all_records[0].external_post_id == "901"

    def test_corrupt_file_loads_empty(self, tmp_path):
        path = tmp_path / "history.json"
        path.write_text("{not json", encoding="utf-8")
        assert PublishHistory(path).total_records == 0

    def test_unexpected_shape_loads_empty(self, tmp_path):
        path = tmp_path / "history.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        assert PublishHistory(path).total_records == 0
