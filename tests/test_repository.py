"""
Unit tests for the report repositories

The Supabase backend is exercised against a mocked client, so no
network or database is needed.
"""
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from app.core.exceptions import PersistenceError
from app.db.supabase_repository import SupabaseReportRepository, _from_row, _to_row
from app.models.report import BoundingBox, ClassificationProvider, Report, ReportStatus


class TestInMemoryRepository:

    def test_create_and_get(self, repository, make_report):
        report = make_report(report_id="RPT-1")
        repository.create(report)
        assert repository.get("RPT-1") == report

    def test_get_missing(self, repository):
        assert repository.get("nope") is None

    def test_returned_copies_are_isolated(self, repository, make_report):
        repository.create(make_report(report_id="RPT-1", title="original"))

        fetched = repository.get("RPT-1")
        fetched.title = "mutated"

        assert repository.get("RPT-1").title == "original"

    def test_update_status(self, repository, make_report):
        repository.create(make_report(report_id="RPT-1"))

        updated = repository.update_status("RPT-1", ReportStatus.RESOLVED)

        assert updated.status == ReportStatus.RESOLVED
        assert repository.get("RPT-1").status == ReportStatus.RESOLVED

    def test_update_status_missing(self, repository):
        assert repository.update_status("nope", ReportStatus.OPEN) is None

    def test_delete(self, repository, make_report):
        repository.create(make_report(report_id="RPT-1"))
        assert repository.delete("RPT-1") is True
        assert repository.delete("RPT-1") is False
        assert repository.get("RPT-1") is None

    def test_list_range_newest_first_with_limit(self, repository, make_report):
        for age in (3, 1, 2):
            repository.create(make_report(title=f"{age}d", age_days=age))

        result = repository.list_range(limit=2)

        assert [r.title for r in result] == ["1d", "2d"]

    def test_list_range_since_and_bbox(self, repository, make_report, now):
        repository.create(make_report(title="in", lat=28.6, lng=77.2, age_days=1))
        repository.create(make_report(title="old", lat=28.6, lng=77.2, age_days=10))
        repository.create(make_report(title="away", lat=19.0, lng=72.8, age_days=1))
        bbox = BoundingBox(min_lng=77.0, min_lat=28.5, max_lng=77.5, max_lat=28.8)

        result = repository.list_range(since=now - timedelta(days=5), bbox=bbox)

        assert [r.title for r in result] == ["in"]

    def test_naive_timestamps_are_utc(self, repository, make_report, now):
        report = make_report(title="naive")
        naive = Report(**{**report.model_dump(), "created_at": now.replace(tzinfo=None)})
        repository.create(naive)

        assert repository.get(naive.id).created_at.tzinfo is not None
        assert [r.title for r in repository.list_range(since=now - timedelta(days=1))] == ["naive"]

    def test_naive_since_with_naive_stored_row(self, repository, make_report, now):
        stored = make_report(title="raw").model_copy(update={"created_at": now.replace(tzinfo=None)})
        repository.create(stored)

        since = (now - timedelta(days=1)).replace(tzinfo=None)

        assert [r.title for r in repository.list_range(since=since)] == ["raw"]
        assert repository.list_range(since=now + timedelta(days=1)) == []

    def test_clear(self, repository, make_report):
        repository.create(make_report())
        repository.clear()
        assert repository.list_range() == []


@pytest.fixture
def supabase_client():
    client = MagicMock()
    table = MagicMock()
    client.table.return_value = table
    return client


def _query(client):
    return client.table.return_value


class TestSupabaseRepository:

    def test_row_mapping_round_trip(self, make_report):
        report = make_report(report_id="RPT-1").model_copy(update={
            "auto_categorized": True,
            "classification_confidence": 0.8,
            "classification_reason": "Matched keywords: pothole",
            "classification_provider": ClassificationProvider.KEYWORD,
        })

        row = _to_row(report)

        assert row["lat"] == 28.6
        assert row["classification_provider"] == "keyword"
        assert _from_row(row) == report

    def test_create(self, supabase_client, make_report):
        report = make_report(report_id="RPT-1")
        _query(supabase_client).insert.return_value.execute.return_value = MagicMock(data=[_to_row(report)])
        repo = SupabaseReportRepository(client=supabase_client, table="reports")

        saved = repo.create(report)

        assert saved == report
        supabase_client.table.assert_called_with("reports")

    def test_create_without_data_fails(self, supabase_client, make_report):
        _query(supabase_client).insert.return_value.execute.return_value = MagicMock(data=[])
        repo = SupabaseReportRepository(client=supabase_client)

        with pytest.raises(PersistenceError):
            repo.create(make_report())

    def test_get_missing(self, supabase_client):
        chain = _query(supabase_client).select.return_value.eq.return_value
        chain.execute.return_value = MagicMock(data=[])
        repo = SupabaseReportRepository(client=supabase_client)

        assert repo.get("nope") is None

    def test_update_status_sends_only_status(self, supabase_client, make_report):
        row = _to_row(make_report(report_id="RPT-1", status=ReportStatus.RESOLVED))
        chain = _query(supabase_client).update.return_value.eq.return_value
        chain.execute.return_value = MagicMock(data=[row])
        repo = SupabaseReportRepository(client=supabase_client)

        updated = repo.update_status("RPT-1", ReportStatus.RESOLVED)

        _query(supabase_client).update.assert_called_once_with({"status": "resolved"})
        assert updated.status == ReportStatus.RESOLVED

    def test_delete_missing(self, supabase_client):
        chain = _query(supabase_client).delete.return_value.eq.return_value
        chain.execute.return_value = MagicMock(data=[])
        repo = SupabaseReportRepository(client=supabase_client)

        assert repo.delete("nope") is False

    @pytest.mark.parametrize("operation", [
        lambda repo: repo.get("RPT-1"),
        lambda repo: repo.update_status("RPT-1", ReportStatus.OPEN),
        lambda repo: repo.delete("RPT-1"),
        lambda repo: repo.list_range(),
    ])
    def test_storage_errors_are_wrapped(self, supabase_client, operation):
        supabase_client.table.side_effect = RuntimeError("connection reset")
        repo = SupabaseReportRepository(client=supabase_client)

        with pytest.raises(PersistenceError):
            operation(repo)

    def test_missing_client(self, monkeypatch):
        monkeypatch.setattr(
            "app.db.supabase_repository.get_supabase_service_client", lambda: None
        )
        repo = SupabaseReportRepository()

        with pytest.raises(PersistenceError):
            repo.get("RPT-1")

    def test_list_range_builds_query(self, supabase_client, make_report, now):
        query = _query(supabase_client).select.return_value
        query.gte.return_value = query
        query.lte.return_value = query
        query.order.return_value = query
        query.limit.return_value = query
        query.execute.return_value = MagicMock(data=[_to_row(make_report())])
        repo = SupabaseReportRepository(client=supabase_client)
        bbox = BoundingBox(min_lng=77.0, min_lat=28.5, max_lng=77.5, max_lat=28.8)

        result = repo.list_range(since=now, bbox=bbox, limit=10)

        assert len(result) == 1
        query.gte.assert_any_call("created_at", now.isoformat())
        query.gte.assert_any_call("lng", 77.0)
        query.lte.assert_any_call("lat", 28.8)
        query.order.assert_called_once_with("created_at", desc=True)
        query.limit.assert_called_once_with(10)
