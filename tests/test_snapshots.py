"""Tests for score snapshots, history and retention."""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest

from cyberpulse.errors import FetchError, RetentionSweepError
from cyberpulse.services.snapshots import (
    capture_snapshot,
    has_snapshot_in_month,
    latest_secure_score,
    percentage,
    prune_snapshots,
    retention_cutoff,
    score_history,
    subtract_months,
)
from cyberpulse.store import data_store
from fakes import FakeCredentials, FakeFetcher, FakeScoreFeed
from sample_data import AUTOMATIC_TOTAL, CATALOG_MAX_SCORE

NOW = datetime(2026, 5, 14, 9, 30, tzinfo=timezone.utc)


def _capture(integrations, settings, tenant_id, now=NOW):
    return asyncio.run(capture_snapshot(data_store, integrations, settings, tenant_id, now))


def _snapshot(tenant_id, day, total=10):
    data_store.upsert_score_snapshot(
        {"tenant_id": tenant_id, "score_date": day, "total_score": total, "max_score": 100}
    )


class TestPercentages:
    """Percentage helpers."""

    def test_two_decimals(self):
        assert percentage(1, 3) == 33.33
        assert percentage(80, 280) == 28.57

    def test_zero_max(self):
        assert percentage(5, 0) == 0.0


class TestSecureScoreFeed:
    """Reducing the aggregate feed to a single score."""

    def test_latest_entry_wins(self):
        entries = [
            {"current_score": 30.0, "max_score": 60.0, "recorded_at": NOW - timedelta(days=30)},
            {"current_score": 45.0, "max_score": 60.0, "recorded_at": NOW - timedelta(days=1)},
            {"current_score": 40.0, "max_score": 60.0, "recorded_at": NOW - timedelta(days=10)},
        ]
        assert latest_secure_score(entries, NOW) == (45.0, 75.0)

    def test_entries_outside_lookback_ignored(self):
        entries = [{"current_score": 50.0, "max_score": 100.0, "recorded_at": NOW - timedelta(days=731)}]
        assert latest_secure_score(entries, NOW, lookback_days=730) == (0.0, 0.0)

    def test_zero_max_score(self):
        entries = [{"current_score": 12.0, "max_score": 0.0, "recorded_at": NOW}]
        assert latest_secure_score(entries, NOW) == (12.0, 0.0)

    def test_empty_feed(self):
        assert latest_secure_score([], NOW) == (0.0, 0.0)


class TestCapture:
    """Capturing and upserting daily snapshots."""

    def test_capture_stores_scores(self, integrations, settings, sample_tenant):
        row = _capture(integrations, settings, sample_tenant)
        assert row["score_date"] == NOW.date()
        assert row["total_score"] == AUTOMATIC_TOTAL
        assert row["max_score"] == CATALOG_MAX_SCORE
        assert row["total_score_pct"] == 28.57
        assert row["secure_score"] == 45.0
        assert row["secure_score_pct"] == 75.0
        assert len(row["breakdown"]) == 21

    def test_same_day_capture_overwrites(self, integrations, settings, sample_tenant):
        _capture(integrations, settings, sample_tenant)
        integrations.fetchers["compliancePolicies"] = FakeFetcher(False)
        _capture(integrations, settings, sample_tenant, NOW + timedelta(hours=5))

        rows = data_store.list_score_snapshots(sample_tenant)
        assert len(rows) == 1
        assert rows[0]["total_score"] == AUTOMATIC_TOTAL - 20

    def test_next_day_adds_row(self, integrations, settings, sample_tenant):
        _capture(integrations, settings, sample_tenant)
        _capture(integrations, settings, sample_tenant, NOW + timedelta(days=1))
        assert len(data_store.list_score_snapshots(sample_tenant)) == 2

    def test_feed_failure_degrades_to_zero(self, integrations, settings, sample_tenant):
        integrations.score_feed = FakeScoreFeed(error=RuntimeError("feed down"))
        row = _capture(integrations, settings, sample_tenant)
        assert row["secure_score"] == 0.0
        assert row["secure_score_pct"] == 0.0
        assert row["total_score"] == AUTOMATIC_TOTAL

    def test_credential_failure_propagates(self, integrations, settings, sample_tenant):
        integrations.credentials = FakeCredentials(error=FetchError("no connection"))
        with pytest.raises(FetchError):
            _capture(integrations, settings, sample_tenant)
        assert data_store.list_score_snapshots(sample_tenant) == []


class TestHistoryAndRetention:
    """History queries and the retention sweep."""

    def test_subtract_months_clamps_day(self):
        assert subtract_months(date(2026, 3, 31), 1) == date(2026, 2, 28)
        assert subtract_months(date(2026, 1, 15), 1) == date(2025, 12, 15)
        assert subtract_months(date(2026, 5, 14), 12) == date(2025, 5, 14)

    def test_retention_cutoff_is_first_of_month_a_year_ago(self):
        assert retention_cutoff(date(2026, 5, 14)) == date(2025, 5, 1)
        assert retention_cutoff(date(2026, 1, 31), 12) == date(2025, 1, 1)

    def test_prune_only_deletes_old_rows(self, sample_tenant):
        _snapshot(sample_tenant, date(2025, 4, 30))
        _snapshot(sample_tenant, date(2025, 5, 1))
        _snapshot(sample_tenant, date(2026, 5, 1))
        deleted = prune_snapshots(data_store, sample_tenant, date(2025, 5, 1))
        assert deleted == 1
        assert [r["score_date"] for r in data_store.list_score_snapshots(sample_tenant)] == [
            date(2025, 5, 1),
            date(2026, 5, 1),
        ]

    def test_prune_failure_is_retention_error(self, sample_tenant, monkeypatch):
        def broken(tenant_id, cutoff):
            raise OSError("disk full")

        monkeypatch.setattr(data_store, "delete_score_snapshots_before", broken)
        with pytest.raises(RetentionSweepError):
            prune_snapshots(data_store, sample_tenant, date(2025, 5, 1))

    def test_history_newest_first_within_window(self, sample_tenant):
        for day in (date(2026, 1, 10), date(2026, 3, 1), date(2026, 4, 20), date(2026, 5, 14)):
            _snapshot(sample_tenant, day)
        rows = score_history(data_store, sample_tenant, months=3, today=date(2026, 5, 14))
        assert [r["score_date"] for r in rows] == [date(2026, 5, 14), date(2026, 4, 20), date(2026, 3, 1)]

    def test_month_check(self, sample_tenant):
        assert has_snapshot_in_month(data_store, sample_tenant, date(2026, 5, 20)) is False
        _snapshot(sample_tenant, date(2026, 5, 2))
        assert has_snapshot_in_month(data_store, sample_tenant, date(2026, 5, 20)) is True
        assert has_snapshot_in_month(data_store, sample_tenant, date(2026, 6, 1)) is False
