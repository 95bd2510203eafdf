"""Tests for quarterly report creation and force refresh."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from cyberpulse.errors import AuthorizationError, FetchError, NotFoundError, PreconditionError
from cyberpulse.roles import Actor, Role
from cyberpulse.schemas.metrics import SecurityMetrics
from cyberpulse.services.integrations import StoredMetricsSource
from cyberpulse.services.reports import (
    create_report,
    generate_report,
    previous_quarter,
    quarter_bounds,
    quarter_of,
    report_title,
)
from cyberpulse.store import data_store
from fakes import FakeMetricsSource
from sample_data import SAMPLE_OVERALL


def _generate(integrations, tenant_id, quarter=1, year=2026, **kwargs):
    return asyncio.run(generate_report(data_store, integrations, tenant_id, quarter, year, **kwargs))


class TestQuarterHelpers:
    """Calendar arithmetic for reporting periods."""

    @pytest.mark.parametrize(
        "quarter,start,end",
        [
            (1, date(2026, 1, 1), date(2026, 3, 31)),
            (2, date(2026, 4, 1), date(2026, 6, 30)),
            (3, date(2026, 7, 1), date(2026, 9, 30)),
            (4, date(2026, 10, 1), date(2026, 12, 31)),
        ],
    )
    def test_bounds(self, quarter, start, end):
        assert quarter_bounds(quarter, 2026) == (start, end)

    @pytest.mark.parametrize("quarter", [0, 5, -1])
    def test_invalid_quarter(self, quarter):
        with pytest.raises(ValueError):
            quarter_bounds(quarter, 2026)

    def test_quarter_of(self):
        assert quarter_of(date(2026, 2, 28)) == (1, 2026)
        assert quarter_of(date(2026, 10, 16)) == (4, 2026)

    def test_previous_quarter_wraps_year(self):
        assert previous_quarter(date(2026, 1, 5)) == (4, 2025)
        assert previous_quarter(date(2026, 7, 1)) == (2, 2026)

    def test_title(self):
        assert report_title(3, 2026) == "Q3 2026 Cyber Risk Report"


class TestGenerate:
    """Creating the quarterly report."""

    def test_new_report_fields(self, integrations, sample_tenant):
        report = _generate(integrations, sample_tenant)
        assert report["status"] == "new"
        assert report["title"] == "Q1 2026 Cyber Risk Report"
        assert report["start_date"] == date(2026, 1, 1)
        assert report["end_date"] == date(2026, 3, 31)
        assert report["overall_risk_score"] == SAMPLE_OVERALL
        assert report["identity_risk_score"] == 90
        assert report["training_risk_score"] == 100
        assert report["created_by"] == "system"
        assert report["approved_by"] is None
        assert report["sent_at"] is None

    def test_security_data_is_snapshotted(self, integrations, sample_tenant):
        report = _generate(integrations, sample_tenant)
        assert report["security_data"]["identity_metrics"]["global_admins"] == 3
        assert report["security_data"]["threat_metrics"]["device_threats"] == 3

    def test_duplicate_without_refresh_rejected(self, integrations, sample_tenant):
        _generate(integrations, sample_tenant)
        with pytest.raises(PreconditionError):
            _generate(integrations, sample_tenant)
        assert len(data_store.list_reports(sample_tenant)) == 1

    def test_unknown_tenant(self, integrations):
        with pytest.raises(NotFoundError):
            _generate(integrations, "nobody")

    def test_metrics_failure_is_fetch_error(self, integrations, sample_tenant):
        integrations.metrics_source = FakeMetricsSource(error=RuntimeError("provider down"))
        with pytest.raises(FetchError):
            _generate(integrations, sample_tenant)
        assert data_store.list_reports(sample_tenant) == []

    def test_creation_is_audited(self, integrations, sample_tenant):
        report = _generate(integrations, sample_tenant)
        entry = data_store.list_audit_logs(sample_tenant)[0]
        assert entry["action"] == "report_created"
        assert entry["entity_id"] == report["id"]
        assert entry["user_id"] == "system"


class TestForceRefresh:
    """Recomputing an existing report in place."""

    def test_refresh_keeps_identity_and_status(self, integrations, sample_tenant):
        original = _generate(integrations, sample_tenant)
        data_store.update_report(original["id"], status="reviewed", summary="Looks fine")
        integrations.metrics_source = FakeMetricsSource(SecurityMetrics())

        refreshed = _generate(integrations, sample_tenant, force_refresh=True)
        assert refreshed["id"] == original["id"]
        assert refreshed["status"] == "reviewed"
        assert refreshed["summary"] == "Looks fine"
        assert refreshed["threat_risk_score"] == 0
        assert len(data_store.list_reports(sample_tenant)) == 1

    @pytest.mark.parametrize("status", ["manager_ready", "sent"])
    def test_approved_reports_are_frozen(self, integrations, sample_tenant, status):
        original = _generate(integrations, sample_tenant)
        data_store.update_report(original["id"], status=status)
        with pytest.raises(PreconditionError):
            _generate(integrations, sample_tenant, force_refresh=True)
        assert data_store.get_report(original["id"])["overall_risk_score"] == SAMPLE_OVERALL

    def test_refresh_of_missing_report_creates_it(self, integrations, sample_tenant):
        report = _generate(integrations, sample_tenant, force_refresh=True)
        assert report["status"] == "new"


class TestCreateReport:
    """Role-gated creation for interactive callers."""

    @pytest.mark.parametrize("role", [Role.ADMIN, Role.ANALYST])
    def test_allowed_roles(self, integrations, sample_tenant, role):
        actor = Actor("u-1", role)
        report = asyncio.run(create_report(data_store, integrations, actor, sample_tenant, 2, 2026))
        assert report["created_by"] == "u-1"

    @pytest.mark.parametrize("role", [Role.ACCOUNT_MANAGER, Role.ANALYST_NOTES, Role.USER])
    def test_other_roles_rejected(self, integrations, sample_tenant, role):
        with pytest.raises(AuthorizationError):
            asyncio.run(create_report(data_store, integrations, Actor("u-1", role), sample_tenant, 2, 2026))
        assert data_store.list_reports(sample_tenant) == []


class TestStoredMetrics:
    """Reports built from the provider metrics pushed into the store."""

    def test_ingested_metrics_are_used(self, integrations, sample_tenant):
        integrations.metrics_source = StoredMetricsSource(data_store)
        report = _generate(integrations, sample_tenant)
        assert report["overall_risk_score"] == SAMPLE_OVERALL

    def test_tenant_without_metrics_gets_no_report(self, integrations, catalog):
        data_store.add_tenant("tenant-empty", {"name": "Empty Ltd"})
        integrations.metrics_source = StoredMetricsSource(data_store)
        with pytest.raises(FetchError):
            _generate(integrations, "tenant-empty")
        assert data_store.list_reports("tenant-empty") == []
