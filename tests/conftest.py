"""Shared test fixtures for the CyberPulse test suite."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from cyberpulse.app import create_app
from cyberpulse.config import Settings
from cyberpulse.schemas.metrics import SecurityMetrics
from cyberpulse.services.integrations import Integrations
from cyberpulse.services.widget_catalog import seed_default_widgets
from cyberpulse.store import data_store
from fakes import (
    FakeCredentials,
    FakeFetcher,
    FakeMailTransport,
    FakeMetricsSource,
    FakeScoreFeed,
)
from sample_data import AUTOMATIC_VALUES, SAMPLE_METRICS, TENANT_ID


def _test_settings() -> Settings:
    """Return settings suitable for testing."""
    return Settings(
        environment="development",
        debug=True,
        log_format="console",
        rate_limit_default="1000/minute",
        allowed_origins="http://localhost:3000,http://localhost:5015",
        cron_secret="test-cron-secret",
        scheduler_enabled=False,
    )


@pytest.fixture
def settings():
    """Test settings."""
    return _test_settings()


@pytest.fixture
def mail_transport():
    return FakeMailTransport()


@pytest.fixture
def integrations(mail_transport):
    """Fake collaborators with a working fetcher for every automatic widget."""
    return Integrations(
        credentials=FakeCredentials(),
        score_feed=FakeScoreFeed(
            [
                {
                    "current_score": 45.0,
                    "max_score": 60.0,
                    "recorded_at": datetime.now(timezone.utc),
                }
            ]
        ),
        metrics_source=FakeMetricsSource(SecurityMetrics.model_validate(SAMPLE_METRICS)),
        mail_transport=mail_transport,
        fetchers={key: FakeFetcher(value) for key, value in AUTOMATIC_VALUES.items()},
    )


@pytest.fixture
def app(settings, integrations):
    """Create a fresh FastAPI app for testing."""
    return create_app(settings, integrations)


@pytest.fixture
def client(app):
    """HTTP test client."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_store():
    """Reset the global data store before each test."""
    data_store.reset()
    yield
    data_store.reset()


@pytest.fixture
def catalog():
    """Seed the default widget catalogue."""
    seed_default_widgets(data_store)
    return {w["key"]: w for w in data_store.list_widgets()}


@pytest.fixture
def sample_tenant(catalog):
    """A tenant with the catalogue seeded and provider metrics ingested."""
    data_store.add_tenant(TENANT_ID, {"name": "Acme Corp", "azure_tenant_id": "00000000-aaaa-bbbb-cccc-000000000001"})
    data_store.set_security_metrics(TENANT_ID, SecurityMetrics.model_validate(SAMPLE_METRICS).model_dump())
    return TENANT_ID
