"""External collaborators the scoring and report engine depends on.

The engine only talks to these through the protocols below; the default
adapters use Microsoft Graph, SMTP and the provider metrics pushed into the
store. Tests substitute their own implementations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from cyberpulse.config import Settings
from cyberpulse.errors import FetchError
from cyberpulse.schemas.metrics import SecurityMetrics
from cyberpulse.services.fetchers import build_graph_fetchers
from cyberpulse.services.graph_client import GraphCredentialProvider, GraphSecureScoreFeed
from cyberpulse.services.mailer import Attachment, SmtpMailTransport
from cyberpulse.store import DataStore


class MetricFetcher(Protocol):
    async def fetch(self, tenant_id: str, credential: str) -> Any: ...


class CredentialProvider(Protocol):
    async def get_token(self, tenant_id: str) -> str: ...


class SecureScoreFeed(Protocol):
    async def list_scores(self, tenant_id: str) -> list[dict[str, Any]]: ...


class SecurityMetricsSource(Protocol):
    async def get_metrics(self, tenant_id: str, quarter: int, year: int) -> SecurityMetrics: ...


class MailTransport(Protocol):
    async def send_one(
        self, to: str, subject: str, html_body: str, attachment: Attachment | None = None
    ) -> bool: ...


class StoredMetricsSource:
    """Serves the latest provider metrics pushed for a tenant.

    Raises ``FetchError`` for a tenant with nothing ingested yet, so no
    report is built until metrics are available.
    """

    def __init__(self, store: DataStore) -> None:
        self.store = store

    async def get_metrics(self, tenant_id: str, quarter: int, year: int) -> SecurityMetrics:
        payload = self.store.get_security_metrics(tenant_id)
        if payload is None:
            raise FetchError(f"No security metrics ingested for tenant '{tenant_id}'")
        return SecurityMetrics.model_validate(payload)


@dataclass
class Integrations:
    """Everything the engine needs from the outside world."""

    credentials: CredentialProvider
    score_feed: SecureScoreFeed
    metrics_source: SecurityMetricsSource
    mail_transport: MailTransport
    fetchers: dict[str, MetricFetcher] = field(default_factory=dict)


def build_default_integrations(
    settings: Settings,
    store: DataStore,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Integrations:
    """Wire the Graph, SMTP and store-backed adapters."""
    credentials = GraphCredentialProvider(store, settings, transport)
    return Integrations(
        credentials=credentials,
        score_feed=GraphSecureScoreFeed(credentials, settings, transport),
        metrics_source=StoredMetricsSource(store),
        mail_transport=SmtpMailTransport(settings),
        fetchers=build_graph_fetchers(settings, transport),
    )
