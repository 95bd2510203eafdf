"""Client for the Microsoft Graph API and per-tenant app-only tokens."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import structlog

from cyberpulse.config import Settings
from cyberpulse.errors import FetchError
from cyberpulse.store import DataStore

logger = structlog.get_logger()

GRAPH_SCOPE = "https://graph.microsoft.com/.default"

# Refresh tokens this long before they actually expire
TOKEN_EXPIRY_MARGIN = timedelta(seconds=60)

_FRACTION_RE = re.compile(r"\.(\d+)")


def parse_graph_datetime(value: str) -> datetime:
    """Parse a Graph timestamp; Graph may send 7 fractional digits."""
    value = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value.replace("Z", "+00:00"))
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class GraphClientError(FetchError):
    """Raised when Microsoft Graph communication fails."""


class GraphClient:
    """HTTP client for the Microsoft Graph REST API."""

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://graph.microsoft.com/v1.0",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"Authorization": f"Bearer {self.access_token}"},
            timeout=self.timeout,
            transport=self._transport,
        )

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """GET a Graph resource and return the decoded body."""
        async with self._client() as client:
            response = await client.get(f"{self.base_url}/{path.lstrip('/')}", params=params)
            if response.status_code != 200:
                raise GraphClientError(
                    f"Graph request '{path}' failed: {response.status_code} {response.text[:200]}"
                )
            return response.json()

    async def get_collection(self, path: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """GET a Graph collection, following ``@odata.nextLink`` pages."""
        items: list[dict[str, Any]] = []
        url: str | None = f"{self.base_url}/{path.lstrip('/')}"
        async with self._client() as client:
            while url:
                response = await client.get(url, params=params)
                if response.status_code != 200:
                    raise GraphClientError(
                        f"Graph request '{path}' failed: {response.status_code} {response.text[:200]}"
                    )
                data = response.json()
                items.extend(data.get("value", []))
                url = data.get("@odata.nextLink")
                params = None  # nextLink already carries the query
        return items


class GraphCredentialProvider:
    """Acquires and caches client-credential tokens for each tenant.

    The tenant's app registration (``azure_tenant_id``, ``client_id``,
    ``client_secret``) is read from ``store.graph_connections``. Tokens are
    refreshed when they are within a minute of expiry.
    """

    def __init__(
        self,
        store: DataStore,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.store = store
        self.login_url = settings.graph_login_url.rstrip("/")
        self.timeout = settings.graph_timeout_seconds
        self._transport = transport
        self._cache: dict[str, tuple[str, datetime]] = {}

    async def get_token(self, tenant_id: str) -> str:
        cached = self._cache.get(tenant_id)
        now = datetime.now(timezone.utc)
        if cached and cached[1] - TOKEN_EXPIRY_MARGIN > now:
            return cached[0]

        connection = self.store.graph_connections.get(tenant_id)
        if not connection:
            raise FetchError(f"No Microsoft 365 connection configured for tenant '{tenant_id}'")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                f"{self.login_url}/{connection['azure_tenant_id']}/oauth2/v2.0/token",
                data={
                    "client_id": connection["client_id"],
                    "client_secret": connection["client_secret"],
                    "grant_type": "client_credentials",
                    "scope": GRAPH_SCOPE,
                },
            )
        if response.status_code != 200:
            raise GraphClientError(
                f"Token request failed for tenant '{tenant_id}': {response.status_code} {response.text[:200]}"
            )

        data = response.json()
        token = data.get("access_token")
        if not token:
            raise GraphClientError(f"Token response for tenant '{tenant_id}' had no access_token")
        expires_at = now + timedelta(seconds=int(data.get("expires_in", 3600)))
        self._cache[tenant_id] = (token, expires_at)
        logger.info("graph_token_acquired", tenant_id=tenant_id, expires_at=expires_at.isoformat())
        return token


class GraphSecureScoreFeed:
    """Aggregate score feed backed by Graph ``security/secureScores``."""

    def __init__(
        self,
        credentials: GraphCredentialProvider,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.credentials = credentials
        self.base_url = settings.graph_base_url
        self.timeout = settings.graph_timeout_seconds
        self._transport = transport

    async def list_scores(self, tenant_id: str) -> list[dict[str, Any]]:
        token = await self.credentials.get_token(tenant_id)
        client = GraphClient(token, self.base_url, self.timeout, self._transport)
        entries = await client.get_collection("security/secureScores", params={"$top": 90})
        return [
            {
                "current_score": float(e.get("currentScore") or 0),
                "max_score": float(e.get("maxScore") or 0),
                "recorded_at": parse_graph_datetime(e["createdDateTime"]),
            }
            for e in entries
            if e.get("createdDateTime")
        ]
