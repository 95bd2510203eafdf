"""Microsoft Graph metric fetchers for the automatic widgets.

Each fetcher answers one widget with a raw value the scoring strategy
understands: a count for range widgets, a percentage for percentage widgets,
a boolean for yes/no widgets.
"""

from __future__ import annotations

from typing import Any

import httpx

from cyberpulse.config import Settings
from cyberpulse.services.graph_client import GraphClient

# Authentication method id -> phish resistance (True, False or "partial")
PHISH_RESISTANCE: dict[str, bool | str] = {
    "Fido2": True,
    "MicrosoftAuthenticator": "partial",
    "TemporaryAccessPass": True,
    "X509Certificate": True,
    "SoftwareOath": False,
    "Sms": False,
    "Voice": False,
    "Email": False,
}

ENABLED_POLICY_STATES = {"enabled", "enabledForReportingButNotEnforced"}
SIGN_IN_RISK_LEVELS = {"high", "medium", "low"}


def method_recommendation(method_id: str, state: str) -> str:
    """Recommendation for one authentication method configuration."""
    resistance = PHISH_RESISTANCE.get(method_id, False)
    if resistance == "partial":
        return "Enhance with number matching"
    if resistance is False and state == "enabled":
        return "Disable this method"
    if resistance is True and state == "disabled":
        return "Enable this method"
    return "OK"


class GraphFetcher:
    """Base class: one Graph-backed metric for one widget key."""

    widget_key: str = ""

    def __init__(
        self,
        base_url: str = "https://graph.microsoft.com/v1.0",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    def client(self, credential: str) -> GraphClient:
        return GraphClient(credential, self.base_url, self.timeout, self._transport)

    async def fetch(self, tenant_id: str, credential: str) -> Any:
        raise NotImplementedError


class AdminCountFetcher(GraphFetcher):
    """Members across all directory roles whose name contains 'admin'."""

    widget_key = "microsoft365Admins"

    async def fetch(self, tenant_id: str, credential: str) -> int:
        client = self.client(credential)
        roles = await client.get_collection("directoryRoles")
        total = 0
        for role in roles:
            if "admin" not in (role.get("displayName") or "").lower():
                continue
            members = await client.get_collection(f"directoryRoles/{role['id']}/members")
            total += len(members)
        return total


class CompliancePolicyFetcher(GraphFetcher):
    widget_key = "compliancePolicies"

    async def fetch(self, tenant_id: str, credential: str) -> bool:
        policies = await self.client(credential).get_collection(
            "deviceManagement/deviceCompliancePolicies"
        )
        return len(policies) > 0


class RiskySignInPolicyFetcher(GraphFetcher):
    """True when no enabled conditional access policy targets sign-in risk."""

    widget_key = "riskySignInPolicies"

    async def fetch(self, tenant_id: str, credential: str) -> bool:
        policies = await self.client(credential).get_collection(
            "identity/conditionalAccess/policies"
        )
        for policy in policies:
            if policy.get("state") not in ENABLED_POLICY_STATES:
                continue
            levels = (policy.get("conditions") or {}).get("signInRiskLevels") or []
            if any(level.lower() in SIGN_IN_RISK_LEVELS for level in levels):
                return False
        return True


class SecureScoreFetcher(GraphFetcher):
    """Latest Microsoft Secure Score as a percentage of its maximum."""

    widget_key = "microsoftSecureScore"

    async def fetch(self, tenant_id: str, credential: str) -> float:
        data = await self.client(credential).get_json("security/secureScores", params={"$top": 1})
        entries = data.get("value") or []
        if not entries:
            return 0.0
        latest = entries[0]
        max_score = float(latest.get("maxScore") or 0)
        if max_score <= 0:
            return 0.0
        return float(latest.get("currentScore") or 0) / max_score * 100


class UnencryptedDeviceFetcher(GraphFetcher):
    """Percentage of managed devices reporting no encryption."""

    widget_key = "noEncryption"

    async def fetch(self, tenant_id: str, credential: str) -> float:
        devices = await self.client(credential).get_collection("deviceManagement/managedDevices")
        if not devices:
            return 0.0
        unencrypted = sum(1 for d in devices if d.get("isEncrypted") is False)
        return unencrypted / len(devices) * 100


class PhishResistantMfaFetcher(GraphFetcher):
    """Percentage of authentication method configurations that need no action."""

    widget_key = "phishResistantMFA"

    async def fetch(self, tenant_id: str, credential: str) -> int:
        data = await self.client(credential).get_json("policies/authenticationMethodsPolicy")
        methods = data.get("authenticationMethodConfigurations") or []
        if not methods:
            return 0
        correct = sum(
            1 for m in methods if method_recommendation(m.get("id", ""), m.get("state", "")) == "OK"
        )
        return round(correct / len(methods) * 100)


class TrustedLocationFetcher(GraphFetcher):
    widget_key = "trustedLocations"

    async def fetch(self, tenant_id: str, credential: str) -> bool:
        locations = await self.client(credential).get_collection(
            "identity/conditionalAccess/namedLocations"
        )
        return any(
            loc.get("@odata.type") == "#microsoft.graph.ipNamedLocation" and loc.get("isTrusted") is True
            for loc in locations
        )


GRAPH_FETCHERS: tuple[type[GraphFetcher], ...] = (
    AdminCountFetcher,
    CompliancePolicyFetcher,
    RiskySignInPolicyFetcher,
    SecureScoreFetcher,
    UnencryptedDeviceFetcher,
    PhishResistantMfaFetcher,
    TrustedLocationFetcher,
)


def build_graph_fetchers(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, GraphFetcher]:
    """Build the widget key -> fetcher registry."""
    return {
        cls.widget_key: cls(settings.graph_base_url, settings.graph_timeout_seconds, transport)
        for cls in GRAPH_FETCHERS
    }
