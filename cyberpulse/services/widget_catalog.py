"""Default widget catalogue seeded for new deployments."""

from __future__ import annotations

import uuid
from typing import Any

from cyberpulse.services.widget_scoring import ScoringType
from cyberpulse.store import DataStore


def _yes_no(points: int) -> dict[str, Any]:
    return {"yes_value": points, "no_value": 0}


def _pct(max_points: int) -> dict[str, Any]:
    return {"scale": 0.1, "max_points": max_points}


# (key, name, category, scoring type, config, points, manual, active, manual default)
DEFAULT_WIDGETS: list[tuple[str, str, str, ScoringType, dict[str, Any], int, bool, bool, float | None]] = [
    ("cyberSecurityTraining", "Cyber security training", "training", ScoringType.YES_NO, _yes_no(10), 10, True, True, None),
    ("identityThreatDetection", "Identity threat detection", "identity", ScoringType.YES_NO, _yes_no(10), 10, True, True, None),
    ("microsoft365Admins", "Microsoft 365 admins", "identity", ScoringType.RANGE,
     {"min": 2, "max": 5, "points": 10, "fallback": 0}, 10, False, True, None),
    ("phishResistantMFA", "Phish-resistant MFA", "identity", ScoringType.PERCENTAGE, _pct(20), 20, False, True, None),
    ("trustedLocations", "Trusted locations", "identity", ScoringType.YES_NO, _yes_no(10), 10, False, True, None),
    ("riskySignInPolicies", "Risky sign-in policies", "identity", ScoringType.YES_NO, _yes_no(20), 20, False, True, None),
    ("defenderDeployed", "Defender deployed", "device", ScoringType.YES_NO, _yes_no(10), 10, True, True, None),
    ("managedDetectionResponse", "Managed detection and response", "device", ScoringType.YES_NO, _yes_no(10), 10, True, True, None),
    ("noEncryption", "Missing device encryption", "device", ScoringType.PERCENTAGE_INVERSE, _pct(10), 10, False, True, None),
    ("compliancePolicies", "Device compliance policies", "device", ScoringType.YES_NO, _yes_no(20), 20, False, True, None),
    ("devicesHardened", "Devices hardened", "device", ScoringType.YES_NO, _yes_no(10), 10, True, True, None),
    ("patchCompliance", "Patch compliance", "device", ScoringType.PERCENTAGE, _pct(20), 20, False, False, None),
    ("unsupportedDevices", "Unsupported devices", "device", ScoringType.PERCENTAGE_INVERSE, _pct(10), 10, True, True, 100.0),
    ("microsoftSecureScore", "Microsoft Secure Score", "cloud", ScoringType.PERCENTAGE, _pct(10), 10, False, True, None),
    ("firewallConfigured", "Firewall configured", "cloud", ScoringType.YES_NO, _yes_no(10), 10, True, True, None),
    ("serversHardened", "Servers hardened", "cloud", ScoringType.YES_NO, _yes_no(20), 20, True, True, None),
    ("sensitivityLabeling", "Sensitivity labelling", "cloud", ScoringType.YES_NO, _yes_no(20), 20, True, True, None),
    ("dataLossPrevention", "Data loss prevention", "cloud", ScoringType.YES_NO, _yes_no(20), 20, True, True, None),
    ("microsoft365Backups", "Microsoft 365 backups", "cloud", ScoringType.YES_NO, _yes_no(10), 10, True, True, None),
    ("serverBackups", "Server backups", "cloud", ScoringType.YES_NO, _yes_no(10), 10, True, True, None),
    ("backupTesting", "Backup testing", "cloud", ScoringType.YES_NO, _yes_no(10), 10, True, True, None),
    ("cloudAppProtection", "Cloud app protection", "cloud", ScoringType.YES_NO, _yes_no(20), 20, True, True, None),
]


def build_widget(
    key: str,
    name: str,
    category: str,
    scoring_type: ScoringType | str,
    scoring_config: dict[str, Any],
    points_available: int,
    manual: bool = False,
    active: bool = True,
    manual_default: float | None = None,
) -> dict[str, Any]:
    """Build a widget definition record."""
    return {
        "id": str(uuid.uuid4()),
        "key": key,
        "name": name,
        "category": category,
        "scoring_type": scoring_type.value if isinstance(scoring_type, ScoringType) else scoring_type,
        "scoring_config": dict(scoring_config),
        "points_available": points_available,
        "manual": manual,
        "active": active,
        "manual_default": manual_default,
    }


def seed_default_widgets(store: DataStore) -> int:
    """Insert any catalogue widgets the store does not have yet."""
    existing = {w["key"] for w in store.list_widgets()}
    added = 0
    for entry in DEFAULT_WIDGETS:
        if entry[0] in existing:
            continue
        store.add_widget(build_widget(*entry))
        added += 1
    return added
