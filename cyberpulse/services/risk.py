"""Risk Decomposition Calculator: provider metrics to category risk scores."""

from __future__ import annotations

from typing import Callable

from cyberpulse.schemas.metrics import (
    CloudMetrics,
    DeviceMetrics,
    IdentityMetrics,
    SecurityMetrics,
)

# Category weights, in percent, for the overall score
RISK_WEIGHTS = {
    "identity": 30,
    "training": 20,
    "device": 20,
    "cloud": 20,
    "threat": 10,
}

# No training signal is integrated yet
TRAINING_RISK_SCORE = 100

IDENTITY_PENALTIES: list[tuple[str, int, Callable[[IdentityMetrics], bool]]] = [
    ("mfa_not_enabled", 25, lambda m: m.mfa_not_enabled > 0),
    ("phish_resistant_mfa", 20, lambda m: not m.phish_resistant_mfa),
    ("global_admins", 15, lambda m: m.global_admins > 2),
    ("risk_based_sign_on", 15, lambda m: not m.risk_based_sign_on),
    ("role_based_access_control", 10, lambda m: not m.role_based_access_control),
    ("single_sign_on", 10, lambda m: not m.single_sign_on),
    ("managed_identity_protection", 5, lambda m: not m.managed_identity_protection),
]

DEVICE_PENALTIES: list[tuple[str, int, Callable[[DeviceMetrics], bool]]] = [
    ("disk_encryption", 25, lambda m: not m.disk_encryption),
    ("defender_for_endpoint", 25, lambda m: not m.defender_for_endpoint),
    ("device_hardening", 20, lambda m: not m.device_hardening),
    ("software_updated", 15, lambda m: not m.software_updated),
    ("managed_detection_response", 15, lambda m: not m.managed_detection_response),
]

CLOUD_PENALTIES: list[tuple[str, int, Callable[[CloudMetrics], bool]]] = [
    ("saas_protection", 10, lambda m: not m.saas_protection),
    ("sensitivity_labels", 10, lambda m: not m.sensitivity_labels),
    ("backup_archiving", 15, lambda m: not m.backup_archiving),
    ("data_loss_prevention", 10, lambda m: not m.data_loss_prevention),
    ("defender_for_365", 15, lambda m: not m.defender_for_365),
    ("suitable_firewall", 10, lambda m: not m.suitable_firewall),
    ("dkim_policies", 5, lambda m: not m.dkim_policies),
    ("dmarc_policies", 5, lambda m: not m.dmarc_policies),
    ("conditional_access", 10, lambda m: not m.conditional_access),
    ("compliance_policies", 5, lambda m: not m.compliance_policies),
    # "Partial" still counts as missing
    ("byod_policies", 5, lambda m: m.byod_policies is not True),
]

# (exclusive lower bound on total threats, score), checked top down
THREAT_STEPS = [(10, 100), (5, 75), (2, 50), (0, 25)]

# (exclusive upper bound, level, hex colour, rgb colour)
RISK_BANDS = [
    (30, "Low", "#10b981", (0.0, 0.8, 0.0)),
    (70, "Medium", "#f59e0b", (1.0, 0.6, 0.0)),
    (101, "High", "#ef4444", (1.0, 0.0, 0.0)),
]


def _penalty_score(metrics, table) -> int:
    return min(sum(points for _, points, applies in table if applies(metrics)), 100)


def threat_risk_score(total_threats: int) -> int:
    """Step function over the number of threats detected in the period."""
    for bound, score in THREAT_STEPS:
        if total_threats > bound:
            return score
    return 0


def overall_risk_score(identity: int, training: int, device: int, cloud: int, threat: int) -> int:
    """Weighted overall score, rounded half up.

    Integer arithmetic keeps .5 cases exact.
    """
    weighted = (
        RISK_WEIGHTS["identity"] * identity
        + RISK_WEIGHTS["training"] * training
        + RISK_WEIGHTS["device"] * device
        + RISK_WEIGHTS["cloud"] * cloud
        + RISK_WEIGHTS["threat"] * threat
    )
    return (weighted + 50) // 100


def calculate_risk_scores(metrics: SecurityMetrics) -> dict[str, int]:
    """Decompose a tenant's metrics into five category scores and the overall score."""
    identity = _penalty_score(metrics.identity_metrics, IDENTITY_PENALTIES)
    device = _penalty_score(metrics.device_metrics, DEVICE_PENALTIES)
    cloud = _penalty_score(metrics.cloud_metrics, CLOUD_PENALTIES)
    threat = threat_risk_score(metrics.threat_metrics.total_threats)
    return {
        "overall_risk_score": overall_risk_score(identity, TRAINING_RISK_SCORE, device, cloud, threat),
        "identity_risk_score": identity,
        "training_risk_score": TRAINING_RISK_SCORE,
        "device_risk_score": device,
        "cloud_risk_score": cloud,
        "threat_risk_score": threat,
    }


def _band(score: float) -> tuple[int, str, str, tuple[float, float, float]]:
    for band in RISK_BANDS:
        if score < band[0]:
            return band
    return RISK_BANDS[-1]


def risk_level(score: float) -> str:
    """Low below 30, Medium below 70, otherwise High."""
    return _band(score)[1]


def risk_color_hex(score: float) -> str:
    return _band(score)[2]


def risk_color_rgb(score: float) -> tuple[float, float, float]:
    return _band(score)[3]
