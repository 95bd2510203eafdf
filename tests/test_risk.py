"""Tests for the risk decomposition calculator."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

import pytest

from cyberpulse.schemas.metrics import SecurityMetrics
from cyberpulse.services.risk import (
    calculate_risk_scores,
    overall_risk_score,
    risk_color_hex,
    risk_level,
    threat_risk_score,
)
from sample_data import SAMPLE_METRICS, SAMPLE_OVERALL

ALL_GOOD = {
    "identityMetrics": {
        "mfaNotEnabled": 0,
        "phishResistantMfa": True,
        "globalAdmins": 2,
        "riskBasedSignOn": True,
        "roleBasedAccessControl": True,
        "singleSignOn": True,
        "managedIdentityProtection": True,
    },
    "deviceMetrics": {
        "diskEncryption": True,
        "defenderForEndpoint": True,
        "deviceHardening": True,
        "softwareUpdated": True,
        "managedDetectionResponse": True,
    },
    "cloudMetrics": {
        "saasProtection": True,
        "sensitivityLabels": True,
        "backupArchiving": True,
        "dataLossPrevention": True,
        "defenderFor365": True,
        "suitableFirewall": True,
        "dkimPolicies": True,
        "dmarcPolicies": True,
        "conditionalAccess": True,
        "compliancePolicies": True,
        "byodPolicies": True,
    },
}


class TestCategoryScores:
    """Table-driven category penalties."""

    def test_sample_metrics(self):
        scores = calculate_risk_scores(SecurityMetrics.model_validate(SAMPLE_METRICS))
        assert scores == {
            "overall_risk_score": SAMPLE_OVERALL,
            "identity_risk_score": 90,
            "training_risk_score": 100,
            "device_risk_score": 35,
            "cloud_risk_score": 25,
            "threat_risk_score": 75,
        }

    def test_everything_missing_hits_caps(self):
        scores = calculate_risk_scores(SecurityMetrics(identity_metrics={"mfa_not_enabled": 5, "global_admins": 9}))
        assert scores["identity_risk_score"] == 100
        assert scores["device_risk_score"] == 100
        assert scores["cloud_risk_score"] == 100
        assert scores["threat_risk_score"] == 0
        assert scores["overall_risk_score"] == 90

    def test_everything_in_place(self):
        scores = calculate_risk_scores(SecurityMetrics.model_validate(ALL_GOOD))
        assert scores["identity_risk_score"] == 0
        assert scores["device_risk_score"] == 0
        assert scores["cloud_risk_score"] == 0
        # Training is always 100
        assert scores["overall_risk_score"] == 20

    def test_partial_byod_counts_as_missing(self):
        data = {**ALL_GOOD, "cloudMetrics": {**ALL_GOOD["cloudMetrics"], "byodPolicies": "Partial"}}
        assert calculate_risk_scores(SecurityMetrics.model_validate(data))["cloud_risk_score"] == 5

    def test_two_admins_is_not_sprawl(self):
        data = {**ALL_GOOD, "identityMetrics": {**ALL_GOOD["identityMetrics"], "globalAdmins": 3}}
        assert calculate_risk_scores(SecurityMetrics.model_validate(data))["identity_risk_score"] == 15

    def test_recomputation_is_stable(self):
        metrics = SecurityMetrics.model_validate(SAMPLE_METRICS)
        assert calculate_risk_scores(metrics) == calculate_risk_scores(metrics)


class TestThreatSteps:
    """Step function over the total threat count."""

    @pytest.mark.parametrize(
        "total,expected",
        [(0, 0), (1, 25), (2, 25), (3, 50), (5, 50), (6, 75), (10, 75), (11, 100), (250, 100)],
    )
    def test_steps(self, total, expected):
        assert threat_risk_score(total) == expected


class TestOverall:
    """Weighted overall score."""

    @pytest.mark.parametrize(
        "identity,device,cloud,threat",
        [(90, 35, 25, 75), (0, 0, 0, 0), (100, 100, 100, 100), (15, 25, 5, 25), (45, 15, 10, 50)],
    )
    def test_matches_weighted_formula(self, identity, device, cloud, threat):
        weighted = (
            Decimal("0.30") * identity + Decimal("0.20") * 100 + Decimal("0.20") * device
            + Decimal("0.20") * cloud + Decimal("0.10") * threat
        )
        expected = int(weighted.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        assert overall_risk_score(identity, 100, device, cloud, threat) == expected

    def test_half_rounds_up(self):
        # 0.3*15 + 20 + 0.2*5 + 0 + 0 = 25.5
        assert overall_risk_score(15, 100, 5, 0, 0) == 26


class TestRiskBands:
    """Low / Medium / High classification."""

    @pytest.mark.parametrize(
        "score,level,color",
        [(0, "Low", "#10b981"), (29, "Low", "#10b981"), (30, "Medium", "#f59e0b"),
         (69, "Medium", "#f59e0b"), (70, "High", "#ef4444"), (100, "High", "#ef4444")],
    )
    def test_thresholds(self, score, level, color):
        assert risk_level(score) == level
        assert risk_color_hex(score) == color
