"""Security metrics payload shared by the risk calculator, reports and renderer.

Providers push the payload in camelCase; snake_case is accepted as well.
Every field is defaulted so a partial payload still yields a complete
structure (missing controls count as absent).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _MetricsModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IdentityMetrics(_MetricsModel):
    """Identity and access signals."""

    mfa_not_enabled: int = Field(default=0, ge=0)
    phish_resistant_mfa: bool = False
    global_admins: int = Field(default=0, ge=0)
    risk_based_sign_on: bool = False
    role_based_access_control: bool = False
    single_sign_on: bool = False
    managed_identity_protection: bool = False


class DeviceMetrics(_MetricsModel):
    """Endpoint signals; the counts are informational only."""

    disk_encryption: bool = False
    defender_for_endpoint: bool = False
    device_hardening: bool = False
    software_updated: bool = False
    managed_detection_response: bool = False
    device_score: float = 0.0
    total_devices: int = Field(default=0, ge=0)
    compliant_devices: int = Field(default=0, ge=0)
    non_compliant_devices: int = Field(default=0, ge=0)
    unknown_devices: int = Field(default=0, ge=0)
    compliance_percentage: float = Field(default=0.0, ge=0.0, le=100.0)


class CloudMetrics(_MetricsModel):
    """Cloud, mail and data-protection signals."""

    saas_protection: bool = False
    sensitivity_labels: bool = False
    backup_archiving: bool = False
    data_loss_prevention: bool = False
    defender_for_365: bool = Field(default=False, alias="defenderFor365")
    suitable_firewall: bool = False
    dkim_policies: bool = False
    dmarc_policies: bool = False
    conditional_access: bool = False
    compliance_policies: bool = False
    # Providers report "Partial" for partly rolled out BYOD policies.
    byod_policies: bool | str = False


class ThreatMetrics(_MetricsModel):
    """Threats detected during the reporting period."""

    identity_threats: int = Field(default=0, ge=0)
    device_threats: int = Field(default=0, ge=0)
    other_threats: int = Field(default=0, ge=0)

    @property
    def total_threats(self) -> int:
        return self.identity_threats + self.device_threats + self.other_threats


class SecurityMetrics(_MetricsModel):
    """Complete provider metrics for one tenant, frozen into each report."""

    secure_score: float = 0.0
    secure_score_percent: float = 0.0
    identity_metrics: IdentityMetrics = Field(default_factory=IdentityMetrics)
    device_metrics: DeviceMetrics = Field(default_factory=DeviceMetrics)
    cloud_metrics: CloudMetrics = Field(default_factory=CloudMetrics)
    threat_metrics: ThreatMetrics = Field(default_factory=ThreatMetrics)
