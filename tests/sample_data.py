"""Sample tenant data and request headers shared across tests."""

from __future__ import annotations

TENANT_ID = "tenant-acme"

# Values chosen so every automatic widget scores a whole number of points:
# 10 + 5 + 10 + 20 + 8 + 20 + 7 = 80
AUTOMATIC_VALUES = {
    "microsoft365Admins": 3,
    "phishResistantMFA": 50,
    "trustedLocations": True,
    "riskySignInPolicies": True,
    "noEncryption": 20,
    "compliancePolicies": True,
    "microsoftSecureScore": 72.0,
}
AUTOMATIC_TOTAL = 80

# Sum of points available over every active catalogue widget
CATALOG_MAX_SCORE = 280

SAMPLE_METRICS = {
    "secureScore": 52.5,
    "secureScorePercent": 61.2,
    "identityMetrics": {
        "mfaNotEnabled": 17,
        "phishResistantMfa": False,
        "globalAdmins": 3,
        "riskBasedSignOn": False,
        "roleBasedAccessControl": True,
        "singleSignOn": False,
        "managedIdentityProtection": False,
    },
    "deviceMetrics": {
        "diskEncryption": True,
        "defenderForEndpoint": True,
        "deviceHardening": False,
        "softwareUpdated": False,
        "managedDetectionResponse": True,
        "totalDevices": 40,
        "compliantDevices": 35,
    },
    "cloudMetrics": {
        "saasProtection": True,
        "sensitivityLabels": True,
        "backupArchiving": False,
        "dataLossPrevention": True,
        "defenderFor365": True,
        "suitableFirewall": True,
        "dkimPolicies": False,
        "dmarcPolicies": True,
        "conditionalAccess": True,
        "compliancePolicies": True,
        "byodPolicies": "Partial",
    },
    "threatMetrics": {
        "identityThreats": 2,
        "deviceThreats": 3,
        "otherThreats": 1,
    },
}
# identity 90, training 100, device 35, cloud 25, threat 75
SAMPLE_OVERALL = 67


def admin_headers(user_id: str = "admin-1") -> dict[str, str]:
    return {"X-User-Id": user_id, "X-User-Role": "admin"}


def role_headers(role: str, user_id: str | None = None) -> dict[str, str]:
    return {"X-User-Id": user_id or f"{role}-1", "X-User-Role": role}
