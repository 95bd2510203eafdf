"""Audit trail of who did what to which report or widget."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

import structlog

from cyberpulse.store import DataStore

logger = structlog.get_logger()


def record_audit(
    store: DataStore,
    user_id: str | None,
    tenant_id: str | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: str | None = None,
) -> dict[str, Any]:
    entry = {
        "id": str(uuid.uuid4()),
        "user_id": user_id,
        "tenant_id": tenant_id,
        "action": action,
        "entity_type": entity_type,
        "entity_id": entity_id,
        "details": details,
        "timestamp": datetime.now(timezone.utc),
    }
    store.add_audit_log(entry)
    logger.info("audit", action=action, user_id=user_id, tenant_id=tenant_id, entity_id=entity_id)
    return entry
