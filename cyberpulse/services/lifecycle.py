"""Report Lifecycle Manager: the role-gated review and approval workflow.

Reports move strictly forward::

    new -> reviewed -> analyst_ready -> manager_ready -> sent

Every transition checks the caller's role first and then the report's
current status. ``sent`` is only reachable through distribution.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog

from cyberpulse.errors import PreconditionError
from cyberpulse.roles import Actor, Role, require_role
from cyberpulse.services.audit import record_audit
from cyberpulse.store import DataStore

logger = structlog.get_logger()

REPORT_STATUSES = ("new", "reviewed", "analyst_ready", "manager_ready", "sent")

# target status -> (required prior status, allowed roles)
TRANSITIONS: dict[str, tuple[str, set[Role]]] = {
    "reviewed": ("new", {Role.ADMIN, Role.ANALYST}),
    "analyst_ready": ("reviewed", {Role.ADMIN, Role.ANALYST}),
    "manager_ready": ("analyst_ready", {Role.ADMIN}),
}

# editable field -> allowed roles
FIELD_ROLES: dict[str, set[Role]] = {
    "summary": {Role.ADMIN, Role.ANALYST},
    "recommendations": {Role.ADMIN, Role.ANALYST},
    "analyst_comments": {Role.ADMIN, Role.ANALYST},
    "analyst_notes": {Role.ADMIN, Role.ANALYST_NOTES},
}


def transition_report(store: DataStore, actor: Actor, report_id: str, target: str) -> dict[str, Any]:
    """Move a report to ``target``, stamping the approver on manager approval."""
    report = store.get_report(report_id)

    if target == "sent":
        raise PreconditionError("Reports are marked sent only by a successful distribution")
    if target not in TRANSITIONS:
        raise PreconditionError(f"Unknown report status '{target}'")

    required_status, roles = TRANSITIONS[target]
    require_role(actor, roles, f"move reports to '{target}'")
    if report["status"] != required_status:
        raise PreconditionError(
            f"Report '{report_id}' is '{report['status']}'; moving to '{target}' requires '{required_status}'"
        )

    fields: dict[str, Any] = {"status": target}
    if target == "manager_ready":
        fields["approved_by"] = actor.user_id

    previous = report["status"]
    report = store.update_report(report_id, **fields)
    record_audit(
        store, actor.user_id, report["tenant_id"], "report_status_changed", "report", report_id,
        f"{previous} -> {target}",
    )
    logger.info("report_transitioned", report_id=report_id, from_status=previous, to_status=target, user_id=actor.user_id)
    return report


def update_report_fields(store: DataStore, actor: Actor, report_id: str, **changes: Any) -> dict[str, Any]:
    """Edit free-text fields; the status is left untouched.

    ``None`` values are ignored. Every field's role is checked before
    anything is written.
    """
    report = store.get_report(report_id)
    changes = {k: v for k, v in changes.items() if v is not None}
    for name in changes:
        if name not in FIELD_ROLES:
            raise PreconditionError(f"Field '{name}' cannot be edited")
        require_role(actor, FIELD_ROLES[name], f"edit '{name}'")
    if not changes:
        return report

    report = store.update_report(report_id, **changes)
    record_audit(
        store, actor.user_id, report["tenant_id"], "report_updated", "report", report_id,
        ", ".join(sorted(changes)),
    )
    return report


def mark_sent(store: DataStore, report_id: str, user_id: str, sent_at: datetime | None = None) -> dict[str, Any]:
    """Final transition, called by distribution once every recipient succeeded."""
    report = store.get_report(report_id)
    if report["status"] != "manager_ready":
        raise PreconditionError(f"Report '{report_id}' is '{report['status']}'; sending requires 'manager_ready'")
    sent_at = sent_at or datetime.now(timezone.utc)
    report = store.update_report(report_id, status="sent", sent_at=sent_at)
    record_audit(store, user_id, report["tenant_id"], "report_status_changed", "report", report_id, "manager_ready -> sent")
    logger.info("report_transitioned", report_id=report_id, from_status="manager_ready", to_status="sent", user_id=user_id)
    return report
