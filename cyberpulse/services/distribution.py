"""Distribution Service: recipients and emailing the approved report."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

import structlog

from cyberpulse.errors import DistributionError, PreconditionError
from cyberpulse.roles import Actor, Role, require_role
from cyberpulse.services.audit import record_audit
from cyberpulse.services.integrations import Integrations
from cyberpulse.services.lifecycle import mark_sent
from cyberpulse.services.mailer import (
    Attachment,
    build_report_email,
    report_attachment_name,
    report_email_subject,
)
from cyberpulse.services.renderer import render_report_pdf
from cyberpulse.store import DataStore

logger = structlog.get_logger()

RECIPIENT_ROLES = {Role.ADMIN, Role.ANALYST, Role.ACCOUNT_MANAGER}
SEND_ROLES = {Role.ADMIN, Role.ACCOUNT_MANAGER}


def add_recipient(
    store: DataStore, actor: Actor, report_id: str, email: str, name: str | None = None
) -> dict[str, Any]:
    require_role(actor, RECIPIENT_ROLES, "manage report recipients")
    report = store.get_report(report_id)
    if report["status"] == "sent":
        raise PreconditionError(f"Report '{report_id}' has already been sent")
    recipient = store.add_report_recipient(
        report_id,
        {"id": str(uuid.uuid4()), "report_id": report_id, "email": email, "name": name, "sent_at": None},
    )
    record_audit(store, actor.user_id, report["tenant_id"], "recipient_added", "report", report_id, email)
    return recipient


def remove_recipient(store: DataStore, actor: Actor, report_id: str, recipient_id: str) -> None:
    require_role(actor, RECIPIENT_ROLES, "manage report recipients")
    report = store.get_report(report_id)
    if report["status"] == "sent":
        raise PreconditionError(f"Report '{report_id}' has already been sent")
    store.delete_report_recipient(report_id, recipient_id)
    record_audit(store, actor.user_id, report["tenant_id"], "recipient_removed", "report", report_id, recipient_id)


def list_recipients(store: DataStore, report_id: str) -> list[dict[str, Any]]:
    store.get_report(report_id)
    return store.list_report_recipients(report_id)


async def distribute_report(
    store: DataStore,
    integrations: Integrations,
    actor: Actor,
    report_id: str,
) -> dict[str, Any]:
    """Email the rendered report to every recipient.

    The PDF is rendered once and reused. Recipients that were already sent
    to on an earlier attempt are not emailed again. The report becomes
    ``sent`` only when every recipient has succeeded; otherwise a
    DistributionError carrying the per-recipient outcomes is raised and the
    report stays ``manager_ready``.
    """
    require_role(actor, SEND_ROLES, "send reports")
    report = store.get_report(report_id)
    if report["status"] != "manager_ready":
        raise PreconditionError(
            f"Report '{report_id}' is '{report['status']}'; sending requires 'manager_ready'"
        )
    recipients = store.list_report_recipients(report_id)
    if not recipients:
        raise PreconditionError(f"Report '{report_id}' has no recipients")

    tenant_name = store.get_tenant(report["tenant_id"]).get("name") or report["tenant_id"]
    attachment = Attachment(report_attachment_name(tenant_name, report), render_report_pdf(report, tenant_name))
    subject = report_email_subject(tenant_name, report)

    outcomes: list[dict[str, Any]] = []
    for recipient in recipients:
        outcome = {
            "recipient_id": recipient["id"],
            "email": recipient["email"],
            "success": False,
            "sent_at": recipient.get("sent_at"),
            "error": None,
        }
        if recipient.get("sent_at"):
            outcome["success"] = True
            outcomes.append(outcome)
            continue

        html_body = build_report_email(tenant_name, report, recipient.get("name"))
        try:
            delivered = await integrations.mail_transport.send_one(
                recipient["email"], subject, html_body, attachment
            )
            if not delivered:
                outcome["error"] = "Mail transport rejected the message"
        except Exception as exc:
            outcome["error"] = str(exc) or exc.__class__.__name__

        if outcome["error"] is None:
            sent_at = datetime.now(timezone.utc)
            store.update_report_recipient(report_id, recipient["id"], sent_at=sent_at)
            outcome.update(success=True, sent_at=sent_at)
        else:
            logger.warning(
                "report_send_failed", report_id=report_id, email=recipient["email"], error=outcome["error"]
            )
        outcomes.append(outcome)

    failed = [o for o in outcomes if not o["success"]]
    if failed:
        record_audit(
            store, actor.user_id, report["tenant_id"], "report_distribution_failed", "report", report_id,
            f"{len(failed)} of {len(outcomes)} recipients failed",
        )
        raise DistributionError(
            f"Report '{report_id}' could not be sent to {len(failed)} of {len(outcomes)} recipients",
            outcomes,
        )

    report = mark_sent(store, report_id, actor.user_id)
    record_audit(
        store, actor.user_id, report["tenant_id"], "report_distributed", "report", report_id,
        f"{len(outcomes)} recipients",
    )
    logger.info("report_distributed", report_id=report_id, recipients=len(outcomes))
    return {
        "report_id": report_id,
        "success": True,
        "status": report["status"],
        "sent_at": report["sent_at"],
        "outcomes": outcomes,
    }
