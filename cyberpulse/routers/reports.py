"""Report lifecycle, recipient and distribution endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response

from cyberpulse.roles import Actor
from cyberpulse.routers.deps import get_actor, get_integrations
from cyberpulse.schemas.report import (
    AuditLogResponse,
    DistributionResult,
    RecipientCreateRequest,
    RecipientResponse,
    ReportCreateRequest,
    ReportResponse,
    ReportUpdateRequest,
    TransitionRequest,
)
from cyberpulse.services.distribution import (
    add_recipient,
    distribute_report,
    list_recipients,
    remove_recipient,
)
from cyberpulse.services.integrations import Integrations
from cyberpulse.services.lifecycle import transition_report, update_report_fields
from cyberpulse.services.mailer import report_attachment_name
from cyberpulse.services.renderer import render_report_pdf
from cyberpulse.services.reports import create_report
from cyberpulse.services.risk import risk_level
from cyberpulse.store import data_store

router = APIRouter(tags=["reports"])


def _report_response(report: dict[str, Any]) -> ReportResponse:
    return ReportResponse(**report, risk_level=risk_level(report["overall_risk_score"]))


@router.post("/reports", response_model=ReportResponse, status_code=201)
async def create_tenant_report(
    request: ReportCreateRequest,
    actor: Actor = Depends(get_actor),
    integrations: Integrations = Depends(get_integrations),
) -> ReportResponse:
    """Create a quarter's report, or refresh it with ``force_refresh``."""
    report = await create_report(
        data_store, integrations, actor, request.tenant_id, request.quarter, request.year, request.force_refresh
    )
    return _report_response(report)


@router.get("/reports/{report_id}", response_model=ReportResponse)
async def get_report(report_id: str, actor: Actor = Depends(get_actor)) -> ReportResponse:
    return _report_response(data_store.get_report(report_id))


@router.get("/tenants/{tenant_id}/reports", response_model=list[ReportResponse])
async def list_tenant_reports(tenant_id: str, actor: Actor = Depends(get_actor)) -> list[ReportResponse]:
    data_store.get_tenant(tenant_id)
    return [_report_response(r) for r in data_store.list_reports(tenant_id)]


@router.patch("/reports/{report_id}", response_model=ReportResponse)
async def update_report(
    report_id: str,
    request: ReportUpdateRequest,
    actor: Actor = Depends(get_actor),
) -> ReportResponse:
    """Edit summary, recommendations, comments or notes."""
    report = update_report_fields(data_store, actor, report_id, **request.model_dump(exclude_none=True))
    return _report_response(report)


@router.post("/reports/{report_id}/transition", response_model=ReportResponse)
async def transition(
    report_id: str,
    request: TransitionRequest,
    actor: Actor = Depends(get_actor),
) -> ReportResponse:
    return _report_response(transition_report(data_store, actor, report_id, request.status))


@router.get("/reports/{report_id}/recipients", response_model=list[RecipientResponse])
async def get_recipients(report_id: str, actor: Actor = Depends(get_actor)) -> list[RecipientResponse]:
    return [RecipientResponse(**r) for r in list_recipients(data_store, report_id)]


@router.post("/reports/{report_id}/recipients", response_model=RecipientResponse, status_code=201)
async def create_recipient(
    report_id: str,
    request: RecipientCreateRequest,
    actor: Actor = Depends(get_actor),
) -> RecipientResponse:
    return RecipientResponse(**add_recipient(data_store, actor, report_id, request.email, request.name))


@router.delete("/reports/{report_id}/recipients/{recipient_id}", status_code=204)
async def delete_recipient(report_id: str, recipient_id: str, actor: Actor = Depends(get_actor)) -> Response:
    remove_recipient(data_store, actor, report_id, recipient_id)
    return Response(status_code=204)


@router.post("/reports/{report_id}/send", response_model=DistributionResult)
async def send_report(
    report_id: str,
    actor: Actor = Depends(get_actor),
    integrations: Integrations = Depends(get_integrations),
) -> DistributionResult:
    """Email the approved report to all recipients."""
    return DistributionResult(**await distribute_report(data_store, integrations, actor, report_id))


@router.get("/reports/{report_id}/pdf")
async def download_report_pdf(report_id: str, actor: Actor = Depends(get_actor)) -> Response:
    report = data_store.get_report(report_id)
    tenant_name = data_store.get_tenant(report["tenant_id"]).get("name") or report["tenant_id"]
    return Response(
        content=render_report_pdf(report, tenant_name),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{report_attachment_name(tenant_name, report)}"'},
    )


@router.get("/tenants/{tenant_id}/audit-logs", response_model=list[AuditLogResponse])
async def get_audit_logs(tenant_id: str, actor: Actor = Depends(get_actor)) -> list[AuditLogResponse]:
    data_store.get_tenant(tenant_id)
    return [AuditLogResponse(**e) for e in data_store.list_audit_logs(tenant_id)]
