"""Provider metrics ingestion."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from cyberpulse.errors import NotFoundError
from cyberpulse.roles import Actor, Role, require_role
from cyberpulse.routers.deps import get_actor
from cyberpulse.schemas.metrics import SecurityMetrics
from cyberpulse.store import data_store

router = APIRouter(prefix="/tenants", tags=["metrics"])


@router.put("/{tenant_id}/security-metrics", response_model=SecurityMetrics)
async def put_security_metrics(
    tenant_id: str,
    metrics: SecurityMetrics,
    actor: Actor = Depends(get_actor),
) -> SecurityMetrics:
    """Store the latest provider metrics used when reports are created."""
    require_role(actor, {Role.ADMIN, Role.ANALYST}, "ingest security metrics")
    data_store.get_tenant(tenant_id)
    data_store.set_security_metrics(tenant_id, metrics.model_dump())
    return metrics


@router.get("/{tenant_id}/security-metrics", response_model=SecurityMetrics)
async def get_security_metrics(tenant_id: str, actor: Actor = Depends(get_actor)) -> SecurityMetrics:
    data_store.get_tenant(tenant_id)
    payload = data_store.get_security_metrics(tenant_id)
    if payload is None:
        raise NotFoundError(f"No security metrics ingested for tenant '{tenant_id}'")
    return SecurityMetrics.model_validate(payload)
