"""Tenant Maturity Calculator: widget values to a tenant's maturity score."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from cyberpulse.errors import ConfigurationError, FetchError, UniqueViolation
from cyberpulse.roles import Actor, Role, require_role
from cyberpulse.services.audit import record_audit
from cyberpulse.services.integrations import Integrations
from cyberpulse.services.widget_scoring import ScoringType, clamp_points, score_widget
from cyberpulse.store import DataStore

logger = structlog.get_logger()


@dataclass
class MaturityResult:
    """Summed widget points for one tenant."""

    tenant_id: str
    total_score: int = 0
    max_score: int = 0
    breakdown: list[dict[str, Any]] = field(default_factory=list)


def is_manual(widget: dict[str, Any], override: dict[str, Any] | None) -> bool:
    """A widget is manual by definition or when the tenant forces it."""
    return bool(widget.get("manual")) or bool(override and override.get("force_manual"))


def resolve_manual_value(widget: dict[str, Any], override: dict[str, Any] | None) -> Any:
    """Value of a manual widget taken from the tenant's override.

    Yes/no widgets read the enabled flag; numeric widgets read the custom
    value, falling back to the widget's manual default and then 0.
    """
    if widget["scoring_type"] == ScoringType.YES_NO.value:
        return bool(override and override.get("is_enabled"))
    custom = override.get("custom_value") if override else None
    if custom is not None:
        return custom
    default = widget.get("manual_default")
    return default if default is not None else 0


def ensure_manual_overrides(store: DataStore, tenant_id: str) -> int:
    """Create missing overrides for the tenant's manual widgets."""
    existing = store.list_tenant_widgets(tenant_id)
    created = 0
    for widget in store.list_widgets():
        if not widget.get("manual") or widget["id"] in existing:
            continue
        try:
            store.insert_tenant_widget(
                tenant_id,
                widget["id"],
                {"is_enabled": False, "custom_value": None, "manually_toggled": False, "force_manual": True},
            )
            created += 1
        except UniqueViolation:
            # Seeded concurrently
            continue
    if created:
        logger.info("manual_overrides_seeded", tenant_id=tenant_id, count=created)
    return created


async def _get_credential(integrations: Integrations, tenant_id: str) -> str:
    try:
        return await integrations.credentials.get_token(tenant_id)
    except FetchError:
        raise
    except Exception as exc:
        raise FetchError(f"Could not obtain credentials for tenant '{tenant_id}': {exc}") from exc


async def calculate_tenant_score(
    store: DataStore,
    integrations: Integrations,
    tenant_id: str,
) -> MaturityResult:
    """Score every active widget for a tenant.

    Inactive widgets are left out of both totals. A failing fetcher or a
    misconfigured widget contributes 0 points but still counts toward the
    maximum. A credential failure raises FetchError for the whole tenant.
    """
    store.get_tenant(tenant_id)
    ensure_manual_overrides(store, tenant_id)
    overrides = store.list_tenant_widgets(tenant_id)
    widgets = [w for w in store.list_widgets() if w.get("active", True)]

    credential: str | None = None
    if any(not is_manual(w, overrides.get(w["id"])) for w in widgets):
        credential = await _get_credential(integrations, tenant_id)

    result = MaturityResult(tenant_id=tenant_id)
    for widget in widgets:
        override = overrides.get(widget["id"])
        status = "ok"
        value: Any = None

        if is_manual(widget, override):
            source = "manual"
            value = resolve_manual_value(widget, override)
        else:
            source = "automatic"
            fetcher = integrations.fetchers.get(widget["key"])
            if fetcher is None:
                logger.warning("widget_fetcher_missing", tenant_id=tenant_id, widget_key=widget["key"])
                status = "fetch_failed"
            else:
                try:
                    value = await fetcher.fetch(tenant_id, credential)
                except Exception as exc:
                    logger.warning(
                        "widget_fetch_failed", tenant_id=tenant_id, widget_key=widget["key"], error=str(exc)
                    )
                    status = "fetch_failed"

        points = 0
        if status == "ok":
            try:
                raw = score_widget(widget["scoring_type"], widget.get("scoring_config"), value)
                points = clamp_points(raw, widget["points_available"])
            except ConfigurationError as exc:
                logger.warning(
                    "widget_config_error", tenant_id=tenant_id, widget_key=widget["key"], error=str(exc)
                )
                status = "config_error"

        result.total_score += points
        result.max_score += widget["points_available"]
        result.breakdown.append(
            {
                "key": widget["key"],
                "source": source,
                "value": value,
                "points": points,
                "points_available": widget["points_available"],
                "status": status,
            }
        )

    logger.info(
        "tenant_score_calculated",
        tenant_id=tenant_id,
        total_score=result.total_score,
        max_score=result.max_score,
    )
    return result


def list_tenant_widgets(store: DataStore, tenant_id: str) -> list[dict[str, Any]]:
    """Widget definitions merged with the tenant's overrides."""
    store.get_tenant(tenant_id)
    ensure_manual_overrides(store, tenant_id)
    overrides = store.list_tenant_widgets(tenant_id)
    views = []
    for widget in store.list_widgets():
        override = overrides.get(widget["id"], {})
        views.append(
            {
                "widget_id": widget["id"],
                "key": widget["key"],
                "name": widget["name"],
                "category": widget["category"],
                "scoring_type": widget["scoring_type"],
                "points_available": widget["points_available"],
                "manual": widget["manual"],
                "active": widget["active"],
                "is_enabled": override.get("is_enabled", False),
                "custom_value": override.get("custom_value"),
                "manually_toggled": override.get("manually_toggled", False),
                "force_manual": override.get("force_manual", False),
                "last_updated": override.get("last_updated"),
            }
        )
    return views


def toggle_widget(
    store: DataStore, actor: Actor, tenant_id: str, widget_key: str, is_enabled: bool
) -> dict[str, Any]:
    require_role(actor, {Role.ADMIN}, "toggle widgets")
    store.get_tenant(tenant_id)
    widget = store.get_widget_by_key(widget_key)
    row = store.upsert_tenant_widget(tenant_id, widget["id"], is_enabled=is_enabled, manually_toggled=True)
    record_audit(
        store, actor.user_id, tenant_id, "widget_toggled", "widget", widget["id"],
        f"{widget_key} enabled={is_enabled}",
    )
    return row


def set_widget_value(
    store: DataStore, actor: Actor, tenant_id: str, widget_key: str, custom_value: float | None
) -> dict[str, Any]:
    require_role(actor, {Role.ADMIN}, "set widget values")
    store.get_tenant(tenant_id)
    widget = store.get_widget_by_key(widget_key)
    row = store.upsert_tenant_widget(tenant_id, widget["id"], custom_value=custom_value)
    record_audit(
        store, actor.user_id, tenant_id, "widget_value_set", "widget", widget["id"],
        f"{widget_key} value={custom_value}",
    )
    return row
