"""In-memory data store for CyberPulse.

Provides the persistence interface used by the scoring and report services
during development and testing. In production this is backed by PostgreSQL
with the unique constraints declared in ``cyberpulse.models``; the in-memory
implementation enforces the same keys so the services behave identically.
"""

from __future__ import annotations

import copy
from datetime import date, datetime, timezone
from typing import Any

from cyberpulse.errors import NotFoundError, UniqueViolation


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DataStore:
    """Single-process store keyed the same way as the database schema."""

    def __init__(self) -> None:
        self.tenants: dict[str, dict[str, Any]] = {}
        self.widgets: dict[str, dict[str, Any]] = {}  # widget_id -> definition
        self.tenant_widgets: dict[tuple[str, str], dict[str, Any]] = {}  # (tenant_id, widget_id) -> override
        self.score_snapshots: dict[str, dict[date, dict[str, Any]]] = {}  # tenant_id -> score_date -> row
        self.reports: dict[str, dict[str, Any]] = {}
        self.report_index: dict[tuple[str, int, int], str] = {}  # (tenant_id, quarter, year) -> report_id
        self.report_recipients: dict[str, dict[str, dict[str, Any]]] = {}  # report_id -> recipient_id -> row
        self.audit_logs: list[dict[str, Any]] = []
        self.security_metrics: dict[str, dict[str, Any]] = {}  # tenant_id -> payload
        self.graph_connections: dict[str, dict[str, Any]] = {}  # tenant_id -> app registration

    def reset(self) -> None:
        """Clear all data: used in tests."""
        self.__init__()

    # Tenants

    def add_tenant(self, tenant_id: str, data: dict[str, Any]) -> None:
        """Add or update a tenant."""
        self.tenants[tenant_id] = {"id": tenant_id, **data}

    def get_tenant(self, tenant_id: str) -> dict[str, Any]:
        try:
            return self.tenants[tenant_id]
        except KeyError:
            raise NotFoundError(f"Tenant '{tenant_id}' not found") from None

    def list_tenants(self) -> list[dict[str, Any]]:
        return list(self.tenants.values())

    # Widgets

    def add_widget(self, widget: dict[str, Any]) -> dict[str, Any]:
        """Insert a widget definition; keys are unique."""
        if any(w["key"] == widget["key"] for w in self.widgets.values()):
            raise UniqueViolation(f"Widget key '{widget['key']}' already exists")
        self.widgets[widget["id"]] = widget
        return widget

    def list_widgets(self) -> list[dict[str, Any]]:
        return list(self.widgets.values())

    def get_widget_by_key(self, key: str) -> dict[str, Any]:
        for widget in self.widgets.values():
            if widget["key"] == key:
                return widget
        raise NotFoundError(f"Widget '{key}' not found")

    def list_tenant_widgets(self, tenant_id: str) -> dict[str, dict[str, Any]]:
        """Return the tenant's overrides keyed by widget id."""
        return {wid: row for (tid, wid), row in self.tenant_widgets.items() if tid == tenant_id}

    def insert_tenant_widget(self, tenant_id: str, widget_id: str, data: dict[str, Any]) -> dict[str, Any]:
        key = (tenant_id, widget_id)
        if key in self.tenant_widgets:
            raise UniqueViolation(f"Override for widget '{widget_id}' already exists for tenant '{tenant_id}'")
        row = {"tenant_id": tenant_id, "widget_id": widget_id, "last_updated": _now(), **data}
        self.tenant_widgets[key] = row
        return row

    def upsert_tenant_widget(self, tenant_id: str, widget_id: str, **fields: Any) -> dict[str, Any]:
        row = self.tenant_widgets.setdefault(
            (tenant_id, widget_id),
            {
                "tenant_id": tenant_id,
                "widget_id": widget_id,
                "is_enabled": False,
                "custom_value": None,
                "manually_toggled": False,
                "force_manual": False,
            },
        )
        row.update(fields)
        row["last_updated"] = _now()
        return row

    # Score snapshots

    def upsert_score_snapshot(self, snapshot: dict[str, Any]) -> tuple[dict[str, Any], bool]:
        """Insert or overwrite the snapshot for (tenant_id, score_date).

        Returns the stored row and whether it was newly created.
        """
        by_date = self.score_snapshots.setdefault(snapshot["tenant_id"], {})
        existing = by_date.get(snapshot["score_date"])
        if existing is None:
            by_date[snapshot["score_date"]] = dict(snapshot)
            return by_date[snapshot["score_date"]], True
        existing.update(snapshot)
        return existing, False

    def list_score_snapshots(
        self,
        tenant_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[dict[str, Any]]:
        """Snapshots for a tenant within [start, end], oldest first."""
        rows = self.score_snapshots.get(tenant_id, {})
        return [
            rows[d]
            for d in sorted(rows)
            if (start is None or d >= start) and (end is None or d <= end)
        ]

    def delete_score_snapshots_before(self, tenant_id: str, cutoff: date) -> int:
        """Delete a tenant's snapshots dated strictly before ``cutoff``."""
        rows = self.score_snapshots.get(tenant_id, {})
        expired = [d for d in rows if d < cutoff]
        for d in expired:
            del rows[d]
        return len(expired)

    # Reports

    def insert_report(self, report: dict[str, Any]) -> dict[str, Any]:
        """Insert a report; (tenant_id, quarter, year) is unique."""
        key = (report["tenant_id"], report["quarter"], report["year"])
        if key in self.report_index:
            raise UniqueViolation(
                f"Report for tenant '{key[0]}' Q{key[1]} {key[2]} already exists"
            )
        self.report_index[key] = report["id"]
        self.reports[report["id"]] = report
        self.report_recipients.setdefault(report["id"], {})
        return report

    def get_report(self, report_id: str) -> dict[str, Any]:
        try:
            return self.reports[report_id]
        except KeyError:
            raise NotFoundError(f"Report '{report_id}' not found") from None

    def find_report(self, tenant_id: str, quarter: int, year: int) -> dict[str, Any] | None:
        report_id = self.report_index.get((tenant_id, quarter, year))
        return self.reports.get(report_id) if report_id else None

    def update_report(self, report_id: str, **fields: Any) -> dict[str, Any]:
        report = self.get_report(report_id)
        report.update(fields)
        report["updated_at"] = _now()
        return report

    def list_reports(self, tenant_id: str) -> list[dict[str, Any]]:
        """Reports for a tenant, newest period first."""
        rows = [r for r in self.reports.values() if r["tenant_id"] == tenant_id]
        return sorted(rows, key=lambda r: (r["year"], r["quarter"]), reverse=True)

    # Report recipients

    def add_report_recipient(self, report_id: str, recipient: dict[str, Any]) -> dict[str, Any]:
        self.get_report(report_id)
        self.report_recipients.setdefault(report_id, {})[recipient["id"]] = recipient
        return recipient

    def list_report_recipients(self, report_id: str) -> list[dict[str, Any]]:
        return list(self.report_recipients.get(report_id, {}).values())

    def update_report_recipient(self, report_id: str, recipient_id: str, **fields: Any) -> dict[str, Any]:
        try:
            recipient = self.report_recipients[report_id][recipient_id]
        except KeyError:
            raise NotFoundError(f"Recipient '{recipient_id}' not found") from None
        recipient.update(fields)
        return recipient

    def delete_report_recipient(self, report_id: str, recipient_id: str) -> None:
        try:
            del self.report_recipients[report_id][recipient_id]
        except KeyError:
            raise NotFoundError(f"Recipient '{recipient_id}' not found") from None

    # Audit log

    def add_audit_log(self, entry: dict[str, Any]) -> dict[str, Any]:
        self.audit_logs.append(entry)
        return entry

    def list_audit_logs(self, tenant_id: str) -> list[dict[str, Any]]:
        """Audit entries for a tenant, newest first."""
        rows = [e for e in self.audit_logs if e.get("tenant_id") == tenant_id]
        return sorted(rows, key=lambda e: e["timestamp"], reverse=True)

    # Provider metrics

    def set_security_metrics(self, tenant_id: str, payload: dict[str, Any]) -> None:
        self.security_metrics[tenant_id] = copy.deepcopy(payload)

    def get_security_metrics(self, tenant_id: str) -> dict[str, Any] | None:
        payload = self.security_metrics.get(tenant_id)
        return copy.deepcopy(payload) if payload is not None else None


# Global singleton: replaced in tests
data_store = DataStore()
