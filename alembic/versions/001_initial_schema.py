"""Initial schema: all CyberPulse tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-16
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Tenants
    op.create_table(
        "tenants",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("azure_tenant_id", sa.String(64), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_tenants_azure_tenant_id", "tenants", ["azure_tenant_id"])

    # Widget definitions
    op.create_table(
        "widgets",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("key", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("category", sa.String(50), nullable=False, server_default="general"),
        sa.Column("scoring_type", sa.String(30), nullable=False, server_default="yesno"),
        sa.Column("scoring_config", sa.JSON, nullable=False),
        sa.Column("points_available", sa.Integer, nullable=False, server_default="0"),
        sa.Column("manual", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("manual_default", sa.Float, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_widgets_key", "widgets", ["key"], unique=True)

    # Per-tenant widget overrides
    op.create_table(
        "tenant_widgets",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("tenant_id", sa.String(36), nullable=False),
        sa.Column("widget_id", sa.String(36), nullable=False),
        sa.Column("is_enabled", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("custom_value", sa.Float, nullable=True),
        sa.Column("manually_toggled", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("force_manual", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "widget_id", name="uq_tenant_widgets_tenant_widget"),
    )
    op.create_index("ix_tenant_widgets_tenant_id", "tenant_widgets", ["tenant_id"])

    # Daily score snapshots
    op.create_table(
        "tenant_scores",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("tenant_id", sa.String(36), nullable=False),
        sa.Column("score_date", sa.Date, nullable=False),
        sa.Column("total_score", sa.Float, server_default="0"),
        sa.Column("max_score", sa.Float, server_default="0"),
        sa.Column("total_score_pct", sa.Float, server_default="0"),
        sa.Column("secure_score", sa.Float, server_default="0"),
        sa.Column("secure_score_pct", sa.Float, server_default="0"),
        sa.Column("breakdown", sa.JSON, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "score_date", name="uq_tenant_scores_tenant_date"),
    )
    op.create_index("ix_tenant_scores_tenant_id", "tenant_scores", ["tenant_id"])

    # Reports
    op.create_table(
        "reports",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("tenant_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("quarter", sa.Integer, nullable=False),
        sa.Column("year", sa.Integer, nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("overall_risk_score", sa.Integer, nullable=False),
        sa.Column("identity_risk_score", sa.Integer, nullable=False),
        sa.Column("training_risk_score", sa.Integer, nullable=False),
        sa.Column("device_risk_score", sa.Integer, nullable=False),
        sa.Column("cloud_risk_score", sa.Integer, nullable=False),
        sa.Column("threat_risk_score", sa.Integer, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="new"),
        sa.Column("security_data", sa.JSON, nullable=False),
        sa.Column("summary", sa.Text, nullable=True),
        sa.Column("recommendations", sa.Text, nullable=True),
        sa.Column("analyst_comments", sa.Text, nullable=True),
        sa.Column("analyst_notes", sa.Text, nullable=True),
        sa.Column("created_by", sa.String(36), nullable=True),
        sa.Column("approved_by", sa.String(36), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "quarter", "year", name="uq_reports_tenant_period"),
    )
    op.create_index("ix_reports_tenant_id", "reports", ["tenant_id"])

    # Report recipients
    op.create_table(
        "report_recipients",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "report_id", sa.String(36), sa.ForeignKey("reports.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_report_recipients_report_id", "report_recipients", ["report_id"])

    # Audit log
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=True),
        sa.Column("tenant_id", sa.String(36), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=True),
        sa.Column("entity_id", sa.String(36), nullable=True),
        sa.Column("details", sa.Text, nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now()),
        *_timestamps(),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_tenant_id", "audit_logs", ["tenant_id"])

    # Provider metrics
    op.create_table(
        "security_metrics",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("tenant_id", sa.String(36), nullable=False),
        sa.Column("payload", sa.JSON, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", name="uq_security_metrics_tenant"),
    )


def downgrade() -> None:
    op.drop_table("security_metrics")
    op.drop_table("audit_logs")
    op.drop_table("report_recipients")
    op.drop_table("reports")
    op.drop_table("tenant_scores")
    op.drop_table("tenant_widgets")
    op.drop_table("widgets")
    op.drop_table("tenants")
