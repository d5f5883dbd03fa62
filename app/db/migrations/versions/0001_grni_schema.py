"""Initial schema for the GRNI accrual ledger.

Revision ID: 0001_grni_schema
Revises:
Create Date: 2026-10-18
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_grni_schema"
down_revision = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None

grni_status_enum = sa.Enum("PENDIENTE", "FACTURADO", "ANULADO", name="grni_status")
alert_level_enum = sa.Enum("AMARILLA", "ROJA", "CRITICA", name="grni_alert_level")
audit_action_enum = sa.Enum(
    "CREATE", "FACTURED", "VOID", "ADJUST", "ASSIGN_OWNER", "SEND_ALERT", "ADD_NOTE", name="grni_audit_action"
)
priority_enum = sa.Enum("NORMAL", "ALTA", "URGENTE", name="notification_priority")
COMPANY_PK = "company.id"


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")
    )


def _company_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(["company_id"], [COMPANY_PK], ondelete="CASCADE")


def upgrade() -> None:
    bind = op.get_bind()
    for enum in (grni_status_enum, alert_level_enum, audit_action_enum, priority_enum):
        enum.create(bind, checkfirst=True)

    op.create_table(
        "company",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False, unique=True),
        _created_at(),
    )

    op.create_table(
        "supplier",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("company_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        _created_at(),
        _company_fk(),
        sa.UniqueConstraint("company_id", "name", name="uq_supplier_name_per_company"),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
    )

    op.create_table(
        "role",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=64), nullable=False, unique=True),
    )

    op.create_table(
        "usercompany",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("company_id", sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        _company_fk(),
        sa.UniqueConstraint("user_id", "company_id", name="uq_user_company"),
    )

    op.create_table(
        "usercompanyrole",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_company_id", sa.Integer(), nullable=False),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["user_company_id"], ["usercompany.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["role_id"], ["role.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "grni_alert_config",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("company_id", sa.String(length=36), nullable=False),
        sa.Column("owner_role_default", sa.String(length=64), nullable=False, server_default="COMPRAS_ANALISTA"),
        sa.Column("yellow_days", sa.Integer(), nullable=False, server_default="15"),
        sa.Column("red_days", sa.Integer(), nullable=False, server_default="45"),
        sa.Column("critical_days", sa.Integer(), nullable=False, server_default="90"),
        sa.Column("notify_emails", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        _company_fk(),
    )

    op.create_table(
        "grni_accruals",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("company_id", sa.String(length=36), nullable=False),
        sa.Column("goods_receipt_id", sa.String(length=64), nullable=False),
        sa.Column("goods_receipt_item_id", sa.String(length=64), nullable=False),
        sa.Column("goods_receipt_number", sa.String(length=64), nullable=True),
        sa.Column("supplier_id", sa.String(length=64), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("estimated_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("invoiced_amount", sa.Numeric(18, 2), nullable=True),
        sa.Column("variance", sa.Numeric(18, 2), nullable=True),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default=sa.text("'ARS'")),
        sa.Column("doc_type", sa.String(length=8), nullable=False, server_default=sa.text("'T1'")),
        sa.Column("creation_period", sa.String(length=7), nullable=False),
        sa.Column("invoicing_period", sa.String(length=7), nullable=True),
        sa.Column("status", grni_status_enum, nullable=False, server_default="PENDIENTE"),
        sa.Column("owner_id", sa.Integer(), nullable=True),
        sa.Column("owner_role", sa.String(length=64), nullable=True),
        sa.Column("alert_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("alert_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("alert_days", sa.Integer(), nullable=True),
        sa.Column("alert_level", alert_level_enum, nullable=True),
        sa.Column("follow_up_notes", sa.Text(), nullable=True),
        sa.Column("follow_up_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reversed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reversed_by", sa.Integer(), nullable=True),
        sa.Column("reversal_reason", sa.String(length=500), nullable=True),
        sa.Column("reason_code", sa.String(length=64), nullable=True),
        sa.Column("reason_text", sa.String(length=500), nullable=True),
        sa.Column("invoice_id", sa.String(length=64), nullable=True),
        sa.Column("invoice_number", sa.String(length=64), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        _created_at(),
        _company_fk(),
    )

    op.create_table(
        "grni_audit_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("company_id", sa.String(length=36), nullable=False),
        sa.Column("accrual_id", sa.String(length=36), nullable=False),
        sa.Column("action", audit_action_enum, nullable=False),
        sa.Column("from_state", sa.String(length=16), nullable=True),
        sa.Column("to_state", sa.String(length=16), nullable=True),
        sa.Column("amount_before", sa.Numeric(18, 2), nullable=True),
        sa.Column("amount_after", sa.Numeric(18, 2), nullable=True),
        sa.Column("from_owner_id", sa.Integer(), nullable=True),
        sa.Column("to_owner_id", sa.Integer(), nullable=True),
        sa.Column("reason_code", sa.String(length=64), nullable=True),
        sa.Column("reason_text", sa.String(length=500), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        _company_fk(),
        sa.ForeignKeyConstraint(["accrual_id"], ["grni_accruals.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "notificationoutbox",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("company_id", sa.String(length=36), nullable=False),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("priority", priority_enum, nullable=False, server_default="NORMAL"),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=False),
        sa.Column("recipient_user_id", sa.Integer(), nullable=False),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        _created_at(),
        _company_fk(),
    )

    op.create_index("ix_supplier_company_id", "supplier", ["company_id"])
    op.create_index("ix_grni_alert_config_company_id", "grni_alert_config", ["company_id"])
    op.create_index("ix_grni_alert_config_active", "grni_alert_config", ["company_id", "is_active"])
    op.create_index("ix_grni_accruals_company_id", "grni_accruals", ["company_id"])
    op.create_index("ix_grni_status", "grni_accruals", ["company_id", "status"])
    op.create_index("ix_grni_receipt", "grni_accruals", ["company_id", "goods_receipt_id"])
    op.create_index("ix_grni_supplier", "grni_accruals", ["company_id", "supplier_id"])
    op.create_index("ix_grni_creation_period", "grni_accruals", ["company_id", "creation_period"])
    op.create_index("ix_grni_audit_log_company_id", "grni_audit_log", ["company_id"])
    op.create_index("ix_grni_audit_log_accrual_id", "grni_audit_log", ["accrual_id"])
    op.create_index("ix_notificationoutbox_company_id", "notificationoutbox", ["company_id"])
    op.create_index("ix_notification_recipient", "notificationoutbox", ["company_id", "recipient_user_id"])


def downgrade() -> None:
    op.drop_index("ix_notification_recipient", table_name="notificationoutbox")
    op.drop_index("ix_notificationoutbox_company_id", table_name="notificationoutbox")
    op.drop_index("ix_grni_audit_log_accrual_id", table_name="grni_audit_log")
    op.drop_index("ix_grni_audit_log_company_id", table_name="grni_audit_log")
    op.drop_index("ix_grni_creation_period", table_name="grni_accruals")
    op.drop_index("ix_grni_supplier", table_name="grni_accruals")
    op.drop_index("ix_grni_receipt", table_name="grni_accruals")
    op.drop_index("ix_grni_status", table_name="grni_accruals")
    op.drop_index("ix_grni_accruals_company_id", table_name="grni_accruals")
    op.drop_index("ix_grni_alert_config_active", table_name="grni_alert_config")
    op.drop_index("ix_grni_alert_config_company_id", table_name="grni_alert_config")
    op.drop_index("ix_supplier_company_id", table_name="supplier")

    op.drop_table("notificationoutbox")
    op.drop_table("grni_audit_log")
    op.drop_table("grni_accruals")
    op.drop_table("grni_alert_config")
    op.drop_table("usercompanyrole")
    op.drop_table("usercompany")
    op.drop_table("role")
    op.drop_table("users")
    op.drop_table("supplier")
    op.drop_table("company")

    bind = op.get_bind()
    for enum in (priority_enum, audit_action_enum, alert_level_enum, grni_status_enum):
        enum.drop(bind, checkfirst=True)
