"""ORM model definitions for the GRNI accrual ledger."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

DELETE_CASCADE = "all, delete-orphan"

UUID_STR = String(36)
REFERENCE = String(64)
CURRENCY_CODE = String(3)
PERIOD = String(7)
MONEY = Numeric(18, 2)
DEFAULT_CURRENCY = "ARS"
DEFAULT_DOC_TYPE = "T1"
SYSTEM_USER_ID = 0


class AccrualStatus(str, Enum):
    """Lifecycle state of a GRNI accrual. Only PENDIENTE is non-terminal."""

    PENDIENTE = "PENDIENTE"
    FACTURADO = "FACTURADO"
    ANULADO = "ANULADO"


class AuditAction(str, Enum):
    """Actions recorded in the accrual audit log."""

    CREATE = "CREATE"
    FACTURED = "FACTURED"
    VOID = "VOID"
    ADJUST = "ADJUST"
    ASSIGN_OWNER = "ASSIGN_OWNER"
    SEND_ALERT = "SEND_ALERT"
    ADD_NOTE = "ADD_NOTE"


class AlertLevel(str, Enum):
    """Aging severity, ordered from mildest to worst."""

    AMARILLA = "AMARILLA"
    ROJA = "ROJA"
    CRITICA = "CRITICA"


class NotificationPriority(str, Enum):
    NORMAL = "NORMAL"
    ALTA = "ALTA"
    URGENTE = "URGENTE"


class Company(Base, TimestampMixin):
    """Company represents an isolated organization."""

    id: Mapped[str] = mapped_column(UUID_STR, primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    suppliers: Mapped[list["Supplier"]] = relationship("Supplier", back_populates="company", cascade=DELETE_CASCADE)
    accruals: Mapped[list["GRNIAccrual"]] = relationship(
        "GRNIAccrual", back_populates="company", cascade=DELETE_CASCADE
    )
    alert_configs: Mapped[list["GRNIAlertConfig"]] = relationship(
        "GRNIAlertConfig", back_populates="company", cascade=DELETE_CASCADE
    )


class CompanyScopedMixin(TimestampMixin):
    """Mixin for company-scoped entities."""

    company_id: Mapped[str] = mapped_column(
        UUID_STR, ForeignKey("company.id", ondelete="cascade"), nullable=False, index=True
    )


class Supplier(CompanyScopedMixin, Base):
    """Supplier (proveedor) of a company."""

    id: Mapped[str] = mapped_column(REFERENCE, primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    company: Mapped[Company] = relationship("Company", back_populates="suppliers")

    __table_args__ = (
        UniqueConstraint("company_id", "name", name="uq_supplier_name_per_company"),
    )


class User(Base, TimestampMixin):
    """Directory user; id 0 is reserved for the system actor."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    memberships: Mapped[list["UserCompany"]] = relationship("UserCompany", back_populates="user")


class Role(Base):
    """Named role such as COMPRAS_ANALISTA."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)


class UserCompany(Base):
    """Membership of a user in a company."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="cascade"), nullable=False)
    company_id: Mapped[str] = mapped_column(UUID_STR, ForeignKey("company.id", ondelete="cascade"), nullable=False)

    user: Mapped[User] = relationship("User", back_populates="memberships")
    roles: Mapped[list["UserCompanyRole"]] = relationship(
        "UserCompanyRole", back_populates="membership", cascade=DELETE_CASCADE
    )

    __table_args__ = (
        UniqueConstraint("user_id", "company_id", name="uq_user_company"),
    )


class UserCompanyRole(Base):
    """Role granted to a user within one company."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_company_id: Mapped[int] = mapped_column(ForeignKey("usercompany.id", ondelete="cascade"), nullable=False)
    role_id: Mapped[int] = mapped_column(ForeignKey("role.id", ondelete="cascade"), nullable=False)

    membership: Mapped[UserCompany] = relationship("UserCompany", back_populates="roles")
    role: Mapped[Role] = relationship("Role")


class GRNIAlertConfig(CompanyScopedMixin, Base):
    """Per-company owner role and aging thresholds (in days)."""

    __tablename__ = "grni_alert_config"

    id: Mapped[str] = mapped_column(UUID_STR, primary_key=True, default=lambda: str(uuid4()))
    owner_role_default: Mapped[str] = mapped_column(String(64), nullable=False, default="COMPRAS_ANALISTA")
    yellow_days: Mapped[int] = mapped_column(Integer, nullable=False, default=15)
    red_days: Mapped[int] = mapped_column(Integer, nullable=False, default=45)
    critical_days: Mapped[int] = mapped_column(Integer, nullable=False, default=90)
    notify_emails: Mapped[list | None] = mapped_column(JSON, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    company: Mapped[Company] = relationship("Company", back_populates="alert_configs")

    __table_args__ = (
        Index("ix_grni_alert_config_active", "company_id", "is_active"),
    )


class GRNIAccrual(CompanyScopedMixin, Base):
    """Liability accrued for one received-but-not-invoiced receipt line."""

    __tablename__ = "grni_accruals"

    id: Mapped[str] = mapped_column(UUID_STR, primary_key=True, default=lambda: str(uuid4()))
    goods_receipt_id: Mapped[str] = mapped_column(REFERENCE, nullable=False)
    goods_receipt_item_id: Mapped[str] = mapped_column(REFERENCE, nullable=False)
    goods_receipt_number: Mapped[str | None] = mapped_column(REFERENCE, nullable=True)
    supplier_id: Mapped[str] = mapped_column(REFERENCE, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    estimated_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    invoiced_amount: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    variance: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    currency: Mapped[str] = mapped_column(CURRENCY_CODE, nullable=False, default=DEFAULT_CURRENCY)
    doc_type: Mapped[str] = mapped_column(String(8), nullable=False, default=DEFAULT_DOC_TYPE)
    creation_period: Mapped[str] = mapped_column(PERIOD, nullable=False)
    invoicing_period: Mapped[str | None] = mapped_column(PERIOD, nullable=True)
    status: Mapped[AccrualStatus] = mapped_column(
        SQLEnum(AccrualStatus, name="grni_status"), default=AccrualStatus.PENDIENTE, nullable=False
    )

    owner_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    owner_role: Mapped[str | None] = mapped_column(String(64), nullable=True)

    alert_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    alert_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    alert_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    alert_level: Mapped[AlertLevel | None] = mapped_column(
        SQLEnum(AlertLevel, name="grni_alert_level"), nullable=True
    )

    follow_up_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    follow_up_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    reversed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reversed_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reversal_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    reason_code: Mapped[str | None] = mapped_column(REFERENCE, nullable=True)
    reason_text: Mapped[str | None] = mapped_column(String(500), nullable=True)
    invoice_id: Mapped[str | None] = mapped_column(REFERENCE, nullable=True)
    invoice_number: Mapped[str | None] = mapped_column(REFERENCE, nullable=True)
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)

    company: Mapped[Company] = relationship("Company", back_populates="accruals")
    audit_entries: Mapped[list["GRNIAuditLog"]] = relationship(
        "GRNIAuditLog", back_populates="accrual", cascade=DELETE_CASCADE
    )

    __table_args__ = (
        Index("ix_grni_status", "company_id", "status"),
        Index("ix_grni_receipt", "company_id", "goods_receipt_id"),
        Index("ix_grni_supplier", "company_id", "supplier_id"),
        Index("ix_grni_creation_period", "company_id", "creation_period"),
    )


class GRNIAuditLog(CompanyScopedMixin, Base):
    """Append-only record of one state-affecting action on an accrual."""

    __tablename__ = "grni_audit_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    accrual_id: Mapped[str] = mapped_column(
        UUID_STR, ForeignKey("grni_accruals.id", ondelete="cascade"), nullable=False, index=True
    )
    action: Mapped[AuditAction] = mapped_column(SQLEnum(AuditAction, name="grni_audit_action"), nullable=False)
    from_state: Mapped[str | None] = mapped_column(String(16), nullable=True)
    to_state: Mapped[str | None] = mapped_column(String(16), nullable=True)
    amount_before: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    amount_after: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    from_owner_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    to_owner_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reason_code: Mapped[str | None] = mapped_column(REFERENCE, nullable=True)
    reason_text: Mapped[str | None] = mapped_column(String(500), nullable=True)
    details: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, default=SYSTEM_USER_ID)

    accrual: Mapped[GRNIAccrual] = relationship("GRNIAccrual", back_populates="audit_entries")


class NotificationOutbox(CompanyScopedMixin, Base):
    """Outgoing notification waiting to be delivered by the messaging worker."""

    id: Mapped[str] = mapped_column(UUID_STR, primary_key=True, default=lambda: str(uuid4()))
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    priority: Mapped[NotificationPriority] = mapped_column(
        SQLEnum(NotificationPriority, name="notification_priority"),
        default=NotificationPriority.NORMAL,
        nullable=False,
    )
    entity_type: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_id: Mapped[str] = mapped_column(REFERENCE, nullable=False)
    recipient_user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    details: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)

    __table_args__ = (
        Index("ix_notification_recipient", "company_id", "recipient_user_id"),
    )


__all__ = [
    "Company",
    "Supplier",
    "User",
    "Role",
    "UserCompany",
    "UserCompanyRole",
    "GRNIAlertConfig",
    "GRNIAccrual",
    "GRNIAuditLog",
    "NotificationOutbox",
    "AccrualStatus",
    "AuditAction",
    "AlertLevel",
    "NotificationPriority",
    "SYSTEM_USER_ID",
]
