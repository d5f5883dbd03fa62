"""Pydantic schemas for GRNI accrual operations and reports."""
from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.db.models import AccrualStatus, AlertLevel, AuditAction

PERIOD_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def validate_period(value: str | None) -> str | None:
    if value is None:
        return None
    if not PERIOD_PATTERN.match(value):
        raise ValueError("period must be formatted as YYYY-MM")
    return value


class GoodsReceiptItemIn(BaseModel):
    """Accepted line of a confirmed goods receipt."""

    id: str
    description: str | None = Field(default=None, max_length=500)
    accepted_quantity: Decimal | None = None
    unit_price: Decimal | None = None
    supplier_item_id: str | None = None


class GoodsReceiptIn(BaseModel):
    """Confirmed goods receipt handed over by the receiving flow."""

    id: str
    number: str | None = Field(default=None, max_length=64)
    supplier_id: str
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    doc_type: str | None = Field(default=None, max_length=8)
    items: list[GoodsReceiptItemIn] = Field(default_factory=list)

    @field_validator("currency")
    @classmethod
    def currency_upper(cls, value: str | None) -> str | None:
        return value.upper() if value else value


class InvoiceItemIn(BaseModel):
    """Line of the supplier invoice (factura) linked to a receipt."""

    goods_receipt_item_id: str | None = None
    description: str | None = None
    quantity: Decimal | None = None
    unit_price: Decimal | None = None


class InvoiceIn(BaseModel):
    id: str
    number: str | None = Field(default=None, max_length=64)
    items: list[InvoiceItemIn] = Field(default_factory=list)


class VoidRequest(BaseModel):
    reason: str = Field(default="Recepción anulada", min_length=1, max_length=500)


class NoteCreate(BaseModel):
    note: str = Field(..., min_length=1, max_length=2000)


class OwnerReassign(BaseModel):
    owner_id: int
    reason: str | None = Field(default=None, max_length=500)


class EstimateAdjust(BaseModel):
    amount: Decimal = Field(..., gt=0)
    reason: str = Field(..., min_length=1, max_length=500)


class AccrualCreationResult(BaseModel):
    created: int = 0
    failed: int = 0
    skipped: int = 0
    estimated_total: Decimal = Decimal("0.00")


class ReversalResult(BaseModel):
    reversed: int = 0
    variance_total: Decimal = Decimal("0.00")


class VoidResult(BaseModel):
    voided: int = 0


class AlertSweepResult(BaseModel):
    alerts_sent: int = 0
    notifications_created: int = 0


class NoteResult(BaseModel):
    success: bool


class AccrualRead(BaseModel):
    """Accrual as stored."""

    id: str
    company_id: str
    goods_receipt_id: str
    goods_receipt_item_id: str
    supplier_id: str
    description: str
    estimated_amount: Decimal
    invoiced_amount: Decimal | None
    variance: Decimal | None
    currency: str
    doc_type: str
    creation_period: str
    invoicing_period: str | None
    status: AccrualStatus
    owner_id: int | None
    owner_role: str | None
    alert_sent: bool
    alert_days: int | None
    alert_level: AlertLevel | None
    reason_code: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AccrualFilterParams(BaseModel):
    """Query parameters for the detail listing."""

    status: AccrualStatus | None = None
    supplier_id: str | None = None
    period_from: str | None = None
    period_to: str | None = None
    doc_type: str | None = None
    owner_id: int | None = None

    @field_validator("period_from", "period_to")
    @classmethod
    def _check_period(cls, value: str | None) -> str | None:
        return validate_period(value)


class SupplierRef(BaseModel):
    id: str
    name: str


class AccrualDetailRead(BaseModel):
    """Row of the GRNI detail report."""

    id: str
    goods_receipt_id: str
    goods_receipt_number: str
    supplier: SupplierRef
    description: str
    estimated_amount: Decimal
    invoiced_amount: Decimal | None
    variance: Decimal | None
    status: AccrualStatus
    days_pending: int
    creation_period: str
    invoice_number: str | None
    owner_id: int | None


class AgingBuckets(BaseModel):
    """Outstanding amounts bucketed by age in days."""

    model_config = ConfigDict(populate_by_name=True)

    days_0_30: Decimal = Field(default=Decimal("0.00"), alias="0-30")
    days_31_60: Decimal = Field(default=Decimal("0.00"), alias="31-60")
    days_61_90: Decimal = Field(default=Decimal("0.00"), alias="61-90")
    days_90_plus: Decimal = Field(default=Decimal("0.00"), alias="90+")


class SupplierExposure(BaseModel):
    supplier_id: str
    name: str
    amount: Decimal
    oldest_days: int


class GRNIStats(BaseModel):
    total_pending: Decimal
    receipt_count: int
    aging: AgingBuckets
    top_suppliers: list[SupplierExposure]


class PeriodCloseSummary(BaseModel):
    period: str
    created_count: int
    created_amount: Decimal
    closed_count: int
    closed_amount: Decimal
    variance_total: Decimal
    outstanding_balance: Decimal


class AuditEntryRead(BaseModel):
    id: int
    action: AuditAction
    from_state: str | None
    to_state: str | None
    amount_before: Decimal | None
    amount_after: Decimal | None
    from_owner_id: int | None
    to_owner_id: int | None
    reason_code: str | None
    reason_text: str | None
    metadata: dict[str, Any] | None
    user_id: int
    user_name: str | None
    created_at: datetime
