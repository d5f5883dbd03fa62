"""GRNI accrual ledger REST endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import (
    acting_user_id,
    get_accrual_filters,
    get_accrual_service,
    get_alert_service,
    get_reporting_service,
)
from app.api.errors import map_service_error
from app.schemas.grni import (
    AccrualCreationResult,
    AccrualDetailRead,
    AccrualFilterParams,
    AccrualRead,
    AlertSweepResult,
    AuditEntryRead,
    EstimateAdjust,
    GoodsReceiptIn,
    GRNIStats,
    InvoiceIn,
    NoteCreate,
    NoteResult,
    OwnerReassign,
    PeriodCloseSummary,
    ReversalResult,
    VoidRequest,
    VoidResult,
)
from app.services.accrual_service import AccrualLedgerService
from app.services.alert_service import AgingAlertService
from app.services.exceptions import ServiceError, ValidationError
from app.services.reporting_service import GRNIReportingService

router = APIRouter(prefix="/companies/{company_id}/grni", tags=["grni"])


@router.post(
    "/receipts/{receipt_id}/accruals",
    response_model=AccrualCreationResult,
    status_code=status.HTTP_201_CREATED,
)
def create_accruals(
    receipt_id: str,
    receipt: GoodsReceiptIn,
    user_id: int = Depends(acting_user_id),
    service: AccrualLedgerService = Depends(get_accrual_service),
) -> AccrualCreationResult:
    """Open accruals for the accepted lines of a confirmed goods receipt."""

    try:
        if receipt.id != receipt_id:
            raise ValidationError("Receipt id in body does not match the path")
        return service.create_for_receipt(receipt, user_id)
    except ServiceError as exc:
        raise map_service_error(exc) from exc


@router.post("/receipts/{receipt_id}/invoice", response_model=ReversalResult)
def link_invoice(
    receipt_id: str,
    invoice: InvoiceIn,
    user_id: int = Depends(acting_user_id),
    service: AccrualLedgerService = Depends(get_accrual_service),
) -> ReversalResult:
    """Close the receipt's pending accruals against the linked supplier invoice."""

    try:
        return service.reverse_for_invoice(receipt_id, invoice, user_id)
    except ServiceError as exc:
        raise map_service_error(exc) from exc


@router.post("/receipts/{receipt_id}/void", response_model=VoidResult)
def void_receipt(
    receipt_id: str,
    payload: VoidRequest | None = None,
    user_id: int = Depends(acting_user_id),
    service: AccrualLedgerService = Depends(get_accrual_service),
) -> VoidResult:
    try:
        return service.void_for_receipt(receipt_id, user_id, (payload or VoidRequest()).reason)
    except ServiceError as exc:
        raise map_service_error(exc) from exc


@router.post("/alerts/sweep", response_model=AlertSweepResult)
def run_alert_sweep(
    service: AgingAlertService = Depends(get_alert_service),
) -> AlertSweepResult:
    """Raise aging alerts for pending accruals that crossed a threshold."""

    try:
        return service.run_sweep()
    except ServiceError as exc:
        raise map_service_error(exc) from exc


@router.get("/stats", response_model=GRNIStats)
def get_stats(
    doc_type: str | None = Query(default=None, max_length=8),
    service: GRNIReportingService = Depends(get_reporting_service),
) -> GRNIStats:
    return service.stats(doc_type)


@router.get("/accruals", response_model=list[AccrualDetailRead])
def list_accruals(
    filters: AccrualFilterParams = Depends(get_accrual_filters),
    service: GRNIReportingService = Depends(get_reporting_service),
) -> list[AccrualDetailRead]:
    """List accruals with optional filters, newest first."""

    return service.list_accruals(filters)


@router.get("/accruals/{accrual_id}/history", response_model=list[AuditEntryRead])
def get_history(
    accrual_id: str,
    service: GRNIReportingService = Depends(get_reporting_service),
) -> list[AuditEntryRead]:
    try:
        return service.audit_history(accrual_id)
    except ServiceError as exc:
        raise map_service_error(exc) from exc


@router.post("/accruals/{accrual_id}/notes", response_model=NoteResult)
def add_note(
    accrual_id: str,
    payload: NoteCreate,
    user_id: int = Depends(acting_user_id),
    service: AccrualLedgerService = Depends(get_accrual_service),
) -> NoteResult:
    """Append a follow-up note; ``success`` is false for unknown accruals."""

    try:
        return service.add_note(accrual_id, user_id, payload.note)
    except ServiceError as exc:
        raise map_service_error(exc) from exc


@router.put("/accruals/{accrual_id}/owner", response_model=AccrualRead)
def reassign_owner(
    accrual_id: str,
    payload: OwnerReassign,
    user_id: int = Depends(acting_user_id),
    service: AccrualLedgerService = Depends(get_accrual_service),
) -> AccrualRead:
    try:
        return service.reassign_owner(accrual_id, payload.owner_id, user_id, payload.reason)
    except ServiceError as exc:
        raise map_service_error(exc) from exc


@router.post("/accruals/{accrual_id}/adjust", response_model=AccrualRead)
def adjust_estimate(
    accrual_id: str,
    payload: EstimateAdjust,
    user_id: int = Depends(acting_user_id),
    service: AccrualLedgerService = Depends(get_accrual_service),
) -> AccrualRead:
    try:
        return service.adjust_estimate(accrual_id, payload.amount, user_id, payload.reason)
    except ServiceError as exc:
        raise map_service_error(exc) from exc


@router.get("/period-close/{period}", response_model=PeriodCloseSummary)
def period_close(
    period: str,
    doc_type: str | None = Query(default=None, max_length=8),
    service: GRNIReportingService = Depends(get_reporting_service),
) -> PeriodCloseSummary:
    """Created, closed and outstanding totals for a YYYY-MM period."""

    try:
        return service.period_close(period, doc_type)
    except ServiceError as exc:
        raise map_service_error(exc) from exc
