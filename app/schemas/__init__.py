"""Pydantic schemas exposed by the API layer."""
from .company import AlertConfigRead, AlertConfigUpsert, CompanyCreate, CompanyRead
from .grni import (
    AccrualCreationResult,
    AccrualDetailRead,
    AccrualFilterParams,
    AccrualRead,
    AgingBuckets,
    AlertSweepResult,
    AuditEntryRead,
    EstimateAdjust,
    GoodsReceiptIn,
    GoodsReceiptItemIn,
    GRNIStats,
    InvoiceIn,
    InvoiceItemIn,
    NoteCreate,
    NoteResult,
    OwnerReassign,
    PeriodCloseSummary,
    ReversalResult,
    SupplierExposure,
    SupplierRef,
    VoidRequest,
    VoidResult,
)

__all__ = [
    "CompanyCreate",
    "CompanyRead",
    "AlertConfigUpsert",
    "AlertConfigRead",
    "GoodsReceiptIn",
    "GoodsReceiptItemIn",
    "InvoiceIn",
    "InvoiceItemIn",
    "VoidRequest",
    "NoteCreate",
    "OwnerReassign",
    "EstimateAdjust",
    "AccrualCreationResult",
    "ReversalResult",
    "VoidResult",
    "AlertSweepResult",
    "NoteResult",
    "AccrualRead",
    "AccrualFilterParams",
    "AccrualDetailRead",
    "SupplierRef",
    "AgingBuckets",
    "SupplierExposure",
    "GRNIStats",
    "PeriodCloseSummary",
    "AuditEntryRead",
]
