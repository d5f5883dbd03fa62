"""Read-side GRNI reports: outstanding stats, detail listing, period close and audit history."""
from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal

from sqlalchemy.orm import Session

from app.core.clock import Clock, SystemClock, days_between
from app.core.company import CompanyContext
from app.db.models import AccrualStatus
from app.repositories.accrual import AccrualRepository
from app.repositories.audit import AuditLogRepository
from app.repositories.supplier import SupplierRepository
from app.schemas.grni import (
    AccrualDetailRead,
    AccrualFilterParams,
    AgingBuckets,
    AuditEntryRead,
    GRNIStats,
    PeriodCloseSummary,
    SupplierExposure,
    SupplierRef,
    validate_period,
)
from app.utils.money import ZERO, money

from .exceptions import NotFoundError, ValidationError


logger = logging.getLogger(__name__)

TOP_SUPPLIERS = 5
UNKNOWN_SUPPLIER = "Desconocido"


def aging_bucket(days: int) -> str:
    """Name of the AgingBuckets field an accrual ``days`` old falls into."""

    if days <= 30:
        return "days_0_30"
    if days <= 60:
        return "days_31_60"
    if days <= 90:
        return "days_61_90"
    return "days_90_plus"


class GRNIReportingService:
    """Company-scoped reports over the accrual ledger."""

    def __init__(self, session: Session, company: CompanyContext, clock: Clock | None = None) -> None:
        self.session = session
        self.company = company
        self.clock = clock or SystemClock()
        self.accruals = AccrualRepository(session)
        self.audit_entries = AuditLogRepository(session)
        self.suppliers = SupplierRepository(session)

    def stats(self, doc_type: str | None = None) -> GRNIStats:
        now = self.clock.now()
        pending = self.accruals.list_pending(self.company, doc_type)

        buckets: dict[str, Decimal] = defaultdict(lambda: ZERO)
        by_supplier: dict[str, Decimal] = defaultdict(lambda: ZERO)
        oldest: dict[str, int] = {}
        total = ZERO
        receipts = set()

        for accrual in pending:
            amount = money(accrual.estimated_amount)
            days = days_between(accrual.created_at, now)
            total += amount
            receipts.add(accrual.goods_receipt_id)
            buckets[aging_bucket(days)] += amount
            by_supplier[accrual.supplier_id] += amount
            oldest[accrual.supplier_id] = max(days, oldest.get(accrual.supplier_id, 0))

        ranked = sorted(by_supplier.items(), key=lambda pair: (-pair[1], pair[0]))[:TOP_SUPPLIERS]
        names = self.suppliers.names_for(self.company, (supplier_id for supplier_id, _ in ranked))
        top_suppliers = [
            SupplierExposure(
                supplier_id=supplier_id,
                name=names.get(supplier_id, f"Proveedor {supplier_id}"),
                amount=amount,
                oldest_days=oldest[supplier_id],
            )
            for supplier_id, amount in ranked
        ]
        return GRNIStats(
            total_pending=total,
            receipt_count=len(receipts),
            aging=AgingBuckets(**buckets),
            top_suppliers=top_suppliers,
        )

    def list_accruals(self, filters: AccrualFilterParams | None = None) -> list[AccrualDetailRead]:
        filters = filters or AccrualFilterParams()
        statement = self.accruals.build_filter_query(
            self.company,
            status=filters.status,
            supplier_id=filters.supplier_id,
            period_from=filters.period_from,
            period_to=filters.period_to,
            doc_type=filters.doc_type,
            owner_id=filters.owner_id,
        )
        rows = list(self.session.scalars(statement).all())
        names = self.suppliers.names_for(self.company, (row.supplier_id for row in rows))
        now = self.clock.now()

        return [
            AccrualDetailRead(
                id=row.id,
                goods_receipt_id=row.goods_receipt_id,
                goods_receipt_number=row.goods_receipt_number or f"REC-{row.goods_receipt_id}",
                supplier=SupplierRef(id=row.supplier_id, name=names.get(row.supplier_id, UNKNOWN_SUPPLIER)),
                description=row.description,
                estimated_amount=money(row.estimated_amount),
                invoiced_amount=money(row.invoiced_amount) if row.invoiced_amount is not None else None,
                variance=money(row.variance) if row.variance is not None else None,
                status=row.status,
                days_pending=days_between(row.created_at, now) if row.status == AccrualStatus.PENDIENTE else 0,
                creation_period=row.creation_period,
                invoice_number=row.invoice_number,
                owner_id=row.owner_id,
            )
            for row in rows
        ]

    def period_close(self, period: str, doc_type: str | None = None) -> PeriodCloseSummary:
        try:
            validate_period(period)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        created_count, created_amount = self.accruals.summarize_created(self.company, period, doc_type)
        closed_count, closed_amount, variance_total = self.accruals.summarize_closed(self.company, period, doc_type)
        outstanding = self.accruals.outstanding_through(self.company, period, doc_type)
        logger.debug("GRNI period close %s for company %s computed", period, self.company.company_id)
        return PeriodCloseSummary(
            period=period,
            created_count=created_count,
            created_amount=created_amount,
            closed_count=closed_count,
            closed_amount=closed_amount,
            variance_total=variance_total,
            outstanding_balance=outstanding,
        )

    def audit_history(self, accrual_id: str) -> list[AuditEntryRead]:
        if self.accruals.get_for_company(self.company, accrual_id) is None:
            raise NotFoundError("Accrual not found")
        return [
            AuditEntryRead(
                id=entry.id,
                action=entry.action,
                from_state=entry.from_state,
                to_state=entry.to_state,
                amount_before=entry.amount_before,
                amount_after=entry.amount_after,
                from_owner_id=entry.from_owner_id,
                to_owner_id=entry.to_owner_id,
                reason_code=entry.reason_code,
                reason_text=entry.reason_text,
                metadata=entry.details,
                user_id=entry.user_id,
                user_name=user_name,
                created_at=entry.created_at,
            )
            for entry, user_name in self.audit_entries.history_for(accrual_id)
        ]
