"""Accrual repository: company-scoped reads, guarded transitions and aggregates."""
from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from sqlalchemy import Select, func, select, update

from app.core.company import CompanyContext
from app.db.models import AccrualStatus, GRNIAccrual
from app.utils.money import money

from .base import CompanyScopedRepository


class AccrualRepository(CompanyScopedRepository[GRNIAccrual]):
    """GRNI accrual persistence helpers."""

    model = GRNIAccrual

    def existing_item_ids(self, company: CompanyContext, goods_receipt_id: str) -> set[str]:
        statement = (
            select(self.model.goods_receipt_item_id)
            .where(self.model.company_id == company.company_id)
            .where(self.model.goods_receipt_id == goods_receipt_id)
        )
        return {row[0] for row in self.session.execute(statement)}

    def list_pending_for_receipt(
        self, company: CompanyContext, goods_receipt_id: str, *, lock: bool = True
    ) -> list[GRNIAccrual]:
        """Pending accruals of a receipt, row-locked for the enclosing transaction."""

        statement = (
            self._company_query(company)
            .where(self.model.goods_receipt_id == goods_receipt_id)
            .where(self.model.status == AccrualStatus.PENDIENTE)
            .order_by(self.model.created_at, self.model.id)
        )
        if lock:
            statement = statement.with_for_update()
        return list(self.session.scalars(statement).all())

    def transition_pending(self, accrual: GRNIAccrual, values: dict[str, Any]) -> bool:
        """Apply ``values`` only if the accrual is still pending.

        Returns False when another transaction moved the row out of PENDIENTE
        first; callers treat that as "not ours to transition".
        """

        statement = (
            update(self.model)
            .where(self.model.id == accrual.id)
            .where(self.model.status == AccrualStatus.PENDIENTE)
            .values(**values)
        )
        return self._execute_guarded(statement, [accrual]) == 1

    def void_pending(
        self, company: CompanyContext, accruals: Iterable[GRNIAccrual], values: dict[str, Any]
    ) -> int:
        targets = list(accruals)
        if not targets:
            return 0
        statement = (
            update(self.model)
            .where(self.model.company_id == company.company_id)
            .where(self.model.id.in_([accrual.id for accrual in targets]))
            .where(self.model.status == AccrualStatus.PENDIENTE)
            .values(**values)
        )
        return self._execute_guarded(statement, targets)

    def list_pending_unalerted(self, company: CompanyContext) -> list[GRNIAccrual]:
        statement = (
            self._company_query(company)
            .where(self.model.status == AccrualStatus.PENDIENTE)
            .where(self.model.alert_sent.is_(False))
            .order_by(self.model.created_at, self.model.id)
        )
        return list(self.session.scalars(statement).all())

    def mark_alerted(self, accrual: GRNIAccrual, values: dict[str, Any]) -> bool:
        """Flip ``alert_sent`` once on a pending row; False if it was claimed or closed meanwhile."""

        statement = (
            update(self.model)
            .where(self.model.id == accrual.id)
            .where(self.model.status == AccrualStatus.PENDIENTE)
            .where(self.model.alert_sent.is_(False))
            .values(alert_sent=True, **values)
        )
        return self._execute_guarded(statement, [accrual]) == 1

    def list_pending(self, company: CompanyContext, doc_type: str | None = None) -> list[GRNIAccrual]:
        statement = self._company_query(company).where(self.model.status == AccrualStatus.PENDIENTE)
        if doc_type:
            statement = statement.where(self.model.doc_type == doc_type)
        return list(self.session.scalars(statement).all())

    def build_filter_query(
        self,
        company: CompanyContext,
        status: AccrualStatus | None = None,
        supplier_id: str | None = None,
        period_from: str | None = None,
        period_to: str | None = None,
        doc_type: str | None = None,
        owner_id: int | None = None,
    ) -> Select[tuple[GRNIAccrual]]:
        statement = self._company_query(company)
        if status is not None:
            statement = statement.where(self.model.status == status)
        if supplier_id:
            statement = statement.where(self.model.supplier_id == supplier_id)
        # periods are fixed-width YYYY-MM, so string comparison orders them
        if period_from:
            statement = statement.where(self.model.creation_period >= period_from)
        if period_to:
            statement = statement.where(self.model.creation_period <= period_to)
        if doc_type:
            statement = statement.where(self.model.doc_type == doc_type)
        if owner_id is not None:
            statement = statement.where(self.model.owner_id == owner_id)
        return statement.order_by(self.model.created_at.desc(), self.model.id)

    def summarize_created(
        self, company: CompanyContext, period: str, doc_type: str | None = None
    ) -> tuple[int, Decimal]:
        statement = select(func.count(self.model.id), func.sum(self.model.estimated_amount)).where(
            self.model.company_id == company.company_id, self.model.creation_period == period
        )
        if doc_type:
            statement = statement.where(self.model.doc_type == doc_type)
        count, total = self.session.execute(statement).one()
        return int(count or 0), money(total)

    def summarize_closed(
        self, company: CompanyContext, period: str, doc_type: str | None = None
    ) -> tuple[int, Decimal, Decimal]:
        statement = select(
            func.count(self.model.id),
            func.sum(self.model.invoiced_amount),
            func.sum(self.model.variance),
        ).where(
            self.model.company_id == company.company_id,
            self.model.invoicing_period == period,
            self.model.status == AccrualStatus.FACTURADO,
        )
        if doc_type:
            statement = statement.where(self.model.doc_type == doc_type)
        count, invoiced, variance = self.session.execute(statement).one()
        return int(count or 0), money(invoiced), money(variance)

    def outstanding_through(
        self, company: CompanyContext, period: str, doc_type: str | None = None
    ) -> Decimal:
        statement = select(func.sum(self.model.estimated_amount)).where(
            self.model.company_id == company.company_id,
            self.model.status == AccrualStatus.PENDIENTE,
            self.model.creation_period <= period,
        )
        if doc_type:
            statement = statement.where(self.model.doc_type == doc_type)
        return money(self.session.scalar(statement))

    def _execute_guarded(self, statement, instances: list[GRNIAccrual]) -> int:
        """Run a conditional UPDATE and return how many rows it actually changed."""

        result = self.session.execute(statement, execution_options={"synchronize_session": False})
        for instance in instances:
            self.session.expire(instance)
        return int(result.rowcount or 0)
