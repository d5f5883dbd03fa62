"""Strawberry GraphQL schema definition."""
from __future__ import annotations

from collections.abc import Callable
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import TypeVar

import strawberry
from graphql import GraphQLError
from sqlalchemy.orm import Session
from strawberry.types import Info

from app.db.models import AccrualStatus
from app.graphql.context import GraphQLContext
from app.schemas.company import CompanyRead
from app.schemas.grni import (
    AccrualDetailRead,
    AccrualFilterParams,
    AlertSweepResult,
    AuditEntryRead,
    GRNIStats,
    PeriodCloseSummary,
)
from app.services.accrual_service import AccrualLedgerService
from app.services.alert_service import AgingAlertService
from app.services.company_service import CompanyService
from app.services.exceptions import ServiceError
from app.services.reporting_service import GRNIReportingService


ServiceType = TypeVar("ServiceType")
ResultType = TypeVar("ResultType")


AccrualStatusEnum = strawberry.enum(AccrualStatus, name="AccrualStatus")


@contextmanager
def _session_scope(context: GraphQLContext):
    session = context.get_session()
    try:
        yield session
    finally:
        session.close()


def _execute_with_service(
    info: Info[GraphQLContext, None],
    builder: Callable[[Session, GraphQLContext], ServiceType],
    executor: Callable[[ServiceType], ResultType],
) -> ResultType:
    context = info.context
    with _session_scope(context) as session:
        service = builder(session, context)
        try:
            return executor(service)
        except ServiceError as exc:
            raise GraphQLError(str(exc)) from exc
        except ValueError as exc:
            raise GraphQLError(str(exc)) from exc


@strawberry.type
class HealthCheck:
    """Simple health payload for initial schema bootstrap."""

    status: str


@strawberry.type
class CompanyType:
    id: strawberry.ID
    name: str
    created_at: datetime


@strawberry.type
class AgingBucketsType:
    days_0_30: Decimal = strawberry.field(name="days0To30")
    days_31_60: Decimal = strawberry.field(name="days31To60")
    days_61_90: Decimal = strawberry.field(name="days61To90")
    days_90_plus: Decimal = strawberry.field(name="days90Plus")


@strawberry.type
class SupplierExposureType:
    supplier_id: strawberry.ID
    name: str
    amount: Decimal
    oldest_days: int


@strawberry.type
class GRNIStatsType:
    total_pending: Decimal
    receipt_count: int
    aging: AgingBucketsType
    top_suppliers: list[SupplierExposureType]


@strawberry.type
class AccrualDetailType:
    id: strawberry.ID
    goods_receipt_id: str
    goods_receipt_number: str
    supplier_id: str
    supplier_name: str
    description: str
    estimated_amount: Decimal
    invoiced_amount: Decimal | None
    variance: Decimal | None
    status: AccrualStatusEnum
    days_pending: int
    creation_period: str
    invoice_number: str | None
    owner_id: int | None


@strawberry.type
class AuditEntryType:
    id: int
    action: str
    from_state: str | None
    to_state: str | None
    amount_before: Decimal | None
    amount_after: Decimal | None
    from_owner_id: int | None
    to_owner_id: int | None
    reason_code: str | None
    reason_text: str | None
    user_id: int
    user_name: str | None
    created_at: datetime


@strawberry.type
class PeriodCloseType:
    period: str
    created_count: int
    created_amount: Decimal
    closed_count: int
    closed_amount: Decimal
    variance_total: Decimal
    outstanding_balance: Decimal


@strawberry.type
class AlertSweepType:
    alerts_sent: int
    notifications_created: int


@strawberry.type
class SuccessResult:
    success: bool


@strawberry.input
class AccrualFilterInput:
    status: AccrualStatusEnum | None = None
    supplier_id: str | None = None
    period_from: str | None = None
    period_to: str | None = None
    doc_type: str | None = None
    owner_id: int | None = None


def _to_company_type(company: CompanyRead) -> CompanyType:
    return CompanyType(id=company.id, name=company.name, created_at=company.created_at)


def _to_stats_type(stats: GRNIStats) -> GRNIStatsType:
    return GRNIStatsType(
        total_pending=stats.total_pending,
        receipt_count=stats.receipt_count,
        aging=AgingBucketsType(
            days_0_30=stats.aging.days_0_30,
            days_31_60=stats.aging.days_31_60,
            days_61_90=stats.aging.days_61_90,
            days_90_plus=stats.aging.days_90_plus,
        ),
        top_suppliers=[
            SupplierExposureType(
                supplier_id=item.supplier_id,
                name=item.name,
                amount=item.amount,
                oldest_days=item.oldest_days,
            )
            for item in stats.top_suppliers
        ],
    )


def _to_accrual_type(row: AccrualDetailRead) -> AccrualDetailType:
    return AccrualDetailType(
        id=row.id,
        goods_receipt_id=row.goods_receipt_id,
        goods_receipt_number=row.goods_receipt_number,
        supplier_id=row.supplier.id,
        supplier_name=row.supplier.name,
        description=row.description,
        estimated_amount=row.estimated_amount,
        invoiced_amount=row.invoiced_amount,
        variance=row.variance,
        status=AccrualStatusEnum(row.status),
        days_pending=row.days_pending,
        creation_period=row.creation_period,
        invoice_number=row.invoice_number,
        owner_id=row.owner_id,
    )


def _to_audit_type(entry: AuditEntryRead) -> AuditEntryType:
    return AuditEntryType(
        id=entry.id,
        action=entry.action.value,
        from_state=entry.from_state,
        to_state=entry.to_state,
        amount_before=entry.amount_before,
        amount_after=entry.amount_after,
        from_owner_id=entry.from_owner_id,
        to_owner_id=entry.to_owner_id,
        reason_code=entry.reason_code,
        reason_text=entry.reason_text,
        user_id=entry.user_id,
        user_name=entry.user_name,
        created_at=entry.created_at,
    )


def _to_period_close_type(summary: PeriodCloseSummary) -> PeriodCloseType:
    return PeriodCloseType(**summary.model_dump())


def _to_sweep_type(result: AlertSweepResult) -> AlertSweepType:
    return AlertSweepType(alerts_sent=result.alerts_sent, notifications_created=result.notifications_created)


def _build_accrual_filters(filters: AccrualFilterInput | None) -> AccrualFilterParams:
    if filters is None:
        return AccrualFilterParams()
    return AccrualFilterParams(
        status=AccrualStatus(filters.status.value) if filters.status is not None else None,
        supplier_id=filters.supplier_id,
        period_from=filters.period_from,
        period_to=filters.period_to,
        doc_type=filters.doc_type,
        owner_id=filters.owner_id,
    )


@strawberry.type
class Query:
    """Root GraphQL query type."""

    @strawberry.field(description="Basic service liveness check")
    def health(self) -> HealthCheck:
        return HealthCheck(status="ok")

    @strawberry.field(description="List all companies")
    def companies(self, info: Info[GraphQLContext, None]) -> list[CompanyType]:
        result = _execute_with_service(
            info,
            lambda session, _context: CompanyService(session),
            lambda service: service.list(),
        )
        return [_to_company_type(item) for item in result]

    @strawberry.field(description="Outstanding GRNI balance, aging buckets and top suppliers")
    def grni_stats(self, info: Info[GraphQLContext, None], doc_type: str | None = None) -> GRNIStatsType:
        stats = _execute_with_service(
            info,
            lambda session, context: GRNIReportingService(session, context.company),
            lambda service: service.stats(doc_type),
        )
        return _to_stats_type(stats)

    @strawberry.field(description="List GRNI accruals with optional filters")
    def grni_accruals(
        self,
        info: Info[GraphQLContext, None],
        filters: AccrualFilterInput | None = None,
    ) -> list[AccrualDetailType]:
        rows = _execute_with_service(
            info,
            lambda session, context: GRNIReportingService(session, context.company),
            lambda service: service.list_accruals(_build_accrual_filters(filters)),
        )
        return [_to_accrual_type(row) for row in rows]

    @strawberry.field(description="Audit trail of one accrual, newest first")
    def grni_audit_history(self, info: Info[GraphQLContext, None], accrual_id: strawberry.ID) -> list[AuditEntryType]:
        entries = _execute_with_service(
            info,
            lambda session, context: GRNIReportingService(session, context.company),
            lambda service: service.audit_history(str(accrual_id)),
        )
        return [_to_audit_type(entry) for entry in entries]

    @strawberry.field(description="Period-close summary for a YYYY-MM period")
    def grni_period_close(
        self,
        info: Info[GraphQLContext, None],
        period: str,
        doc_type: str | None = None,
    ) -> PeriodCloseType:
        summary = _execute_with_service(
            info,
            lambda session, context: GRNIReportingService(session, context.company),
            lambda service: service.period_close(period, doc_type),
        )
        return _to_period_close_type(summary)


@strawberry.type
class Mutation:
    """Root GraphQL mutation type."""

    @strawberry.mutation(description="Append a follow-up note to an accrual")
    def add_grni_note(
        self,
        info: Info[GraphQLContext, None],
        accrual_id: strawberry.ID,
        note: str,
        user_id: int,
    ) -> SuccessResult:
        result = _execute_with_service(
            info,
            lambda session, context: AccrualLedgerService(session, context.company),
            lambda service: service.add_note(str(accrual_id), user_id, note),
        )
        return SuccessResult(success=result.success)

    @strawberry.mutation(description="Run the aging alert sweep for the current company")
    def run_grni_alert_sweep(self, info: Info[GraphQLContext, None]) -> AlertSweepType:
        result = _execute_with_service(
            info,
            lambda session, context: AgingAlertService(session, context.company),
            lambda service: service.run_sweep(),
        )
        return _to_sweep_type(result)


schema = strawberry.Schema(query=Query, mutation=Mutation)
