"""Tests for the Strawberry GraphQL schema resolvers."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from graphql import GraphQLError

from app.core.company import CompanyContext
from app.db.models import AccrualStatus, AuditAction
from app.graphql import schema
from app.graphql.context import GraphQLContext
from app.schemas.company import CompanyRead
from app.schemas.grni import (
    AccrualDetailRead,
    AgingBuckets,
    AlertSweepResult,
    AuditEntryRead,
    GRNIStats,
    NoteResult,
    PeriodCloseSummary,
    SupplierExposure,
    SupplierRef,
)
from app.services.exceptions import NotFoundError, ServiceError, ValidationError

CREATED_AT = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


class DummySession:
    """Minimal session stub ensuring the context manager closes sessions."""

    def __init__(self) -> None:
        self.closed = False

    def close(self) -> None:  # pragma: no cover - simple one-line setter
        self.closed = True


@pytest.fixture
def graphql_info() -> tuple[SimpleNamespace, list[DummySession], GraphQLContext]:
    sessions: list[DummySession] = []

    def session_factory() -> DummySession:
        session = DummySession()
        sessions.append(session)
        return session

    context = GraphQLContext(
        company=CompanyContext(company_id="company-1", company_name="Acme SA"),
        session_factory=session_factory,
    )
    return SimpleNamespace(context=context), sessions, context


def _reporting_stub(captured: dict[str, object], **methods):
    class FakeReportingService:
        def __init__(self, session, company) -> None:  # type: ignore[no-untyped-def]
            captured["session"] = session
            captured["company"] = company

    for name, method in methods.items():
        setattr(FakeReportingService, name, method)
    return FakeReportingService


def test_health_returns_ok_status() -> None:
    assert schema.Query().health().status == "ok"


def test_companies_returns_converted_types(monkeypatch: pytest.MonkeyPatch, graphql_info) -> None:
    info, sessions, _ = graphql_info

    class FakeCompanyService:
        def __init__(self, session) -> None:  # type: ignore[no-untyped-def]
            self.session = session

        def list(self) -> list[CompanyRead]:
            return [CompanyRead(id="c-1", name="Acme SA", created_at=CREATED_AT)]

    monkeypatch.setattr(schema, "CompanyService", FakeCompanyService)

    result = schema.Query().companies(info)

    assert isinstance(result[0], schema.CompanyType)
    assert result[0].name == "Acme SA"
    assert sessions[0].closed is True


def test_grni_stats_converts_buckets_and_suppliers(monkeypatch: pytest.MonkeyPatch, graphql_info) -> None:
    info, sessions, context = graphql_info
    captured: dict[str, object] = {}

    def stats(self, doc_type):
        captured["doc_type"] = doc_type
        return GRNIStats(
            total_pending=Decimal("500.00"),
            receipt_count=2,
            aging=AgingBuckets(days_31_60=Decimal("200.00"), days_90_plus=Decimal("300.00")),
            top_suppliers=[
                SupplierExposure(supplier_id="SUP-1", name="Aceros", amount=Decimal("500.00"), oldest_days=120)
            ],
        )

    monkeypatch.setattr(schema, "GRNIReportingService", _reporting_stub(captured, stats=stats))

    result = schema.Query().grni_stats(info, doc_type="T1")

    assert result.total_pending == Decimal("500.00")
    assert result.aging.days_90_plus == Decimal("300.00")
    assert result.aging.days_0_30 == Decimal("0.00")
    assert result.top_suppliers[0].oldest_days == 120
    assert captured["doc_type"] == "T1"
    assert captured["company"] is context.company
    assert captured["session"] is sessions[0]
    assert sessions[0].closed is True


def test_grni_accruals_builds_filters_and_flattens_supplier(monkeypatch: pytest.MonkeyPatch, graphql_info) -> None:
    info, _, _ = graphql_info
    captured: dict[str, object] = {}

    def list_accruals(self, filters):
        captured["filters"] = filters
        return [
            AccrualDetailRead(
                id="acc-1",
                goods_receipt_id="GR-1",
                goods_receipt_number="REC-0001",
                supplier=SupplierRef(id="SUP-1", name="Aceros"),
                description="Chapa",
                estimated_amount=Decimal("10.00"),
                invoiced_amount=None,
                variance=None,
                status=AccrualStatus.PENDIENTE,
                days_pending=3,
                creation_period="2024-03",
                invoice_number=None,
                owner_id=None,
            )
        ]

    monkeypatch.setattr(schema, "GRNIReportingService", _reporting_stub(captured, list_accruals=list_accruals))

    filters = schema.AccrualFilterInput(status=schema.AccrualStatusEnum.PENDIENTE, supplier_id="SUP-1")
    result = schema.Query().grni_accruals(info, filters=filters)

    assert result[0].supplier_name == "Aceros"
    assert result[0].status == AccrualStatus.PENDIENTE
    assert captured["filters"].status is AccrualStatus.PENDIENTE
    assert captured["filters"].supplier_id == "SUP-1"


def test_grni_accruals_without_filters(monkeypatch: pytest.MonkeyPatch, graphql_info) -> None:
    info, _, _ = graphql_info
    captured: dict[str, object] = {}

    def list_accruals(self, filters):
        captured["filters"] = filters
        return []

    monkeypatch.setattr(schema, "GRNIReportingService", _reporting_stub(captured, list_accruals=list_accruals))

    assert schema.Query().grni_accruals(info) == []
    assert captured["filters"].status is None


def test_grni_audit_history_converts_entries(monkeypatch: pytest.MonkeyPatch, graphql_info) -> None:
    info, _, _ = graphql_info

    def audit_history(self, accrual_id):
        return [
            AuditEntryRead(
                id=4,
                action=AuditAction.SEND_ALERT,
                from_state=None,
                to_state=None,
                amount_before=None,
                amount_after=None,
                from_owner_id=None,
                to_owner_id=None,
                reason_code="ALERT_ROJA",
                reason_text=None,
                metadata=None,
                user_id=0,
                user_name=None,
                created_at=CREATED_AT,
            )
        ]

    monkeypatch.setattr(schema, "GRNIReportingService", _reporting_stub({}, audit_history=audit_history))

    result = schema.Query().grni_audit_history(info, accrual_id="acc-1")

    assert result[0].action == "SEND_ALERT"
    assert result[0].reason_code == "ALERT_ROJA"


def test_grni_audit_history_wraps_not_found(monkeypatch: pytest.MonkeyPatch, graphql_info) -> None:
    info, sessions, _ = graphql_info

    def audit_history(self, accrual_id):
        raise NotFoundError("Accrual not found")

    monkeypatch.setattr(schema, "GRNIReportingService", _reporting_stub({}, audit_history=audit_history))

    with pytest.raises(GraphQLError) as exc_info:
        schema.Query().grni_audit_history(info, accrual_id="missing")

    assert str(exc_info.value) == "Accrual not found"
    assert sessions[0].closed is True


def test_grni_period_close(monkeypatch: pytest.MonkeyPatch, graphql_info) -> None:
    info, _, _ = graphql_info

    def period_close(self, period, doc_type):
        if period == "2024-13":
            raise ValidationError("period must be formatted as YYYY-MM")
        return PeriodCloseSummary(
            period=period,
            created_count=1,
            created_amount=Decimal("10.00"),
            closed_count=0,
            closed_amount=Decimal("0.00"),
            variance_total=Decimal("0.00"),
            outstanding_balance=Decimal("10.00"),
        )

    monkeypatch.setattr(schema, "GRNIReportingService", _reporting_stub({}, period_close=period_close))

    assert schema.Query().grni_period_close(info, period="2024-03").outstanding_balance == Decimal("10.00")
    with pytest.raises(GraphQLError):
        schema.Query().grni_period_close(info, period="2024-13")


def test_add_grni_note_mutation(monkeypatch: pytest.MonkeyPatch, graphql_info) -> None:
    info, _, _ = graphql_info
    captured: dict[str, object] = {}

    class FakeLedger:
        def __init__(self, session, company) -> None:  # type: ignore[no-untyped-def]
            captured["company"] = company

        def add_note(self, accrual_id, user_id, note) -> NoteResult:
            captured["args"] = (accrual_id, user_id, note)
            return NoteResult(success=True)

    monkeypatch.setattr(schema, "AccrualLedgerService", FakeLedger)

    result = schema.Mutation().add_grni_note(info, accrual_id="acc-1", note="Reclamo enviado", user_id=7)

    assert result.success is True
    assert captured["args"] == ("acc-1", 7, "Reclamo enviado")


def test_run_grni_alert_sweep_mutation(monkeypatch: pytest.MonkeyPatch, graphql_info) -> None:
    info, sessions, _ = graphql_info

    class FakeSweep:
        def __init__(self, session, company) -> None:  # type: ignore[no-untyped-def]
            self.session = session

        def run_sweep(self) -> AlertSweepResult:
            return AlertSweepResult(alerts_sent=2, notifications_created=1)

    monkeypatch.setattr(schema, "AgingAlertService", FakeSweep)

    result = schema.Mutation().run_grni_alert_sweep(info)

    assert (result.alerts_sent, result.notifications_created) == (2, 1)
    assert sessions[0].closed is True


def test_run_grni_alert_sweep_wraps_service_errors(monkeypatch: pytest.MonkeyPatch, graphql_info) -> None:
    info, _, _ = graphql_info

    class BrokenSweep:
        def __init__(self, session, company) -> None:  # type: ignore[no-untyped-def]
            pass

        def run_sweep(self) -> AlertSweepResult:
            raise ServiceError("sweep boom")

    monkeypatch.setattr(schema, "AgingAlertService", BrokenSweep)

    with pytest.raises(GraphQLError) as exc_info:
        schema.Mutation().run_grni_alert_sweep(info)

    assert str(exc_info.value) == "sweep boom"
