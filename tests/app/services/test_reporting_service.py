"""Unit tests for GRNI reporting."""
from __future__ import annotations

from decimal import Decimal

import pytest

from app.db.models import AccrualStatus, AuditAction
from app.schemas.grni import AccrualFilterParams, GoodsReceiptIn, GoodsReceiptItemIn
from app.services.accrual_service import AccrualLedgerService
from app.services.exceptions import NotFoundError, ValidationError
from app.services.reporting_service import GRNIReportingService, aging_bucket


@pytest.fixture()
def reporting(session, company_context, clock) -> GRNIReportingService:
    return GRNIReportingService(session, company_context, clock=clock)


@pytest.mark.parametrize(
    ("days", "bucket"),
    [
        (0, "days_0_30"),
        (30, "days_0_30"),
        (31, "days_31_60"),
        (60, "days_31_60"),
        (61, "days_61_90"),
        (90, "days_61_90"),
        (91, "days_90_plus"),
    ],
)
def test_aging_bucket_edges(days, bucket) -> None:
    assert aging_bucket(days) == bucket


def test_stats_buckets_pending_amounts_and_ranks_suppliers(reporting, supplier, make_accrual) -> None:
    make_accrual(10, supplier_id="SUP-1", estimated_amount=Decimal("100.00"), goods_receipt_id="GR-A")
    make_accrual(40, supplier_id="SUP-2", estimated_amount=Decimal("200.00"), goods_receipt_id="GR-B")
    make_accrual(75, supplier_id="SUP-1", estimated_amount=Decimal("300.00"), goods_receipt_id="GR-A")
    make_accrual(120, supplier_id="SUP-3", estimated_amount=Decimal("400.00"), goods_receipt_id="GR-C")
    make_accrual(200, supplier_id="SUP-4", estimated_amount=Decimal("999.00"), status=AccrualStatus.FACTURADO)

    stats = reporting.stats()

    assert stats.total_pending == Decimal("1000.00")
    assert stats.receipt_count == 3
    assert stats.aging.days_0_30 == Decimal("100.00")
    assert stats.aging.days_31_60 == Decimal("200.00")
    assert stats.aging.days_61_90 == Decimal("300.00")
    assert stats.aging.days_90_plus == Decimal("400.00")
    assert [(item.supplier_id, item.name, item.amount, item.oldest_days) for item in stats.top_suppliers] == [
        ("SUP-1", "Aceros del Sur", Decimal("400.00"), 75),
        ("SUP-3", "Proveedor SUP-3", Decimal("400.00"), 120),
        ("SUP-2", "Proveedor SUP-2", Decimal("200.00"), 40),
    ]


def test_stats_limits_top_suppliers_to_five(reporting, make_accrual) -> None:
    for index in range(7):
        make_accrual(5, supplier_id=f"SUP-{index}", estimated_amount=Decimal(100 + index))

    stats = reporting.stats()

    assert len(stats.top_suppliers) == 5
    assert stats.top_suppliers[0].supplier_id == "SUP-6"


def test_stats_filters_by_doc_type(reporting, make_accrual) -> None:
    make_accrual(5, doc_type="T1", estimated_amount=Decimal("10.00"))
    make_accrual(5, doc_type="T2", estimated_amount=Decimal("20.00"))

    assert reporting.stats("T2").total_pending == Decimal("20.00")


def test_stats_on_empty_ledger(reporting) -> None:
    stats = reporting.stats()

    assert stats.total_pending == Decimal("0.00")
    assert stats.receipt_count == 0
    assert stats.top_suppliers == []
    assert stats.aging.model_dump(by_alias=True) == {
        "0-30": Decimal("0.00"),
        "31-60": Decimal("0.00"),
        "61-90": Decimal("0.00"),
        "90+": Decimal("0.00"),
    }


def test_list_accruals_newest_first_with_fallbacks(reporting, supplier, make_accrual) -> None:
    older = make_accrual(40, supplier_id="SUP-1")
    newer = make_accrual(3, supplier_id="SUP-X", goods_receipt_number=None, goods_receipt_id="GR-77")
    closed = make_accrual(
        1,
        status=AccrualStatus.FACTURADO,
        invoiced_amount=Decimal("1500000.00"),
        variance=Decimal("100000.00"),
        invoice_number="A-1",
    )

    rows = reporting.list_accruals()

    assert [row.id for row in rows] == [closed.id, newer.id, older.id]
    assert rows[0].days_pending == 0
    assert rows[0].invoice_number == "A-1"
    assert rows[0].variance == Decimal("100000.00")
    assert rows[1].goods_receipt_number == "REC-GR-77"
    assert rows[1].supplier.name == "Desconocido"
    assert rows[1].days_pending == 3
    assert rows[2].supplier.name == "Aceros del Sur"
    assert rows[2].days_pending == 40


def test_list_accruals_applies_filters(reporting, make_accrual) -> None:
    january = make_accrual(60, creation_period="2024-01", owner_id=3, doc_type="T1")
    february = make_accrual(30, creation_period="2024-02", owner_id=4, doc_type="T2")
    make_accrual(1, creation_period="2024-03", owner_id=3, status=AccrualStatus.ANULADO)

    def ids(**filters) -> list[str]:
        return [row.id for row in reporting.list_accruals(AccrualFilterParams(**filters))]

    assert ids(status=AccrualStatus.PENDIENTE) == [february.id, january.id]
    assert ids(period_from="2024-02", period_to="2024-02") == [february.id]
    assert ids(owner_id=3, status=AccrualStatus.PENDIENTE) == [january.id]
    assert ids(doc_type="T2") == [february.id]
    assert ids(supplier_id="SUP-404") == []


def test_period_close_summarizes_created_closed_and_outstanding(reporting, make_accrual) -> None:
    make_accrual(70, creation_period="2024-01", estimated_amount=Decimal("100.00"))
    make_accrual(
        40,
        creation_period="2024-02",
        estimated_amount=Decimal("200.00"),
        status=AccrualStatus.FACTURADO,
        invoicing_period="2024-03",
        invoiced_amount=Decimal("210.00"),
        variance=Decimal("10.00"),
    )
    make_accrual(5, creation_period="2024-03", estimated_amount=Decimal("300.00"))
    make_accrual(5, creation_period="2024-03", estimated_amount=Decimal("50.00"), status=AccrualStatus.ANULADO)
    make_accrual(0, creation_period="2024-04", estimated_amount=Decimal("999.00"))

    summary = reporting.period_close("2024-03")

    assert summary.period == "2024-03"
    assert summary.created_count == 2
    assert summary.created_amount == Decimal("350.00")
    assert summary.closed_count == 1
    assert summary.closed_amount == Decimal("210.00")
    assert summary.variance_total == Decimal("10.00")
    assert summary.outstanding_balance == Decimal("400.00")


def test_period_close_of_empty_period(reporting) -> None:
    summary = reporting.period_close("2019-07")

    assert summary.created_count == 0
    assert summary.created_amount == Decimal("0.00")
    assert summary.outstanding_balance == Decimal("0.00")


@pytest.mark.parametrize("period", ["2024-13", "2024-3", "marzo", ""])
def test_period_close_rejects_malformed_period(reporting, period) -> None:
    with pytest.raises(ValidationError):
        reporting.period_close(period)


def test_audit_history_newest_first_with_user_names(
    session, company_context, clock, selector, reporting, add_member
) -> None:
    buyer = add_member("Lucía Pérez")
    ledger = AccrualLedgerService(session, company_context, clock=clock, owner_selector=selector)
    receipt = GoodsReceiptIn(
        id="GR-1",
        supplier_id="SUP-1",
        items=[GoodsReceiptItemIn(id="GRI-1", description="Cemento", accepted_quantity=10, unit_price=5)],
    )
    ledger.create_for_receipt(receipt, user_id=buyer.id)
    accrual_id = reporting.list_accruals()[0].id
    clock.advance(minutes=5)
    ledger.add_note(accrual_id, user_id=999, note="Sin novedades")

    history = reporting.audit_history(accrual_id)

    assert [entry.action for entry in history] == [AuditAction.ADD_NOTE, AuditAction.CREATE]
    assert history[0].user_name is None
    assert history[1].user_name == "Lucía Pérez"
    assert history[1].amount_after == Decimal("50.00")
    assert history[1].metadata["item_id"] == "GRI-1"


def test_audit_history_unknown_accrual(reporting) -> None:
    with pytest.raises(NotFoundError):
        reporting.audit_history("missing")
