"""Tests covering ORM models in app.db.models."""
from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from app.db import models


def test_company_relationship_collections(session, company, supplier, alert_config, make_accrual) -> None:
    """Persisted child entities should appear in company relationship collections."""
    accrual = make_accrual()
    session.refresh(company)

    assert supplier in company.suppliers
    assert accrual in company.accruals
    assert alert_config in company.alert_configs


def test_accrual_defaults(session, company) -> None:
    """A bare accrual starts pending, unalerted, in the default currency and doc type."""
    accrual = models.GRNIAccrual(
        company_id=company.id,
        goods_receipt_id="GR-1",
        goods_receipt_item_id="GRI-1",
        supplier_id="SUP-1",
        description="Tornillos",
        estimated_amount=Decimal("10.00"),
        creation_period="2024-03",
    )
    session.add(accrual)
    session.commit()
    session.refresh(accrual)

    assert accrual.status is models.AccrualStatus.PENDIENTE
    assert accrual.currency == models.DEFAULT_CURRENCY
    assert accrual.doc_type == models.DEFAULT_DOC_TYPE
    assert accrual.alert_sent is False
    assert accrual.invoiced_amount is None
    assert accrual.id


def test_audit_entries_follow_their_accrual(session, company, make_accrual) -> None:
    accrual = make_accrual()
    entry = models.GRNIAuditLog(
        company_id=company.id,
        accrual_id=accrual.id,
        action=models.AuditAction.CREATE,
        details={"item_id": "GRI-1"},
    )
    session.add(entry)
    session.commit()
    session.refresh(entry)

    assert entry.user_id == models.SYSTEM_USER_ID
    assert entry.accrual is accrual
    assert entry.details == {"item_id": "GRI-1"}


def test_supplier_name_unique_per_company(session, company) -> None:
    """Duplicate supplier names within a company should raise an integrity error."""
    session.add(models.Supplier(id="SUP-1", company_id=company.id, name="Aceros"))
    session.commit()

    session.add(models.Supplier(id="SUP-2", company_id=company.id, name="Aceros"))
    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()


def test_user_company_membership_unique(session, company, add_member) -> None:
    user = add_member("Ana")

    session.add(models.UserCompany(user_id=user.id, company_id=company.id))
    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()


def test_enum_members() -> None:
    """Enum members should expose the ledger's string values."""
    assert [status.value for status in models.AccrualStatus] == ["PENDIENTE", "FACTURADO", "ANULADO"]
    assert [level.value for level in models.AlertLevel] == ["AMARILLA", "ROJA", "CRITICA"]
    assert models.NotificationPriority.URGENTE.value == "URGENTE"
    assert models.AuditAction.FACTURED.value == "FACTURED"
