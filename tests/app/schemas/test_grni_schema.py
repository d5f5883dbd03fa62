"""Unit tests for GRNI schemas."""
from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.schemas.grni import (
    AccrualFilterParams,
    AgingBuckets,
    EstimateAdjust,
    GoodsReceiptIn,
    NoteCreate,
    VoidRequest,
    validate_period,
)


@pytest.mark.parametrize("period", ["2024-01", "2024-12", "1999-09"])
def test_validate_period_accepts_year_month(period) -> None:
    assert validate_period(period) == period


@pytest.mark.parametrize("period", ["2024-00", "2024-13", "2024-1", "24-01", "2024/01"])
def test_validate_period_rejects_malformed(period) -> None:
    with pytest.raises(ValueError):
        validate_period(period)


def test_validate_period_passes_none_through() -> None:
    assert validate_period(None) is None


def test_filter_params_validate_periods() -> None:
    assert AccrualFilterParams(period_from="2024-01").period_from == "2024-01"

    with pytest.raises(ValidationError):
        AccrualFilterParams(period_to="enero")


def test_goods_receipt_normalises_currency_and_defaults_items() -> None:
    receipt = GoodsReceiptIn(id="GR-1", supplier_id="SUP-1", currency="usd")

    assert receipt.currency == "USD"
    assert receipt.items == []


def test_aging_buckets_dump_by_alias_and_accept_field_names() -> None:
    buckets = AgingBuckets(days_0_30=Decimal("10.00"), **{"90+": Decimal("5.00")})

    assert buckets.model_dump(by_alias=True) == {
        "0-30": Decimal("10.00"),
        "31-60": Decimal("0.00"),
        "61-90": Decimal("0.00"),
        "90+": Decimal("5.00"),
    }


def test_void_request_has_default_reason() -> None:
    assert VoidRequest().reason == "Recepción anulada"


def test_note_must_not_be_empty() -> None:
    with pytest.raises(ValidationError):
        NoteCreate(note="")


def test_estimate_adjust_requires_positive_amount() -> None:
    with pytest.raises(ValidationError):
        EstimateAdjust(amount=Decimal("0"), reason="recalculo")
