"""FastAPI dependency utilities for company-scoped access."""
from __future__ import annotations

from uuid import UUID

from fastapi import Depends, Header, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from app.core.company import CompanyContext, CompanyNotFoundError, load_company_context
from app.core.database import get_db_session
from app.db.models import AccrualStatus
from app.schemas.grni import PERIOD_PATTERN, AccrualFilterParams
from app.services.accrual_service import AccrualLedgerService
from app.services.alert_service import AgingAlertService
from app.services.company_service import CompanyService
from app.services.reporting_service import GRNIReportingService


def company_id_path(company_id: UUID = Path(..., description="Company identifier")) -> str:
    """Validate company identifier extracted from path."""

    return str(company_id)


def get_company_context(
    company_id: str = Depends(company_id_path),
    session: Session = Depends(get_db_session),
) -> CompanyContext:
    """Resolve a company context for the request."""

    try:
        return load_company_context(session, company_id)
    except CompanyNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


def acting_user_id(x_user_id: int = Header(..., alias="X-User-Id", ge=0)) -> int:
    """Id of the user performing a mutation; 0 is the system actor."""

    return x_user_id


def get_company_service(session: Session = Depends(get_db_session)) -> CompanyService:
    """Provide company service with database session."""

    return CompanyService(session)


def get_accrual_service(
    company: CompanyContext = Depends(get_company_context),
    session: Session = Depends(get_db_session),
) -> AccrualLedgerService:
    """Provide the accrual ledger bound to the company context."""

    return AccrualLedgerService(session, company)


def get_alert_service(
    company: CompanyContext = Depends(get_company_context),
    session: Session = Depends(get_db_session),
) -> AgingAlertService:
    return AgingAlertService(session, company)


def get_reporting_service(
    company: CompanyContext = Depends(get_company_context),
    session: Session = Depends(get_db_session),
) -> GRNIReportingService:
    return GRNIReportingService(session, company)


def get_accrual_filters(
    status: AccrualStatus | None = Query(default=None),
    supplier_id: str | None = Query(default=None, max_length=64),
    period_from: str | None = Query(default=None, pattern=PERIOD_PATTERN.pattern),
    period_to: str | None = Query(default=None, pattern=PERIOD_PATTERN.pattern),
    doc_type: str | None = Query(default=None, max_length=8),
    owner_id: int | None = Query(default=None),
) -> AccrualFilterParams:
    """Expose accrual listing filters via dependency injection."""

    return AccrualFilterParams(
        status=status,
        supplier_id=supplier_id,
        period_from=period_from,
        period_to=period_to,
        doc_type=doc_type,
        owner_id=owner_id,
    )
