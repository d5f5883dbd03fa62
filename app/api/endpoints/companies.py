"""Company-related REST endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_company_context, get_company_service
from app.api.errors import map_service_error
from app.core.company import CompanyContext
from app.schemas.company import AlertConfigRead, AlertConfigUpsert, CompanyCreate, CompanyRead
from app.services.company_service import CompanyService
from app.services.exceptions import ServiceError

router = APIRouter(prefix="/companies", tags=["companies"])


@router.post("", response_model=CompanyRead, status_code=status.HTTP_201_CREATED)
def create_company(
    payload: CompanyCreate,
    service: CompanyService = Depends(get_company_service),
) -> CompanyRead:
    """Create a new company."""

    try:
        return service.create(payload)
    except ServiceError as exc:
        raise map_service_error(exc) from exc


@router.get("", response_model=list[CompanyRead])
def list_companies(
    service: CompanyService = Depends(get_company_service),
) -> list[CompanyRead]:
    """List available companies."""

    return service.list()


@router.put("/{company_id}/grni/alert-config", response_model=AlertConfigRead)
def upsert_alert_config(
    payload: AlertConfigUpsert,
    company: CompanyContext = Depends(get_company_context),
    service: CompanyService = Depends(get_company_service),
) -> AlertConfigRead:
    """Replace the company's GRNI owner role and aging thresholds."""

    try:
        return service.upsert_alert_config(company, payload)
    except ServiceError as exc:
        raise map_service_error(exc) from exc


@router.get("/{company_id}/grni/alert-config", response_model=AlertConfigRead)
def get_alert_config(
    company: CompanyContext = Depends(get_company_context),
    service: CompanyService = Depends(get_company_service),
) -> AlertConfigRead:
    try:
        return service.get_alert_config(company)
    except ServiceError as exc:
        raise map_service_error(exc) from exc
