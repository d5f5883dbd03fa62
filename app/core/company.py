"""Company context utilities and multi-tenancy guardrails."""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.db.models import Company


class CompanyAccessError(RuntimeError):
    """Base error for company access violations."""


class CompanyNotFoundError(CompanyAccessError):
    """Raised when a company cannot be located."""


@dataclass(slots=True, frozen=True)
class CompanyContext:
    """Runtime context binding ledger operations to a single company."""

    company_id: str
    company_name: str


def load_company_context(session: Session, company_id: str) -> CompanyContext:
    """Load a company from persistence and return a context wrapper."""

    company = session.get(Company, company_id)
    if company is None:
        raise CompanyNotFoundError(f"Company {company_id} not found")
    return CompanyContext(company_id=str(company.id), company_name=company.name)
