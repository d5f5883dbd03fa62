"""GraphQL context utilities for company-aware operations."""
from __future__ import annotations

from dataclasses import dataclass

from fastapi import HTTPException, Request, status
from sqlalchemy.orm import Session, sessionmaker
from strawberry.fastapi import BaseContext

from app.core.company import CompanyContext, CompanyNotFoundError, load_company_context
from app.core.database import SessionLocal

COMPANY_HEADER = "x-company-id"


@dataclass(slots=True)
class GraphQLContext(BaseContext):
    """GraphQL-specific request context containing company and DB session."""

    company: CompanyContext
    session_factory: sessionmaker[Session]

    def get_session(self) -> Session:
        """Return a new SQLAlchemy session for resolver use."""

        return self.session_factory()


def build_context(company_id: str) -> GraphQLContext:
    """Construct a GraphQL context with resolved company."""

    with SessionLocal() as session:
        company_context = load_company_context(session, company_id)
    return GraphQLContext(company=company_context, session_factory=SessionLocal)


def context_getter(request: Request) -> GraphQLContext:
    """FastAPI-compatible context getter for Strawberry GraphQL router."""

    company_id = request.headers.get(COMPANY_HEADER)
    if not company_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing {COMPANY_HEADER} header",
        )
    try:
        return build_context(company_id)
    except CompanyNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
