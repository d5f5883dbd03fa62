"""Repository abstractions for database access."""
from __future__ import annotations

from typing import Generic, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from app.db.base import Base
from app.core.company import CompanyContext

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """Base repository providing CRUD convenience helpers."""

    model: type[ModelT]

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, instance: ModelT) -> ModelT:
        self.session.add(instance)
        return instance

    def get(self, obj_id: int | str) -> ModelT | None:
        statement = self._base_query().where(self.model.id == obj_id)  # type: ignore[attr-defined]
        return self.session.scalar(statement)

    def _base_query(self) -> Select[tuple[ModelT]]:
        return select(self.model)


class CompanyScopedRepository(Repository[ModelT]):
    """Repository enforcing company-based filtering."""

    def _company_query(self, company: CompanyContext) -> Select[tuple[ModelT]]:
        return self._base_query().where(self.model.company_id == company.company_id)  # type: ignore[attr-defined]

    def get_for_company(self, company: CompanyContext, obj_id: int | str) -> ModelT | None:
        statement = self._company_query(company).where(self.model.id == obj_id)  # type: ignore[attr-defined]
        return self.session.scalar(statement)
