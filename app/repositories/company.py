"""Repository for company entities."""
from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from app.db.models import Company

from .base import Repository


class CompanyRepository(Repository[Company]):
    """Company repository with lookup helpers."""

    model = Company

    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get_by_name(self, name: str) -> Company | None:
        return self.session.scalar(self._base_query().where(self.model.name == name))

    def list_ordered(self, offset: int = 0, limit: int = 100) -> Sequence[Company]:
        statement = self._base_query().order_by(self.model.name).offset(offset).limit(limit)
        return self.session.scalars(statement).all()
