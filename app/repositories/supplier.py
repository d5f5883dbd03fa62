"""Repository for supplier entities."""
from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select

from app.core.company import CompanyContext
from app.db.models import Supplier

from .base import CompanyScopedRepository


class SupplierRepository(CompanyScopedRepository[Supplier]):
    """Supplier repository with company-scoped helpers."""

    model = Supplier

    def names_for(self, company: CompanyContext, supplier_ids: Iterable[str]) -> dict[str, str]:
        ids = {supplier_id for supplier_id in supplier_ids if supplier_id}
        if not ids:
            return {}
        statement = (
            select(self.model.id, self.model.name)
            .where(self.model.company_id == company.company_id)
            .where(self.model.id.in_(ids))
        )
        return {row[0]: row[1] for row in self.session.execute(statement)}
