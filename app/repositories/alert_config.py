"""Repository for per-company GRNI alert configuration."""
from __future__ import annotations

from sqlalchemy import update

from app.core.company import CompanyContext
from app.db.models import GRNIAlertConfig

from .base import CompanyScopedRepository


class AlertConfigRepository(CompanyScopedRepository[GRNIAlertConfig]):
    """Alert configuration lookups."""

    model = GRNIAlertConfig

    def get_active(self, company: CompanyContext) -> GRNIAlertConfig | None:
        statement = (
            self._company_query(company)
            .where(self.model.is_active.is_(True))
            .order_by(self.model.created_at.desc())
            .limit(1)
        )
        return self.session.scalar(statement)

    def deactivate_all(self, company: CompanyContext) -> None:
        statement = (
            update(self.model)
            .where(self.model.company_id == company.company_id)
            .where(self.model.is_active.is_(True))
            .values(is_active=False)
        )
        self.session.execute(statement, execution_options={"synchronize_session": False})
