"""Directory queries over the user -> company -> role graph."""
from __future__ import annotations

from sqlalchemy import select

from app.core.company import CompanyContext
from app.db.models import Role, User, UserCompany, UserCompanyRole

from .base import Repository


class DirectoryRepository(Repository[User]):
    """Resolve which users hold a role inside a company."""

    model = User

    def active_user_ids_with_role(self, company: CompanyContext, role_name: str) -> list[int]:
        statement = (
            select(User.id)
            .join(UserCompany, UserCompany.user_id == User.id)
            .join(UserCompanyRole, UserCompanyRole.user_company_id == UserCompany.id)
            .join(Role, Role.id == UserCompanyRole.role_id)
            .where(UserCompany.company_id == company.company_id)
            .where(Role.name == role_name)
            .where(User.is_active.is_(True))
            .order_by(User.id)
            .distinct()
        )
        return [row[0] for row in self.session.execute(statement)]

    def is_active_member(self, company: CompanyContext, user_id: int) -> bool:
        statement = (
            select(User.id)
            .join(UserCompany, UserCompany.user_id == User.id)
            .where(UserCompany.company_id == company.company_id)
            .where(User.id == user_id)
            .where(User.is_active.is_(True))
        )
        return self.session.scalar(statement) is not None
