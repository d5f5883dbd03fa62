"""Repository for the append-only GRNI audit log."""
from __future__ import annotations

from sqlalchemy import select

from app.db.models import GRNIAuditLog, User

from .base import Repository


class AuditLogRepository(Repository[GRNIAuditLog]):
    """Audit log access. Entries are only ever inserted, never updated."""

    model = GRNIAuditLog

    def history_for(self, accrual_id: str) -> list[tuple[GRNIAuditLog, str | None]]:
        """Entries for one accrual, newest first, with the acting user's name."""

        statement = (
            select(self.model, User.name)
            .outerjoin(User, User.id == self.model.user_id)
            .where(self.model.accrual_id == accrual_id)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
        )
        return [(row[0], row[1]) for row in self.session.execute(statement)]
