"""Audit log writer for accrual actions."""
from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from app.core.clock import Clock, SystemClock
from app.core.company import CompanyContext
from app.db.models import AuditAction, GRNIAuditLog
from app.repositories.audit import AuditLogRepository

from .side_effects import BestEffort, SideEffectOutcome


def jsonable(value: Any) -> Any:
    """Make metadata JSON-safe: Decimals become strings, enums their values."""

    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(item) for item in value]
    return value


def _state(value: Enum | str | None) -> str | None:
    if isinstance(value, Enum):
        return value.value
    return value


class AuditTrail:
    """Append one audit entry per action; failures are logged, never raised."""

    def __init__(
        self,
        session: Session,
        company: CompanyContext,
        clock: Clock | None = None,
        best_effort: BestEffort | None = None,
    ) -> None:
        self.company = company
        self.clock = clock or SystemClock()
        self.entries = AuditLogRepository(session)
        self.best_effort = best_effort or BestEffort(session)

    def record(
        self,
        accrual_id: str,
        action: AuditAction,
        user_id: int,
        *,
        from_state: Enum | str | None = None,
        to_state: Enum | str | None = None,
        amount_before: Decimal | None = None,
        amount_after: Decimal | None = None,
        from_owner_id: int | None = None,
        to_owner_id: int | None = None,
        reason_code: str | None = None,
        reason_text: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> SideEffectOutcome:
        entry = GRNIAuditLog(
            accrual_id=accrual_id,
            company_id=self.company.company_id,
            action=action,
            from_state=_state(from_state),
            to_state=_state(to_state),
            amount_before=amount_before,
            amount_after=amount_after,
            from_owner_id=from_owner_id,
            to_owner_id=to_owner_id,
            reason_code=reason_code,
            reason_text=reason_text,
            details=jsonable(details) if details is not None else None,
            user_id=user_id,
            created_at=self.clock.now(),
        )
        return self.best_effort.run(f"audit {action.value} for accrual {accrual_id}", lambda: self.entries.add(entry))
