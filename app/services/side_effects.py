"""Best-effort execution of secondary writes (audit log, notification outbox)."""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.orm import Session


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class SideEffectOutcome:
    """What happened to a side effect; the caller decides whether to count it."""

    label: str
    succeeded: bool
    error: str | None = None

    def __bool__(self) -> bool:
        return self.succeeded


class BestEffort:
    """Run side effects inside a savepoint and swallow their failures.

    A failed side effect rolls back only its own savepoint, so the primary
    accrual mutation already flushed in the enclosing transaction survives.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def run(self, label: str, action: Callable[[], object]) -> SideEffectOutcome:
        try:
            with self.session.begin_nested():
                action()
        except Exception as exc:  # side effects must never fail the caller
            logger.warning("Best-effort %s failed: %s", label, exc)
            return SideEffectOutcome(label=label, succeeded=False, error=str(exc))
        return SideEffectOutcome(label=label, succeeded=True)
