"""Owner assignment for new accruals.

The owner is picked among the active users that hold the company's default
owner role. Which candidate wins is a load-distribution choice, so it is
delegated to an ``OwnerSelector`` strategy.
"""
from __future__ import annotations

import itertools
import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.orm import Session

from app.core.company import CompanyContext
from app.core.settings import get_settings
from app.repositories.alert_config import AlertConfigRepository
from app.repositories.directory import DirectoryRepository


logger = logging.getLogger(__name__)

FALLBACK_OWNER_ROLE = "COMPRAS_ANALISTA"


class OwnerSelector(Protocol):
    """Pick one of N candidate user ids (N >= 1)."""

    def pick(self, candidates: Sequence[int]) -> int:
        ...


class RandomOwnerSelector:
    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()

    def pick(self, candidates: Sequence[int]) -> int:
        return self.rng.choice(list(candidates))


class RoundRobinOwnerSelector:
    """Cycle through candidates in id order; the cursor lives in this process."""

    def __init__(self) -> None:
        self._counter = itertools.count()

    def pick(self, candidates: Sequence[int]) -> int:
        ordered = sorted(candidates)
        return ordered[next(self._counter) % len(ordered)]


_SELECTORS: dict[str, OwnerSelector] = {}


def default_selector(kind: str | None = None) -> OwnerSelector:
    """Return the process-wide selector configured by ``GRNI_OWNER_SELECTION``."""

    kind = kind or get_settings().owner_selection
    if kind not in _SELECTORS:
        _SELECTORS[kind] = RoundRobinOwnerSelector() if kind == "round_robin" else RandomOwnerSelector()
    return _SELECTORS[kind]


@dataclass(slots=True, frozen=True)
class OwnerAssignment:
    owner_id: int | None
    owner_role: str


class OwnerResolver:
    """Resolve the owner role and owner user for a company."""

    def __init__(
        self,
        session: Session,
        company: CompanyContext,
        selector: OwnerSelector | None = None,
        fallback_role: str | None = None,
    ) -> None:
        self.session = session
        self.company = company
        self.selector = selector or default_selector()
        self.fallback_role = fallback_role or get_settings().default_owner_role or FALLBACK_OWNER_ROLE
        self.configs = AlertConfigRepository(session)
        self.directory = DirectoryRepository(session)

    def resolve_role(self) -> str:
        config = self.configs.get_active(self.company)
        if config is not None and config.owner_role_default:
            return config.owner_role_default
        return self.fallback_role

    def resolve(self) -> OwnerAssignment:
        role = self.resolve_role()
        candidates = self.directory.active_user_ids_with_role(self.company, role)
        if not candidates:
            logger.info("No active user holds %s in company %s; accrual left unowned", role, self.company.company_id)
            return OwnerAssignment(owner_id=None, owner_role=role)
        return OwnerAssignment(owner_id=self.selector.pick(candidates), owner_role=role)

    def resolve_safely(self) -> OwnerAssignment:
        """Like ``resolve`` but never raises; falls back to an unowned assignment."""

        try:
            with self.session.begin_nested():
                return self.resolve()
        except Exception as exc:  # owner lookup is best-effort relative to the accrual
            logger.warning("Owner resolution failed for company %s: %s", self.company.company_id, exc)
            return OwnerAssignment(owner_id=None, owner_role=self.fallback_role)
