"""Shared pytest fixtures for GRNI ledger tests."""
from __future__ import annotations

from collections.abc import Callable, Generator, Sequence
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.clock import FixedClock
from app.core.company import CompanyContext
from app.core.database import enable_sqlite_savepoints, get_db_session
from app.db.base import Base
from app.db.models import (
    AccrualStatus,
    Company,
    GRNIAccrual,
    GRNIAlertConfig,
    Role,
    Supplier,
    User,
    UserCompany,
    UserCompanyRole,
)
from app.main import create_app

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


class FirstCandidateSelector:
    """Deterministic owner selector: always the lowest user id."""

    def pick(self, candidates: Sequence[int]) -> int:
        return min(candidates)


@pytest.fixture()
def engine() -> Generator:
    engine = create_engine(
        "sqlite://",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session(engine) -> Generator[Session, None, None]:
    SessionLocal = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False)
    db_session = SessionLocal()
    try:
        yield db_session
    finally:
        db_session.close()


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture()
def selector() -> FirstCandidateSelector:
    return FirstCandidateSelector()


@pytest.fixture()
def company(session: Session) -> Company:
    company = Company(name="Acme SA")
    session.add(company)
    session.commit()
    session.refresh(company)
    return company


@pytest.fixture()
def company_context(company: Company) -> CompanyContext:
    return CompanyContext(company_id=company.id, company_name=company.name)


@pytest.fixture()
def supplier(session: Session, company: Company) -> Supplier:
    supplier = Supplier(id="SUP-1", company_id=company.id, name="Aceros del Sur")
    session.add(supplier)
    session.commit()
    return supplier


@pytest.fixture()
def alert_config(session: Session, company: Company, clock: FixedClock) -> GRNIAlertConfig:
    config = GRNIAlertConfig(
        company_id=company.id,
        owner_role_default="COMPRAS_ANALISTA",
        yellow_days=15,
        red_days=45,
        critical_days=90,
        is_active=True,
        created_at=clock.now(),
    )
    session.add(config)
    session.commit()
    return config


@pytest.fixture()
def add_member(session: Session, company: Company) -> Callable[..., User]:
    """Create a user that belongs to ``company`` with the given roles."""

    def _add_member(
        name: str,
        roles: Sequence[str] = ("COMPRAS_ANALISTA",),
        *,
        is_active: bool = True,
        company_id: str | None = None,
    ) -> User:
        user = User(name=name, is_active=is_active)
        membership = UserCompany(user=user, company_id=company_id or company.id)
        for role_name in roles:
            role = session.scalar(select(Role).where(Role.name == role_name)) or Role(name=role_name)
            membership.roles.append(UserCompanyRole(role=role))
        session.add_all([user, membership])
        session.commit()
        return user

    return _add_member


@pytest.fixture()
def client(session: Session) -> Generator[TestClient, None, None]:
    application = create_app()

    def override_get_db_session() -> Generator[Session, None, None]:
        try:
            yield session
        finally:
            session.rollback()

    application.dependency_overrides[get_db_session] = override_get_db_session

    with TestClient(application) as test_client:
        yield test_client

    application.dependency_overrides.clear()


@pytest.fixture()
def make_accrual(session: Session, company: Company, clock: FixedClock) -> Callable[..., GRNIAccrual]:
    """Insert an accrual directly, created ``days_old`` days before the fixed clock."""

    counter = iter(range(1, 10_000))

    def _make(days_old: int = 0, *, owner_id: int | None = None, **fields) -> GRNIAccrual:
        index = next(counter)
        values = {
            "company_id": company.id,
            "goods_receipt_id": f"GR-{index}",
            "goods_receipt_item_id": f"GRI-{index}",
            "goods_receipt_number": f"REC-{index:04d}",
            "supplier_id": "SUP-1",
            "description": "Chapa laminada",
            "estimated_amount": Decimal("1400000.00"),
            "creation_period": "2023-12",
            "status": AccrualStatus.PENDIENTE,
            "owner_id": owner_id,
            "owner_role": "COMPRAS_ANALISTA",
            "created_at": clock.now() - timedelta(days=days_old),
        }
        values.update(fields)
        accrual = GRNIAccrual(**values)
        session.add(accrual)
        session.commit()
        return accrual

    return _make
