"""Unit tests for the company repository."""
from __future__ import annotations

from app.db.models import Company
from app.repositories.company import CompanyRepository


def test_get_by_name_is_exact(session) -> None:
    repo = CompanyRepository(session)
    repo.add(Company(name="Acme SA"))
    session.commit()

    assert repo.get_by_name("Acme SA") is not None
    assert repo.get_by_name("acme sa") is None


def test_list_ordered_sorts_by_name_and_pages(session) -> None:
    repo = CompanyRepository(session)
    for name in ("Gamma", "Alpha", "Beta"):
        repo.add(Company(name=name))
    session.commit()

    assert [company.name for company in repo.list_ordered()] == ["Alpha", "Beta", "Gamma"]
    assert [company.name for company in repo.list_ordered(offset=1, limit=1)] == ["Beta"]
