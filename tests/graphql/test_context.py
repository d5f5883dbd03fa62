"""Tests for GraphQL context utilities."""
from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException, status
from starlette.requests import Request

from app.core.company import CompanyContext, CompanyNotFoundError
from app.graphql import context as graphql_context


async def _empty_receive() -> dict[str, str]:
    await asyncio.sleep(0)
    return {"type": "http.request"}


def _make_request(headers: dict[str, str]) -> Request:
    raw_headers = [
        (key.lower().encode("latin-1"), value.encode("latin-1"))
        for key, value in headers.items()
    ]
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/graphql",
        "headers": raw_headers,
    }
    return Request(scope, _empty_receive)


class DummySession:
    def __init__(self) -> None:
        self.closed = False

    def __enter__(self) -> "DummySession":
        self.closed = False
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self.closed = True
        return False


def test_graphql_context_get_session_uses_session_factory() -> None:
    company = CompanyContext(company_id="company-1", company_name="Company One")
    sessions = [object(), object()]
    session_factory = MagicMock(side_effect=sessions)

    context = graphql_context.GraphQLContext(company=company, session_factory=session_factory)

    assert context.get_session() is sessions[0]
    assert context.get_session() is sessions[1]
    assert session_factory.call_count == 2


def test_build_context_loads_company_and_returns_graphql_context(monkeypatch: pytest.MonkeyPatch) -> None:
    company_context = CompanyContext(company_id="company-123", company_name="Company 123")
    load_mock = MagicMock(return_value=company_context)
    monkeypatch.setattr(graphql_context, "load_company_context", load_mock)

    created_sessions: list[DummySession] = []

    def build_dummy_session() -> DummySession:
        session = DummySession()
        created_sessions.append(session)
        return session

    session_factory_mock = MagicMock(side_effect=build_dummy_session)
    monkeypatch.setattr(graphql_context, "SessionLocal", session_factory_mock)

    result = graphql_context.build_context("company-123")

    assert isinstance(result, graphql_context.GraphQLContext)
    assert result.company is company_context
    assert result.session_factory is session_factory_mock
    load_mock.assert_called_once_with(created_sessions[0], "company-123")
    assert created_sessions[0].closed is True


def test_context_getter_builds_context_when_header_present(monkeypatch: pytest.MonkeyPatch) -> None:
    expected_context = object()
    build_mock = MagicMock(return_value=expected_context)
    monkeypatch.setattr(graphql_context, "build_context", build_mock)

    result = graphql_context.context_getter(_make_request({"x-company-id": "company-xyz"}))

    assert result is expected_context
    build_mock.assert_called_once_with("company-xyz")


def test_context_getter_missing_header_raises_http_exception() -> None:
    with pytest.raises(HTTPException) as exc_info:
        graphql_context.context_getter(_make_request({}))

    assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST
    assert exc_info.value.detail == "Missing x-company-id header"


def test_context_getter_unknown_company_raises_not_found(monkeypatch: pytest.MonkeyPatch) -> None:
    def missing(_company_id):
        raise CompanyNotFoundError("Company company-404 not found")

    monkeypatch.setattr(graphql_context, "build_context", missing)

    with pytest.raises(HTTPException) as exc_info:
        graphql_context.context_getter(_make_request({"x-company-id": "company-404"}))

    assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND
