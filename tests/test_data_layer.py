from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
import requests
from sqlalchemy.exc import IntegrityError, OperationalError

from owner_console.core.db import get_db_session
from owner_console.core.errors import (
    ConflictError,
    ReferentialIntegrityError,
    UpstreamError,
    datastore_error,
    sqlstate_of,
)
from owner_console.core.identity import ClerkOrganizationClient
from owner_console.core.repositories import (
    OrganizationRepository,
    OrganizationSettingRepository,
    PlanRepository,
    Repository,
)
from owner_console.models.plan import Plan


@pytest.mark.asyncio
async def test_get_db_session_yields_session(monkeypatch: pytest.MonkeyPatch) -> None:
    sentinel = object()

    class _Ctx:
        async def __aenter__(self):
            return sentinel

        async def __aexit__(self, exc_type, exc, tb):  # noqa: ANN001
            return None

    from owner_console.core import db

    monkeypatch.setattr(db, "get_sessionmaker", lambda: (lambda: _Ctx()))

    agen = get_db_session()
    value = await agen.__anext__()
    assert value is sentinel

    with pytest.raises(StopAsyncIteration):
        await agen.__anext__()


def test_get_engine_is_created_once(monkeypatch: pytest.MonkeyPatch) -> None:
    from owner_console.core import db

    created = []

    def _fake_engine(url, **kwargs):  # noqa: ANN001, ANN003
        created.append((url, kwargs))
        return object()

    db.get_engine.cache_clear()
    monkeypatch.setattr(db, "create_async_engine", _fake_engine)
    try:
        assert db.get_engine() is db.get_engine()
        assert len(created) == 1
        assert created[0][1]["pool_pre_ping"] is True
    finally:
        db.get_engine.cache_clear()


@pytest.mark.asyncio
async def test_repository_create_get_delete() -> None:
    entity = Plan(id="basic", name="Basic")

    execute_values = [
        SimpleNamespace(scalar_one_or_none=lambda: entity),
        SimpleNamespace(rowcount=1),
        SimpleNamespace(rowcount=0),
    ]

    async def _execute(_stmt):  # noqa: ANN001
        return execute_values.pop(0)

    session = Mock()
    session.execute = AsyncMock(side_effect=_execute)
    session.flush = AsyncMock()
    session.refresh = AsyncMock()

    repo = Repository(session=session, model=Plan)

    created = await repo.create(id="pro", name="Pro")
    got = await repo.get("basic")
    deleted = await repo.delete("basic")
    missing = await repo.delete("ghost")

    assert isinstance(created, Plan)
    session.add.assert_called_once_with(created)
    session.flush.assert_awaited_once()
    assert got is entity
    assert deleted is True
    assert missing is False


@pytest.mark.asyncio
async def test_organization_repository_update_columns_reports_missing_rows() -> None:
    session = Mock()
    session.execute = AsyncMock(return_value=SimpleNamespace(rowcount=0))

    assert await OrganizationRepository(session).update_columns("org_missing", {"active": False}) is False
    session.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_setting_repository_skips_empty_seed() -> None:
    session = Mock()
    session.execute = AsyncMock()

    await OrganizationSettingRepository(session).insert_missing("org_1", ())
    session.execute.assert_not_awaited()

    await OrganizationSettingRepository(session).insert_missing("org_1", [("date_format", "MM/DD/YYYY", "string")])
    session.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_plan_repository_name_lookup() -> None:
    session = Mock()
    session.execute = AsyncMock(return_value=SimpleNamespace(all=lambda: [("basic", "Basic"), ("pro", "Pro")]))

    assert await PlanRepository(session).name_lookup() == {"basic": "Basic", "pro": "Pro"}


class _PgError(Exception):
    sqlstate = "23505"


def test_datastore_error_maps_sqlstate() -> None:
    unique = IntegrityError("INSERT", {}, _PgError("duplicate"))
    assert sqlstate_of(unique) == "23505"
    assert isinstance(datastore_error(unique, "create plan", unique_message="exists"), ConflictError)
    # Without a specific message the violation falls through to an upstream error.
    assert isinstance(datastore_error(unique, "create plan"), UpstreamError)

    fk_cause = Exception("fk")
    fk_cause.pgcode = "23503"
    wrapped = Exception("driver error")
    wrapped.__cause__ = fk_cause
    fk = IntegrityError("UPDATE", {}, wrapped)
    error = datastore_error(fk, "update organization", foreign_key_message="bad plan")
    assert isinstance(error, ReferentialIntegrityError)
    assert error.status_code == 422

    other = datastore_error(OperationalError("SELECT", {}, RuntimeError("timeout")), "list plans")
    assert isinstance(other, UpstreamError)
    assert "list plans" in other.message


class _Response:
    def __init__(self, body: dict | None = None, *, status_error: bool = False) -> None:
        self.body = body
        self.status_error = status_error
        self.content = b"{}" if body is not None else b""

    def raise_for_status(self) -> None:
        if self.status_error:
            raise requests.HTTPError("422 Client Error")

    def json(self) -> dict:
        return self.body or {}


def test_identity_client_create_organization(monkeypatch: pytest.MonkeyPatch) -> None:
    from owner_console.core import identity

    calls = []

    def _request(method, url, json=None, headers=None, timeout=None):  # noqa: ANN001
        calls.append((method, url, json, headers))
        return _Response({"id": "org_new", "name": json["name"], "slug": "acme"})

    monkeypatch.setattr(identity.settings, "clerk_secret_key", "sk_test")
    monkeypatch.setattr(identity.requests, "request", _request)

    org = ClerkOrganizationClient().create_organization(
        name="Acme",
        created_by="user_owner",
        slug="acme",
        public_metadata={"source": "owner-console"},
    )

    assert org.id == "org_new"
    method, url, payload, headers = calls[0]
    assert method == "POST"
    assert url.endswith("/organizations")
    assert payload == {
        "name": "Acme",
        "created_by": "user_owner",
        "public_metadata": {"source": "owner-console"},
        "slug": "acme",
    }
    assert headers == {"Authorization": "Bearer sk_test"}


def test_identity_client_get_user_picks_primary_email(monkeypatch: pytest.MonkeyPatch) -> None:
    from owner_console.core import identity

    body = {
        "id": "user_1",
        "primary_email_address_id": "idn_2",
        "email_addresses": [
            {"id": "idn_1", "email_address": "old@console.com"},
            {"id": "idn_2", "email_address": "owner@console.com"},
        ],
        "public_metadata": {"platformRole": "owner"},
    }
    monkeypatch.setattr(identity.settings, "clerk_secret_key", "sk_test")
    monkeypatch.setattr(identity.requests, "request", lambda *args, **kwargs: _Response(body))

    user = ClerkOrganizationClient().get_user("user_1")
    assert user.email == "owner@console.com"
    assert user.public_metadata == {"platformRole": "owner"}


def test_identity_client_failures_are_upstream_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    from owner_console.core import identity

    monkeypatch.setattr(identity.settings, "clerk_secret_key", "")
    with pytest.raises(UpstreamError, match="not configured"):
        ClerkOrganizationClient().delete_organization("org_1")

    monkeypatch.setattr(identity.settings, "clerk_secret_key", "sk_test")
    monkeypatch.setattr(identity.requests, "request", lambda *args, **kwargs: _Response({}, status_error=True))
    with pytest.raises(UpstreamError):
        ClerkOrganizationClient().update_organization("org_1", name="Renamed")

    monkeypatch.setattr(identity.requests, "request", lambda *args, **kwargs: _Response(None))
    ClerkOrganizationClient().delete_organization("org_1")


class _HtmlResponse:
    content = b"<html>Bad gateway</html>"

    def raise_for_status(self) -> None:
        return None

    def json(self) -> dict:
        raise ValueError("Expecting value: line 1 column 1 (char 0)")


def test_identity_client_non_json_success_is_upstream_error(monkeypatch: pytest.MonkeyPatch) -> None:
    from owner_console.core import identity

    monkeypatch.setattr(identity.settings, "clerk_secret_key", "sk_test")
    monkeypatch.setattr(identity.requests, "request", lambda *args, **kwargs: _HtmlResponse())

    with pytest.raises(UpstreamError, match="non-JSON"):
        ClerkOrganizationClient().get_user("user_1")


def test_identity_client_create_without_id_is_upstream_error(monkeypatch: pytest.MonkeyPatch) -> None:
    from owner_console.core import identity

    monkeypatch.setattr(identity.settings, "clerk_secret_key", "sk_test")
    monkeypatch.setattr(
        identity.requests, "request", lambda *args, **kwargs: _Response({"name": "Acme", "slug": "acme"})
    )

    with pytest.raises(UpstreamError, match="organization id"):
        ClerkOrganizationClient().create_organization(name="Acme", created_by="user_owner")
