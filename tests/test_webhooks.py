from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
from types import SimpleNamespace

import pytest
from sqlalchemy.dialects import postgresql

from owner_console.core.errors import SignatureError, UpstreamError, ValidationError
from owner_console.core.webhooks import (
    apply_event,
    decode_secret,
    extract_organization_fields,
    parse_event,
    verify_signature,
    verify_webhook,
)

SECRET_BYTES = b"owner-console-webhook-signing-key"
SECRET = "whsec_" + base64.b64encode(SECRET_BYTES).decode()


def _sign(body: bytes, event_id: str = "msg_1", timestamp: str = "1760000000") -> str:
    digest = hmac.new(SECRET_BYTES, f"{event_id}.{timestamp}.".encode() + body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def _headers(signature: str, event_id: str = "msg_1", timestamp: str = "1760000000") -> dict[str, str]:
    return {"event-id": event_id, "event-timestamp": timestamp, "event-signature": signature}


BODY = json.dumps({"type": "organization.updated", "data": {"id": "org_1", "name": "Acme"}}).encode()


def test_decode_secret_strips_prefix() -> None:
    assert decode_secret(SECRET) == SECRET_BYTES
    assert decode_secret(base64.b64encode(SECRET_BYTES).decode()) == SECRET_BYTES


def test_decode_secret_rejects_garbage() -> None:
    with pytest.raises(SignatureError):
        decode_secret("whsec_not base64!!")


def test_verify_signature_accepts_v1_match() -> None:
    verify_signature(BODY, _headers(f"v1={_sign(BODY)}"), SECRET)


def test_verify_signature_accepts_svix_layout_and_fallback_headers() -> None:
    headers = {
        "svix-id": "msg_1",
        "svix-timestamp": "1760000000",
        "svix-signature": f"v1,{base64.b64encode(b'x' * 32).decode()} v1,{_sign(BODY)}",
    }
    verify_signature(BODY, headers, SECRET)


def test_verify_signature_any_matching_entry_wins() -> None:
    wrong = base64.b64encode(b"\x00" * 32).decode()
    verify_signature(BODY, _headers(f"v1={wrong},v1={_sign(BODY)}"), SECRET)


def test_verify_signature_rejects_flipped_body_byte() -> None:
    signature = _sign(BODY)
    tampered = bytearray(BODY)
    tampered[10] ^= 0x01

    with pytest.raises(SignatureError):
        verify_signature(bytes(tampered), _headers(f"v1={signature}"), SECRET)


def test_verify_signature_rejects_v2_only() -> None:
    with pytest.raises(SignatureError):
        verify_signature(BODY, _headers(f"v2={_sign(BODY)}"), SECRET)


def test_verify_signature_rejects_wrong_length_signature() -> None:
    short = base64.b64encode(b"short").decode()
    with pytest.raises(SignatureError):
        verify_signature(BODY, _headers(f"v1={short}"), SECRET)


def test_verify_signature_binds_event_id() -> None:
    signature = _sign(BODY, event_id="msg_1")
    with pytest.raises(SignatureError):
        verify_signature(BODY, _headers(f"v1={signature}", event_id="msg_2"), SECRET)


def test_verify_signature_requires_headers() -> None:
    with pytest.raises(SignatureError, match="Missing"):
        verify_signature(BODY, {"event-id": "msg_1"}, SECRET)


def test_verify_webhook_without_secret_logs_and_skips(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="owner_console.core.webhooks"):
        verify_webhook(BODY, {}, "")

    assert "verification skipped" in caplog.text


def test_verify_webhook_with_secret_enforces_signature() -> None:
    with pytest.raises(SignatureError):
        verify_webhook(BODY, {}, SECRET)


def test_parse_event_rejects_bad_json() -> None:
    with pytest.raises(ValidationError) as exc:
        parse_event(b"{bad-json")
    assert exc.value.status_code == 400

    with pytest.raises(ValidationError):
        parse_event(b"[1, 2]")

    assert parse_event(b'{"type": "x"}') == {"type": "x"}


def test_extract_fields_prefers_first_alias_present() -> None:
    fields = extract_organization_fields(
        {
            "primary_email": "billing@acme.test",
            "primaryEmail": "other@acme.test",
            "zipCode": "94107",
            "isBroker": True,
        }
    )
    assert fields == {
        "primary_email": "billing@acme.test",
        "zip_code": "94107",
        "is_broker": True,
    }


def test_extract_fields_skips_mistyped_values() -> None:
    fields = extract_organization_fields(
        {
            "is_provider": "yes",
            "isProvider": False,
            "city": "",
            "billing_anchor_day": True,
            "billingAnchorDay": 12,
            "default_billing_terms": "30",
            "plan_id": 7,
        }
    )
    assert fields == {"is_provider": False, "billing_anchor_day": 12}


def test_extract_fields_drops_out_of_range_anchor_day() -> None:
    assert extract_organization_fields({"billing_anchor_day": 31}) == {}
    assert extract_organization_fields(None) == {}


class _FakeSession:
    def __init__(self, *, rowcount: int = 1, error: Exception | None = None) -> None:
        self.rowcount = rowcount
        self.error = error
        self.statements: list = []
        self.committed = False
        self.rolled_back = False

    async def execute(self, stmt):  # noqa: ANN001
        if self.error is not None:
            raise self.error
        self.statements.append(stmt)
        return SimpleNamespace(rowcount=self.rowcount)

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True


@pytest.mark.asyncio
async def test_apply_event_ignores_unknown_or_missing_type() -> None:
    session = _FakeSession()

    outcome = await apply_event(session, {"type": "user.created", "data": {"id": "user_1"}})
    assert outcome.received is False
    assert outcome.event_type == "user.created"

    outcome = await apply_event(session, {"data": {}})
    assert outcome.received is False
    assert session.statements == []


@pytest.mark.asyncio
async def test_apply_event_created_upserts_active_row() -> None:
    session = _FakeSession()
    event = {
        "type": "organization.created",
        "data": {
            "id": "org_1",
            "name": "Acme",
            "public_metadata": {"primaryEmail": "ops@acme.test", "active": False},
        },
    }

    outcome = await apply_event(session, event)

    assert outcome.received is True
    assert outcome.updated is True
    assert session.committed is True
    params = session.statements[0].compile(dialect=postgresql.dialect()).params
    assert params["id"] == "org_1"
    assert params["active"] is True
    assert params["primary_email"] == "ops@acme.test"


@pytest.mark.asyncio
async def test_apply_event_deleted_soft_deactivates() -> None:
    session = _FakeSession()

    outcome = await apply_event(session, {"type": "organization.deleted", "data": {"id": "org_1"}})

    assert outcome.updated is True
    stmt = session.statements[0]
    assert stmt.is_update
    assert stmt.compile(dialect=postgresql.dialect()).params["active"] is False


@pytest.mark.asyncio
async def test_apply_event_updated_for_unknown_org_is_noop() -> None:
    session = _FakeSession(rowcount=0)

    outcome = await apply_event(
        session,
        {"type": "organization.updated", "data": {"id": "org_missing", "name": "Ghost"}},
    )

    assert outcome.received is True
    assert outcome.updated is False


@pytest.mark.asyncio
async def test_apply_event_requires_organization_id() -> None:
    with pytest.raises(ValidationError):
        await apply_event(_FakeSession(), {"type": "organization.deleted", "data": {}})


@pytest.mark.asyncio
async def test_apply_event_datastore_failure_rolls_back() -> None:
    from sqlalchemy.exc import OperationalError

    session = _FakeSession(error=OperationalError("UPDATE", {}, RuntimeError("db down")))

    with pytest.raises(UpstreamError):
        await apply_event(session, {"type": "organization.deleted", "data": {"id": "org_1"}})
    assert session.rolled_back is True
