from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from owner_console.core.errors import SignatureError, ValidationError, datastore_error
from owner_console.core.repositories.organizations import OrganizationRepository

logger = logging.getLogger(__name__)

SECRET_PREFIX = "whsec_"

EVENT_ID_HEADERS = ("event-id", "svix-id")
EVENT_TIMESTAMP_HEADERS = ("event-timestamp", "svix-timestamp")
EVENT_SIGNATURE_HEADERS = ("event-signature", "svix-signature")

ORGANIZATION_CREATED = "organization.created"
ORGANIZATION_UPDATED = "organization.updated"
ORGANIZATION_DELETED = "organization.deleted"
SUPPORTED_EVENTS = frozenset({ORGANIZATION_CREATED, ORGANIZATION_UPDATED, ORGANIZATION_DELETED})

# Accepts both "v1=<sig>,v2=<sig>" and the Svix "v1,<sig> v1,<sig>" layout.
_SIGNATURE_ENTRY = re.compile(r"(?<![A-Za-z0-9])(v\d+)[=,]([A-Za-z0-9+/_-]+=*)")

_STR = (str,)
_BOOL = (bool,)
_INT = (int,)

# (canonical column, metadata aliases in lookup order, accepted value types)
METADATA_FIELDS: tuple[tuple[str, tuple[str, ...], tuple[type, ...]], ...] = (
    ("legal_name", ("legal_name", "legalName"), _STR),
    ("primary_email", ("primary_email", "primaryEmail"), _STR),
    ("primary_phone", ("primary_phone", "primaryPhone"), _STR),
    ("address_line1", ("address_line1", "addressLine1"), _STR),
    ("address_line2", ("address_line2", "addressLine2"), _STR),
    ("city", ("city",), _STR),
    ("state", ("state",), _STR),
    ("zip_code", ("zip_code", "zipCode"), _STR),
    ("country", ("country",), _STR),
    ("is_provider", ("is_provider", "isProvider"), _BOOL),
    ("is_broker", ("is_broker", "isBroker"), _BOOL),
    ("currency", ("currency",), _STR),
    ("default_billing_terms", ("default_billing_terms", "defaultBillingTerms"), _INT),
    ("active", ("active",), _BOOL),
    ("plan_id", ("plan_id", "planId"), _STR),
    ("billing_anchor_day", ("billing_anchor_day", "billingAnchorDay"), _INT),
)


@dataclass(slots=True)
class WebhookOutcome:
    received: bool
    event_type: str | None = None
    organization_id: str | None = None
    updated: bool = False


def _first_header(headers: Mapping[str, str], names: tuple[str, ...]) -> str | None:
    for name in names:
        value = headers.get(name)
        if value:
            return value
    return None


def _b64decode(value: str) -> bytes:
    padded = value + "=" * (-len(value) % 4)
    if "-" in padded or "_" in padded:
        return base64.urlsafe_b64decode(padded)
    return base64.b64decode(padded, validate=True)


def decode_secret(secret: str) -> bytes:
    value = secret[len(SECRET_PREFIX):] if secret.startswith(SECRET_PREFIX) else secret
    try:
        return _b64decode(value)
    except (binascii.Error, ValueError) as exc:
        raise SignatureError("Webhook secret is not valid base64") from exc


def verify_signature(raw_body: bytes, headers: Mapping[str, str], secret: str) -> None:
    event_id = _first_header(headers, EVENT_ID_HEADERS)
    timestamp = _first_header(headers, EVENT_TIMESTAMP_HEADERS)
    signature_header = _first_header(headers, EVENT_SIGNATURE_HEADERS)
    if not event_id or not timestamp or not signature_header:
        raise SignatureError("Missing webhook signature headers")

    key = decode_secret(secret)
    signed_content = f"{event_id}.{timestamp}.".encode("utf-8") + raw_body
    expected = hmac.new(key, signed_content, hashlib.sha256).digest()

    for version, signature in _SIGNATURE_ENTRY.findall(signature_header):
        if version != "v1":
            continue
        try:
            candidate = _b64decode(signature)
        except (binascii.Error, ValueError):
            continue
        if len(candidate) == len(expected) and hmac.compare_digest(candidate, expected):
            return

    raise SignatureError("Invalid webhook signature")


def verify_webhook(raw_body: bytes, headers: Mapping[str, str], secret: str | None) -> None:
    if not secret:
        logger.warning(
            "Webhook signature verification skipped: CLERK_WEBHOOK_SECRET is not configured"
        )
        return
    verify_signature(raw_body, headers, secret)


def parse_event(raw_body: bytes) -> dict[str, Any]:
    try:
        event = json.loads(raw_body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationError("Invalid webhook payload", status_code=400) from exc
    if not isinstance(event, dict):
        raise ValidationError("Invalid webhook payload", status_code=400)
    return event


def _accepts(value: Any, types: tuple[type, ...]) -> bool:
    # bool is an int subclass; only boolean columns accept it.
    if isinstance(value, bool) and bool not in types:
        return False
    if not isinstance(value, types):
        return False
    if isinstance(value, str) and not value:
        return False
    return True


def extract_organization_fields(metadata: Mapping[str, Any] | None) -> dict[str, Any]:
    values: dict[str, Any] = {}
    if not isinstance(metadata, Mapping):
        return values

    for column, aliases, types in METADATA_FIELDS:
        for alias in aliases:
            value = metadata.get(alias)
            if _accepts(value, types):
                values[column] = value
                break

    anchor = values.get("billing_anchor_day")
    if anchor is not None and not 1 <= anchor <= 28:
        del values["billing_anchor_day"]
    return values


def _organization_payload(data: Mapping[str, Any]) -> tuple[str, dict[str, Any]]:
    org_id = data.get("id")
    if not isinstance(org_id, str) or not org_id:
        raise ValidationError("Webhook payload missing organization id", status_code=400)

    values = extract_organization_fields(data.get("public_metadata"))
    name = data.get("name")
    if isinstance(name, str) and name:
        values["name"] = name
    return org_id, values


async def apply_event(session: AsyncSession, event: Mapping[str, Any]) -> WebhookOutcome:
    event_type = event.get("type")
    if not isinstance(event_type, str) or event_type not in SUPPORTED_EVENTS:
        logger.info("Ignoring identity webhook event type=%s", event_type)
        return WebhookOutcome(received=False, event_type=event_type if isinstance(event_type, str) else None)

    data = event.get("data")
    if not isinstance(data, Mapping):
        raise ValidationError("Webhook payload missing data", status_code=400)

    org_id, values = _organization_payload(data)
    repository = OrganizationRepository(session)

    try:
        if event_type == ORGANIZATION_CREATED:
            if "name" not in values:
                raise ValidationError("Webhook payload missing organization name", status_code=400)
            await repository.upsert(org_id, {**values, "active": True})
            updated = True
        elif event_type == ORGANIZATION_UPDATED:
            updated = await repository.update_columns(org_id, values)
        else:
            updated = await repository.update_columns(org_id, {"active": False})
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        raise datastore_error(
            exc,
            f"apply {event_type} for organization {org_id}",
            foreign_key_message="Webhook references a plan id that does not exist",
        ) from exc

    if not updated:
        logger.info("Identity webhook %s for unknown organization=%s; nothing mirrored", event_type, org_id)
    else:
        logger.info("Applied identity webhook %s for organization=%s", event_type, org_id)
    return WebhookOutcome(received=True, event_type=event_type, organization_id=org_id, updated=updated)
