"""Organization lifecycle across the identity provider and the datastore.

Clerk owns organization existence, id and name; the datastore owns every
other column and serves all reads. Creation writes Clerk first and treats
the datastore upsert as the commit point: if it fails the Clerk organization
is deleted again. A row already written by the organization.created webhook
is overwritten with the console values. Updates write the datastore first and mirror
the allow-listed fields back to Clerk without compensation.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from owner_console.core.auth import AuthContext
from owner_console.core.errors import (
    NotFoundError,
    UpstreamError,
    ValidationError,
    datastore_error,
)
from owner_console.core.features import EffectiveFeature, load_effective_features
from owner_console.core.identity import (
    ClerkOrganizationClient,
    create_identity_organization,
    delete_identity_organization,
    mirror_identity_organization,
)
from owner_console.core.repositories.organizations import (
    OrganizationRepository,
    OrganizationSettingRepository,
)
from owner_console.core.repositories.users import UserRepository
from owner_console.models.organization import Organization
from owner_console.models.user import User
from owner_console.schemas.organization import OrganizationCreateRequest

logger = logging.getLogger(__name__)

INVALID_PLAN_MESSAGE = "Plan id is invalid. Please select an existing plan or clear the field."

DEFAULT_CURRENCY = "USD"
DEFAULT_BILLING_TERMS = 30

DEFAULT_SETTINGS: tuple[tuple[str, str, str], ...] = (
    ("date_format", "MM/DD/YYYY", "string"),
    ("time_format", "12h", "string"),
)

# Columns copied into Clerk public metadata when they change.
MIRRORED_METADATA_FIELDS = (
    "legal_name",
    "primary_email",
    "primary_phone",
    "address_line1",
    "address_line2",
    "city",
    "state",
    "zip_code",
    "country",
    "is_provider",
    "is_broker",
    "active",
    "plan_id",
    "billing_anchor_day",
)


@dataclass(slots=True)
class OrganizationUpdateResult:
    organization: Organization
    changed_fields: tuple[str, ...]
    identity_synced: bool = True


def _datastore_values(payload: OrganizationCreateRequest) -> dict[str, Any]:
    return {
        "name": payload.name,
        "legal_name": payload.legal_name or payload.name,
        "slug": payload.slug,
        "primary_email": str(payload.primary_email),
        "primary_phone": payload.primary_phone,
        "address_line1": payload.address_line1,
        "address_line2": payload.address_line2,
        "city": payload.city,
        "state": payload.state,
        "zip_code": payload.zip_code,
        "country": payload.country,
        "is_provider": payload.is_provider,
        "is_broker": payload.is_broker,
        "active": True,
        "currency": DEFAULT_CURRENCY,
        "default_billing_terms": DEFAULT_BILLING_TERMS,
        "plan_id": payload.plan_id,
        "billing_anchor_day": payload.billing_anchor_day,
    }


def _identity_metadata(values: Mapping[str, Any]) -> dict[str, Any]:
    metadata: dict[str, Any] = {"source": "owner-console"}
    for key in (
        "legal_name",
        "primary_email",
        "primary_phone",
        "address_line1",
        "address_line2",
        "city",
        "state",
        "zip_code",
        "country",
        "is_provider",
        "is_broker",
        "currency",
        "default_billing_terms",
        "plan_id",
        "billing_anchor_day",
    ):
        value = values.get(key)
        if value is None and key == "address_line2":
            continue
        metadata[key] = value
    return metadata


async def _compensate_identity_organization(identity: ClerkOrganizationClient, org_id: str) -> None:
    try:
        await delete_identity_organization(identity, org_id)
    except UpstreamError:
        logger.exception(
            "Compensation failed: organization=%s exists in the identity provider without a datastore row",
            org_id,
        )
    else:
        logger.info("Rolled back identity provider organization=%s", org_id)


async def seed_default_settings(session: AsyncSession, org_id: str) -> None:
    try:
        await OrganizationSettingRepository(session).insert_missing(org_id, DEFAULT_SETTINGS)
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.warning("Failed to seed organization_settings for organization=%s: %s", org_id, exc)


async def create_organization(
    session: AsyncSession,
    identity: ClerkOrganizationClient,
    auth: AuthContext,
    payload: OrganizationCreateRequest,
) -> str:
    values = _datastore_values(payload)

    identity_org = await create_identity_organization(
        identity,
        name=payload.name,
        created_by=auth.caller_id,
        slug=payload.slug,
        public_metadata=_identity_metadata(values),
    )
    org_id = identity_org.id

    try:
        # The organization.created webhook may have inserted this row already.
        await OrganizationRepository(session).upsert(org_id, values)
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Datastore insert failed for organization=%s: %s", org_id, exc)
        await _compensate_identity_organization(identity, org_id)
        raise datastore_error(
            exc,
            "create organization",
            foreign_key_message=INVALID_PLAN_MESSAGE,
        ) from exc

    await seed_default_settings(session, org_id)
    logger.info("Created organization=%s by caller=%s", org_id, auth.caller_id)
    return org_id


async def get_organization(session: AsyncSession, org_id: str) -> Organization:
    organization = await OrganizationRepository(session).get(org_id)
    if organization is None:
        raise NotFoundError("Organization not found")
    return organization


async def list_organizations(session: AsyncSession, *, active: bool | None = None) -> list[Organization]:
    return await OrganizationRepository(session).list_organizations(active=active)


async def get_effective_features(session: AsyncSession, org_id: str) -> list[EffectiveFeature]:
    organization = await get_organization(session, org_id)
    resolved = await load_effective_features(session, [organization])
    return resolved.get(organization.id, [])


async def list_organization_users(session: AsyncSession, org_id: str) -> list[User]:
    await get_organization(session, org_id)
    return await UserRepository(session).list_for_organization(org_id)


async def update_organization(
    session: AsyncSession,
    identity: ClerkOrganizationClient,
    org_id: str,
    fields: Mapping[str, Any],
) -> OrganizationUpdateResult:
    if not fields:
        raise ValidationError("Nothing to update", status_code=400)

    organization = await get_organization(session, org_id)
    changed = {key: value for key, value in fields.items() if getattr(organization, key) != value}
    if not changed:
        return OrganizationUpdateResult(organization=organization, changed_fields=())

    try:
        for key, value in changed.items():
            setattr(organization, key, value)
        await session.flush()
        await session.commit()
        await session.refresh(organization)
    except SQLAlchemyError as exc:
        await session.rollback()
        raise datastore_error(
            exc,
            "update organization",
            foreign_key_message=INVALID_PLAN_MESSAGE,
        ) from exc

    result = OrganizationUpdateResult(organization=organization, changed_fields=tuple(sorted(changed)))

    identity_name = changed.get("name")
    metadata = {key: changed[key] for key in MIRRORED_METADATA_FIELDS if key in changed}
    if identity_name is None and not metadata:
        return result

    try:
        await mirror_identity_organization(identity, org_id, name=identity_name, public_metadata=metadata)
    except UpstreamError:
        # The datastore row stays authoritative; the next edit or webhook reconciles.
        logger.exception("Identity provider mirroring failed for organization=%s", org_id)
        result.identity_synced = False
    return result
