from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from owner_console.core.auth import AuthContext, require_owner
from owner_console.core.db import get_db_session
from owner_console.core.identity import ClerkOrganizationClient, get_identity_client
from owner_console.core.organizations import (
    create_organization,
    get_effective_features,
    get_organization,
    list_organization_users,
    list_organizations,
    update_organization,
)
from owner_console.schemas.organization import (
    EffectiveFeatureResponse,
    OrganizationCreateRequest,
    OrganizationCreateResponse,
    OrganizationDetailResponse,
    OrganizationFeaturesResponse,
    OrganizationListResponse,
    OrganizationResponse,
    OrganizationUpdateRequest,
    OrganizationUpdateResponse,
    OrganizationUserResponse,
    OrganizationUsersResponse,
)

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.get("", response_model=OrganizationListResponse)
async def list_organizations_route(
    active: bool | None = Query(default=None),
    _: AuthContext = Depends(require_owner),
    session: AsyncSession = Depends(get_db_session),
) -> OrganizationListResponse:
    organizations = await list_organizations(session, active=active)
    return OrganizationListResponse(
        organizations=[OrganizationResponse.model_validate(org) for org in organizations]
    )


@router.post("", response_model=OrganizationCreateResponse)
async def create_organization_route(
    payload: OrganizationCreateRequest,
    auth: AuthContext = Depends(require_owner),
    session: AsyncSession = Depends(get_db_session),
    identity: ClerkOrganizationClient = Depends(get_identity_client),
) -> OrganizationCreateResponse:
    org_id = await create_organization(session, identity, auth, payload)
    return OrganizationCreateResponse(ok=True, organization_id=org_id)


@router.get("/{org_id}", response_model=OrganizationDetailResponse)
async def get_organization_route(
    org_id: str,
    _: AuthContext = Depends(require_owner),
    session: AsyncSession = Depends(get_db_session),
) -> OrganizationDetailResponse:
    organization = await get_organization(session, org_id)
    return OrganizationDetailResponse(organization=OrganizationResponse.model_validate(organization))


@router.get("/{org_id}/features", response_model=OrganizationFeaturesResponse)
async def get_organization_features_route(
    org_id: str,
    _: AuthContext = Depends(require_owner),
    session: AsyncSession = Depends(get_db_session),
) -> OrganizationFeaturesResponse:
    features = await get_effective_features(session, org_id)
    return OrganizationFeaturesResponse(
        organization_id=org_id,
        features=[EffectiveFeatureResponse.model_validate(feature) for feature in features],
    )


@router.get("/{org_id}/users", response_model=OrganizationUsersResponse)
async def list_organization_users_route(
    org_id: str,
    _: AuthContext = Depends(require_owner),
    session: AsyncSession = Depends(get_db_session),
) -> OrganizationUsersResponse:
    users = await list_organization_users(session, org_id)
    return OrganizationUsersResponse(users=[OrganizationUserResponse.model_validate(user) for user in users])


@router.patch("/{org_id}", response_model=OrganizationUpdateResponse)
async def update_organization_route(
    org_id: str,
    payload: OrganizationUpdateRequest,
    _: AuthContext = Depends(require_owner),
    session: AsyncSession = Depends(get_db_session),
    identity: ClerkOrganizationClient = Depends(get_identity_client),
) -> OrganizationUpdateResponse:
    result = await update_organization(session, identity, org_id, payload.provided_fields())
    return OrganizationUpdateResponse(
        organization=OrganizationResponse.model_validate(result.organization),
        identity_synced=result.identity_synced,
    )
