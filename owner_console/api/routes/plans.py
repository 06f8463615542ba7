from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from owner_console.core.auth import AuthContext, require_owner
from owner_console.core.db import get_db_session
from owner_console.core.plans import (
    create_plan,
    delete_plan,
    list_feature_definitions,
    list_plans,
    rename_plan,
    replace_plan_features,
)
from owner_console.schemas.plan import (
    FeatureCatalogResponse,
    FeatureDefinitionResponse,
    OkResponse,
    PlanCreateRequest,
    PlanCreateResponse,
    PlanFeatureResponse,
    PlanFeaturesReplaceRequest,
    PlanListResponse,
    PlanResponse,
    PlanUpdateRequest,
)

router = APIRouter(tags=["plans"])


@router.get("/plans", response_model=PlanListResponse)
async def list_plans_route(
    _: AuthContext = Depends(require_owner),
    session: AsyncSession = Depends(get_db_session),
) -> PlanListResponse:
    plans, features = await list_plans(session)
    return PlanListResponse(
        plans=[PlanResponse.model_validate(plan) for plan in plans],
        plan_features=[PlanFeatureResponse.model_validate(feature) for feature in features],
    )


@router.post("/plans", response_model=PlanCreateResponse)
async def create_plan_route(
    payload: PlanCreateRequest,
    _: AuthContext = Depends(require_owner),
    session: AsyncSession = Depends(get_db_session),
) -> PlanCreateResponse:
    plan_id = await create_plan(session, payload)
    return PlanCreateResponse(ok=True, plan_id=plan_id)


@router.patch("/plans/{plan_id}", response_model=OkResponse)
async def rename_plan_route(
    plan_id: str,
    payload: PlanUpdateRequest,
    _: AuthContext = Depends(require_owner),
    session: AsyncSession = Depends(get_db_session),
) -> OkResponse:
    await rename_plan(session, plan_id, payload.name)
    return OkResponse()


@router.delete("/plans/{plan_id}", response_model=OkResponse)
async def delete_plan_route(
    plan_id: str,
    _: AuthContext = Depends(require_owner),
    session: AsyncSession = Depends(get_db_session),
) -> OkResponse:
    await delete_plan(session, plan_id)
    return OkResponse()


@router.put("/plans/{plan_id}/features", response_model=OkResponse)
async def replace_plan_features_route(
    plan_id: str,
    payload: PlanFeaturesReplaceRequest,
    _: AuthContext = Depends(require_owner),
    session: AsyncSession = Depends(get_db_session),
) -> OkResponse:
    await replace_plan_features(session, plan_id, payload.features)
    return OkResponse()


@router.get("/features", response_model=FeatureCatalogResponse)
async def list_features_route(
    _: AuthContext = Depends(require_owner),
    session: AsyncSession = Depends(get_db_session),
) -> FeatureCatalogResponse:
    definitions = await list_feature_definitions(session)
    return FeatureCatalogResponse(
        features=[FeatureDefinitionResponse.model_validate(definition) for definition in definitions]
    )
