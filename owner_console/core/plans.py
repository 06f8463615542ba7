from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from owner_console.core.errors import ConflictError, NotFoundError, ValidationError, datastore_error
from owner_console.core.repositories.features import FeatureRepository
from owner_console.core.repositories.plans import PlanFeatureRepository, PlanRepository
from owner_console.models.feature import FeatureDefinition
from owner_console.models.plan import Plan, PlanFeature
from owner_console.schemas.plan import PlanCreateRequest, PlanFeatureInput

logger = logging.getLogger(__name__)

UNKNOWN_FEATURE_MESSAGE = "One or more feature keys are not defined in the feature catalog"
PLAN_IN_USE_MESSAGE = "Plan is still assigned to organizations. Reassign them before deleting it."


def _feature_rows(features: Sequence[PlanFeatureInput] | None) -> list[tuple[str, str, bool]]:
    return [(feature.feature_key, feature.value, feature.enforced) for feature in features or ()]


async def _require_plan(repository: PlanRepository, plan_id: str) -> Plan:
    plan = await repository.get(plan_id)
    if plan is None:
        raise NotFoundError(f"Plan {plan_id} not found")
    return plan


async def list_plans(session: AsyncSession) -> tuple[list[Plan], list[PlanFeature]]:
    plans = await PlanRepository(session).list_plans()
    features = await PlanFeatureRepository(session).list_all()
    return plans, features


async def list_feature_definitions(session: AsyncSession) -> list[FeatureDefinition]:
    return await FeatureRepository(session).list_definitions()


async def create_plan(session: AsyncSession, payload: PlanCreateRequest) -> str:
    repository = PlanRepository(session)
    if await repository.get(payload.id) is not None:
        raise ConflictError(f"Plan {payload.id} already exists")

    try:
        await repository.create(id=payload.id, name=payload.name)
        rows = _feature_rows(payload.features)
        if rows:
            await PlanFeatureRepository(session).insert_many(payload.id, rows)
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        raise datastore_error(
            exc,
            "create plan",
            foreign_key_message=UNKNOWN_FEATURE_MESSAGE,
            unique_message=f"Plan {payload.id} already exists",
        ) from exc

    logger.info("Created plan=%s with %d features", payload.id, len(payload.features or ()))
    return payload.id


async def rename_plan(session: AsyncSession, plan_id: str, name: str | None) -> None:
    if not name:
        raise ValidationError("Nothing to update", status_code=400)

    repository = PlanRepository(session)
    plan = await _require_plan(repository, plan_id)
    try:
        plan.name = name
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        raise datastore_error(exc, "update plan") from exc


async def delete_plan(session: AsyncSession, plan_id: str) -> None:
    repository = PlanRepository(session)
    await _require_plan(repository, plan_id)

    try:
        # Feature rows reference the plan and must go first.
        removed = await PlanFeatureRepository(session).delete_for_plan(plan_id)
        await repository.delete(plan_id)
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        raise datastore_error(exc, "delete plan", foreign_key_message=PLAN_IN_USE_MESSAGE) from exc

    logger.info("Deleted plan=%s and %d feature rows", plan_id, removed)


async def replace_plan_features(
    session: AsyncSession,
    plan_id: str,
    features: Sequence[PlanFeatureInput],
) -> None:
    repository = PlanRepository(session)
    await _require_plan(repository, plan_id)

    feature_repository = PlanFeatureRepository(session)
    try:
        await feature_repository.delete_for_plan(plan_id)
        rows = _feature_rows(features)
        if rows:
            await feature_repository.insert_many(plan_id, rows)
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        raise datastore_error(
            exc,
            "update plan features",
            foreign_key_message=UNKNOWN_FEATURE_MESSAGE,
        ) from exc

    logger.info("Replaced features for plan=%s count=%d", plan_id, len(features))
