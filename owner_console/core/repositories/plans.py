from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from owner_console.core.repositories.base import Repository
from owner_console.models.plan import Plan, PlanFeature


class PlanRepository(Repository[Plan]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session=session, model=Plan)

    async def list_plans(self) -> list[Plan]:
        result = await self.session.execute(self._select().order_by(Plan.created_at.asc()))
        return list(result.scalars().all())

    async def name_lookup(self) -> dict[str, str]:
        result = await self.session.execute(select(Plan.id, Plan.name))
        return {plan_id: name for plan_id, name in result.all()}


class PlanFeatureRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_all(self) -> list[PlanFeature]:
        result = await self.session.execute(
            select(PlanFeature).order_by(PlanFeature.plan_id.asc(), PlanFeature.feature_key.asc())
        )
        return list(result.scalars().all())

    async def list_for_plans(self, plan_ids: Sequence[str]) -> list[PlanFeature]:
        if not plan_ids:
            return []
        result = await self.session.execute(
            select(PlanFeature).where(PlanFeature.plan_id.in_(plan_ids))
        )
        return list(result.scalars().all())

    async def delete_for_plan(self, plan_id: str) -> int:
        result = await self.session.execute(
            delete(PlanFeature).where(PlanFeature.plan_id == plan_id)
        )
        return result.rowcount or 0

    async def insert_many(self, plan_id: str, features: Sequence[tuple[str, str, bool]]) -> None:
        for feature_key, value, enforced in features:
            self.session.add(
                PlanFeature(plan_id=plan_id, feature_key=feature_key, value=value, enforced=enforced)
            )
        await self.session.flush()
