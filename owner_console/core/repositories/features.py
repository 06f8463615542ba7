from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from owner_console.models.feature import FeatureDefinition, OrganizationFeature


class FeatureRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_definitions(self, keys: Sequence[str] | None = None) -> list[FeatureDefinition]:
        stmt = select(FeatureDefinition).order_by(FeatureDefinition.name.asc())
        if keys is not None:
            stmt = stmt.where(FeatureDefinition.key.in_(keys))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_overrides(
        self,
        *,
        org_ids: Sequence[str] | None = None,
        keys: Sequence[str] | None = None,
    ) -> list[OrganizationFeature]:
        stmt = select(OrganizationFeature)
        if org_ids is not None:
            stmt = stmt.where(OrganizationFeature.org_id.in_(org_ids))
        if keys is not None:
            stmt = stmt.where(OrganizationFeature.feature_key.in_(keys))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
