from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from owner_console.core.repositories.base import Repository
from owner_console.models.base import utcnow
from owner_console.models.organization import Organization
from owner_console.models.organization_setting import OrganizationSetting


class OrganizationRepository(Repository[Organization]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session=session, model=Organization)

    async def list_organizations(self, *, active: bool | None = None) -> list[Organization]:
        stmt = self._select().order_by(Organization.created_at.desc())
        if active is not None:
            stmt = stmt.where(Organization.active.is_(active))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_billing(self) -> list[Organization]:
        result = await self.session.execute(self._select().order_by(Organization.created_at.asc()))
        return list(result.scalars().all())

    async def upsert(self, org_id: str, values: Mapping[str, Any]) -> None:
        payload = {**values, "id": org_id, "updated_at": utcnow()}
        stmt = insert(Organization).values(**payload)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Organization.id],
            set_={key: stmt.excluded[key] for key in payload if key != "id"},
        )
        await self.session.execute(stmt)

    async def update_columns(self, org_id: str, values: Mapping[str, Any]) -> bool:
        result = await self.session.execute(
            update(Organization)
            .where(Organization.id == org_id)
            .values(**values, updated_at=utcnow())
        )
        return (result.rowcount or 0) > 0


class OrganizationSettingRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def insert_missing(self, org_id: str, settings: Iterable[tuple[str, str, str]]) -> None:
        rows = [
            {
                "org_id": org_id,
                "setting_key": key,
                "setting_value": value,
                "setting_type": setting_type,
            }
            for key, value, setting_type in settings
        ]
        if not rows:
            return
        await self.session.execute(
            insert(OrganizationSetting).values(rows).on_conflict_do_nothing()
        )
