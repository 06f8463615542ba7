from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from owner_console.models.user import User


class UserRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_for_organization(self, org_id: str) -> list[User]:
        result = await self.session.execute(
            select(User).where(User.org_id == org_id).order_by(User.created_at.asc())
        )
        return list(result.scalars().all())
