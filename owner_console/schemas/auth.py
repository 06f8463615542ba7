from __future__ import annotations

from pydantic import BaseModel, Field


class WhoAmIResponse(BaseModel):
    user_id: str = Field(serialization_alias="userId")
    email: str | None = None
    platform_role: str | None = Field(default=None, serialization_alias="platformRole")
