from __future__ import annotations

from pydantic import BaseModel


class IdentityWebhookResponse(BaseModel):
    received: bool
    event_type: str | None = None
    organization_id: str | None = None
    updated: bool = False
