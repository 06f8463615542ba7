from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from owner_console.core.config import settings
from owner_console.core.db import get_db_session
from owner_console.core.webhooks import apply_event, parse_event, verify_webhook
from owner_console.schemas.webhook import IdentityWebhookResponse

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/identity-provider", response_model=IdentityWebhookResponse)
async def identity_provider_webhook(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
) -> IdentityWebhookResponse:
    raw_body = await request.body()
    verify_webhook(raw_body, request.headers, settings.clerk_webhook_secret)

    event = parse_event(raw_body)
    outcome = await apply_event(session, event)
    return IdentityWebhookResponse(
        received=outcome.received,
        event_type=outcome.event_type,
        organization_id=outcome.organization_id,
        updated=outcome.updated,
    )
