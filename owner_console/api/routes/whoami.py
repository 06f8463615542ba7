from __future__ import annotations

from fastapi import APIRouter, Depends

from owner_console.core.auth import AuthContext, require_auth_context, resolve_email
from owner_console.core.identity import ClerkOrganizationClient, get_identity_client
from owner_console.schemas.auth import WhoAmIResponse

router = APIRouter(tags=["auth"])


@router.get("/whoami", response_model=WhoAmIResponse)
async def whoami(
    auth: AuthContext = Depends(require_auth_context),
    identity: ClerkOrganizationClient = Depends(get_identity_client),
) -> WhoAmIResponse:
    email = await resolve_email(auth, identity)
    return WhoAmIResponse(user_id=auth.caller_id, email=email, platform_role=auth.role)
