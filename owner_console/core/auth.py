from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field

import requests
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from owner_console.core.config import settings
from owner_console.core.errors import AccessError, AuthenticationError, UpstreamError
from owner_console.core.identity import ClerkOrganizationClient, get_identity_client

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(slots=True)
class AuthContext:
    caller_id: str
    email: str | None
    role: str | None
    claims: dict = field(default_factory=dict)

    @property
    def is_owner(self) -> bool:
        return self.role == settings.owner_role


class JwksCache:
    def __init__(self, ttl_seconds: int = 300) -> None:
        self.ttl_seconds = ttl_seconds
        self._jwks: dict | None = None
        self._fetched_at = 0.0

    def get(self, url: str) -> dict:
        now = time.time()
        if self._jwks is None or (now - self._fetched_at) > self.ttl_seconds:
            try:
                response = requests.get(url, timeout=5)
                response.raise_for_status()
                self._jwks = response.json()
            except (requests.RequestException, ValueError) as exc:
                raise UpstreamError(f"Unable to fetch signing keys: {exc}") from exc
            self._fetched_at = now
        return self._jwks


jwks_cache = JwksCache()


def _get_signing_key(token: str) -> dict:
    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError as exc:
        raise AuthenticationError("Invalid authentication header") from exc

    kid = unverified_header.get("kid")
    if not kid:
        raise AuthenticationError("JWT is missing key id")

    jwks = jwks_cache.get(settings.clerk_jwks_url)
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key

    raise AuthenticationError("No matching signing key found")


def _decode_clerk_jwt(token: str) -> dict:
    key = _get_signing_key(token)

    options = {"verify_aud": bool(settings.clerk_audience)}
    try:
        return jwt.decode(
            token,
            key,
            algorithms=["RS256"],
            issuer=settings.clerk_issuer,
            audience=settings.clerk_audience or None,
            options=options,
        )
    except JWTError as exc:
        raise AuthenticationError("Invalid or expired token") from exc


def _role_from_metadata(metadata: object) -> str | None:
    if not isinstance(metadata, dict):
        return None
    role = metadata.get("platformRole", metadata.get("platform_role"))
    return role if isinstance(role, str) else None


def _role_from_claims(claims: dict) -> str | None:
    role = claims.get("platform_role")
    if isinstance(role, str):
        return role
    return _role_from_metadata(claims.get("public_metadata")) or _role_from_metadata(claims.get("metadata"))


async def resolve_auth_context(claims: dict, identity: ClerkOrganizationClient) -> AuthContext:
    subject = claims.get("sub")
    if not subject:
        raise AuthenticationError("Token is missing subject claim")

    role = _role_from_claims(claims)
    email = claims.get("email") if isinstance(claims.get("email"), str) else None

    # Session tokens only carry metadata when the Clerk JWT template adds it.
    if role is None:
        user = await asyncio.to_thread(identity.get_user, subject)
        role = _role_from_metadata(user.public_metadata)
        if email is None:
            email = user.email

    return AuthContext(caller_id=subject, email=email, role=role, claims=claims)


async def resolve_email(context: AuthContext, identity: ClerkOrganizationClient) -> str | None:
    if context.email is not None:
        return context.email
    try:
        user = await asyncio.to_thread(identity.get_user, context.caller_id)
    except UpstreamError as exc:
        logger.warning("Email lookup failed for caller=%s: %s", context.caller_id, exc.message)
        return None
    context.email = user.email
    return context.email


async def require_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    identity: ClerkOrganizationClient = Depends(get_identity_client),
) -> AuthContext:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")

    claims = await asyncio.to_thread(_decode_clerk_jwt, credentials.credentials)
    context = await resolve_auth_context(claims, identity)

    request.state.auth_context = context
    return context


async def require_owner(
    context: AuthContext = Depends(require_auth_context),
) -> AuthContext:
    if not context.is_owner:
        logger.warning("Owner access denied for caller=%s role=%s", context.caller_id, context.role)
        raise AccessError()
    return context
