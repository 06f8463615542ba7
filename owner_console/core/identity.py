from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import requests

from owner_console.core.config import settings
from owner_console.core.errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IdentityOrganization:
    id: str
    name: str
    slug: str | None = None
    public_metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class IdentityUser:
    id: str
    email: str | None
    public_metadata: dict[str, Any] = field(default_factory=dict)


class ClerkOrganizationClient:
    """Thin wrapper over the Clerk Backend API for organizations and users.

    Methods are blocking; the async helpers below push them onto a worker
    thread so route handlers never block the event loop.
    """

    def __init__(self) -> None:
        self.base_url = settings.clerk_api_base_url.rstrip("/")

    def _request(self, method: str, path: str, payload: Mapping[str, Any] | None = None) -> dict:
        if not settings.clerk_secret_key:
            raise UpstreamError("CLERK_SECRET_KEY is not configured")

        try:
            response = requests.request(
                method,
                f"{self.base_url}{path}",
                json=dict(payload) if payload is not None else None,
                headers={"Authorization": f"Bearer {settings.clerk_secret_key}"},
                timeout=settings.clerk_request_timeout_seconds,
            )
            response.raise_for_status()
            body = response.json() if response.content else {}
        except requests.RequestException as exc:
            raise UpstreamError(f"Identity provider request failed: {method} {path}: {exc}") from exc
        except ValueError as exc:
            raise UpstreamError(f"Identity provider returned a non-JSON response: {method} {path}") from exc

        if not isinstance(body, dict):
            raise UpstreamError(f"Identity provider returned an unexpected response: {method} {path}")
        return body

    def create_organization(
        self,
        *,
        name: str,
        created_by: str,
        slug: str | None = None,
        public_metadata: Mapping[str, Any] | None = None,
    ) -> IdentityOrganization:
        payload: dict[str, Any] = {
            "name": name,
            "created_by": created_by,
            "public_metadata": dict(public_metadata or {}),
        }
        if slug:
            payload["slug"] = slug

        body = self._request("POST", "/organizations", payload)
        org_id = body.get("id")
        if not isinstance(org_id, str) or not org_id:
            raise UpstreamError("Identity provider did not return an organization id")
        return IdentityOrganization(
            id=org_id,
            name=body.get("name", name),
            slug=body.get("slug"),
            public_metadata=body.get("public_metadata") or {},
        )

    def update_organization(self, org_id: str, *, name: str) -> None:
        self._request("PATCH", f"/organizations/{org_id}", {"name": name})

    def merge_organization_metadata(self, org_id: str, public_metadata: Mapping[str, Any]) -> None:
        self._request("PATCH", f"/organizations/{org_id}/metadata", {"public_metadata": dict(public_metadata)})

    def delete_organization(self, org_id: str) -> None:
        self._request("DELETE", f"/organizations/{org_id}")

    def get_user(self, user_id: str) -> IdentityUser:
        body = self._request("GET", f"/users/{user_id}")
        primary_id = body.get("primary_email_address_id")
        email = None
        for address in body.get("email_addresses") or []:
            if address.get("id") == primary_id:
                email = address.get("email_address")
                break
        return IdentityUser(
            id=body.get("id", user_id),
            email=email,
            public_metadata=body.get("public_metadata") or {},
        )


def get_identity_client() -> ClerkOrganizationClient:
    return ClerkOrganizationClient()


async def create_identity_organization(
    client: ClerkOrganizationClient,
    *,
    name: str,
    created_by: str,
    slug: str | None,
    public_metadata: Mapping[str, Any],
) -> IdentityOrganization:
    return await asyncio.to_thread(
        lambda: client.create_organization(
            name=name,
            created_by=created_by,
            slug=slug,
            public_metadata=public_metadata,
        )
    )


async def delete_identity_organization(client: ClerkOrganizationClient, org_id: str) -> None:
    await asyncio.to_thread(client.delete_organization, org_id)


async def mirror_identity_organization(
    client: ClerkOrganizationClient,
    org_id: str,
    *,
    name: str | None,
    public_metadata: Mapping[str, Any],
) -> None:
    if name is not None:
        await asyncio.to_thread(lambda: client.update_organization(org_id, name=name))
    if public_metadata:
        await asyncio.to_thread(client.merge_organization_metadata, org_id, public_metadata)
    logger.info("Mirrored organization=%s to identity provider fields=%s", org_id, sorted(public_metadata))
