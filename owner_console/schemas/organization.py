from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


def _blank_strings_to_none(data: Any) -> Any:
    if not isinstance(data, dict):
        return data
    cleaned: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            value = value.strip() or None
        cleaned[key] = value
    return cleaned


class OrganizationCreateRequest(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    legal_name: str | None = Field(default=None, max_length=120)
    slug: str | None = Field(default=None, max_length=50, pattern=r"^[a-z0-9-]+$")
    primary_email: EmailStr
    primary_phone: str = Field(min_length=4, max_length=50)
    address_line1: str = Field(min_length=2, max_length=255)
    address_line2: str | None = Field(default=None, max_length=255)
    city: str = Field(min_length=2, max_length=120)
    state: str = Field(min_length=2, max_length=120)
    zip_code: str = Field(min_length=3, max_length=20)
    country: str = Field(default="USA", min_length=2, max_length=80)
    is_provider: bool = True
    is_broker: bool = False
    plan_id: str | None = Field(default=None, min_length=1, max_length=64)
    billing_anchor_day: int | None = Field(default=None, ge=1, le=28)

    @model_validator(mode="before")
    @classmethod
    def clean_strings(cls, data: Any) -> Any:
        data = _blank_strings_to_none(data)
        # A blank country falls back to the default.
        if isinstance(data, dict) and data.get("country") is None:
            data.pop("country", None)
        return data


class OrganizationUpdateRequest(BaseModel):
    """Partial update. Only fields present in the request body are applied."""

    name: str | None = Field(default=None, min_length=2, max_length=255)
    legal_name: str | None = Field(default=None, max_length=120)
    primary_email: EmailStr | None = None
    primary_phone: str | None = Field(default=None, max_length=50)
    address_line1: str | None = Field(default=None, max_length=255)
    address_line2: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=120)
    state: str | None = Field(default=None, max_length=120)
    zip_code: str | None = Field(default=None, max_length=20)
    country: str | None = Field(default=None, max_length=80)
    is_provider: bool | None = None
    is_broker: bool | None = None
    active: bool | None = None
    plan_id: str | None = Field(default=None, max_length=64)
    billing_anchor_day: int | None = Field(default=None, ge=1, le=28)

    @model_validator(mode="before")
    @classmethod
    def clean_strings(cls, data: Any) -> Any:
        return _blank_strings_to_none(data)

    @field_validator("name", "is_provider", "is_broker", "active")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("Field cannot be cleared")
        return value

    def provided_fields(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class OrganizationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    legal_name: str | None = None
    slug: str | None = None
    primary_email: str | None = None
    primary_phone: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None
    is_provider: bool
    is_broker: bool
    active: bool
    currency: str
    default_billing_terms: int
    plan_id: str | None = None
    billing_anchor_day: int | None = None
    created_at: datetime
    updated_at: datetime


class OrganizationListResponse(BaseModel):
    organizations: list[OrganizationResponse]


class OrganizationDetailResponse(BaseModel):
    organization: OrganizationResponse


class OrganizationUpdateResponse(BaseModel):
    organization: OrganizationResponse
    identity_synced: bool = True


class OrganizationCreateResponse(BaseModel):
    ok: bool = True
    organization_id: str = Field(serialization_alias="organizationId")


class EffectiveFeatureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    feature_key: str
    value_as_text: str | None
    source: str
    ftype: str
    unit: str | None = None
    is_metered: bool


class OrganizationFeaturesResponse(BaseModel):
    organization_id: str
    features: list[EffectiveFeatureResponse]


class OrganizationUserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    org_id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    role: str | None = None
    active: bool
    created_at: datetime


class OrganizationUsersResponse(BaseModel):
    users: list[OrganizationUserResponse]
