from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PlanFeatureInput(BaseModel):
    feature_key: str = Field(min_length=1, max_length=120)
    value: str = Field(min_length=1)
    enforced: bool = True


def _reject_duplicate_keys(features: list[PlanFeatureInput] | None) -> list[PlanFeatureInput] | None:
    if not features:
        return features
    seen: set[str] = set()
    for feature in features:
        if feature.feature_key in seen:
            raise ValueError(f"Duplicate feature key: {feature.feature_key}")
        seen.add(feature.feature_key)
    return features


class PlanCreateRequest(BaseModel):
    id: str = Field(min_length=2, max_length=64, pattern=r"^[A-Za-z0-9_-]+$")
    name: str = Field(min_length=2, max_length=255)
    features: list[PlanFeatureInput] | None = None

    @field_validator("features")
    @classmethod
    def unique_feature_keys(cls, value: list[PlanFeatureInput] | None) -> list[PlanFeatureInput] | None:
        return _reject_duplicate_keys(value)


class PlanUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=255)


class PlanFeaturesReplaceRequest(BaseModel):
    features: list[PlanFeatureInput]

    @field_validator("features")
    @classmethod
    def unique_feature_keys(cls, value: list[PlanFeatureInput] | None) -> list[PlanFeatureInput] | None:
        return _reject_duplicate_keys(value)


class PlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_at: datetime


class PlanFeatureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    plan_id: str
    feature_key: str
    value: str
    enforced: bool


class PlanListResponse(BaseModel):
    plans: list[PlanResponse]
    plan_features: list[PlanFeatureResponse] = Field(serialization_alias="planFeatures")


class PlanCreateResponse(BaseModel):
    ok: bool = True
    plan_id: str = Field(serialization_alias="planId")


class OkResponse(BaseModel):
    ok: bool = True


class FeatureDefinitionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    name: str
    description: str | None = None
    ftype: str
    default_value: str | None = None
    unit: str | None = None
    is_metered: bool


class FeatureCatalogResponse(BaseModel):
    features: list[FeatureDefinitionResponse]
