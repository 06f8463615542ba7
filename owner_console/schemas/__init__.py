from owner_console.schemas.auth import WhoAmIResponse
from owner_console.schemas.billing import (
    BillingFeatures,
    BillingOrganizationResponse,
    BillingReadinessResponse,
    BillingSummaryResponse,
)
from owner_console.schemas.organization import (
    EffectiveFeatureResponse,
    OrganizationCreateRequest,
    OrganizationCreateResponse,
    OrganizationDetailResponse,
    OrganizationFeaturesResponse,
    OrganizationListResponse,
    OrganizationResponse,
    OrganizationUpdateRequest,
    OrganizationUpdateResponse,
    OrganizationUserResponse,
    OrganizationUsersResponse,
)
from owner_console.schemas.plan import (
    FeatureCatalogResponse,
    FeatureDefinitionResponse,
    OkResponse,
    PlanCreateRequest,
    PlanCreateResponse,
    PlanFeatureInput,
    PlanFeatureResponse,
    PlanFeaturesReplaceRequest,
    PlanListResponse,
    PlanResponse,
    PlanUpdateRequest,
)
from owner_console.schemas.webhook import IdentityWebhookResponse

__all__ = [
    "WhoAmIResponse",
    "BillingFeatures",
    "BillingOrganizationResponse",
    "BillingReadinessResponse",
    "BillingSummaryResponse",
    "EffectiveFeatureResponse",
    "OrganizationCreateRequest",
    "OrganizationCreateResponse",
    "OrganizationDetailResponse",
    "OrganizationFeaturesResponse",
    "OrganizationListResponse",
    "OrganizationResponse",
    "OrganizationUpdateRequest",
    "OrganizationUpdateResponse",
    "OrganizationUserResponse",
    "OrganizationUsersResponse",
    "FeatureCatalogResponse",
    "FeatureDefinitionResponse",
    "OkResponse",
    "PlanCreateRequest",
    "PlanCreateResponse",
    "PlanFeatureInput",
    "PlanFeatureResponse",
    "PlanFeaturesReplaceRequest",
    "PlanListResponse",
    "PlanResponse",
    "PlanUpdateRequest",
    "IdentityWebhookResponse",
]
