from owner_console.models.base import Base, TimestampedBase
from owner_console.models.feature import FeatureDefinition, OrganizationFeature
from owner_console.models.organization import Organization
from owner_console.models.organization_setting import OrganizationSetting
from owner_console.models.plan import Plan, PlanFeature
from owner_console.models.user import User

__all__ = [
    "Base",
    "TimestampedBase",
    "Organization",
    "OrganizationSetting",
    "Plan",
    "PlanFeature",
    "FeatureDefinition",
    "OrganizationFeature",
    "User",
]
