from owner_console.core.repositories.base import Repository
from owner_console.core.repositories.features import FeatureRepository
from owner_console.core.repositories.organizations import (
    OrganizationRepository,
    OrganizationSettingRepository,
)
from owner_console.core.repositories.plans import PlanFeatureRepository, PlanRepository
from owner_console.core.repositories.users import UserRepository

__all__ = [
    "Repository",
    "FeatureRepository",
    "OrganizationRepository",
    "OrganizationSettingRepository",
    "PlanRepository",
    "PlanFeatureRepository",
    "UserRepository",
]
