"""Effective feature resolution.

An organization's value for a feature key comes from, in order of
precedence: its own override, the value its plan defines, the catalog
default.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Literal

from sqlalchemy.ext.asyncio import AsyncSession

from owner_console.core.repositories.features import FeatureRepository
from owner_console.core.repositories.plans import PlanFeatureRepository
from owner_console.models.feature import FeatureDefinition
from owner_console.models.organization import Organization

FeatureSource = Literal["override", "plan", "default"]


@dataclass(slots=True, frozen=True)
class EffectiveFeature:
    org_id: str
    feature_key: str
    value_as_text: str | None
    source: FeatureSource
    ftype: str
    unit: str | None
    is_metered: bool


def resolve_value(
    key: str,
    *,
    overrides: Mapping[str, str],
    plan_values: Mapping[str, str],
    default: str | None,
) -> tuple[str | None, FeatureSource]:
    if key in overrides:
        return overrides[key], "override"
    if key in plan_values:
        return plan_values[key], "plan"
    return default, "default"


def resolve_effective_features(
    org_id: str,
    definitions: Iterable[FeatureDefinition],
    *,
    plan_values: Mapping[str, str],
    overrides: Mapping[str, str],
) -> list[EffectiveFeature]:
    resolved: list[EffectiveFeature] = []
    for definition in sorted(definitions, key=lambda item: item.key):
        value, source = resolve_value(
            definition.key,
            overrides=overrides,
            plan_values=plan_values,
            default=definition.default_value,
        )
        resolved.append(
            EffectiveFeature(
                org_id=org_id,
                feature_key=definition.key,
                value_as_text=value,
                source=source,
                ftype=definition.ftype,
                unit=definition.unit,
                is_metered=definition.is_metered,
            )
        )
    return resolved


async def load_effective_features(
    session: AsyncSession,
    organizations: Sequence[Organization],
    *,
    keys: Sequence[str] | None = None,
) -> dict[str, list[EffectiveFeature]]:
    feature_repo = FeatureRepository(session)
    definitions = await feature_repo.list_definitions(keys)

    plan_ids = sorted({org.plan_id for org in organizations if org.plan_id})
    plan_values: dict[str, dict[str, str]] = defaultdict(dict)
    for row in await PlanFeatureRepository(session).list_for_plans(plan_ids):
        plan_values[row.plan_id][row.feature_key] = row.value

    overrides: dict[str, dict[str, str]] = defaultdict(dict)
    org_ids = [org.id for org in organizations]
    for row in await feature_repo.list_overrides(org_ids=org_ids, keys=keys):
        overrides[row.org_id][row.feature_key] = row.value

    return {
        org.id: resolve_effective_features(
            org.id,
            definitions,
            plan_values=plan_values.get(org.plan_id or "", {}),
            overrides=overrides.get(org.id, {}),
        )
        for org in organizations
    }
