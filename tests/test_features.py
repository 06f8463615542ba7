from __future__ import annotations

from types import SimpleNamespace

import pytest

from owner_console.core import features
from owner_console.core.features import (
    load_effective_features,
    resolve_effective_features,
    resolve_value,
)


def _definition(key: str, default: str | None = None, **extra):  # noqa: ANN003
    values = {"key": key, "default_value": default, "ftype": "number", "unit": None, "is_metered": False}
    values.update(extra)
    return SimpleNamespace(**values)


def test_resolve_value_precedence() -> None:
    assert resolve_value("limit", overrides={"limit": "9"}, plan_values={"limit": "5"}, default="1") == ("9", "override")
    assert resolve_value("limit", overrides={}, plan_values={"limit": "5"}, default="1") == ("5", "plan")
    assert resolve_value("limit", overrides={}, plan_values={}, default="1") == ("1", "default")
    assert resolve_value("limit", overrides={}, plan_values={}, default=None) == (None, "default")


def test_resolve_effective_features_covers_whole_catalog_sorted_by_key() -> None:
    resolved = resolve_effective_features(
        "org_1",
        [_definition("vehicle_limit", "10"), _definition("api_access", "false", ftype="boolean", is_metered=True)],
        plan_values={"vehicle_limit": "50"},
        overrides={"api_access": "true"},
    )

    assert [(item.feature_key, item.value_as_text, item.source) for item in resolved] == [
        ("api_access", "true", "override"),
        ("vehicle_limit", "50", "plan"),
    ]
    assert resolved[0].ftype == "boolean"
    assert resolved[0].is_metered is True
    assert {item.org_id for item in resolved} == {"org_1"}


@pytest.mark.asyncio
async def test_load_effective_features_groups_rows_per_organization(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: dict = {}

    class FakeFeatureRepo:
        def __init__(self, session):  # noqa: ANN001
            pass

        async def list_definitions(self, keys=None):  # noqa: ANN001
            calls["keys"] = keys
            return [_definition("vehicle_limit", "10")]

        async def list_overrides(self, *, org_ids=None, keys=None):  # noqa: ANN001
            calls["org_ids"] = org_ids
            return [SimpleNamespace(org_id="org_b", feature_key="vehicle_limit", value="99")]

    class FakePlanFeatureRepo:
        def __init__(self, session):  # noqa: ANN001
            pass

        async def list_for_plans(self, plan_ids):  # noqa: ANN001
            calls["plan_ids"] = plan_ids
            return [SimpleNamespace(plan_id="pro", feature_key="vehicle_limit", value="50")]

    monkeypatch.setattr(features, "FeatureRepository", FakeFeatureRepo)
    monkeypatch.setattr(features, "PlanFeatureRepository", FakePlanFeatureRepo)

    organizations = [
        SimpleNamespace(id="org_a", plan_id="pro"),
        SimpleNamespace(id="org_b", plan_id="pro"),
        SimpleNamespace(id="org_c", plan_id=None),
    ]
    resolved = await load_effective_features(object(), organizations, keys=("vehicle_limit",))

    assert calls == {"keys": ("vehicle_limit",), "plan_ids": ["pro"], "org_ids": ["org_a", "org_b", "org_c"]}
    assert [(f.value_as_text, f.source) for f in resolved["org_a"]] == [("50", "plan")]
    assert [(f.value_as_text, f.source) for f in resolved["org_b"]] == [("99", "override")]
    assert [(f.value_as_text, f.source) for f in resolved["org_c"]] == [("10", "default")]
