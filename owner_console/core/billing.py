from __future__ import annotations

import calendar
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal, Protocol

BILLING_FEATURE_KEYS = (
    "min_monthly_cents",
    "vehicle_unit_price_cents",
    "vehicle_limit",
)

BLOCKER_NO_PLAN = "Assign a subscription plan"
BLOCKER_UNKNOWN_PLAN = "Referenced plan no longer exists"
BLOCKER_NO_ANCHOR = "Set billing anchor day"
BLOCKER_NO_EMAIL = "Add billing email"

ReadinessFilter = Literal["all", "ready", "needs_attention"]
ReadinessSort = Literal["name", "anchor", "plan"]


class BillableOrganization(Protocol):
    id: str
    name: str
    legal_name: str | None
    plan_id: str | None
    billing_anchor_day: int | None
    primary_email: str | None
    primary_phone: str | None
    active: bool | None
    created_at: datetime | None


class FeatureValue(Protocol):
    org_id: str
    feature_key: str
    value_as_text: str | None


@dataclass(slots=True)
class BillingReadiness:
    id: str
    name: str
    legal_name: str | None
    plan_id: str | None
    plan_name: str | None
    billing_anchor_day: int | None
    primary_email: str | None
    primary_phone: str | None
    active: bool
    created_at: datetime | None
    ready: bool
    blockers: list[str]
    next_invoice_date: date | None
    features: dict[str, str | None] = field(default_factory=dict)


@dataclass(slots=True)
class BillingSummary:
    ready_count: int
    missing_plan: int
    missing_anchor: int
    total: int


def billing_blockers(
    *,
    plan_id: str | None,
    plan_name: str | None,
    billing_anchor_day: int | None,
    primary_email: str | None,
) -> list[str]:
    blockers: list[str] = []
    if not plan_id:
        blockers.append(BLOCKER_NO_PLAN)
    if plan_id and plan_name is None:
        blockers.append(BLOCKER_UNKNOWN_PLAN)
    if plan_id and not billing_anchor_day:
        blockers.append(BLOCKER_NO_ANCHOR)
    if not primary_email:
        blockers.append(BLOCKER_NO_EMAIL)
    return blockers


def next_invoice_date(anchor_day: int | None, today: date) -> date | None:
    """Next date falling on ``anchor_day``.

    Today counts as already invoiced, so an anchor day on or before today's
    day-of-month rolls to next month. The day is clamped to the length of the
    target month.
    """
    if not anchor_day:
        return None

    year, month = today.year, today.month
    if today.day >= anchor_day:
        month += 1
        if month > 12:
            year, month = year + 1, 1

    day = min(anchor_day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def compute_billing_readiness(
    organizations: Iterable[BillableOrganization],
    plan_names: Mapping[str, str],
    feature_rows: Iterable[FeatureValue],
    today: date,
) -> list[BillingReadiness]:
    features_by_org: dict[str, dict[str, str | None]] = {}
    for row in feature_rows:
        if row.feature_key in BILLING_FEATURE_KEYS:
            features_by_org.setdefault(row.org_id, {})[row.feature_key] = row.value_as_text

    results: list[BillingReadiness] = []
    for org in organizations:
        plan_name = plan_names.get(org.plan_id) if org.plan_id else None
        blockers = billing_blockers(
            plan_id=org.plan_id,
            plan_name=plan_name,
            billing_anchor_day=org.billing_anchor_day,
            primary_email=org.primary_email,
        )
        org_features = features_by_org.get(org.id, {})
        results.append(
            BillingReadiness(
                id=org.id,
                name=org.name,
                legal_name=org.legal_name,
                plan_id=org.plan_id,
                plan_name=plan_name,
                billing_anchor_day=org.billing_anchor_day,
                primary_email=org.primary_email,
                primary_phone=org.primary_phone,
                active=bool(org.active),
                created_at=org.created_at,
                ready=not blockers,
                blockers=blockers,
                next_invoice_date=next_invoice_date(org.billing_anchor_day, today),
                features={key: org_features.get(key) for key in BILLING_FEATURE_KEYS},
            )
        )
    return results


def summarize(readiness: Sequence[BillingReadiness]) -> BillingSummary:
    return BillingSummary(
        ready_count=sum(1 for org in readiness if org.ready),
        missing_plan=sum(1 for org in readiness if not org.plan_id),
        missing_anchor=sum(1 for org in readiness if org.plan_id and not org.billing_anchor_day),
        total=len(readiness),
    )


def filter_and_sort(
    readiness: Sequence[BillingReadiness],
    *,
    readiness_filter: ReadinessFilter = "all",
    sort: ReadinessSort = "name",
) -> list[BillingReadiness]:
    if readiness_filter == "ready":
        selected = [org for org in readiness if org.ready]
    elif readiness_filter == "needs_attention":
        selected = [org for org in readiness if not org.ready]
    else:
        selected = list(readiness)

    if sort == "anchor":
        return sorted(
            selected,
            key=lambda org: (org.billing_anchor_day is None, org.billing_anchor_day or 0),
        )
    if sort == "plan":
        return sorted(
            selected,
            key=lambda org: (
                org.plan_name is None and org.plan_id is None,
                (org.plan_name or org.plan_id or "").casefold(),
            ),
        )
    return sorted(selected, key=lambda org: org.name.casefold())
