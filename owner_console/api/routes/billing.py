from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from owner_console.core.auth import AuthContext, require_owner
from owner_console.core.billing import (
    BILLING_FEATURE_KEYS,
    BillingReadiness,
    ReadinessFilter,
    ReadinessSort,
    compute_billing_readiness,
    filter_and_sort,
    summarize,
)
from owner_console.core.db import get_db_session
from owner_console.core.features import load_effective_features
from owner_console.core.repositories.organizations import OrganizationRepository
from owner_console.core.repositories.plans import PlanRepository
from owner_console.schemas.billing import (
    BillingFeatures,
    BillingOrganizationResponse,
    BillingReadinessResponse,
    BillingSummaryResponse,
)

router = APIRouter(prefix="/billing", tags=["billing"])


def _to_response(item: BillingReadiness) -> BillingOrganizationResponse:
    return BillingOrganizationResponse(
        id=item.id,
        name=item.name,
        legal_name=item.legal_name,
        plan_id=item.plan_id,
        plan_name=item.plan_name,
        billing_anchor_day=item.billing_anchor_day,
        primary_email=item.primary_email,
        primary_phone=item.primary_phone,
        active=item.active,
        created_at=item.created_at,
        ready=item.ready,
        blockers=item.blockers,
        next_invoice_date=item.next_invoice_date,
        features=BillingFeatures(**item.features),
    )


@router.get("/readiness", response_model=BillingReadinessResponse)
async def billing_readiness(
    readiness_filter: ReadinessFilter = Query(default="all", alias="filter"),
    sort: ReadinessSort = Query(default="name"),
    _: AuthContext = Depends(require_owner),
    session: AsyncSession = Depends(get_db_session),
) -> BillingReadinessResponse:
    organizations = await OrganizationRepository(session).list_for_billing()
    plan_names = await PlanRepository(session).name_lookup()
    effective = await load_effective_features(session, organizations, keys=BILLING_FEATURE_KEYS)

    readiness = compute_billing_readiness(
        organizations,
        plan_names,
        [feature for features in effective.values() for feature in features],
        today=datetime.now(timezone.utc).date(),
    )
    summary = summarize(readiness)
    selected = filter_and_sort(readiness, readiness_filter=readiness_filter, sort=sort)

    return BillingReadinessResponse(
        summary=BillingSummaryResponse(
            ready_count=summary.ready_count,
            missing_plan=summary.missing_plan,
            missing_anchor=summary.missing_anchor,
            total=summary.total,
        ),
        organizations=[_to_response(item) for item in selected],
    )
