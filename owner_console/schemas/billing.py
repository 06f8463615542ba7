from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class BillingFeatures(BaseModel):
    min_monthly_cents: str | None = None
    vehicle_unit_price_cents: str | None = None
    vehicle_limit: str | None = None


class BillingOrganizationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    legal_name: str | None = None
    plan_id: str | None = None
    plan_name: str | None = None
    billing_anchor_day: int | None = None
    primary_email: str | None = None
    primary_phone: str | None = None
    active: bool
    created_at: datetime | None = None
    ready: bool
    blockers: list[str]
    next_invoice_date: date | None = None
    features: BillingFeatures


class BillingSummaryResponse(BaseModel):
    ready_count: int
    missing_plan: int
    missing_anchor: int
    total: int


class BillingReadinessResponse(BaseModel):
    summary: BillingSummaryResponse
    organizations: list[BillingOrganizationResponse]
