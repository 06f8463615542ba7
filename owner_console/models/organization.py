from __future__ import annotations

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from owner_console.models.base import TimestampedBase


class Organization(TimestampedBase):
    __tablename__ = "organizations"
    __table_args__ = (
        CheckConstraint(
            "billing_anchor_day IS NULL OR (billing_anchor_day BETWEEN 1 AND 28)",
            name="ck_organizations_billing_anchor_day",
        ),
    )

    # Same value as the Clerk organization id; never reassigned.
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    legal_name: Mapped[str | None] = mapped_column(String(255))
    slug: Mapped[str | None] = mapped_column(String(50))
    primary_email: Mapped[str | None] = mapped_column(String(255))
    primary_phone: Mapped[str | None] = mapped_column(String(50))
    address_line1: Mapped[str | None] = mapped_column(String(255))
    address_line2: Mapped[str | None] = mapped_column(String(255))
    city: Mapped[str | None] = mapped_column(String(120))
    state: Mapped[str | None] = mapped_column(String(120))
    zip_code: Mapped[str | None] = mapped_column(String(20))
    country: Mapped[str | None] = mapped_column(String(80), default="USA")
    is_provider: Mapped[bool] = mapped_column(nullable=False, default=True)
    is_broker: Mapped[bool] = mapped_column(nullable=False, default=False)
    active: Mapped[bool] = mapped_column(nullable=False, default=True, index=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    default_billing_terms: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    plan_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("plans.id", name="fk_organizations_plan_id"), index=True
    )
    billing_anchor_day: Mapped[int | None] = mapped_column(Integer)
