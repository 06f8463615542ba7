from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from owner_console.models.base import Base, utcnow


class Plan(Base):
    __tablename__ = "plans"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class PlanFeature(Base):
    __tablename__ = "plan_features"

    plan_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("plans.id", name="fk_plan_features_plan_id"), primary_key=True
    )
    feature_key: Mapped[str] = mapped_column(
        String(120),
        ForeignKey("feature_definitions.key", name="fk_plan_features_feature_key"),
        primary_key=True,
    )
    value: Mapped[str] = mapped_column(Text, nullable=False)
    enforced: Mapped[bool] = mapped_column(nullable=False, default=True)
