from __future__ import annotations

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from owner_console.models.base import Base


class FeatureDefinition(Base):
    """Feature catalog entry. Maintained outside the console."""

    __tablename__ = "feature_definitions"

    key: Mapped[str] = mapped_column(String(120), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    ftype: Mapped[str] = mapped_column(String(20), nullable=False, default="text")
    default_value: Mapped[str | None] = mapped_column(Text)
    unit: Mapped[str | None] = mapped_column(String(40))
    is_metered: Mapped[bool] = mapped_column(nullable=False, default=False)


class OrganizationFeature(Base):
    """Organization-level feature override."""

    __tablename__ = "organization_features"

    org_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("organizations.id", name="fk_organization_features_org_id"), primary_key=True
    )
    feature_key: Mapped[str] = mapped_column(
        String(120),
        ForeignKey("feature_definitions.key", name="fk_organization_features_feature_key"),
        primary_key=True,
    )
    value: Mapped[str] = mapped_column(Text, nullable=False)
