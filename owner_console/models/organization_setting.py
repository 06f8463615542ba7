from __future__ import annotations

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from owner_console.models.base import Base


class OrganizationSetting(Base):
    __tablename__ = "organization_settings"

    org_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("organizations.id", name="fk_organization_settings_org_id"), primary_key=True
    )
    setting_key: Mapped[str] = mapped_column(String(120), primary_key=True)
    setting_value: Mapped[str] = mapped_column(Text, nullable=False)
    setting_type: Mapped[str] = mapped_column(String(20), nullable=False, default="string")
