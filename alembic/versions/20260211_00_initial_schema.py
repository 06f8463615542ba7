"""create owner console schema

Revision ID: 20260211_00
Revises:
Create Date: 2026-02-11 13:35:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20260211_00"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "plans",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "feature_definitions",
        sa.Column("key", sa.String(length=120), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("ftype", sa.String(length=20), nullable=False, server_default="text"),
        sa.Column("default_value", sa.Text(), nullable=True),
        sa.Column("unit", sa.String(length=40), nullable=True),
        sa.Column("is_metered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("key"),
    )

    op.create_table(
        "organizations",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("legal_name", sa.String(length=255), nullable=True),
        sa.Column("slug", sa.String(length=50), nullable=True),
        sa.Column("primary_email", sa.String(length=255), nullable=True),
        sa.Column("primary_phone", sa.String(length=50), nullable=True),
        sa.Column("address_line1", sa.String(length=255), nullable=True),
        sa.Column("address_line2", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.Column("state", sa.String(length=120), nullable=True),
        sa.Column("zip_code", sa.String(length=20), nullable=True),
        sa.Column("country", sa.String(length=80), nullable=True, server_default="USA"),
        sa.Column("is_provider", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_broker", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("default_billing_terms", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("plan_id", sa.String(length=64), nullable=True),
        sa.Column("billing_anchor_day", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["plan_id"], ["plans.id"], name="fk_organizations_plan_id"),
        sa.CheckConstraint(
            "billing_anchor_day IS NULL OR (billing_anchor_day BETWEEN 1 AND 28)",
            name="ck_organizations_billing_anchor_day",
        ),
    )
    op.create_index("ix_organizations_active", "organizations", ["active"], unique=False)
    op.create_index("ix_organizations_plan_id", "organizations", ["plan_id"], unique=False)

    op.create_table(
        "plan_features",
        sa.Column("plan_id", sa.String(length=64), nullable=False),
        sa.Column("feature_key", sa.String(length=120), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("enforced", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint("plan_id", "feature_key"),
        sa.ForeignKeyConstraint(["plan_id"], ["plans.id"], name="fk_plan_features_plan_id"),
        sa.ForeignKeyConstraint(
            ["feature_key"], ["feature_definitions.key"], name="fk_plan_features_feature_key"
        ),
    )

    op.create_table(
        "organization_features",
        sa.Column("org_id", sa.String(length=64), nullable=False),
        sa.Column("feature_key", sa.String(length=120), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("org_id", "feature_key"),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], name="fk_organization_features_org_id"),
        sa.ForeignKeyConstraint(
            ["feature_key"], ["feature_definitions.key"], name="fk_organization_features_feature_key"
        ),
    )

    op.create_table(
        "organization_settings",
        sa.Column("org_id", sa.String(length=64), nullable=False),
        sa.Column("setting_key", sa.String(length=120), nullable=False),
        sa.Column("setting_value", sa.Text(), nullable=False),
        sa.Column("setting_type", sa.String(length=20), nullable=False, server_default="string"),
        sa.PrimaryKeyConstraint("org_id", "setting_key"),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], name="fk_organization_settings_org_id"),
    )


def downgrade() -> None:
    op.drop_table("organization_settings")
    op.drop_table("organization_features")
    op.drop_table("plan_features")
    op.drop_index("ix_organizations_plan_id", table_name="organizations")
    op.drop_index("ix_organizations_active", table_name="organizations")
    op.drop_table("organizations")
    op.drop_table("feature_definitions")
    op.drop_table("plans")
