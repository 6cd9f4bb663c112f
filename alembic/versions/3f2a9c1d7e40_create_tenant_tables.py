"""create tenants, employees and rating tables

Revision ID: 3f2a9c1d7e40
Revises: 
Create Date: 2026-10-19 10:12:44.120318

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e40'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("principal_id", sa.String(64), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("first_name", sa.String(60), nullable=True),
        sa.Column("last_name", sa.String(60), nullable=True),
        sa.Column("phone", sa.String(24), nullable=True),
        sa.Column("address", sa.String(120), nullable=True),
        sa.Column("brand_name", sa.String(80), nullable=True),
        sa.Column("brand_slug", sa.String(100), nullable=True),
        sa.Column("admin_path", sa.String(120), nullable=True),
        sa.Column("public_path", sa.String(120), nullable=True),
        sa.Column("logo_url", sa.String(2048), nullable=True),
        sa.Column("onboarding_complete", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_tenants_principal_id", "tenants", ["principal_id"], unique=True)
    # NULL until onboarding; Postgres allows many NULLs under a unique index
    op.create_index("ix_tenants_brand_slug", "tenants", ["brand_slug"], unique=True)

    op.create_table(
        "employees",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("principal_id", sa.String(64), nullable=False),
        sa.Column("first_name", sa.String(60), nullable=False),
        sa.Column("last_name", sa.String(60), nullable=False),
        sa.Column("dni", sa.String(20), nullable=False),
        sa.Column("phone", sa.String(24), nullable=False),
        sa.Column("mercadopago_link", sa.String(2048), nullable=False),
        sa.Column("photo_url", sa.String(2048), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_employees_tenant_id", "employees", ["tenant_id"])
    op.create_index("ix_employees_principal_id", "employees", ["principal_id"])

    op.create_table(
        "rating_configs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("features", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_rating_configs_tenant_id", "rating_configs", ["tenant_id"], unique=True)

    op.create_table(
        "rating_submissions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("brand_slug", sa.String(100), nullable=False),
        sa.Column("score_1", sa.Integer(), nullable=True),
        sa.Column("score_2", sa.Integer(), nullable=True),
        sa.Column("score_3", sa.Integer(), nullable=True),
        sa.Column("score_4", sa.Integer(), nullable=True),
        sa.Column("score_5", sa.Integer(), nullable=True),
        sa.Column("comment", sa.String(300), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_rating_submissions_tenant_id", "rating_submissions", ["tenant_id"])
    op.create_index("ix_rating_submissions_brand_slug", "rating_submissions", ["brand_slug"])


def downgrade() -> None:
    op.drop_table("rating_submissions")
    op.drop_table("rating_configs")
    op.drop_table("employees")
    op.drop_table("tenants")
