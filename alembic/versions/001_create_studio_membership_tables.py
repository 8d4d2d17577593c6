"""Create user profile, studio and studio membership tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- user_profiles (global) ---
    op.create_table(
        "user_profiles",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            primary_key=True,
        ),
        sa.Column("external_id", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("global_role", sa.String(20), nullable=False, server_default="User"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "global_role IN ('User', 'SiteAdmin')",
            name="ck_user_profiles_global_role",
        ),
    )

    # --- studios (global) ---
    op.create_table(
        "studios",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            primary_key=True,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("owner_id", sa.UUID(), sa.ForeignKey("user_profiles.id"), nullable=False),
        sa.Column("invite_token", sa.String(128), nullable=False),
        sa.Column(
            "invite_token_created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("join_password_hash", sa.String(128), nullable=True),
        sa.Column("join_password_salt", sa.String(64), nullable=True),
        sa.Column("join_password_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint("invite_token", name="uq_studios_invite_token"),
    )
    op.create_index("ix_studios_owner_id", "studios", ["owner_id"])

    # --- studio_memberships (studio-scoped) ---
    op.create_table(
        "studio_memberships",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            primary_key=True,
        ),
        sa.Column("studio_id", sa.UUID(), sa.ForeignKey("studios.id"), nullable=False),
        sa.Column("user_id", sa.UUID(), sa.ForeignKey("user_profiles.id"), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="Member"),
        sa.Column("status", sa.String(20), nullable=False, server_default="Pending"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint("user_id", name="uq_studio_memberships_user"),
        sa.CheckConstraint("role IN ('Admin', 'Member')", name="ck_studio_memberships_role"),
        sa.CheckConstraint(
            "status IN ('Pending', 'Approved', 'Denied', 'Removed')",
            name="ck_studio_memberships_status",
        ),
    )
    op.create_index("ix_studio_memberships_studio_id", "studio_memberships", ["studio_id"])
    op.create_index(
        "ix_studio_memberships_studio_created",
        "studio_memberships",
        ["studio_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_studio_memberships_studio_created", table_name="studio_memberships")
    op.drop_index("ix_studio_memberships_studio_id", table_name="studio_memberships")
    op.drop_table("studio_memberships")
    op.drop_index("ix_studios_owner_id", table_name="studios")
    op.drop_table("studios")
    op.drop_table("user_profiles")
