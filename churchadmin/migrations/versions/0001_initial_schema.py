"""Initial schema: users, roles, members, tags, tag_rules, cell_groups, offerings, settings

Revision ID: 0001
Revises: None
Create Date: 2026-10-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables."""

    # --- roles ---
    op.create_table(
        "roles",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("permissions", sa.JSON(), nullable=False),
        sa.Column("is_system_role", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_roles"),
        sa.UniqueConstraint("name", name="uq_roles_name"),
    )
    op.create_index("ix_roles_name", "roles", ["name"])

    # --- members ---
    op.create_table(
        "members",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("gender", sa.String(20), nullable=True),
        sa.Column("birthday", sa.Date(), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("address", sa.String(1000), nullable=True),
        sa.Column("join_date", sa.Date(), nullable=True),
        sa.Column("baptism_date", sa.Date(), nullable=True),
        sa.Column("faith_status", sa.String(20), nullable=False),
        sa.Column("family_id", sa.String(36), nullable=True),
        sa.Column("cell_group_id", sa.String(36), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("tags", sa.Text(), nullable=False),
        sa.Column("health_notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_members"),
    )
    op.create_index("ix_members_email", "members", ["email"])
    op.create_index("ix_members_cell_group_id", "members", ["cell_group_id"])
    op.create_index("ix_members_status", "members", ["status"])

    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(100), nullable=False),
        sa.Column("permission_overrides", sa.JSON(), nullable=False),
        sa.Column("member_id", sa.String(36), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("must_change_password", sa.Boolean(), nullable=False),
        sa.Column("email_verified", sa.Boolean(), nullable=False),
        sa.Column("verification_token", sa.String(255), nullable=True),
        sa.Column("verification_sent_at", sa.DateTime(), nullable=True),
        sa.Column("last_login", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.UniqueConstraint("member_id", name="uq_users_member_id"),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_member_id", "users", ["member_id"])
    op.create_index("ix_users_verification_token", "users", ["verification_token"])

    # --- tags ---
    op.create_table(
        "tags",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("color", sa.String(20), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_tags"),
    )

    # --- tag_rules (FK -> tags) ---
    op.create_table(
        "tag_rules",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("tag_id", sa.String(36), nullable=False),
        sa.Column("condition_type", sa.String(20), nullable=False),
        sa.Column("condition_field", sa.String(100), nullable=False),
        sa.Column("condition_operator", sa.String(20), nullable=False),
        sa.Column("condition_value", sa.String(255), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_tag_rules"),
        sa.ForeignKeyConstraint(
            ["tag_id"],
            ["tags.id"],
            name="fk_tag_rules_tag_id_tags",
        ),
    )
    op.create_index("ix_tag_rules_tag_id", "tag_rules", ["tag_id"])

    # --- cell_groups ---
    op.create_table(
        "cell_groups",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("leader_id", sa.String(36), nullable=True),
        sa.Column("co_leaders", sa.String(1000), nullable=False),
        sa.Column("meeting_time", sa.String(255), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_cell_groups"),
    )

    # --- offerings ---
    op.create_table(
        "offerings",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("member_id", sa.String(36), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("method", sa.String(20), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_offerings"),
    )
    op.create_index("ix_offerings_member_id", "offerings", ["member_id"])

    # --- settings ---
    op.create_table(
        "settings",
        sa.Column("key", sa.String(100), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("updated_by", sa.String(255), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("key", name="pk_settings"),
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table("settings")
    op.drop_index("ix_offerings_member_id", table_name="offerings")
    op.drop_table("offerings")
    op.drop_table("cell_groups")
    op.drop_index("ix_tag_rules_tag_id", table_name="tag_rules")
    op.drop_table("tag_rules")
    op.drop_table("tags")
    op.drop_index("ix_users_verification_token", table_name="users")
    op.drop_index("ix_users_member_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    op.drop_index("ix_members_status", table_name="members")
    op.drop_index("ix_members_cell_group_id", table_name="members")
    op.drop_index("ix_members_email", table_name="members")
    op.drop_table("members")
    op.drop_index("ix_roles_name", table_name="roles")
    op.drop_table("roles")
