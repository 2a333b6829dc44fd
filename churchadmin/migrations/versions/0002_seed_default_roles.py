"""Seed the built-in system roles

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-01

Creates the six system roles (admin, pastor, leader, staff, volunteer,
readonly). Roles that already exist keep their edited permission sets.
"""
from typing import Sequence, Union
import json
import uuid
from datetime import datetime, timezone

from alembic import op
import sqlalchemy as sa

from churchadmin.core.rbac.roles import get_all_default_roles

# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: Union[str, Sequence[str], None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Insert any missing system role."""
    connection = op.get_bind()
    now = datetime.now(timezone.utc).replace(tzinfo=None)

    for role_name, role_config in get_all_default_roles().items():
        existing = connection.execute(
            sa.text("SELECT id FROM roles WHERE name = :name"),
            {"name": role_name},
        ).fetchone()

        if existing:
            continue

        connection.execute(
            sa.text("""
                INSERT INTO roles
                    (id, name, description, permissions, is_system_role,
                     created_at, updated_at, version)
                VALUES
                    (:id, :name, :description, :permissions, :is_system_role,
                     :now, :now, 1)
            """),
            {
                "id": str(uuid.uuid4()),
                "name": role_name,
                "description": role_config["description"],
                "permissions": json.dumps(role_config["permissions"]),
                "is_system_role": True,
                "now": now,
            },
        )


def downgrade() -> None:
    """Remove seeded system roles."""
    connection = op.get_bind()

    for role_name in get_all_default_roles():
        connection.execute(
            sa.text("DELETE FROM roles WHERE name = :name AND is_system_role = :flag"),
            {"name": role_name, "flag": True},
        )
