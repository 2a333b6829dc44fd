"""Database seeding for Church Admin.

Creates the six system roles and an initial administrator account.
"""

from sqlalchemy.orm import Session

from churchadmin.core.rbac.roles import ADMIN, DEFAULT_ROLES
from churchadmin.core.security import get_password_hash
from churchadmin.db.models import Member, Role, User


def seed_default_roles(db: Session) -> dict[str, Role]:
    """
    Create the built-in roles.

    Roles are idempotent - if they already exist, returns existing roles
    without touching their (editable) permission sets.

    Args:
        db: Database session

    Returns:
        Dict mapping role name to Role object
    """
    created_roles = {}

    for role_name, role_config in DEFAULT_ROLES.items():
        existing = db.query(Role).filter(Role.name == role_name).first()
        if existing:
            created_roles[role_name] = existing
            continue

        role = Role(
            name=role_name,
            description=role_config["description"],
            permissions=list(role_config["permissions"]),
            is_system_role=True,
        )
        db.add(role)
        created_roles[role_name] = role

    db.flush()
    return created_roles


def seed_admin_user(
    db: Session,
    email: str,
    password: str,
    *,
    name: str = "Administrator",
) -> User:
    """
    Create the first admin account and the member record behind it.

    Returns the existing account when the email is already registered.
    The new account must change its password at first sign-in.
    """
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        return existing

    member = Member(name=name, email=email, status="active")
    db.add(member)
    db.flush()

    user = User(
        email=email,
        password_hash=get_password_hash(password),
        role=ADMIN,
        permission_overrides=[],
        member_id=member.id,
        status="active",
        must_change_password=True,
        email_verified=True,
    )
    db.add(user)
    db.flush()
    return user


# CLI script for seeding
if __name__ == "__main__":
    import argparse
    import sys
    from sqlalchemy.exc import SQLAlchemyError
    from churchadmin.db.session import SessionLocal

    parser = argparse.ArgumentParser(description="Seed roles and the first admin account")
    parser.add_argument("--admin-email", default="admin@church.com")
    parser.add_argument("--admin-password", required=True)
    args = parser.parse_args()

    db = SessionLocal()
    try:
        roles = seed_default_roles(db)
        print(f"Seeded {len(roles)} system roles:")
        for role in roles.values():
            perm_count = len(role.permissions) if role.permissions else 0
            perm_display = "all (*:*)" if role.permissions == ["*:*"] else f"{perm_count} permissions"
            print(f"  - {role.name}: {perm_display}")

        admin = seed_admin_user(db, args.admin_email, args.admin_password)
        print(f"\nAdmin account: {admin.email} (ID: {admin.id})")

        db.commit()
        print("\nSeeding complete!")

    except SQLAlchemyError as e:
        db.rollback()
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()
