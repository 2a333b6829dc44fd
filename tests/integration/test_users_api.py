"""End-to-end tests for back-office account administration."""

import pytest

from churchadmin.core.security import verify_password
from churchadmin.db.models import Role, User

from tests import factories


pytestmark = pytest.mark.integration


class TestListUsers:

    def test_lists_accounts_with_member_and_role(self, client, db_session, admin_headers, admin_user):
        member = factories.create_member(db_session, name="Grace Lin")
        factories.create_user(db_session, member=member, role="staff", email="grace@example.org")

        response = client.get("/api/users", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()

        by_email = {u["email"]: u for u in data["users"]}
        assert set(by_email) == {"admin@example.org", "grace@example.org"}
        staff_role = db_session.query(Role).filter(Role.name == "staff").one()
        assert by_email["grace@example.org"]["role_id"] == staff_role.id
        assert by_email["grace@example.org"]["member"]["name"] == "Grace Lin"
        assert len(data["roles"]) == 6

    def test_requires_roles_manage(self, client, db_session, auth_headers):
        pastor = factories.create_user(db_session, role="pastor")
        assert client.get("/api/users", headers=auth_headers(pastor)).status_code == 403


class TestInviteUser:

    def test_invite(self, client, db_session, admin_headers, notifier):
        member = factories.create_member(db_session, name="New Leader")
        response = client.post(
            "/api/users",
            json={"member_id": member.id, "email": "leader@example.org", "role": "leader"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        created = db_session.query(User).filter(User.email == "leader@example.org").one()
        assert created.role == "leader"
        assert created.must_change_password is True
        assert created.email_verified is False
        assert created.verification_token

        kind, sent = notifier.sent[-1]
        assert kind == "user_invite"
        assert sent["to_email"] == "leader@example.org"
        assert sent["member_name"] == "New Leader"
        assert sent["verification_token"] == created.verification_token
        assert verify_password(sent["temp_password"], created.password_hash)

    def test_invite_by_role_id(self, client, db_session, admin_headers):
        member = factories.create_member(db_session)
        role = factories.create_role(db_session, name="Greeter")
        response = client.post(
            "/api/users",
            json={"member_id": member.id, "email": "greeter@example.org", "role": role.id},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["user"]["role"] == "Greeter"

    def test_invite_with_built_in_role_missing_its_row(self, client, db_session, admin_headers):
        db_session.query(Role).filter(Role.name == "volunteer").delete()
        db_session.commit()
        member = factories.create_member(db_session)
        response = client.post(
            "/api/users",
            json={"member_id": member.id, "email": "usher@example.org", "role": "volunteer"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["user"]["role"] == "volunteer"

    def test_undelivered_email_keeps_account(self, client, db_session, admin_headers, notifier):
        notifier.deliver = False
        member = factories.create_member(db_session)
        response = client.post(
            "/api/users",
            json={"member_id": member.id, "email": "quiet@example.org", "role": "staff"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert db_session.query(User).filter(User.email == "quiet@example.org").count() == 1

    def test_member_with_account_rejected(self, client, db_session, admin_headers):
        existing = factories.create_user(db_session)
        response = client.post(
            "/api/users",
            json={"member_id": existing.member_id, "email": "second@example.org", "role": "staff"},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert "member_id" in response.json()["errors"]

    def test_unknown_role(self, client, db_session, admin_headers):
        member = factories.create_member(db_session)
        response = client.post(
            "/api/users",
            json={"member_id": member.id, "email": "r@example.org", "role": "bishop"},
            headers=admin_headers,
        )
        assert response.status_code == 404

    def test_bad_email(self, client, db_session, admin_headers):
        member = factories.create_member(db_session)
        response = client.post(
            "/api/users",
            json={"member_id": member.id, "email": "nope", "role": "staff"},
            headers=admin_headers,
        )
        assert response.status_code == 400


class TestUpdateUser:

    def test_change_role_overrides_and_status(self, client, db_session, admin_headers):
        user = factories.create_user(db_session, role="readonly")
        response = client.put(
            f"/api/users/{user.id}",
            json={"role": "staff", "permission_overrides": ["members:read"], "status": "disabled"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        body = response.json()["user"]
        assert body["role"] == "staff"
        assert body["permission_overrides"] == ["members:read"]
        assert body["status"] == "disabled"

    def test_clear_overrides(self, client, db_session, admin_headers):
        user = factories.create_user(db_session, permission_overrides=["members:read"])
        response = client.put(f"/api/users/{user.id}", json={"permission_overrides": []}, headers=admin_headers)
        assert response.json()["user"]["permission_overrides"] == []

    def test_invalid_override(self, client, db_session, admin_headers):
        user = factories.create_user(db_session)
        response = client.put(
            f"/api/users/{user.id}", json={"permission_overrides": ["bogus:key"]}, headers=admin_headers,
        )
        assert response.status_code == 400

    def test_invalid_status(self, client, db_session, admin_headers):
        user = factories.create_user(db_session)
        response = client.put(f"/api/users/{user.id}", json={"status": "banned"}, headers=admin_headers)
        assert response.status_code == 400

    def test_unknown_user(self, client, admin_headers):
        assert client.put("/api/users/missing", json={}, headers=admin_headers).status_code == 404


class TestResendVerification:

    def test_resend_rotates_token(self, client, db_session, admin_headers, notifier):
        user = factories.create_user(db_session, email_verified=False, verification_token="old-token")
        response = client.post(f"/api/users/{user.id}/resend-verification", headers=admin_headers)
        assert response.status_code == 200

        db_session.refresh(user)
        assert user.verification_token != "old-token"
        kind, sent = notifier.sent[-1]
        assert kind == "verify_email"
        assert sent["verification_token"] == user.verification_token

    def test_already_verified(self, client, db_session, admin_headers):
        user = factories.create_user(db_session)
        response = client.post(f"/api/users/{user.id}/resend-verification", headers=admin_headers)
        assert response.status_code == 400
