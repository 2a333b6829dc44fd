"""End-to-end tests for events, registration and check-in."""

import json
from datetime import timedelta

import pytest

from churchadmin.db.base import utcnow
from churchadmin.db.models import Event, EventRegistration, Member

from tests import factories


pytestmark = pytest.mark.integration


@pytest.fixture
def staff_headers(db_session, auth_headers):
    return auth_headers(factories.create_user(db_session, role="staff"))


@pytest.fixture
def volunteer_headers(db_session, auth_headers):
    return auth_headers(factories.create_user(db_session, role="volunteer"))


def _event_body(**overrides) -> dict:
    start = (utcnow() + timedelta(days=10)).replace(microsecond=0)
    body = {
        "title": "Easter Service",
        "start_date": start.isoformat(),
        "location": "Main sanctuary",
        "capacity": 100,
        "status": "published",
    }
    body.update(overrides)
    return body


class TestPublicListing:

    def test_anonymous_sees_published_only(self, client, db_session):
        published = factories.create_event(db_session)
        factories.create_event(db_session, status="draft")

        data = client.get("/api/events").json()
        assert [e["id"] for e in data["events"]] == [published.id]
        assert data["total"] == 1

    def test_ended_events_are_closed_and_hidden(self, client, db_session):
        ended = factories.create_event(
            db_session, starts_in=timedelta(days=-2), end_date=utcnow() - timedelta(days=1),
        )
        assert client.get("/api/events").json()["events"] == []

        db_session.expire_all()
        assert db_session.get(Event, ended.id).status == "closed"

    def test_signed_in_user_sees_every_status(self, client, db_session, staff_headers):
        factories.create_event(db_session)
        factories.create_event(db_session, status="draft")
        assert client.get("/api/events", headers=staff_headers).json()["total"] == 2

    def test_sorted_by_start(self, client, db_session):
        later = factories.create_event(db_session, starts_in=timedelta(days=20))
        sooner = factories.create_event(db_session, starts_in=timedelta(days=2))
        ids = [e["id"] for e in client.get("/api/events").json()["events"]]
        assert ids == [sooner.id, later.id]

    def test_detail_reports_seats(self, client, db_session):
        event = factories.create_event(db_session, capacity=3)
        factories.create_registration(db_session, event=event)
        factories.create_registration(db_session, event=event, status="waitlist")

        data = client.get(f"/api/events/{event.id}").json()
        assert data["registrations"] == 1
        assert data["available"] == 2

    def test_draft_hidden_from_anonymous(self, client, db_session, staff_headers):
        draft = factories.create_event(db_session, status="draft")
        assert client.get(f"/api/events/{draft.id}").status_code == 404
        assert client.get(f"/api/events/{draft.id}", headers=staff_headers).status_code == 200

    def test_bad_token_rejected_on_public_route(self, client):
        response = client.get("/api/events", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401


class TestManageEvents:

    def test_create_defaults_end_and_deadline_to_start(self, client, staff_headers):
        response = client.post("/api/events", json=_event_body(), headers=staff_headers)
        assert response.status_code == 201
        event = response.json()["event"]
        assert event["end_date"] == event["start_date"]
        assert event["registration_deadline"] == event["start_date"]
        assert event["qr_code"]

    def test_create_validation(self, client, staff_headers):
        body = _event_body(title=" ", location="", capacity=-1)
        body["end_date"] = (utcnow() - timedelta(days=30)).isoformat()
        response = client.post("/api/events", json=body, headers=staff_headers)
        assert response.status_code == 400
        assert set(response.json()["errors"]) == {"title", "location", "capacity", "end_date"}

    def test_volunteer_cannot_create(self, client, volunteer_headers):
        assert client.post("/api/events", json=_event_body(), headers=volunteer_headers).status_code == 403

    def test_update_keeps_identity_fields(self, client, db_session, staff_headers):
        event = factories.create_event(db_session)
        qr_code = event.qr_code
        response = client.put(
            f"/api/events/{event.id}", json={"title": "Renamed", "capacity": 10}, headers=staff_headers,
        )
        assert response.status_code == 200
        body = response.json()["event"]
        assert body["title"] == "Renamed"
        assert body["capacity"] == 10
        assert body["qr_code"] == qr_code

    def test_update_checks_merged_dates(self, client, db_session, staff_headers):
        event = factories.create_event(db_session)
        before_start = (event.start_date - timedelta(days=1)).isoformat()
        response = client.put(f"/api/events/{event.id}", json={"end_date": before_start}, headers=staff_headers)
        assert response.status_code == 400
        assert "end_date" in response.json()["errors"]

    def test_delete_closes(self, client, db_session, auth_headers):
        event = factories.create_event(db_session)
        staff = factories.create_user(db_session, role="staff")
        assert client.delete(f"/api/events/{event.id}", headers=auth_headers(staff)).status_code == 403

        leader = factories.create_user(db_session, role="leader")
        assert client.delete(f"/api/events/{event.id}", headers=auth_headers(leader)).status_code == 200
        db_session.expire_all()
        assert db_session.get(Event, event.id).status == "closed"


class TestRegistration:

    def test_member_registers_and_gets_confirmation(self, client, db_session, auth_headers, notifier):
        event = factories.create_event(db_session, title="Retreat")
        member = factories.create_member(db_session, email="grace@example.org")
        user = factories.create_user(db_session, member=member)

        response = client.post(f"/api/events/{event.id}/register", headers=auth_headers(user))
        assert response.status_code == 201
        registration = response.json()["registration"]
        assert registration["status"] == "registered"
        assert registration["member_id"] == member.id

        kind, sent = notifier.sent[-1]
        assert kind == "event_confirmation"
        assert sent["to_email"] == "grace@example.org"
        assert sent["event_title"] == "Retreat"
        assert sent["waitlisted"] is False

    def test_full_event_waitlists(self, client, db_session, auth_headers):
        event = factories.create_event(db_session, capacity=1)
        factories.create_registration(db_session, event=event)
        user = factories.create_user(db_session)

        response = client.post(f"/api/events/{event.id}/register", headers=auth_headers(user))
        assert response.status_code == 201
        assert response.json()["registration"]["status"] == "waitlist"
        assert response.json()["message"] == "Added to the waitlist"

    def test_duplicate_registration(self, client, db_session, auth_headers):
        event = factories.create_event(db_session)
        user = factories.create_user(db_session)
        assert client.post(f"/api/events/{event.id}/register", headers=auth_headers(user)).status_code == 201
        response = client.post(f"/api/events/{event.id}/register", headers=auth_headers(user))
        assert response.status_code == 400
        assert "member_id" in response.json()["errors"]

    def test_closed_deadline(self, client, db_session, auth_headers):
        event = factories.create_event(db_session, registration_deadline=utcnow() - timedelta(hours=1))
        user = factories.create_user(db_session)
        response = client.post(f"/api/events/{event.id}/register", headers=auth_headers(user))
        assert response.status_code == 400
        assert response.json()["errors"]["event"] == "Registration has closed"

    def test_requires_sign_in(self, client, db_session):
        event = factories.create_event(db_session)
        assert client.post(f"/api/events/{event.id}/register").status_code == 401

    def test_public_registration_creates_newcomer(self, client, db_session):
        event = factories.create_event(db_session)
        response = client.post(
            f"/api/events/{event.id}/register-public",
            json={"name": "Visitor Chen", "phone": "0933-111-222"},
        )
        assert response.status_code == 201

        member = db_session.query(Member).filter(Member.name == "Visitor Chen").one()
        assert member.faith_status == "newcomer"
        assert response.json()["registration"]["member_id"] == member.id

    def test_public_registration_reuses_member(self, client, db_session):
        event = factories.create_event(db_session)
        member = factories.create_member(db_session, name="Grace Lin", phone="0912345678")
        response = client.post(
            f"/api/events/{event.id}/register-public",
            json={"name": "Grace Lin", "phone": "0912 345 678"},
        )
        assert response.json()["registration"]["member_id"] == member.id
        assert db_session.query(Member).filter(Member.name == "Grace Lin").count() == 1

    def test_public_registration_needs_phone(self, client, db_session):
        event = factories.create_event(db_session)
        response = client.post(f"/api/events/{event.id}/register-public", json={"name": "Visitor"})
        assert response.status_code == 400
        assert "phone" in response.json()["errors"]

    def test_public_registration_for_draft_event(self, client, db_session):
        event = factories.create_event(db_session, status="draft")
        response = client.post(
            f"/api/events/{event.id}/register-public",
            json={"name": "Visitor", "phone": "0933111222"},
        )
        assert response.status_code == 404
        assert db_session.query(Member).filter(Member.name == "Visitor").count() == 0


class TestCheckIn:

    def test_volunteer_checks_in_by_qr(self, client, db_session, volunteer_headers):
        event = factories.create_event(db_session)
        member = factories.create_member(db_session, name="Grace")
        registration = factories.create_registration(db_session, event=event, member=member)

        response = client.post(
            f"/api/events/{event.id}/checkin",
            json={"qr_data": json.dumps({"registration_id": registration.id})},
            headers=volunteer_headers,
        )
        assert response.status_code == 200
        assert response.json()["member"]["name"] == "Grace"
        assert response.json()["registration"]["checked_in_at"]

        again = client.post(
            f"/api/events/{event.id}/checkin",
            json={"registration_id": registration.id},
            headers=volunteer_headers,
        )
        assert again.status_code == 400

    def test_readonly_cannot_check_in(self, client, db_session, auth_headers):
        event = factories.create_event(db_session)
        registration = factories.create_registration(db_session, event=event)
        readonly = factories.create_user(db_session, role="readonly")
        response = client.post(
            f"/api/events/{event.id}/checkin",
            json={"registration_id": registration.id},
            headers=auth_headers(readonly),
        )
        assert response.status_code == 403
        assert response.json()["required"] == "events:checkin"

        db_session.expire_all()
        assert db_session.get(EventRegistration, registration.id).checked_in_at is None

    def test_registration_list_with_members(self, client, db_session, volunteer_headers):
        event = factories.create_event(db_session)
        member = factories.create_member(db_session, name="Grace", email="grace@example.org")
        factories.create_registration(db_session, event=event, member=member)

        data = client.get(f"/api/events/{event.id}/registrations", headers=volunteer_headers).json()
        assert data["total"] == 1
        assert data["registrations"][0]["member"]["email"] == "grace@example.org"
