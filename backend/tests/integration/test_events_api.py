"""
Integration tests for Events API endpoints.

Tests end-to-end flows through the FastAPI app with the real notification,
mail and user directory services and photo storage in a temporary
directory:
- Creating events from multipart payloads with photos and polls
- Listing, searching and getting events
- Updating events (photo replacement, first poll attachment)
- Soft deleting events
- Voting, including duplicate votes
- Error status mapping
"""

import json

import pytest

from backend.src.models import Event, MailMessage, Notification


def _create(test_client, photos=None, **payload):
    body = {"title": "Standup", "type": "meeting", "start_date": "2026-03-02T09:00:00"}
    body.update(payload)
    return test_client.post(
        "/api/events",
        data={"payload": json.dumps(body)},
        files=photos or None,
    )


def _jpeg(name="photo.jpg"):
    return ("photos", (name, b"\xff\xd8\xff\xe0jpeg", "image/jpeg"))


class TestCreateEventAPI:
    """POST /api/events"""

    def test_create_with_default_participants(self, test_client, test_db_session, sample_user):
        ada = sample_user("ada@example.com")
        bob = sample_user("bob@example.com")

        response = _create(test_client, participants=[])

        assert response.status_code == 201
        data = response.json()
        assert data["guid"].startswith("evt_")
        assert data["participants"] == [ada.guid, bob.guid]
        assert data["end_date"] == data["start_date"] == "2026-03-02T09:00:00Z"
        assert data["poll"] is None
        assert "id" not in data

        notifications = test_db_session.query(Notification).all()
        assert [n.title for n in notifications] == ["Event Created"]
        assert notifications[0].subject_id == data["guid"]

        mail = test_db_session.query(MailMessage).one()
        assert mail.recipients == [ada.guid, bob.guid]
        assert mail.subject == "Standup - meeting"

    def test_create_with_photos_and_poll(self, test_client, photo_dir):
        response = _create(
            test_client,
            photos=[_jpeg("a.jpg"), _jpeg("b.png")],
            participants=["u1"],
            poll={"question": "Lunch?", "options": [{"label": "A", "votes": 9, "voters": ["x"]}, {"label": "B"}]},
        )

        assert response.status_code == 201
        data = response.json()
        assert len(data["photo"]) == 2
        assert data["photo"][0].startswith("/media/photos/event_photo/")
        assert data["photo"][0].endswith(".jpg")
        assert data["photo"][1].endswith(".png")
        assert len(list((photo_dir / "event_photo").iterdir())) == 2
        assert data["poll"] == {
            "question": "Lunch?",
            "options": [
                {"label": "A", "votes": 0, "voters": []},
                {"label": "B", "votes": 0, "voters": []},
            ],
        }

    def test_timezone_aware_dates_are_normalized(self, test_client):
        response = _create(
            test_client,
            participants=["u1"],
            start_date="2026-03-02T10:00:00+01:00",
            end_date="2026-03-02T11:00:00+01:00",
        )

        assert response.status_code == 201
        assert response.json()["start_date"] == "2026-03-02T09:00:00Z"

    def test_invalid_date_range(self, test_client, test_db_session):
        response = _create(test_client, participants=["u1"], end_date="2026-03-01T09:00:00")

        assert response.status_code == 400
        assert test_db_session.query(Event).count() == 0

    def test_invalid_poll(self, test_client):
        response = _create(
            test_client,
            participants=["u1"],
            poll={"question": "Lunch?", "options": []},
        )

        assert response.status_code == 400

    def test_rejected_photo_leaves_nothing(self, test_client, test_db_session, photo_dir):
        response = _create(
            test_client,
            photos=[_jpeg("ok.jpg"), ("photos", ("notes.txt", b"text", "text/plain"))],
            participants=["u1"],
        )

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "UploadFailedError"
        assert response.json()["detail"]["event_guid"] is None
        assert test_db_session.query(Event).count() == 0
        assert list((photo_dir / "event_photo").iterdir()) == []

    def test_empty_directory_creates_without_mail(self, test_client, test_db_session):
        """Fresh install with no users: the event is created and no invitation is queued."""
        response = _create(test_client, participants=[])

        assert response.status_code == 201
        assert response.json()["participants"] == []
        event = test_db_session.query(Event).one()
        assert event.guid == response.json()["guid"]
        assert [n.title for n in test_db_session.query(Notification).all()] == ["Event Created"]
        assert test_db_session.query(MailMessage).count() == 0

    @pytest.mark.parametrize("payload", [
        "not json",
        json.dumps({"type": "meeting", "start_date": "2026-03-02T09:00:00"}),
        json.dumps({"title": "X", "type": "meeting", "start_date": "yesterday"}),
    ])
    def test_malformed_payload(self, test_client, payload):
        response = test_client.post("/api/events", data={"payload": payload})
        assert response.status_code == 422


class TestReadEventsAPI:
    """GET /api/events and GET /api/events/{guid}"""

    def test_list_and_search(self, test_client):
        _create(test_client, title="Team Standup", participants=["u1"])
        _create(test_client, title="Lunch", participants=["u1"])

        all_events = test_client.get("/api/events").json()
        found = test_client.get("/api/events", params={"search": "standup"}).json()

        assert [e["title"] for e in all_events["items"]] == ["Team Standup", "Lunch"]
        assert all_events["total"] == 2
        assert [e["title"] for e in found["items"]] == ["Team Standup"]

    def test_get(self, test_client):
        guid = _create(test_client, participants=["u1"]).json()["guid"]

        response = test_client.get(f"/api/events/{guid}")

        assert response.status_code == 200
        assert response.json()["guid"] == guid

    def test_get_unknown(self, test_client):
        assert test_client.get("/api/events/evt_01hgw2bbg00000000000000000").status_code == 404

    def test_get_malformed(self, test_client):
        assert test_client.get("/api/events/123").status_code == 404


class TestUpdateEventAPI:
    """PATCH /api/events/{guid}"""

    def test_partial_update_keeps_photos(self, test_client, test_db_session):
        created = _create(test_client, photos=[_jpeg()], participants=["u1"]).json()

        response = test_client.patch(
            f"/api/events/{created['guid']}",
            data={"payload": json.dumps({"title": "Renamed"})},
        )

        assert response.status_code == 200
        assert response.json()["title"] == "Renamed"
        assert response.json()["photo"] == created["photo"]
        titles = [n.title for n in test_db_session.query(Notification).order_by(Notification.id)]
        assert titles == ["Event Created", "Event Updated"]
        assert test_db_session.query(MailMessage).count() == 1

    def test_photos_replace_existing(self, test_client):
        created = _create(test_client, photos=[_jpeg("old.jpg")], participants=["u1"]).json()

        response = test_client.patch(
            f"/api/events/{created['guid']}",
            files=[_jpeg("new1.jpg"), _jpeg("new2.jpg")],
        )

        assert response.status_code == 200
        photos = response.json()["photo"]
        assert len(photos) == 2
        assert created["photo"][0] not in photos

    def test_add_poll_then_reject_second(self, test_client):
        guid = _create(test_client, participants=["u1"]).json()["guid"]
        poll = {"question": "Where?", "options": [{"label": "Here"}]}

        first = test_client.patch(f"/api/events/{guid}", data={"payload": json.dumps({"poll": poll})})
        second = test_client.patch(f"/api/events/{guid}", data={"payload": json.dumps({"poll": poll})})

        assert first.status_code == 200
        assert first.json()["poll"]["options"] == [{"label": "Here", "votes": 0, "voters": []}]
        assert second.status_code == 400

    def test_invalid_date_range(self, test_client):
        guid = _create(test_client, participants=["u1"]).json()["guid"]

        response = test_client.patch(
            f"/api/events/{guid}",
            data={"payload": json.dumps({"end_date": "2026-03-01T00:00:00"})},
        )

        assert response.status_code == 400

    def test_update_unknown(self, test_client):
        response = test_client.patch(
            "/api/events/evt_01hgw2bbg00000000000000000",
            data={"payload": json.dumps({"title": "X"})},
        )
        assert response.status_code == 404


class TestDeleteEventAPI:
    """DELETE /api/events/{guid}"""

    def test_soft_delete(self, test_client, test_db_session):
        guid = _create(test_client, participants=["u1"]).json()["guid"]

        response = test_client.delete(f"/api/events/{guid}")

        assert response.status_code == 204
        assert test_client.get(f"/api/events/{guid}").status_code == 404
        assert test_client.get("/api/events").json()["total"] == 0
        assert test_client.delete(f"/api/events/{guid}").status_code == 404

        test_db_session.expire_all()
        assert test_db_session.query(Event).one().is_deleted is True


class TestVoteAPI:
    """POST /api/events/{guid}/votes"""

    @pytest.fixture
    def poll_guid(self, test_client):
        return _create(
            test_client,
            participants=["u1", "u2"],
            poll={"question": "Lunch?", "options": [{"label": "Pizza"}, {"label": "Sushi"}]},
        ).json()["guid"]

    def test_vote(self, test_client, poll_guid):
        response = test_client.post(
            f"/api/events/{poll_guid}/votes",
            json={"option_label": "Pizza", "voter_id": "u1"},
        )

        assert response.status_code == 200
        options = response.json()["poll"]["options"]
        assert options[0] == {"label": "Pizza", "votes": 1, "voters": ["u1"]}

    def test_duplicate_vote(self, test_client, poll_guid):
        test_client.post(f"/api/events/{poll_guid}/votes", json={"option_label": "Pizza", "voter_id": "u1"})

        response = test_client.post(
            f"/api/events/{poll_guid}/votes",
            json={"option_label": "Sushi", "voter_id": "u1"},
        )

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "AlreadyVotedError"
        poll = test_client.get(f"/api/events/{poll_guid}").json()["poll"]
        assert [o["votes"] for o in poll["options"]] == [1, 0]

    def test_unknown_option(self, test_client, poll_guid):
        response = test_client.post(
            f"/api/events/{poll_guid}/votes",
            json={"option_label": "Tacos", "voter_id": "u1"},
        )
        assert response.status_code == 400

    def test_vote_on_deleted_event(self, test_client, poll_guid):
        test_client.delete(f"/api/events/{poll_guid}")

        response = test_client.post(
            f"/api/events/{poll_guid}/votes",
            json={"option_label": "Pizza", "voter_id": "u1"},
        )
        assert response.status_code == 404

    def test_missing_voter(self, test_client, poll_guid):
        response = test_client.post(f"/api/events/{poll_guid}/votes", json={"option_label": "Pizza"})
        assert response.status_code == 422


class TestHealthAPI:
    """GET /health"""

    def test_health(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestMisconfiguredMailAPI:
    """Events API with a missing mail template directory."""

    @pytest.fixture
    def broken_mail_client(self, test_client, tmp_path):
        from fastapi import Depends
        from sqlalchemy.orm import Session

        from backend.src.api.events import get_mailer
        from backend.src.db.database import get_db
        from backend.src.main import app
        from backend.src.services.mail_service import MailService

        def get_broken_mailer(db: Session = Depends(get_db)):
            return MailService(db=db, template_dir=tmp_path / "absent", sender="events@example.com")

        app.dependency_overrides[get_mailer] = get_broken_mailer
        return test_client

    def test_reads_still_work(self, broken_mail_client, sample_event):
        event = sample_event()

        assert broken_mail_client.get("/api/events").status_code == 200
        assert broken_mail_client.get(f"/api/events/{event.guid}").status_code == 200

    def test_create_reports_mail_failure(self, broken_mail_client, test_db_session):
        response = _create(broken_mail_client, participants=["u1"])

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["error"] == "MailFailedError"
        assert detail["event_guid"] == test_db_session.query(Event).one().guid
